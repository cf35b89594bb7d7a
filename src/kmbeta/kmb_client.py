"""KMB open-data API fetcher."""

import logging
from typing import Any, Dict, List, Optional

import requests

from .errors import MalformedRecord

logger = logging.getLogger(__name__)

# KMB open data endpoints (https://data.etabus.gov.hk)
KMB_BASE_URL = "https://data.etabus.gov.hk"
STOP_PATH = "v1/transport/kmb/stop"
ROUTE_PATH = "v1/transport/kmb/route"
ROUTE_STOP_PATH = "v1/transport/kmb/route-stop"
ROUTE_ETA_PATH = "v1/transport/kmb/route-eta"

DEFAULT_TIMEOUT = 10


class KMBClient:
    """Fetches raw JSON listings from the KMB open-data API."""

    def __init__(
        self,
        base_url: str = KMB_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root, without a trailing slash.
            timeout: Per-request timeout in seconds.
            session: Optional requests session to reuse.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_stops(self) -> List[Dict[str, Any]]:
        """Fetch the bulk stop listing."""
        return self._data_list(self._fetch_json(STOP_PATH), STOP_PATH)

    def get_routes(self) -> List[Dict[str, Any]]:
        """Fetch the bulk route listing."""
        return self._data_list(self._fetch_json(ROUTE_PATH), ROUTE_PATH)

    def get_route_stops(self, route: str, direction: str, service_type: int) -> List[Dict[str, Any]]:
        """
        Fetch the stop sequence of one route variant.

        Args:
            route: Route number, e.g. "1A".
            direction: "inbound" or "outbound".
            service_type: Service type number.
        """
        path = f"{ROUTE_STOP_PATH}/{route}/{direction}/{service_type}"
        return self._data_list(self._fetch_json(path), path)

    def get_route_eta(self, route: str, service_type: int) -> Dict[str, Any]:
        """
        Fetch the live arrival feed for a route, both directions.

        Returns:
            The whole response body; "generated_timestamp" is the reference time
            for every estimate in "data".
        """
        path = f"{ROUTE_ETA_PATH}/{route}/{service_type}"
        body = self._fetch_json(path)
        if not isinstance(body, dict):
            raise MalformedRecord("route-eta", None, f"expected an object, got {type(body).__name__}")
        return body

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def _fetch_json(self, path: str) -> Any:
        """
        Fetch and decode one endpoint.

        Raises:
            requests.RequestException: On network failure or a non-success status.
        """
        url = f"{self.base_url}/{path}"
        logger.debug(f"Fetching {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch {url}: {e}")
            raise

    @staticmethod
    def _data_list(body: Any, path: str) -> List[Dict[str, Any]]:
        """Extract the "data" array of a listing response."""
        if not isinstance(body, dict):
            raise MalformedRecord(path, None, f"expected an object, got {type(body).__name__}")
        data = body.get("data")
        if data is None:
            return []
        if not isinstance(data, list):
            raise MalformedRecord(path, None, f"'data' must be a list, got {type(data).__name__}")
        logger.debug(f"Received {len(data)} records from {path}")
        return data
