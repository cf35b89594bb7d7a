"""Main KMB ETA tracker class."""

import asyncio
import logging
from typing import List, Optional

from .directory import DEFAULT_LANGUAGE, RouteDirectory, StopDirectory, check_language
from .eta import RouteStopSequencer, arrival_events_from_feed, join_etas
from .errors import UnknownStop
from .kmb_client import KMBClient
from .models import Direction, EtaBoard, RouteVariant

logger = logging.getLogger(__name__)


class ETATracker:
    """
    Answers route and ETA queries against the KMB open data.

    This class provides methods to:
    - Load the stop and route directories
    - Look up the variants of a route, or list every route
    - Get live arrivals for every stop of a route variant

    The directories are built once and only read afterwards.
    """

    def __init__(
        self,
        stops: StopDirectory,
        routes: RouteDirectory,
        client: Optional[KMBClient] = None,
    ):
        """
        Initialize the tracker.

        Args:
            stops: Loaded stop directory.
            routes: Loaded route directory.
            client: Client used for per-query fetches. A default client is created
                if omitted.
        """
        self.stops = stops
        self.routes = routes
        self.client = client or KMBClient()
        self.sequencer = RouteStopSequencer(self.client)

    @classmethod
    async def load(cls, client: Optional[KMBClient] = None, language: str = DEFAULT_LANGUAGE) -> "ETATracker":
        """
        Fetch the stop and route listings concurrently and build a tracker.

        Args:
            client: KMB API client. A default client is created if omitted.
            language: Display-name language ("en", "tc" or "sc").

        Raises:
            MalformedRecord: If either listing has a bad record.
            requests.RequestException: If either fetch fails.
        """
        check_language(language)
        client = client or KMBClient()
        stop_records, route_records = await asyncio.gather(
            asyncio.to_thread(client.get_stops),
            asyncio.to_thread(client.get_routes),
        )
        stops = StopDirectory.load(stop_records, language=language)
        routes = RouteDirectory.load(route_records, language=language)
        return cls(stops, routes, client=client)

    def get_route(self, route: str) -> List[RouteVariant]:
        """
        Get every variant of a route.

        Raises:
            UnknownRoute: If the route does not exist.
        """
        return self.routes.find(route.upper())

    def list_routes(self) -> List[RouteVariant]:
        """Get every route variant, ordered by route number."""
        return self.routes.all()

    async def get_eta(self, route: str, direction: str, service_type: int = 1) -> EtaBoard:
        """
        Get live arrivals for each stop of a route variant.

        Args:
            route: Route number, any case.
            direction: "inbound" or "outbound".
            service_type: Service type number.

        Returns:
            EtaBoard with one row per stop, in travel order.

        Raises:
            UnknownRouteVariant: If the route/direction/service type does not exist.
                Nothing is fetched in that case.
            InvalidFeedTimestamp: If the arrival feed has no usable reference time.
            UnknownStop: If a route stop is missing from the stop directory.
        """
        route_number = route.upper()
        self.routes.find_filtered(route_number, direction, service_type)
        wanted = Direction.from_name(direction)

        route_stops, feed = await asyncio.gather(
            asyncio.to_thread(self.sequencer.resolve, route_number, wanted, service_type),
            asyncio.to_thread(self.client.get_route_eta, route_number, service_type),
        )
        generated_at, events = arrival_events_from_feed(feed, wanted)
        logger.debug(f"Arrival feed generated at {generated_at.isoformat()} with {len(events)} entries")

        try:
            rows = join_etas(route_stops, events, wanted, generated_at, self.stops)
        except UnknownStop as e:
            raise UnknownStop(e.stop_id, route_number, direction, service_type) from e
        return EtaBoard(
            route_number=route_number,
            direction=wanted,
            service_type=service_type,
            generated_at=generated_at,
            rows=rows,
        )
