"""In-memory stop and route directories built from the KMB bulk listings."""

import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import MalformedRecord, UnknownRoute, UnknownRouteVariant, UnknownStop
from .models import Direction, RouteVariant, StopRecord

logger = logging.getLogger(__name__)

# Display names are published in English, Traditional and Simplified Chinese
LANGUAGES = ("en", "tc", "sc")
DEFAULT_LANGUAGE = "tc"


def check_language(language: str) -> str:
    """Validate a display-name language code."""
    if language not in LANGUAGES:
        raise ValueError(f"Unsupported language '{language}', expected one of {', '.join(LANGUAGES)}")
    return language


def require_str(record: Any, key: str, kind: str, index: int) -> str:
    """Return a required string field, raising MalformedRecord otherwise."""
    if not isinstance(record, Mapping):
        raise MalformedRecord(kind, index, f"expected an object, got {type(record).__name__}")
    value = record.get(key)
    if not isinstance(value, str):
        if key not in record:
            raise MalformedRecord(kind, index, f"missing '{key}'")
        raise MalformedRecord(kind, index, f"'{key}' must be a string, got {type(value).__name__}")
    return value


def require_int(record: Any, key: str, kind: str, index: int, minimum: Optional[int] = None) -> int:
    """Return a required integer field, which upstream may encode as a string."""
    if not isinstance(record, Mapping):
        raise MalformedRecord(kind, index, f"expected an object, got {type(record).__name__}")
    if key not in record:
        raise MalformedRecord(kind, index, f"missing '{key}'")
    value = record[key]
    if isinstance(value, bool):
        raise MalformedRecord(kind, index, f"'{key}' must be an integer, got {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            raise MalformedRecord(kind, index, f"'{key}' must be an integer, got {value!r}") from None
    else:
        raise MalformedRecord(kind, index, f"'{key}' must be an integer, got {type(value).__name__}")
    if minimum is not None and number < minimum:
        raise MalformedRecord(kind, index, f"'{key}' must be >= {minimum}, got {number}")
    return number


class StopDirectory:
    """Maps stop IDs to display names.

    Built once from the bulk stop listing and read-only afterwards. If a stop ID
    appears more than once, the last record wins.
    """

    def __init__(self, stops: Optional[Dict[str, StopRecord]] = None):
        self._stops: Dict[str, StopRecord] = dict(stops or {})

    @classmethod
    def load(cls, records: Iterable[Any], language: str = DEFAULT_LANGUAGE) -> "StopDirectory":
        """
        Build a directory from raw stop records.

        Args:
            records: Upstream stop records, e.g. {"stop": "...", "name_tc": "..."}.
            language: Which display name to keep ("en", "tc" or "sc").

        Raises:
            MalformedRecord: If any record lacks a stop ID or display name. Nothing
                is loaded in that case.
        """
        name_key = f"name_{check_language(language)}"
        stops: Dict[str, StopRecord] = {}
        for index, record in enumerate(records):
            stop_id = require_str(record, "stop", "stop", index)
            display_name = require_str(record, name_key, "stop", index)
            stops[stop_id] = StopRecord(stop_id=stop_id, display_name=display_name)

        logger.info(f"Loaded {len(stops)} stops")
        return cls(stops)

    def lookup(self, stop_id: str) -> str:
        """Get the display name of a stop."""
        try:
            return self._stops[stop_id].display_name
        except KeyError:
            raise UnknownStop(stop_id) from None

    def __contains__(self, stop_id: object) -> bool:
        return stop_id in self._stops

    def __len__(self) -> int:
        return len(self._stops)


def _route_sort_key(route_number: str) -> Tuple[str, int, str]:
    """Sort routes naturally: 1, 1A, 2, 10, 11X, A31, N21."""
    match = re.match(r"^([A-Z]*)(\d*)(.*)$", route_number)
    prefix, digits, suffix = match.groups()
    return (prefix, int(digits) if digits else -1, suffix)


def _variant_sort_key(variant: RouteVariant) -> tuple:
    return (
        _route_sort_key(variant.route_number),
        variant.route_number,
        variant.service_type,
        variant.direction_name,
        variant.origin_name,
        variant.destination_name,
    )


class RouteDirectory:
    """Holds every route variant, sorted by route number, service type and direction.

    Duplicate variants under the same (route, direction, service type) key are
    all retained, matching what the upstream listing contains.
    """

    def __init__(self, variants: Optional[Iterable[RouteVariant]] = None):
        self._variants: List[RouteVariant] = sorted(variants or [], key=_variant_sort_key)
        self._by_route: Dict[str, List[RouteVariant]] = {}
        for variant in self._variants:
            self._by_route.setdefault(variant.route_number, []).append(variant)

    @classmethod
    def load(cls, records: Iterable[Any], language: str = DEFAULT_LANGUAGE) -> "RouteDirectory":
        """
        Build a directory from raw route records.

        Args:
            records: Upstream route records, e.g.
                {"route": "1A", "bound": "O", "service_type": "1", "orig_tc": ..., "dest_tc": ...}.
            language: Which origin/destination names to keep.

        Raises:
            MalformedRecord: If any record lacks a required field. Nothing is loaded
                in that case.
        """
        lang = check_language(language)
        variants: List[RouteVariant] = []
        for index, record in enumerate(records):
            route_number = require_str(record, "route", "route", index).upper()
            service_type = require_int(record, "service_type", "route", index, minimum=1)
            bound = require_str(record, "bound", "route", index)
            origin = require_str(record, f"orig_{lang}", "route", index)
            destination = require_str(record, f"dest_{lang}", "route", index)

            direction = Direction.from_token(bound)
            if direction is None:
                logger.debug(f"Route {route_number} has unrecognised bound '{bound}'")

            variants.append(
                RouteVariant(
                    route_number=route_number,
                    service_type=service_type,
                    direction=direction,
                    origin_name=origin,
                    destination_name=destination,
                )
            )

        directory = cls(variants)
        logger.info(f"Loaded {len(variants)} route variants for {len(directory._by_route)} routes")
        return directory

    def find(self, route_number: str) -> List[RouteVariant]:
        """
        Get every variant of a route.

        Args:
            route_number: Upper-cased route number, e.g. "1A".

        Raises:
            UnknownRoute: If no variant has this route number.
        """
        variants = self._by_route.get(route_number)
        if not variants:
            raise UnknownRoute(route_number)
        return list(variants)

    def find_filtered(self, route_number: str, direction: str, service_type: int) -> List[RouteVariant]:
        """
        Get the variants of a route running in one direction with one service type.

        Args:
            route_number: Upper-cased route number.
            direction: "inbound" or "outbound"; anything else matches nothing.
            service_type: Service type number.

        Raises:
            UnknownRouteVariant: If no variant matches.
        """
        wanted = Direction.from_name(direction)
        matches = [
            variant
            for variant in self._by_route.get(route_number, [])
            if wanted is not None
            and variant.direction is wanted
            and variant.service_type == service_type
        ]
        if not matches:
            raise UnknownRouteVariant(route_number, direction, service_type)
        return matches

    def all(self) -> List[RouteVariant]:
        """Get every variant, ordered by route number then variant."""
        return list(self._variants)

    def __len__(self) -> int:
        return len(self._variants)
