"""Route-stop sequencing, arrival joining and ETA formatting."""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .directory import StopDirectory, require_int, require_str
from .errors import InvalidFeedTimestamp, MalformedRecord
from .models import ArrivalEvent, Direction, ResolvedEtaRow, RouteStopEntry

logger = logging.getLogger(__name__)

LEAVING = "LEAVING"
ARRIVAL_SLOTS = (1, 2, 3)

_FRACTION = re.compile(r"(T\d{2}:\d{2}:\d{2})\.(\d+)")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp with a UTC offset.

    Fractional seconds of any length are accepted and truncated to microseconds,
    since datetime.fromisoformat only takes 3 or 6 digits before Python 3.11.

    Returns:
        An aware datetime, or None if the value is absent, not a string, or has
        no offset.
    """
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        return None
    return parsed


def parse_generated_at(body: Dict[str, Any]) -> datetime:
    """
    Get the reference timestamp of an arrival feed.

    Raises:
        InvalidFeedTimestamp: If "generated_timestamp" is absent or unparseable.
    """
    value = body.get("generated_timestamp")
    generated_at = parse_timestamp(value)
    if generated_at is None:
        raise InvalidFeedTimestamp(value)
    return generated_at


def format_eta(arrival: Any, reference: datetime) -> str:
    """
    Render the time until arrival.

    Args:
        arrival: Raw arrival timestamp (string), a datetime, or None.
        reference: When the feed was generated.

    Returns:
        "  2m  5s" style countdown, "LEAVING" when due, or "" when the arrival
        time is missing or unparseable.
    """
    arrival_time = arrival if isinstance(arrival, datetime) else parse_timestamp(arrival)
    if arrival_time is None or arrival_time.tzinfo is None:
        return ""

    delta = int((arrival_time - reference).total_seconds())
    if delta <= 0:
        return LEAVING
    # 3 chars for minutes, 2 for seconds
    return f"{delta // 60:>3}m {delta % 60:>2}s"


def parse_route_stops(records: Iterable[Any]) -> List[RouteStopEntry]:
    """
    Parse a route-stop listing into entries ordered by sequence.

    Entries sharing a sequence number keep their feed order.
    """
    entries = []
    for index, record in enumerate(records):
        entries.append(
            RouteStopEntry(
                sequence=require_int(record, "seq", "route-stop", index),
                stop_id=require_str(record, "stop", "route-stop", index),
            )
        )
    entries.sort(key=lambda entry: entry.sequence)
    return entries


class RouteStopSequencer:
    """Resolves the ordered stops of a route variant."""

    def __init__(self, client):
        self.client = client

    def resolve(self, route_number: str, direction: Direction, service_type: int) -> List[RouteStopEntry]:
        """
        Get the stops of a route variant in travel order.

        Returns an empty list when the upstream listing has no rows.
        """
        records = self.client.get_route_stops(route_number, direction.value, service_type)
        entries = parse_route_stops(records)
        logger.debug(f"Route {route_number} {direction.value} {service_type} has {len(entries)} stops")
        return entries


def parse_arrivals(records: Iterable[Any], direction: Optional[Direction] = None) -> List[ArrivalEvent]:
    """
    Parse the "data" entries of an arrival feed.

    When a direction is given, entries for any other direction are skipped
    before they are validated.
    """
    events = []
    for index, record in enumerate(records):
        if direction is not None:
            token = record.get("dir") if isinstance(record, Mapping) else None
            if Direction.from_token(token) is not direction:
                continue
        sequence = require_int(record, "seq", "route-eta", index)
        slot = require_int(record, "eta_seq", "route-eta", index)
        eta = record.get("eta")
        events.append(
            ArrivalEvent(
                sequence=sequence,
                arrival_slot=slot,
                direction=Direction.from_token(record.get("dir")),
                arrival_timestamp=eta if isinstance(eta, str) else None,
            )
        )
    return events


def arrival_events_from_feed(
    body: Dict[str, Any], direction: Optional[Direction] = None
) -> Tuple[datetime, List[ArrivalEvent]]:
    """
    Split an arrival feed into its reference timestamp and events.

    Args:
        body: Route-eta response body.
        direction: Keep only entries for this direction; all entries if None.

    Raises:
        InvalidFeedTimestamp: If the feed's generated timestamp is unusable.
        MalformedRecord: If a kept entry lacks its sequence or slot number.
    """
    generated_at = parse_generated_at(body)
    data = body.get("data")
    if data is None:
        data = []
    if not isinstance(data, list):
        raise MalformedRecord("route-eta", None, f"'data' must be a list, got {type(data).__name__}")
    return generated_at, parse_arrivals(data, direction)


def index_arrivals(
    events: Iterable[ArrivalEvent], direction: Direction
) -> Dict[Tuple[int, int], Optional[str]]:
    """Map (sequence, slot) to the arrival timestamp, for one direction only."""
    arrivals: Dict[Tuple[int, int], Optional[str]] = {}
    for event in events:
        if event.direction is direction:
            arrivals[(event.sequence, event.arrival_slot)] = event.arrival_timestamp
    return arrivals


def join_etas(
    route_stops: Iterable[RouteStopEntry],
    events: Iterable[ArrivalEvent],
    direction: Direction,
    reference: datetime,
    stops: StopDirectory,
) -> List[ResolvedEtaRow]:
    """
    Join the stops of a route variant with live arrivals.

    Each stop gets up to three upcoming arrivals; a missing slot is left blank.
    Rows keep the order of route_stops.

    Raises:
        UnknownStop: If a route stop is not in the stop directory.
    """
    arrivals = index_arrivals(events, direction)
    rows = []
    for entry in route_stops:
        slots = [
            format_eta(arrivals[(entry.sequence, slot)], reference)
            if (entry.sequence, slot) in arrivals
            else ""
            for slot in ARRIVAL_SLOTS
        ]
        rows.append(
            ResolvedEtaRow(
                sequence=str(entry.sequence),
                stop_name=stops.lookup(entry.stop_id),
                slot1=slots[0],
                slot2=slots[1],
                slot3=slots[2],
            )
        )
    return rows
