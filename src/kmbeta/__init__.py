"""kmbeta - KMB bus route and live arrival lookups."""

__version__ = "0.1.0"

from .models import Direction, StopRecord, RouteVariant, RouteStopEntry, ArrivalEvent, ResolvedEtaRow, EtaBoard
from .errors import (
    KMBEtaError,
    MalformedRecord,
    UnknownRoute,
    UnknownRouteVariant,
    UnknownStop,
    InvalidFeedTimestamp,
)
from .directory import StopDirectory, RouteDirectory
from .eta import RouteStopSequencer, format_eta, join_etas
from .eta_tracker import ETATracker
from .kmb_client import KMBClient

__all__ = [
    "ETATracker",
    "KMBClient",
    "StopDirectory",
    "RouteDirectory",
    "RouteStopSequencer",
    "format_eta",
    "join_etas",
    "Direction",
    "StopRecord",
    "RouteVariant",
    "RouteStopEntry",
    "ArrivalEvent",
    "ResolvedEtaRow",
    "EtaBoard",
    "KMBEtaError",
    "MalformedRecord",
    "UnknownRoute",
    "UnknownRouteVariant",
    "UnknownStop",
    "InvalidFeedTimestamp",
]
