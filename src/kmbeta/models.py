"""Data models for the KMB ETA client."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class Direction(Enum):
    """Travel direction of a route variant."""
    INBOUND = "inbound"
    OUTBOUND = "outbound"

    @classmethod
    def from_token(cls, token) -> Optional["Direction"]:
        """Map an upstream bound token ("I"/"O") to a direction, None if unrecognised."""
        return _TOKENS.get(token) if isinstance(token, str) else None

    @classmethod
    def from_name(cls, name) -> Optional["Direction"]:
        """Map user input ("inbound"/"outbound") to a direction, None if unrecognised."""
        for direction in cls:
            if direction.value == name:
                return direction
        return None


_TOKENS = {"I": Direction.INBOUND, "O": Direction.OUTBOUND}


@dataclass(frozen=True)
class StopRecord:
    """A bus stop from the bulk stop listing."""
    stop_id: str
    display_name: str


@dataclass(frozen=True)
class RouteVariant:
    """One (route, direction, service type) combination."""
    route_number: str  # Upper-cased
    service_type: int
    direction: Optional[Direction]  # None for an unrecognised bound token
    origin_name: str
    destination_name: str

    @property
    def direction_name(self) -> str:
        return self.direction.value if self.direction else ""


@dataclass(frozen=True)
class RouteStopEntry:
    """A stop on a route variant, in sequence order."""
    sequence: int
    stop_id: str


@dataclass(frozen=True)
class ArrivalEvent:
    """A live arrival estimate for one stop of a route."""
    sequence: int
    arrival_slot: int  # 1..3, nearest bus first
    direction: Optional[Direction]
    arrival_timestamp: Optional[str] = None  # Raw, may be absent or unparseable


@dataclass(frozen=True)
class ResolvedEtaRow:
    """A display-ready ETA row for one stop."""
    sequence: str
    stop_name: str
    slot1: str = ""
    slot2: str = ""
    slot3: str = ""


@dataclass
class EtaBoard:
    """Complete ETA result for a route variant."""
    route_number: str
    direction: Direction
    service_type: int
    generated_at: datetime
    rows: List[ResolvedEtaRow] = field(default_factory=list)
