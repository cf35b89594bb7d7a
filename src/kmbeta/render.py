"""Plain-text table rendering for query results."""

from typing import Iterable, List, Sequence

import pandas as pd

from .models import EtaBoard, RouteVariant

ROUTE_COLUMNS = ["route", "service_type", "direction", "orig", "dest"]
ETA_COLUMNS = ["seq", "stop_name", "t1", "t2", "t3"]


def _to_text(rows: List[dict], columns: Sequence[str], rule: bool = True) -> str:
    """Render rows as an aligned table, with a rule line under the header."""
    if not rows:
        return "  ".join(columns)

    frame = pd.DataFrame(rows, columns=list(columns))
    # Chinese stop names are double width in a terminal
    with pd.option_context("display.unicode.east_asian_width", True):
        text = frame.to_string(index=False)

    lines = text.splitlines()
    if rule:
        lines.insert(1, "-" * len(lines[0]))
    return "\n".join(lines)


def route_rows(variants: Iterable[RouteVariant]) -> List[dict]:
    return [
        {
            "route": v.route_number,
            "service_type": v.service_type,
            "direction": v.direction_name,
            "orig": v.origin_name,
            "dest": v.destination_name,
        }
        for v in variants
    ]


def render_routes(variants: Iterable[RouteVariant]) -> str:
    """Render route variants as a table."""
    return _to_text(route_rows(variants), ROUTE_COLUMNS)


def render_listing(variants: Iterable[RouteVariant]) -> str:
    """Render every route variant, one per line, for piping into a filter."""
    return _to_text(route_rows(variants), ROUTE_COLUMNS, rule=False)


def render_eta(board: EtaBoard) -> str:
    """Render an ETA board as a table."""
    rows = [
        {
            "seq": row.sequence,
            "stop_name": row.stop_name,
            "t1": row.slot1,
            "t2": row.slot2,
            "t3": row.slot3,
        }
        for row in board.rows
    ]
    return _to_text(rows, ETA_COLUMNS)
