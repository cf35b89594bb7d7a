"""Command-line interface for KMB route and ETA lookups.

Examples:
    kmb-eta route -r 1a
    kmb-eta eta -r 1A -d outbound -s 1
    kmb-eta all | fzf
"""

import argparse
import asyncio
import logging
import sys
import time
from typing import List, Optional

import requests

from .directory import DEFAULT_LANGUAGE, LANGUAGES
from .errors import KMBEtaError
from .eta_tracker import ETATracker
from .kmb_client import DEFAULT_TIMEOUT, KMB_BASE_URL, KMBClient
from .render import render_eta, render_listing, render_routes

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kmb-eta",
        description="Look up KMB bus routes and live arrival times.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging and timing")
    parser.add_argument("--lang", choices=LANGUAGES, default=DEFAULT_LANGUAGE, help="Display name language")
    parser.add_argument("--base-url", default=KMB_BASE_URL, help="KMB open data API root")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="HTTP timeout in seconds")

    subparsers = parser.add_subparsers(dest="command", required=True)

    route_parser = subparsers.add_parser("route", help="Display route info")
    route_parser.add_argument("-r", "--route", required=True, help="Route number, e.g. 35A")

    eta_parser = subparsers.add_parser("eta", help="Display eta info")
    eta_parser.add_argument("-r", "--route", required=True, help="Route number, e.g. 35A")
    eta_parser.add_argument("-d", "--direction", required=True, help="Route direction, either inbound or outbound")
    eta_parser.add_argument("-s", "--service-type", type=int, default=1, help="Route service type")

    subparsers.add_parser("all", help="Display all route info, e.g. `kmb-eta all | fzf`")
    return parser


async def run(args: argparse.Namespace) -> str:
    """Load the directories, run one query and return the rendered output."""
    client = KMBClient(base_url=args.base_url, timeout=args.timeout)
    try:
        tracker = await ETATracker.load(client, language=args.lang)

        start = time.perf_counter()
        if args.command == "route":
            output = render_routes(tracker.get_route(args.route))
        elif args.command == "eta":
            board = await tracker.get_eta(args.route, args.direction, args.service_type)
            output = render_eta(board)
        else:
            output = render_listing(tracker.list_routes())

        if args.debug:
            output += f"\ntime elapsed: {time.perf_counter() - start:.3f}s"
        return output
    finally:
        client.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        output = asyncio.run(run(args))
    except KMBEtaError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except requests.RequestException as e:
        logger.debug("Request failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
