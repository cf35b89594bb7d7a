"""Tests for table rendering and the command-line interface."""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import AsyncMock, MagicMock, patch
from datetime import datetime, timedelta, timezone
import sys
from pathlib import Path

import requests

# Add src to path so we can import kmbeta
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from kmbeta import cli
from kmbeta.directory import RouteDirectory, StopDirectory
from kmbeta.eta_tracker import ETATracker
from kmbeta.models import Direction, EtaBoard, ResolvedEtaRow
from kmbeta.render import ETA_COLUMNS, ROUTE_COLUMNS, render_eta, render_listing, render_routes

T0 = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone(timedelta(hours=8)))

ROUTES = RouteDirectory.load(
    [
        {"route": "1A", "bound": "O", "service_type": "1", "orig_en": "Star Ferry", "dest_en": "Sau Mau Ping"},
        {"route": "1A", "bound": "I", "service_type": "1", "orig_en": "Sau Mau Ping", "dest_en": "Star Ferry"},
        {"route": "2", "bound": "O", "service_type": "1", "orig_en": "Tsim Sha Tsui", "dest_en": "So Uk"},
    ],
    language="en",
)


class TestRender(unittest.TestCase):
    """Test table rendering."""

    def test_render_routes(self):
        lines = render_routes(ROUTES.find("1A")).splitlines()

        self.assertEqual(lines[0].split(), ROUTE_COLUMNS)
        self.assertEqual(set(lines[1]), {"-"})
        self.assertEqual(len(lines), 4)
        self.assertIn("Sau Mau Ping", lines[2])
        self.assertIn("inbound", lines[2])

    def test_render_listing_has_no_rule(self):
        lines = render_listing(ROUTES.all()).splitlines()

        self.assertEqual(lines[0].split(), ROUTE_COLUMNS)
        self.assertEqual(len(lines), 4)
        self.assertIn("So Uk", lines[3])

    def test_render_eta(self):
        board = EtaBoard(
            route_number="1A",
            direction=Direction.OUTBOUND,
            service_type=1,
            generated_at=T0,
            rows=[
                ResolvedEtaRow("1", "中環", "  2m  5s", "LEAVING", ""),
                ResolvedEtaRow("2", "金鐘"),
            ],
        )

        lines = render_eta(board).splitlines()

        self.assertEqual(lines[0].split(), ETA_COLUMNS)
        self.assertEqual(set(lines[1]), {"-"})
        self.assertIn("中環", lines[2])
        self.assertIn("2m  5s", lines[2])
        self.assertIn("LEAVING", lines[2])
        self.assertIn("金鐘", lines[3])

    def test_render_empty(self):
        board = EtaBoard(route_number="1A", direction=Direction.OUTBOUND, service_type=1, generated_at=T0)
        self.assertEqual(render_eta(board).split(), ETA_COLUMNS)


class TestParser(unittest.TestCase):
    """Test argument parsing."""

    def test_eta_defaults(self):
        args = cli.build_parser().parse_args(["eta", "-r", "1a", "-d", "inbound"])
        self.assertEqual(args.command, "eta")
        self.assertEqual(args.service_type, 1)
        self.assertEqual(args.lang, "tc")
        self.assertFalse(args.debug)

    def test_global_options(self):
        args = cli.build_parser().parse_args(["--lang", "en", "--debug", "route", "--route", "2"])
        self.assertEqual((args.lang, args.debug, args.route), ("en", True, "2"))

    def test_command_required(self):
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                cli.build_parser().parse_args([])


class TestMain(unittest.TestCase):
    """Test the command-line entry point."""

    def setUp(self):
        self.client = MagicMock()
        stops = StopDirectory.load([{"stop": "1", "name_en": "Star Ferry"}], language="en")
        self.tracker = ETATracker(stops, ROUTES, client=self.client)

        patcher = patch.object(cli, "KMBClient", return_value=self.client)
        patcher.start()
        self.addCleanup(patcher.stop)
        patcher = patch.object(cli.ETATracker, "load", new=AsyncMock(return_value=self.tracker))
        self.load = patcher.start()
        self.addCleanup(patcher.stop)

    def run_main(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = cli.main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_route(self):
        code, out, err = self.run_main(["--lang", "en", "route", "-r", "1a"])

        self.assertEqual(code, 0)
        self.assertIn("Sau Mau Ping", out)
        self.assertEqual(err, "")
        self.load.assert_awaited_once_with(self.client, language="en")
        self.client.close.assert_called_once_with()

    def test_all(self):
        code, out, _ = self.run_main(["all"])

        self.assertEqual(code, 0)
        self.assertIn("So Uk", out)

    def test_eta(self):
        self.client.get_route_stops.return_value = [{"seq": "1", "stop": "1"}]
        self.client.get_route_eta.return_value = {
            "generated_timestamp": T0.isoformat(),
            "data": [{"dir": "I", "seq": 1, "eta_seq": 1, "eta": (T0 + timedelta(seconds=65)).isoformat()}],
        }

        code, out, _ = self.run_main(["eta", "-r", "1a", "-d", "inbound"])

        self.assertEqual(code, 0)
        self.assertIn("Star Ferry", out)
        self.assertIn("1m  5s", out)

    def test_debug_prints_elapsed_time(self):
        code, out, _ = self.run_main(["--debug", "all"])

        self.assertEqual(code, 0)
        self.assertIn("time elapsed:", out)

    def test_unknown_variant_reports_parameters(self):
        code, out, err = self.run_main(["eta", "-r", "1a", "-d", "inbound", "-s", "3"])

        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("(route: 1A, direction: inbound, service_type: 3) does not exist!", err)
        self.client.get_route_eta.assert_not_called()

    def test_unknown_stop_reports_route(self):
        self.client.get_route_stops.return_value = [{"seq": "1", "stop": "404"}]
        self.client.get_route_eta.return_value = {"generated_timestamp": T0.isoformat(), "data": []}

        code, _, err = self.run_main(["eta", "-r", "1a", "-d", "inbound"])

        self.assertEqual(code, 1)
        self.assertIn("(route: 1A, direction: inbound, service_type: 1) references unknown stop 404", err)

    def test_unknown_route(self):
        code, _, err = self.run_main(["route", "-r", "999"])

        self.assertEqual(code, 1)
        self.assertIn("(route: 999) does not exist!", err)

    def test_transport_failure(self):
        self.load.side_effect = requests.ConnectionError("network unreachable")

        code, _, err = self.run_main(["all"])

        self.assertEqual(code, 1)
        self.assertIn("network unreachable", err)
        self.client.close.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
