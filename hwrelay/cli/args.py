# hwrelay/cli/args.py
from __future__ import annotations

import argparse
from typing import Any, Dict, Optional

from hwrelay.model.transport import TransportMode

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hwrelay",
        description="Relay between browser control pages and a serial or networked device.",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("ports", help="List serial ports that look like attached devices.")

    ps = sub.add_parser("serve", help="Run the relay until interrupted.")
    ps.add_argument("--config", default=None, help="YAML config file (keys as in RelayConfig).")
    ps.add_argument(
        "--mode",
        default=None,
        help=f"Transport mode: {', '.join(m.value for m in TransportMode)} (default: inferred).",
    )
    ps.add_argument("--host", dest="listen_host", default=None, help="Listen address for browsers (default: 0.0.0.0).")
    ps.add_argument("--port", dest="listen_port", type=int, default=None, help="Listen port for browsers (default: 8080).")
    ps.add_argument("--serial-port", dest="serial_port", default=None, help="Serial device path, e.g. /dev/ttyUSB0 or COM3.")
    ps.add_argument("--baud", dest="serial_baud", type=int, default=None, help="Serial baud rate (default: 115200).")
    ps.add_argument("--remote-url", dest="remote_url", default=None, help="Remote device WebSocket URL, e.g. ws://192.168.1.50:81.")
    ps.add_argument(
        "--reconnect-delay",
        dest="reconnect_delay_s",
        type=float,
        default=None,
        help="Seconds between remote reconnect attempts (default: 5).",
    )
    ps.add_argument("--log-level", dest="log_level", type=str.upper, choices=LOG_LEVELS, default=None)
    ps.add_argument("--log-file", dest="log_file", default=None, help="Also append logs to this file.")

    return parser


def config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Config keys explicitly given on the command line (None = not given)."""
    keys = (
        "mode",
        "listen_host",
        "listen_port",
        "serial_port",
        "serial_baud",
        "remote_url",
        "reconnect_delay_s",
        "log_level",
        "log_file",
    )
    return {k: getattr(args, k) for k in keys if getattr(args, k, None) is not None}


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
