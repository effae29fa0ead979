from __future__ import annotations
from dotenv import load_dotenv
load_dotenv()  # Load .env file before the tsm.config constants are read

import os
import sys
import socket
import logging
import argparse
import logging.handlers
from typing import List, Optional, Tuple
import uvicorn
from . import routes
from .app import app
from .cadence import parse_sample_interval
from .catalog import load_config
from .config import HTTP_HOST, HTTP_PORT, SNMP_COMMUNITY, SNMP_PORT
from .errors import ConfigurationError, TSMError
from .formatting import format_status
from .service import PollService
from .shutdown import ShutdownCoordinator

# Logs go to stderr; stdout carries only poll records and status tables
logging.basicConfig(
    level=logging.INFO,
    format='%(levelname)s: %(name)s: %(message)s'
)
logging.getLogger("tsm").setLevel(logging.INFO)

logger = logging.getLogger(__name__)

SYSLOG_SOCKET = "/dev/log"


def setup_logging(debug: bool, use_syslog: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.getLogger("tsm").setLevel(level)

    if use_syslog:
        if not os.path.exists(SYSLOG_SOCKET):
            logger.warning(f"syslog requested but {SYSLOG_SOCKET} does not exist")
            return
        handler = logging.handlers.SysLogHandler(
            address=SYSLOG_SOCKET, facility=logging.handlers.SysLogHandler.LOG_LOCAL0
        )
        handler.ident = "tsm: "
        handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
        logging.getLogger().addHandler(handler)


def parse_host_port(raw: str, default_port: int = SNMP_PORT) -> Tuple[str, int]:
    """HOST[:PORT] -> (resolved address, port)."""
    host, sep, port_str = raw.rpartition(":")
    if not sep:
        host, port_str = raw, str(default_port)
    if not host:
        raise ConfigurationError(f"no host in {raw!r}")
    try:
        port = int(port_str)
    except ValueError:
        raise ConfigurationError(f"invalid port in {raw!r}") from None
    if not 0 < port < 65536:
        raise ConfigurationError(f"invalid port in {raw!r}")

    try:
        address = socket.gethostbyname(host)
    except OSError as e:
        raise ConfigurationError(f"cannot resolve host {host!r}: {e}") from e
    return address, port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tsm",
        description="Query an SNMP power controller and emit time-aligned telemetry records.",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="enable debug logging")
    parser.add_argument("-c", "--config", default=None, help="specify TSM config file")
    parser.add_argument("--community", default=SNMP_COMMUNITY, help="specify snmp read community")
    parser.add_argument("--syslog", action="store_true", help="also log to syslog (facility LOCAL0)")
    parser.add_argument("host", help="device as HOST[:PORT], port defaults to 161")

    commands = parser.add_subparsers(dest="command", required=True)
    poll = commands.add_parser("poll", help="emit one record per sample interval until stopped")
    poll.add_argument("interval", help="sample interval in seconds (1-60)")
    commands.add_parser("status", help="print every OID of the device once")
    commands.add_parser("serve", help="serve /health and /status over HTTP")
    return parser


def run_command(args: argparse.Namespace, service: PollService) -> None:
    if args.command == "poll":
        interval = parse_sample_interval(args.interval)
        with ShutdownCoordinator() as shutdown:
            service.poll(interval, shutdown)
    elif args.command == "status":
        print(format_status(service.device_status(), service.port))
    elif args.command == "serve":
        routes.svc = service
        uvicorn.run(app, host=HTTP_HOST, port=HTTP_PORT)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.debug, args.syslog)
    logger.info(f"{os.path.abspath(sys.argv[0])} starting up...")

    try:
        host, port = parse_host_port(args.host)
        cfg = load_config(args.config)
        service = PollService(host, cfg, port=port, community=args.community)
        run_command(args, service)
    except TSMError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        logger.error(str(e))
        return 1

    logger.info(f"{os.path.basename(sys.argv[0])} shutting down")
    return 0
