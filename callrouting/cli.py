"""Operator CLI for routing decisions.

Evaluates an iFC document against a SIP request, or translates numbers
through the configured ENUM backend, without a running server.

Usage:
    # Which application servers would see this INVITE?
    callrouting ifc profile.xml invite.sip --session-case terminating

    # Where do these numbers go?
    callrouting enum +15108580271 6505551234

    # Use the DNS backend against a specific server
    callrouting --json enum 1234 --backend dns --server 10.0.0.53

Environment:
    ROUTING_ENUM_BACKEND    json or dns (default: json)
    ROUTING_ENUM_FILE       Number block file for the json backend
    ROUTING_ENUM_SERVER     DNS server for the dns backend
    ROUTING_ENUM_SUFFIX     ENUM root domain (default: .e164.arpa)
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from callrouting.config import (
    ENUM_BACKEND,
    ENUM_DNS_TIMEOUT,
    ENUM_FILE,
    ENUM_SERVER,
    ENUM_SUFFIX,
    LOG_LEVEL,
    validate_config,
)
from callrouting.enumservice import create_enum_service
from callrouting.exceptions import EnumConfigError
from callrouting.ifc import SessionCase, calculate_application_servers
from callrouting.logging_config import configure_logging
from callrouting.sip import parse_sip_request

log = logging.getLogger(__name__)

SESSION_CASES = {case.value: case for case in SessionCase}


def run_ifc(args: argparse.Namespace) -> int:
    ifc_xml = Path(args.ifc_file).read_text(encoding="utf-8")
    request = parse_sip_request(Path(args.sip_file).read_bytes())
    if request is None:
        print(f"Could not parse SIP request in {args.sip_file}", file=sys.stderr)
        return 2

    servers = calculate_application_servers(
        SESSION_CASES[args.session_case],
        not args.unregistered,
        request,
        ifc_xml,
    )

    if args.json:
        print(json.dumps({"application_servers": servers}, indent=2))
    elif servers:
        for position, server in enumerate(servers, start=1):
            print(f"  {position}. {server}")
    else:
        print("  (no application servers)")
    return 0


async def _translate_all(service, numbers: list[str]) -> list[tuple[str, str]]:
    results = []
    for trail, number in enumerate(numbers, start=1):
        results.append((number, await service.translate(number, trail=trail)))
    return results


def run_enum(args: argparse.Namespace) -> int:
    try:
        service = create_enum_service(
            backend=args.backend,
            enum_file=args.enum_file,
            server=args.server,
            suffix=args.suffix,
            timeout=args.timeout,
        )
    except EnumConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    results = asyncio.run(_translate_all(service, args.numbers))

    if args.json:
        print(json.dumps({number: uri for number, uri in results}, indent=2))
    else:
        for number, uri in results:
            print(f"  {number} -> {uri or '(no match)'}")

    # Non-zero if any number failed to translate
    return 0 if all(uri for _, uri in results) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="callrouting", description="Call routing decisions")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Log level (default: %(default)s)")
    parser.add_argument("--json", action="store_true", help="JSON output")
    sub = parser.add_subparsers(dest="command", required=True)

    ifc = sub.add_parser("ifc", help="Evaluate an iFC document against a SIP request")
    ifc.add_argument("ifc_file", help="iFC XML document")
    ifc.add_argument("sip_file", help="SIP request (raw message)")
    ifc.add_argument("--session-case", choices=sorted(SESSION_CASES), default="originating")
    ifc.add_argument("--unregistered", action="store_true",
                     help="Evaluate as if the served user is not registered")
    ifc.set_defaults(func=run_ifc)

    enum = sub.add_parser("enum", help="Translate numbers to URIs")
    enum.add_argument("numbers", nargs="+", help="Numbers to translate")
    enum.add_argument("--backend", choices=["json", "dns"], default=ENUM_BACKEND)
    enum.add_argument("--enum-file", default=ENUM_FILE)
    enum.add_argument("--server", default=ENUM_SERVER)
    enum.add_argument("--suffix", default=ENUM_SUFFIX)
    enum.add_argument("--timeout", type=float, default=ENUM_DNS_TIMEOUT,
                      help="Per-query DNS timeout in seconds")
    enum.set_defaults(func=run_enum)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(log_level=args.log_level)
    # Flags may override any of these, so issues are not fatal
    for issue in validate_config():
        log.warning(f"Configuration issue: {issue}")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
