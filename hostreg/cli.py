"""hostreg command line.

Usage:
    hostreg add-host NAME MAC ADDRESS
    hostreg add-host NAME MAC --laptop
    hostreg remove-host NAME [--verbose] [--yes]
    hostreg rebuild-allow-list
    hostreg list-hosts [--names] [--count] [--os PATTERN]
    hostreg serve [--host HOST] [--port PORT]

Exit status is 0 when every step succeeded, 1 when any step failed and 2
when the operation was refused before anything was changed.
"""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from pydantic import ValidationError as ModelValidationError

from hostreg.config import Settings
from hostreg.exceptions import AppError
from hostreg.models.host import HostRequest
from hostreg.models.result import OperationResult
from hostreg.services.prompts import ConsolePrompt
from hostreg.wiring import build_orchestrator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_REFUSED = 2


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hostreg",
        description="Register and remove hosts in the directory, DNS and DHCP",
    )
    parser.add_argument("--log-level", help="Logging level (default: from HOSTREG_LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add-host", help="Register a new host")
    add.add_argument("name", help="Simple host name, without domain")
    add.add_argument("mac", help="Hardware address (AA:BB:.., AA-BB-.. or AABB..)")
    add.add_argument("address", nargs="?", help="IPv4 address (omit with --laptop)")
    add.add_argument("--laptop", action="store_true", help="Take an address from the laptop pool")

    remove = sub.add_parser("remove-host", help="Remove a host from every backend")
    remove.add_argument("name")
    remove.add_argument("--verbose", action="store_true", help="Show details for every step")
    remove.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    sub.add_parser("rebuild-allow-list", help="Regenerate the boot allow-list from the DHCP filter")

    hosts = sub.add_parser("list-hosts", help="List registered computer objects")
    hosts.add_argument("--names", action="store_true", help="Print names only")
    hosts.add_argument("--count", action="store_true", help="Print the number of hosts only")
    hosts.add_argument("--os", dest="os_filter", help="Only hosts whose operating system contains PATTERN")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


def print_result(result: OperationResult, *, verbose: bool = True) -> None:
    print(f"{result.operation} {result.target}:")
    for step in result.steps:
        line = f"  [{step.status:<9}] {step.step}"
        if step.detail and (verbose or step.status == "failed"):
            line = f"{line}: {step.detail}"
        print(line)
    if not result.ok:
        print(f"Failed steps need manual cleanup: {', '.join(result.failed_steps)}")


def _run(args: argparse.Namespace, settings: Settings) -> int:
    if args.command == "serve":
        uvicorn.run("hostreg.main:create_app", factory=True, host=args.host, port=args.port, log_config=None)
        return EXIT_OK

    orchestrator = build_orchestrator(settings, prompt=ConsolePrompt())

    if args.command == "add-host":
        if not args.laptop and not args.address:
            raise AppError("USAGE", "add-host needs an ADDRESS or --laptop")
        request = HostRequest(
            name=args.name,
            hardware_address=args.mac,
            address=args.address,
            laptop_mode=args.laptop,
        )
        result = orchestrator.add_host(request)
        print_result(result)
        return EXIT_OK if result.ok else EXIT_PARTIAL

    if args.command == "remove-host":
        result = orchestrator.remove_host(args.name, require_confirmation=not args.yes)
        print_result(result, verbose=args.verbose)
        return EXIT_OK if result.ok else EXIT_PARTIAL

    if args.command == "rebuild-allow-list":
        entries = orchestrator.rebuild_allow_list()
        print(f"Wrote {len(entries)} entries to {settings.allow_list_path}")
        return EXIT_OK

    if args.command == "list-hosts":
        hosts = orchestrator.list_hosts(args.os_filter)
        if args.count:
            print(len(hosts))
        elif args.names:
            for host in hosts:
                print(host.name)
        else:
            for host in hosts:
                print(f"{host.name:<20} {host.operating_system:<36} {host.container}")
        return EXIT_OK

    raise AppError("USAGE", f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    setup_logging(args.log_level or settings.log_level)

    try:
        return _run(args, settings)
    except AppError as exc:
        logger.debug("%s refused", args.command, exc_info=True)
        print(f"error: {exc.message}", file=sys.stderr)
        return EXIT_REFUSED
    except ModelValidationError as exc:
        for err in exc.errors():
            print(f"error: {err['loc'][-1]}: {err['msg']}", file=sys.stderr)
        return EXIT_REFUSED


if __name__ == "__main__":
    sys.exit(main())
