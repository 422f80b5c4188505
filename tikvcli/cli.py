"""
Command-line entry point. With a subcommand, runs it once and exits;
without one, dials the cluster and starts the interactive shell.

Examples:
  tikvcli --url tikv://pd-node1:2379,pd-node2:2379 get foo
  tikvcli --url tikv://127.0.0.1:2379 scan -n 10 user: -p
  tikvcli --url tikv://127.0.0.1:2379
"""

import argparse
import logging
import sys
from typing import Optional

from .client import dial
from .errors import DialError, ParseError
from .shell import Command, ScanOptions, Shell, add_scan_arguments

logger = logging.getLogger(__name__)


_log_handler: Optional[logging.Handler] = None


def setup_logging(level: str = "WARNING") -> None:
    """Log to stderr so command output on stdout stays clean. Safe to call repeatedly."""
    global _log_handler
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    if _log_handler is not None:
        root_logger.removeHandler(_log_handler)
    root_logger.addHandler(handler)
    _log_handler = handler


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tikvcli",
        description="Interactive shell and one-shot CLI for TiKV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Run without a command to start the interactive shell.",
    )
    parser.add_argument(
        "--url", "-u", required=True,
        help="tikv://pd-node1:port,pd-node2:port?cluster=1&disableGC=false",
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command", metavar="command")

    p = sub.add_parser(Command.GET.value, help="get <key1> [key2]...")
    p.add_argument("keys", nargs="*")
    p = sub.add_parser(Command.SET.value, help="set <key> <val>")
    p.add_argument("key")
    p.add_argument("value")
    p = sub.add_parser(Command.DELETE.value, help="delete <key1> [key2]...")
    p.add_argument("keys", nargs="*")
    p = sub.add_parser(Command.SCAN.value, help="scan [begin] [-n limit] [-p] [-U until] [-d]")
    add_scan_arguments(p)
    return parser


def run_command(shell: Shell, args: argparse.Namespace) -> bool:
    command = Command.parse(args.command)
    if command is Command.GET:
        return shell.get(args.keys)
    elif command is Command.SET:
        return shell.set([args.key, args.value])
    elif command is Command.DELETE:
        return shell.delete(args.keys)
    elif command is Command.SCAN:
        return shell.scan(ScanOptions.from_args(args))
    raise AssertionError(f"unhandled command {command}")


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        client = dial(args.url)
    except DialError as e:
        logger.critical("cannot connect to %s: %s", args.url, e)
        return 1

    shell = Shell(client)
    if args.command is None:
        shell.run()
        return 0
    try:
        ok = run_command(shell, args)
    except ParseError as e:
        print(e)
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
