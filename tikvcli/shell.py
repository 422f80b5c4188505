"""
Interactive shell for TiKV. Parses a line (or one-shot CLI arguments) into a
command, runs it through TikvClient and prints the result.
"""

import argparse
import logging
import readline
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Optional, TextIO

from .client import TikvClient
from .errors import OperationError, ParseError, UnknownCommandError
from .escape import quote, unescape

logger = logging.getLogger(__name__)

PROMPT = "> "

# (command, usage) pairs for help output and tab completion
SUGGESTIONS = [
    ("get", "get <key1> [key2] [key3]..."),
    ("set", "set <key> <val>"),
    ("delete", "delete <key1> [key2]..."),
    ("scan", "scan [begin] [-n limit] [-p] [-u until] [-d]"),
    ("help", "show this help"),
    ("quit", "quit the shell"),
    ("exit", "quit the shell"),
]


class Command(Enum):
    GET = "get"
    SET = "set"
    DELETE = "delete"
    SCAN = "scan"
    HELP = "help"
    QUIT = "quit"

    @classmethod
    def parse(cls, name: str) -> "Command":
        if name == "exit":
            return cls.QUIT
        try:
            return cls(name)
        except ValueError:
            raise UnknownCommandError(name) from None


@dataclass(frozen=True)
class ScanOptions:
    """Options for a single scan; built fresh for every invocation."""

    begin: bytes = b"\x00"
    limit: int = -1  # negative: no limit
    prefix: bool = False
    until: Optional[bytes] = None
    delete: bool = False

    @classmethod
    def from_args(cls, ns: argparse.Namespace) -> "ScanOptions":
        begin = unescape(ns.begin) if ns.begin is not None else cls.begin
        until = unescape(ns.until) if ns.until else None
        return cls(begin=begin, limit=ns.limit, prefix=ns.prefix, until=until, delete=ns.delete)

    def accepts(self, key: bytes) -> bool:
        """False once key is past the prefix or until bound."""
        if self.prefix and not key.startswith(self.begin):
            return False
        if self.until is not None and key > self.until:
            return False
        return True


class ArgumentParser(argparse.ArgumentParser):
    """argparse that raises ParseError instead of exiting the process."""

    def error(self, message):
        raise ParseError(f"{self.prog}: {message}")


def add_scan_arguments(parser: argparse.ArgumentParser) -> None:
    """Flags shared by the REPL scan and the one-shot scan subcommand."""
    parser.add_argument("begin", nargs="?", default=None, help="first key to scan from")
    parser.add_argument("-n", "--limit", type=int, default=-1, help="number of values to be scanned")
    parser.add_argument("-p", "--prefix", action="store_true", help="match with prefix")
    parser.add_argument("-u", "-U", "--until", default=None, help="scan until match this key")
    parser.add_argument("-d", "--delete", action="store_true", help="delete scanned keys")


def parse_scan_args(args: list[str]) -> ScanOptions:
    parser = ArgumentParser(prog="scan", add_help=False)
    add_scan_arguments(parser)
    return ScanOptions.from_args(parser.parse_args(args))


def _complete(text: str, state: int) -> Optional[str]:
    """readline completer: command names, first word only."""
    if readline.get_line_buffer()[:readline.get_begidx()].strip():
        return None
    names = sorted({name for name, _ in SUGGESTIONS if name.startswith(text)})
    return names[state] if state < len(names) else None


class Shell:
    """
    Runs shell commands against a TikvClient. Output goes to out (stdout by default).
    Methods return True on success, False if the command reported an error.
    """

    def __init__(self, client: TikvClient, out: Optional[TextIO] = None):
        self.client = client
        self.out = out if out is not None else sys.stdout

    def _print(self, *args) -> None:
        print(*args, file=self.out)

    def get(self, keys: list[str]) -> bool:
        if not keys:
            self._print("key is required")
            return False
        for arg in keys:
            key = unescape(arg)
            self._print(quote(key))
            try:
                value = self.client.get(key)
            except OperationError as e:
                self._print(e)
                return False
            if value is None:
                self._print("key not found")
            else:
                self._print(quote(value))
        return True

    def set(self, args: list[str]) -> bool:
        if len(args) != 2:
            raise ParseError("usage: set <key> <val>")
        key, value = unescape(args[0]), unescape(args[1])
        try:
            self.client.set(key, value)
        except OperationError as e:
            self._print(e)
            return False
        return True

    def delete(self, keys: list[str]) -> bool:
        if not keys:
            self._print("key is required")
            return False
        for arg in keys:
            try:
                self.client.delete(unescape(arg))
            except OperationError as e:
                self._print(e)
                return False
        return True

    def scan(self, opts: ScanOptions) -> bool:
        def visit(key: bytes, value: bytes) -> bool:
            if not opts.accepts(key):
                return False
            self._print(f"{quote(key)}:{quote(value)}")
            return True

        ok = True
        try:
            count = self.client.scan(opts.begin, opts.limit, opts.delete, visit)
        except OperationError as e:
            self._print(e)
            count, ok = getattr(e, "visited", 0), False
        self._print("Total scanned", count)
        return ok

    def help(self) -> None:
        for name, usage in SUGGESTIONS:
            self._print(f"  {name:<8}{usage}")

    def execute(self, command: Command, args: list[str]) -> bool:
        """
        Run one command. Returns False if it failed. QUIT is handled by the
        caller and is a no-op here.
        """
        if command is Command.GET:
            return self.get(args)
        elif command is Command.SET:
            return self.set(args)
        elif command is Command.DELETE:
            return self.delete(args)
        elif command is Command.SCAN:
            return self.scan(parse_scan_args(args))
        elif command is Command.HELP:
            self.help()
            return True
        elif command is Command.QUIT:
            return True
        raise AssertionError(f"unhandled command {command}")

    def process_line(self, line: str) -> bool:
        """
        Handle one line of REPL input. Returns False when the shell should exit.
        Errors are reported and never end the loop.
        """
        args = line.split()
        if not args:
            return True
        try:
            command = Command.parse(args[0])
        except UnknownCommandError as e:
            logger.warning("%s", e)
            return True
        if command is Command.QUIT:
            return False
        try:
            self.execute(command, args[1:])
        except ParseError as e:
            self._print(e)
        return True

    def run(self) -> None:
        """Read-eval-print loop. Returns on quit/exit, EOF or Ctrl-C."""
        readline.set_completer(_complete)
        readline.parse_and_bind("tab: complete")
        while True:
            try:
                line = input(PROMPT)
            except (EOFError, KeyboardInterrupt):
                self._print()
                return
            try:
                if not self.process_line(line):
                    return
            except KeyboardInterrupt:
                self._print()
                return
