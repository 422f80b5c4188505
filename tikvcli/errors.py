"""
Errors raised by the TiKV shell. Only DialError is fatal; everything else is
reported and the shell keeps going.
"""


class TikvCliError(Exception):
    """Base class for all shell errors."""


class DialError(TikvCliError):
    """Could not connect to the cluster."""


class OperationError(TikvCliError):
    """A get/set/delete/scan against the store failed. Message is the store's, verbatim."""


class ScanError(OperationError):
    """Scan failed part way; visited is how many keys were accepted before the failure."""

    def __init__(self, message: str, visited: int = 0):
        super().__init__(message)
        self.visited = visited


class ParseError(TikvCliError):
    """Malformed command arguments or escape sequence."""


class UnknownCommandError(TikvCliError):
    def __init__(self, name: str):
        super().__init__(f"unknown command {name}")
        self.name = name
