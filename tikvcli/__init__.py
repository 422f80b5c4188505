"""Interactive shell and one-shot CLI for TiKV."""

from .client import TikvClient, dial
from .shell import Command, ScanOptions, Shell

__all__ = ["TikvClient", "dial", "Shell", "Command", "ScanOptions"]
