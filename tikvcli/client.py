"""
Client for a TiKV cluster. Every call runs in its own transaction:
begin -> operate -> commit for writes, begin -> read for get/scan.
"""

import logging
from typing import Callable, Iterator, Optional
from urllib.parse import urlparse, parse_qs

from .errors import DialError, OperationError, ScanError

logger = logging.getLogger(__name__)

SCHEME = "tikv"

# Keys fetched per round-trip while scanning; the store API needs an explicit limit.
SCAN_BATCH_SIZE = 256


def parse_url(url: str) -> tuple[list[str], dict[str, str]]:
    """
    Split tikv://pd1:2379,pd2:2379?cluster=1 into PD endpoints and query params.
    """
    if not url:
        raise DialError("missing cluster url, e.g. tikv://pd-node1:2379,pd-node2:2379")
    parsed = urlparse(url)
    if parsed.scheme != SCHEME:
        raise DialError(f"unsupported scheme {parsed.scheme!r} in {url!r}, expected {SCHEME}://")
    endpoints = [e.strip() for e in parsed.netloc.split(",") if e.strip()]
    if not endpoints:
        raise DialError(f"no PD endpoints in {url!r}")
    params = {k: v[-1] for k, v in parse_qs(parsed.query).items()}
    return endpoints, params


def dial(url: str) -> "TikvClient":
    """Connect to the cluster once; the returned client is reused for every command."""
    endpoints, params = parse_url(url)
    logger.debug("dialing PD endpoints %s", endpoints)
    if params:
        logger.debug("ignoring url parameters %s", params)
    try:
        from tikv_client import TransactionClient
    except ImportError as e:
        raise DialError("tikv-client is not installed, install it with: pip install tikvcli[tikv]") from e
    try:
        store = TransactionClient.connect(endpoints)
    except Exception as e:
        raise DialError(str(e)) from e
    return TikvClient(store, url=url)


class TikvClient:
    """
    Client for a transactional KV store. Methods: get(key), set(key, value),
    delete(key), scan(begin, limit, delete, visit).

    store is anything with begin(pessimistic=...) returning a transaction with
    get/put/delete/scan/commit, e.g. tikv_client.TransactionClient.
    """

    def __init__(self, store, url: str = ""):
        self._store = store
        self.url = url

    def _begin(self):
        try:
            return self._store.begin(pessimistic=False)
        except Exception as e:
            raise OperationError(str(e)) from e

    def get(self, key: bytes) -> Optional[bytes]:
        """
        Get value for key. Returns None if key does not exist.
        """
        txn = self._begin()
        try:
            return txn.get(key)
        except Exception as e:
            raise OperationError(str(e)) from e

    def set(self, key: bytes, value: bytes) -> None:
        """Set key to value and commit."""
        txn = self._begin()
        try:
            txn.put(key, value)
            txn.commit()
        except Exception as e:
            raise OperationError(str(e)) from e
        logger.debug("committed set %r", key)

    def delete(self, key: bytes) -> None:
        """Delete key and commit."""
        txn = self._begin()
        try:
            txn.delete(key)
            txn.commit()
        except Exception as e:
            raise OperationError(str(e)) from e
        logger.debug("committed delete %r", key)

    def scan(
        self,
        begin: bytes,
        limit: int = -1,
        delete: bool = False,
        visit: Optional[Callable[[bytes, bytes], bool]] = None,
    ) -> int:
        """
        Walk keys >= begin in order, calling visit(key, value) for each.
        Stops when limit keys were accepted (negative limit: no limit), when
        visit returns False, or at the end of the keyspace. Returns the number
        of accepted keys.

        With delete=True the accepted keys are deleted in the scan's own
        transaction, committed once iteration stops. A failure anywhere
        leaves the store untouched.
        """
        visited = 0
        try:
            txn = self._begin()
            for key, value in _iter_from(txn, begin):
                if limit >= 0 and visited >= limit:
                    break
                if visit is not None and not visit(key, value):
                    break
                if delete:
                    txn.delete(key)
                visited += 1
            if delete:
                txn.commit()
                logger.debug("committed delete of %d scanned keys", visited)
        except Exception as e:
            raise ScanError(str(e), visited=visited) from e
        return visited


def _iter_from(txn, begin: bytes) -> Iterator[tuple[bytes, bytes]]:
    """Yield (key, value) pairs from begin onwards, one batch per round-trip."""
    start, include_start = begin, True
    while True:
        batch = txn.scan(start, None, SCAN_BATCH_SIZE, include_start=include_start)
        for key, value in batch:
            yield key, value
        if len(batch) < SCAN_BATCH_SIZE:
            return
        start, include_start = batch[-1][0], False
