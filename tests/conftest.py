"""Pytest fixtures: an in-memory store shaped like tikv_client.TransactionClient."""

import io
from typing import Optional

import pytest

from tikvcli.client import TikvClient
from tikvcli.shell import Shell


class StoreFailure(Exception):
    """Raised by the fake store when a failure is injected."""


class FakeTransaction:
    """Optimistic transaction: writes are buffered and applied on commit."""

    def __init__(self, store: "FakeStore"):
        self._store = store
        self._writes: dict[bytes, Optional[bytes]] = {}  # None marks a delete
        self.committed = False

    def _check(self, op: str) -> None:
        if op in self._store.fail_on:
            raise StoreFailure(f"injected {op} failure")

    def _view(self) -> dict[bytes, bytes]:
        data = dict(self._store.data)
        for k, v in self._writes.items():
            if v is None:
                data.pop(k, None)
            else:
                data[k] = v
        return data

    def get(self, key: bytes) -> Optional[bytes]:
        self._check("get")
        return self._view().get(key)

    def put(self, key: bytes, value: bytes) -> None:
        self._check("put")
        self._writes[key] = value

    def delete(self, key: bytes) -> None:
        self._check("delete")
        self._writes[key] = None

    def scan(self, start, end, limit, include_start=True, include_end=False):
        self._check("scan")
        self._store.scan_calls += 1
        out = []
        for k, v in sorted(self._view().items()):
            if k < start or (k == start and not include_start):
                continue
            if end is not None and (k > end or (k == end and not include_end)):
                break
            out.append((k, v))
            if len(out) >= limit:
                break
        return out

    def commit(self) -> None:
        self._check("commit")
        if self.committed:
            raise StoreFailure("transaction already committed")
        for k, v in self._writes.items():
            if v is None:
                self._store.data.pop(k, None)
            else:
                self._store.data[k] = v
        self.committed = True


class FakeStore:
    def __init__(self, data: Optional[dict[bytes, bytes]] = None):
        self.data: dict[bytes, bytes] = dict(data or {})
        self.fail_on: set[str] = set()
        self.transactions: list[FakeTransaction] = []
        self.scan_calls = 0

    def begin(self, pessimistic: bool = False) -> FakeTransaction:
        if "begin" in self.fail_on:
            raise StoreFailure("injected begin failure")
        txn = FakeTransaction(self)
        self.transactions.append(txn)
        return txn


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client(store):
    return TikvClient(store, url="tikv://127.0.0.1:2379")


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def shell(client, output):
    return Shell(client, out=output)
