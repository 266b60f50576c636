# tests/conftest.py

"""
Shared fixtures: an in-memory stand-in for the asynchronous PyMongo collection,
a deterministic clock, and a TestClient wired to a store built on both.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import DESCENDING

from calculator_api.main import create_app
from calculator_api.store import CalculationStore


def to_millis(document):
    """Drops sub-millisecond precision from datetimes, as MongoDB does."""
    return {
        key: value.replace(microsecond=value.microsecond // 1000 * 1000) if isinstance(value, datetime) else value
        for key, value in document.items()
    }


class FakeCursor:
    def __init__(self, documents):
        self._documents = [dict(doc) for doc in documents]

    def sort(self, key_or_list, direction=None):
        # Accepts sort("field", direction) or sort([(field, direction), ...])
        if isinstance(key_or_list, str):
            keys = [(key_or_list, direction)]
        else:
            keys = list(key_or_list)
        # Stable sorts applied from the least significant key
        for key, key_direction in reversed(keys):
            self._documents.sort(key=lambda doc: doc[key], reverse=key_direction == DESCENDING)
        return self

    def limit(self, count):
        self._documents = self._documents[:count]
        return self

    async def to_list(self, length=None):
        return list(self._documents)


class FakeCollection:
    """
    Implements the slice of AsyncCollection the store uses.
    Set fail_with to an exception to make every call raise it.
    """

    def __init__(self):
        self.documents = {}
        self.fail_with = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def insert_one(self, document):
        self._check()
        oid = ObjectId()
        document["_id"] = oid
        self.documents[oid] = to_millis(document)
        return SimpleNamespace(inserted_id=oid, acknowledged=True)

    def find(self, filter=None):
        self._check()
        return FakeCursor(self.documents.values())

    async def find_one(self, filter):
        self._check()
        document = self.documents.get(filter["_id"])
        return dict(document) if document is not None else None

    async def update_one(self, filter, update):
        self._check()
        document = self.documents.get(filter["_id"])
        if document is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        document.update(to_millis(update["$set"]))
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def delete_one(self, filter):
        self._check()
        removed = self.documents.pop(filter["_id"], None)
        return SimpleNamespace(deleted_count=0 if removed is None else 1)


class TickingClock:
    """Returns a strictly increasing time on every call."""

    def __init__(self):
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def log_errors():
    """Errors the store reported through its on_log_error hook."""
    return []


@pytest.fixture
def store(collection, log_errors):
    return CalculationStore(collection, clock=TickingClock(), on_log_error=log_errors.append)


@pytest.fixture
def client(store):
    return TestClient(create_app(store))


class FakeClient:
    """Stands in for AsyncMongoClient: item access by database name, async close."""

    def __init__(self):
        self.collection = FakeCollection()
        self.db_name = None
        self.closed = False

    def __getitem__(self, db_name):
        self.db_name = db_name
        return {"calculations": self.collection}

    async def close(self):
        self.closed = True


@pytest.fixture
def mongo_client():
    return FakeClient()
