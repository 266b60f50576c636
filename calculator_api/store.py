# calculator_api/store.py

"""
Record store adapter for calculation history.
Wraps a single asynchronous PyMongo collection; the collection is injected so
the adapter never owns the client or its lifecycle.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError
from pydantic import ValidationError

from calculator import Operation
from calculator_api.models import CalculationPayload, CalculationRecord

logger = logging.getLogger(__name__)

# Number of records returned by a history query
HISTORY_LIMIT = 10

# Newest first. Stored timestamps only keep milliseconds, so ties fall back
# to _id, which grows with insertion order
HISTORY_SORT = [("timestamp", DESCENDING), ("_id", DESCENDING)]


class StoreFailure(Exception):
    """Any failure reported by the underlying document store."""


class InvalidRecordId(StoreFailure):
    """The identifier could not be parsed as a store id."""


class RecordNotFound(LookupError):
    """No record matched the given identifier."""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_record(document: dict) -> CalculationRecord:
    # A document written by another client may not have the expected shape
    try:
        return CalculationRecord.model_validate(document)
    except ValidationError as e:
        raise StoreFailure(f"Unreadable calculation record {document.get('_id')}") from e


def _object_id(record_id: str) -> ObjectId:
    try:
        return ObjectId(record_id)
    except (InvalidId, TypeError) as e:
        raise InvalidRecordId(f"Malformed record id: {record_id!r}") from e


class CalculationStore:
    """
    Create, read, update and delete calculation records, plus the
    best-effort logging path used by the arithmetic endpoints.

    on_log_error is called with the StoreFailure whenever log_calculation
    swallows an error, so callers can observe failures the client never sees.
    """

    def __init__(
        self,
        collection: AsyncCollection,
        clock: Callable[[], datetime] = utcnow,
        on_log_error: Optional[Callable[[StoreFailure], None]] = None,
    ):
        self.collection = collection
        self.clock = clock
        self.on_log_error = on_log_error

    async def _insert(self, document: dict) -> str:
        document["timestamp"] = self.clock()
        try:
            inserted = await self.collection.insert_one(document)
        except PyMongoError as e:
            raise StoreFailure(str(e)) from e
        return str(inserted.inserted_id)

    async def log_calculation(self, operation: Operation, num1: float, num2: float, result: float) -> bool:
        """
        Records a completed calculation. Store errors are logged and reported
        to on_log_error but never raised. Returns True when the write succeeded.
        """
        try:
            await self._insert({
                "operation": operation.value,
                "num1": num1,
                "num2": num2,
                "result": result,
            })
        except StoreFailure as e:
            logger.exception("Error logging calculation %s", operation.value)
            if self.on_log_error is not None:
                self.on_log_error(e)
            return False
        return True

    async def create(self, payload: CalculationPayload) -> str:
        """Inserts a record exactly as given and returns its id."""
        return await self._insert(payload.to_document())

    async def history(self, limit: int = HISTORY_LIMIT) -> List[CalculationRecord]:
        """The most recently created records, newest first."""
        try:
            cursor = self.collection.find().sort(HISTORY_SORT).limit(limit)
            documents = await cursor.to_list()
        except PyMongoError as e:
            raise StoreFailure(str(e)) from e
        return [_to_record(doc) for doc in documents]

    async def get(self, record_id: str) -> CalculationRecord:
        oid = _object_id(record_id)
        try:
            document = await self.collection.find_one({"_id": oid})
        except PyMongoError as e:
            raise StoreFailure(str(e)) from e
        if document is None:
            raise RecordNotFound(record_id)
        return _to_record(document)

    async def update(self, record_id: str, payload: CalculationPayload) -> None:
        """Replaces the operation, operands and result and stamps updatedAt."""
        oid = _object_id(record_id)
        changes = payload.to_document()
        changes["updatedAt"] = self.clock()
        try:
            outcome = await self.collection.update_one({"_id": oid}, {"$set": changes})
        except PyMongoError as e:
            raise StoreFailure(str(e)) from e
        if outcome.matched_count == 0:
            raise RecordNotFound(record_id)

    async def delete(self, record_id: str) -> None:
        oid = _object_id(record_id)
        try:
            outcome = await self.collection.delete_one({"_id": oid})
        except PyMongoError as e:
            raise StoreFailure(str(e)) from e
        if outcome.deleted_count == 0:
            raise RecordNotFound(record_id)
