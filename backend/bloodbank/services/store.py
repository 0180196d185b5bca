from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Protocol

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection

from bloodbank.database import Database


USERS = "users"
APPOINTMENTS = "appointments"
DONATIONS = "donations"
BLOOD_UNITS = "blood_units"
LAB_TESTS = "lab_tests"
BLOOD_REQUESTS = "blood_requests"

Document = dict[str, Any]
Sort = list[tuple[str, int]]

HIDDEN_FIELDS = frozenset({"password_hash"})


def as_object_id(document_id: str | ObjectId) -> ObjectId | None:
    if isinstance(document_id, ObjectId):
        return document_id
    if not ObjectId.is_valid(document_id):
        return None
    return ObjectId(document_id)


def serialize_document(document: Document | None) -> Document | None:
    if document is None:
        return None
    serialized: Document = {}
    for key, value in document.items():
        if key in HIDDEN_FIELDS:
            continue
        if key == "_id":
            serialized["id"] = str(value)
        elif isinstance(value, (datetime, date)):
            serialized[key] = value.isoformat()
        elif isinstance(value, ObjectId):
            serialized[key] = str(value)
        else:
            serialized[key] = value
    return serialized


class DocumentStore(Protocol):
    """The persistence surface the services depend on.

    Queries use the MongoDB filter dialect; services only rely on equality,
    ``$in``, ``$ne``, ``$lt``, ``$lte``, ``$gt`` and ``$gte``.
    ``update`` writes only when the document also matches ``conditions``
    and returns ``None`` otherwise.
    """

    def insert(self, collection: str, document: Document) -> Document: ...

    def get(self, collection: str, document_id: str) -> Document | None: ...

    def find_one(self, collection: str, query: Document) -> Document | None: ...

    def find(
        self,
        collection: str,
        query: Document | None = None,
        sort: Sort | None = None,
        limit: int = 0,
    ) -> list[Document]: ...

    def update(
        self,
        collection: str,
        document_id: str,
        changes: Document,
        conditions: Document | None = None,
    ) -> Document | None: ...

    def update_many(self, collection: str, query: Document, changes: Document) -> int: ...

    def delete(self, collection: str, document_id: str) -> bool: ...

    def count(self, collection: str, query: Document | None = None) -> int: ...


class MongoStore:
    def __init__(self, database: Database) -> None:
        self._database = database

    def _collection(self, name: str) -> Collection:
        return self._database.db[name]

    def insert(self, collection: str, document: Document) -> Document:
        document = dict(document)
        document.setdefault("_id", ObjectId())
        self._collection(collection).insert_one(document)
        return document

    def get(self, collection: str, document_id: str) -> Document | None:
        object_id = as_object_id(document_id)
        if object_id is None:
            return None
        return self._collection(collection).find_one({"_id": object_id})

    def find_one(self, collection: str, query: Document) -> Document | None:
        return self._collection(collection).find_one(query)

    def find(
        self,
        collection: str,
        query: Document | None = None,
        sort: Sort | None = None,
        limit: int = 0,
    ) -> list[Document]:
        cursor = self._collection(collection).find(query or {})
        if sort:
            cursor = cursor.sort([(field, ASCENDING if direction >= 0 else DESCENDING) for field, direction in sort])
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    def update(
        self,
        collection: str,
        document_id: str,
        changes: Document,
        conditions: Document | None = None,
    ) -> Document | None:
        object_id = as_object_id(document_id)
        if object_id is None:
            return None
        return self._collection(collection).find_one_and_update(
            {**(conditions or {}), "_id": object_id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )

    def update_many(self, collection: str, query: Document, changes: Document) -> int:
        result = self._collection(collection).update_many(query, {"$set": changes})
        return result.modified_count

    def delete(self, collection: str, document_id: str) -> bool:
        object_id = as_object_id(document_id)
        if object_id is None:
            return False
        return self._collection(collection).delete_one({"_id": object_id}).deleted_count == 1

    def count(self, collection: str, query: Document | None = None) -> int:
        return self._collection(collection).count_documents(query or {})


def now_utc() -> datetime:
    return datetime.now(timezone.utc)
