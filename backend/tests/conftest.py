"""
Shared fixtures.

The application is built with an in-memory implementation of the document
store, so the suite needs no MongoDB. Users are inserted straight into that
store and authenticated with tokens minted from the test settings.
"""

import copy
import itertools
import operator

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from bloodbank.config import Settings
from bloodbank.main import create_app
from bloodbank.security import create_access_token, hash_password
from bloodbank.services.store import USERS, as_object_id, now_utc


PASSWORD = "correct-horse-battery"
PASSWORD_HASH = hash_password(PASSWORD)
FRONTEND_ORIGIN = "http://example.com"

_OPERATORS = {
    "$in": lambda value, operand: value in operand,
    "$ne": operator.ne,
    "$lt": lambda value, operand: value is not None and value < operand,
    "$lte": lambda value, operand: value is not None and value <= operand,
    "$gt": lambda value, operand: value is not None and value > operand,
    "$gte": lambda value, operand: value is not None and value >= operand,
}


def _matches(document, query):
    for field, condition in query.items():
        value = document.get(field)
        if isinstance(condition, dict) and condition and all(key.startswith("$") for key in condition):
            if not all(_OPERATORS[op](value, operand) for op, operand in condition.items()):
                return False
        elif value != condition:
            return False
    return True


class MemoryStore:
    def __init__(self):
        self.collections = {}

    def _docs(self, collection):
        return self.collections.setdefault(collection, [])

    def insert(self, collection, document):
        document = copy.deepcopy(document)
        document.setdefault("_id", ObjectId())
        self._docs(collection).append(document)
        return copy.deepcopy(document)

    def get(self, collection, document_id):
        object_id = as_object_id(document_id)
        if object_id is None:
            return None
        return self.find_one(collection, {"_id": object_id})

    def find_one(self, collection, query):
        found = self.find(collection, query, limit=1)
        return found[0] if found else None

    def find(self, collection, query=None, sort=None, limit=0):
        found = [document for document in self._docs(collection) if _matches(document, query or {})]
        for field, direction in reversed(sort or []):
            found.sort(key=lambda document: document.get(field), reverse=direction < 0)
        if limit:
            found = found[:limit]
        return copy.deepcopy(found)

    def update(self, collection, document_id, changes, conditions=None):
        object_id = as_object_id(document_id)
        if object_id is None:
            return None
        for document in self._docs(collection):
            if document["_id"] == object_id and _matches(document, conditions or {}):
                document.update(copy.deepcopy(changes))
                return copy.deepcopy(document)
        return None

    def update_many(self, collection, query, changes):
        modified = 0
        for document in self._docs(collection):
            if _matches(document, query):
                document.update(copy.deepcopy(changes))
                modified += 1
        return modified

    def delete(self, collection, document_id):
        object_id = as_object_id(document_id)
        documents = self._docs(collection)
        for index, document in enumerate(documents):
            if document["_id"] == object_id:
                del documents[index]
                return True
        return False

    def count(self, collection, query=None):
        return len([document for document in self._docs(collection) if _matches(document, query or {})])


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        mongo_uri=None,
        frontend_url=FRONTEND_ORIGIN,
        jwt_secret="test-secret",
        admin_email=None,
        admin_password=None,
        vercel=None,
    )


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(store):
    counter = itertools.count(1)

    def _make(role, **fields):
        number = next(counter)
        document = {
            "role": role,
            "email": f"{role}{number}@example.com",
            "password_hash": PASSWORD_HASH,
            "name": f"{role.title()} {number}",
            "phone": "5550100",
            "city": "Springfield",
            "created_at": now_utc(),
        }
        if role == "donor":
            document.update(
                blood_group="O+",
                date_of_birth="1990-05-01",
                gender="female",
                weight_kg=70.0,
                last_donation_date=None,
            )
        elif role != "admin":
            document.update(address="1 Main St", license_number=f"LIC-{number}", status="approved")
        document.update(fields)
        return store.insert(USERS, document)

    return _make


@pytest.fixture
def auth_headers(settings):
    def _headers(user):
        token = create_access_token(str(user["_id"]), user["role"], settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def password():
    return PASSWORD
