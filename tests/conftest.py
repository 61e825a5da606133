"""
Shared fixtures for the gateway test suite.

Tests never talk to a real MongoDB: `FakeDatabase` keeps documents in
memory and implements the handful of collection calls the gateway makes
(find, find_one, insert_one, update_one with $set/$push, delete_one).
"""

import copy
import os
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

# Quiet logs before any app import reads the settings
os.environ["LOG_LEVEL"] = "WARNING"

from database import Store  # noqa: E402
from main import create_app  # noqa: E402


def _matches(doc, filter_dict):
    return all(doc.get(k) == v for k, v in (filter_dict or {}).items())


class FakeCollection:
    def __init__(self):
        self.docs = []

    def find(self, filter_dict=None):
        return iter([copy.deepcopy(d) for d in self.docs if _matches(d, filter_dict)])

    def find_one(self, filter_dict=None):
        for doc in self.docs:
            if _matches(doc, filter_dict):
                return copy.deepcopy(doc)
        return None

    def insert_one(self, doc):
        stored = copy.deepcopy(doc)
        stored.setdefault("_id", ObjectId())
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    def update_one(self, filter_dict, update):
        for doc in self.docs:
            if not _matches(doc, filter_dict):
                continue
            before = copy.deepcopy(doc)
            doc.update(copy.deepcopy(update.get("$set", {})))
            for field, value in update.get("$push", {}).items():
                doc.setdefault(field, []).append(copy.deepcopy(value))
            return SimpleNamespace(matched_count=1, modified_count=int(doc != before))
        return SimpleNamespace(matched_count=0, modified_count=0)

    def delete_one(self, filter_dict):
        for i, doc in enumerate(self.docs):
            if _matches(doc, filter_dict):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FailingCollection:
    """Every call fails the way an unreachable server does."""

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise ServerSelectionTimeoutError("connection refused")
        return fail


class FakeDatabase:
    def __init__(self, collection_factory=FakeCollection):
        self.collection_factory = collection_factory
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = self.collection_factory()
        return self.collections[name]

    def command(self, name):
        return {"ok": 1.0}

    def list_collection_names(self):
        return sorted(self.collections)


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def store(db):
    return Store(db)


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as c:
        yield c


@pytest.fixture
def failing_client():
    with TestClient(create_app(Store(FakeDatabase(FailingCollection)))) as c:
        yield c
