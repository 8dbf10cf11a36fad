"""Shared fixtures: an in-memory collection double and connected stores."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from mongo_access import Store


def _matches(document, filter):
    return all(document.get(key) == value for key, value in filter.items())


class FakeCursor:
    def __init__(self, documents):
        self._documents = list(documents)
        self._skip = 0
        self._limit = 0

    def skip(self, n):
        self._skip = n
        return self

    def limit(self, n):
        self._limit = n
        return self

    def sort(self, pairs):
        for key, direction in reversed(pairs):
            self._documents.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return self

    async def to_list(self, length=None):
        documents = self._documents[self._skip:]
        if self._limit:
            documents = documents[: self._limit]
        return [dict(d) for d in documents]


class FakeCollection:
    """Behaves like the subset of a motor collection the Store uses."""

    def __init__(self, documents=None):
        self.documents = [dict(d) for d in documents or []]

    def find(self, filter=None):
        return FakeCursor(d for d in self.documents if _matches(d, filter or {}))

    async def find_one(self, filter):
        for document in self.documents:
            if _matches(document, filter):
                return dict(document)
        return None

    async def insert_one(self, document):
        document.setdefault("_id", ObjectId())
        self.documents.append(dict(document))
        return InsertOneResult(document["_id"], True)

    def _apply(self, document, update):
        for field, value in update.get("$set", {}).items():
            document[field] = value
        for field, value in update.get("$pull", {}).items():
            document[field] = [item for item in document.get(field, []) if item != value]

    async def update_one(self, filter, update):
        for document in self.documents:
            if _matches(document, filter):
                self._apply(document, update)
                return UpdateResult({"n": 1, "nModified": 1}, True)
        return UpdateResult({"n": 0, "nModified": 0}, True)

    async def update_many(self, filter, update):
        matched = [d for d in self.documents if _matches(d, filter)]
        for document in matched:
            self._apply(document, update)
        return UpdateResult({"n": len(matched), "nModified": len(matched)}, True)

    async def delete_one(self, filter):
        for document in self.documents:
            if _matches(document, filter):
                self.documents.remove(document)
                return DeleteResult({"n": 1}, True)
        return DeleteResult({"n": 0}, True)

    async def delete_many(self, filter):
        kept = [d for d in self.documents if not _matches(d, filter)]
        removed = len(self.documents) - len(kept)
        self.documents = kept
        return DeleteResult({"n": removed}, True)


def make_client(collection=None, ping_error=None):
    """Build a mocked motor client whose database hands out ``collection``."""
    client = MagicMock()
    client.admin.command = AsyncMock(side_effect=ping_error)
    db = MagicMock()
    db.name = "app"
    db.__getitem__.return_value = collection if collection is not None else MagicMock()
    client.get_default_database.return_value = db
    return client


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def client(collection):
    return make_client(collection)


@pytest.fixture
def store(client):
    store = Store(client_factory=MagicMock(return_value=client))
    asyncio.run(store.connect({"host": "mongodb://localhost:27017/app"}))
    return store
