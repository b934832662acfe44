"""
Shared fixtures: an in-memory async collection with the subset of the driver
API that DataService relies on.
"""

import copy

import pytest
from bson import ObjectId
from loguru import logger
from pymongo.errors import DuplicateKeyError
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from mongo_data_service import DataService, RecordingSink


_MISSING = object()


def matches(document, query):
    """Evaluate the filter subset the service produces: equality, $or, $and, $in."""
    for key, condition in query.items():
        if key == "$or":
            if not any(matches(document, sub) for sub in condition):
                return False
        elif key == "$and":
            if not all(matches(document, sub) for sub in condition):
                return False
        elif isinstance(condition, dict) and "$in" in condition:
            if document.get(key, _MISSING) not in condition["$in"]:
                return False
        elif document.get(key, _MISSING) != condition:
            return False
    return True


class FakeCursor:
    def __init__(self, documents):
        self._documents = documents

    async def to_list(self, length=None):
        if length is None:
            return list(self._documents)
        return list(self._documents[:length])


class FakeCollection:
    def __init__(self, name="records"):
        self.name = name
        self.documents = []
        self.calls = []

    def find(self, query=None):
        self.calls.append(("find", query))
        found = [copy.deepcopy(d) for d in self.documents if matches(d, query or {})]
        return FakeCursor(found)

    async def insert_one(self, document):
        self.calls.append(("insert_one", document))
        if "_id" not in document:
            document["_id"] = ObjectId()
        if any(d["_id"] == document["_id"] for d in self.documents):
            raise DuplicateKeyError(f"duplicate key: {document['_id']}")
        self.documents.append(copy.deepcopy(document))
        return InsertOneResult(document["_id"], True)

    async def replace_one(self, query, replacement, upsert=False):
        self.calls.append(("replace_one", query))
        for index, existing in enumerate(self.documents):
            if matches(existing, query):
                stored = copy.deepcopy(replacement)
                stored["_id"] = existing["_id"]
                self.documents[index] = stored
                return UpdateResult({"n": 1, "nModified": 1, "ok": 1.0}, True)
        if not upsert:
            return UpdateResult({"n": 0, "nModified": 0, "ok": 1.0}, True)
        stored = copy.deepcopy(replacement)
        stored.setdefault("_id", query.get("_id", ObjectId()))
        self.documents.append(stored)
        return UpdateResult({"n": 1, "nModified": 0, "upserted": stored["_id"], "ok": 1.0}, True)

    async def delete_many(self, query):
        self.calls.append(("delete_many", query))
        kept = [d for d in self.documents if not matches(d, query)]
        deleted = len(self.documents) - len(kept)
        self.documents = kept
        return DeleteResult({"n": deleted, "ok": 1.0}, True)


@pytest.fixture
def error_logs():
    """Messages logged at ERROR or above while the test runs."""
    messages = []
    handler_id = logger.add(messages.append, level="ERROR", format="{message}")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def service(collection, sink):
    return DataService(collections={"default": collection}, notification=sink)


@pytest.fixture
def plain_service(collection, sink):
    """Service with independent ids turned off."""
    return DataService(
        collections={"default": collection},
        notification=sink,
        use_independent_ids=False,
    )
