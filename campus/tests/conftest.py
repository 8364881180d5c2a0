"""
Shared fixtures: in-memory stand-ins for the MongoDB and Redis clients and
for threading.Timer, wired into a real ConnectionManager and Flask app.
"""
import copy
import re
from types import SimpleNamespace

import pytest
import redis
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import ServerSelectionTimeoutError

from backend.app import create_app
from backend.config import Settings
from backend.database.connection_manager import ConnectionManager


# -----------------------------------------------------------------------------
# MongoDB fakes
# -----------------------------------------------------------------------------

def _matches(doc, query):
    for field, cond in (query or {}).items():
        value = doc.get(field)
        if isinstance(cond, dict) and "$regex" in cond:
            flags = re.IGNORECASE if "i" in cond.get("$options", "") else 0
            if value is None or not re.search(cond["$regex"], str(value), flags):
                return False
        elif value != cond:
            return False
    return True


class FakeCollection:
    def __init__(self):
        self.docs = []
        self.calls = []

    def insert_one(self, doc):
        self.calls.append("insert_one")
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def find_one(self, query):
        self.calls.append("find_one")
        for doc in self.docs:
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query=None):
        self.calls.append("find")
        return [copy.deepcopy(d) for d in self.docs if _matches(d, query)]

    def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE):
        self.calls.append("find_one_and_update")
        for doc in self.docs:
            if _matches(doc, query):
                before = copy.deepcopy(doc)
                doc.update(update.get("$set", {}))
                return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before
        return None

    def delete_one(self, query):
        self.calls.append("delete_one")
        for i, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    def count_documents(self, query):
        self.calls.append("count_documents")
        return len([d for d in self.docs if _matches(d, query)])

    def aggregate(self, pipeline):
        self.calls.append("aggregate")
        group = pipeline[0]["$group"]
        out_field, spec = next((k, v) for k, v in group.items() if k != "_id")
        field = spec["$avg"].lstrip("$")
        if not self.docs:
            return iter([])
        values = [d[field] for d in self.docs if isinstance(d.get(field), (int, float))]
        avg = sum(values) / len(values) if values else None
        return iter([{"_id": None, out_field: avg}])


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())


class FakeMongoClient:
    def __init__(self, backends, uri, **kwargs):
        self.backends = backends
        self.uri = uri
        self.kwargs = kwargs
        self.closed = False
        self.admin = SimpleNamespace(command=self._command)

    def _command(self, name):
        if self.backends.mongo_down:
            raise ServerSelectionTimeoutError("No servers found")
        return {"ok": 1.0}

    def __getitem__(self, name):
        self.backends.db_names.append(name)
        return self.backends.database

    def close(self):
        if self.backends.mongo_close_error:
            raise ServerSelectionTimeoutError("close failed")
        self.closed = True


# -----------------------------------------------------------------------------
# Redis fake
# -----------------------------------------------------------------------------

class FakeRedis:
    def __init__(self, backends, uri, **kwargs):
        self.backends = backends
        self.uri = uri
        self.kwargs = kwargs
        self.closed = False

    @property
    def data(self):
        return self.backends.redis_data

    @property
    def ttls(self):
        return self.backends.redis_ttls

    def _check(self, op):
        self.backends.redis_calls.append(op)
        if self.backends.redis_down:
            raise redis.exceptions.ConnectionError("Connection refused")
        if op in self.backends.redis_failing_ops:
            raise redis.exceptions.ResponseError(f"{op} rejected")

    def ping(self):
        self._check("ping")
        return True

    def set(self, key, value, ex=None):
        self._check("set")
        self.data[key] = value
        self.ttls[key] = ex
        return True

    def get(self, key):
        self._check("get")
        return self.data.get(key)

    def delete(self, *keys):
        self._check("delete")
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                self.ttls.pop(key, None)
                removed += 1
        return removed

    def exists(self, *keys):
        self._check("exists")
        return sum(1 for key in keys if key in self.data)

    def flushdb(self):
        self._check("flushdb")
        self.data.clear()
        self.ttls.clear()
        return True

    def close(self):
        if self.backends.redis_close_error:
            raise redis.exceptions.ConnectionError("close failed")
        self.closed = True


# -----------------------------------------------------------------------------
# Timer fake
# -----------------------------------------------------------------------------

class FakeTimer:
    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function()


class FakeBackends:
    """Shared state behind every fake client a ConnectionManager creates."""

    def __init__(self):
        self.database = FakeDatabase()
        self.db_names = []
        self.mongo_clients = []
        self.mongo_down = False
        self.mongo_close_error = False

        self.redis_data = {}
        self.redis_ttls = {}
        self.redis_calls = []
        self.redis_clients = []
        self.redis_down = False
        self.redis_failing_ops = set()
        self.redis_close_error = False

        self.timers = []

    def mongo_client(self, uri, **kwargs):
        client = FakeMongoClient(self, uri, **kwargs)
        self.mongo_clients.append(client)
        return client

    def redis_client(self, uri, **kwargs):
        client = FakeRedis(self, uri, **kwargs)
        self.redis_clients.append(client)
        return client

    def timer(self, interval, function):
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer

    def collection(self, name):
        return self.database[name]


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    return Settings(
        mongodb_uri="mongodb://localhost:27017",
        mongodb_db_name="campus_test",
        redis_uri="redis://localhost:6379/0",
        strict_connections=False,
    )


@pytest.fixture
def strict_settings(settings) -> Settings:
    return settings.model_copy(update={"strict_connections": True})


@pytest.fixture
def backends() -> FakeBackends:
    return FakeBackends()


@pytest.fixture
def make_manager(backends):
    def _make(settings):
        return ConnectionManager(
            settings,
            mongo_client_factory=backends.mongo_client,
            redis_client_factory=backends.redis_client,
            timer_factory=backends.timer,
        )
    return _make


@pytest.fixture
def manager(make_manager, settings) -> ConnectionManager:
    return make_manager(settings)


@pytest.fixture
def app(settings, manager):
    app = create_app(settings, manager)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
