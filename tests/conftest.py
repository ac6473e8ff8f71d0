"""Shared fixtures: an in-memory stand-in for the motor client and app builders."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from reservation_api.bootstrap.gateway import GatewayBootstrap
from reservation_api.core.config import Settings
from reservation_api.infrastructure.mongo import ConnectionManager

TEST_URI = "mongodb://localhost:27017/reservations"
ALLOWED_ORIGIN = "http://localhost:5173"


class FakeCollection:
    def __init__(self):
        self.documents = {}

    def find(self, query=None):
        async def cursor():
            for document in list(self.documents.values()):
                yield dict(document)
        return cursor()

    async def find_one(self, query):
        document = self.documents.get(query.get("_id"))
        return dict(document) if document else None

    async def insert_one(self, document):
        oid = ObjectId()
        self.documents[oid] = {**document, "_id": oid}
        return SimpleNamespace(inserted_id=oid)

    async def find_one_and_update(self, query, update, return_document=None):
        document = self.documents.get(query.get("_id"))
        if document is None:
            return None
        document.update(update["$set"])
        return dict(document)

    async def delete_one(self, query):
        removed = self.documents.pop(query.get("_id"), None)
        return SimpleNamespace(deleted_count=1 if removed else 0)


class FakeDatabase:
    def __init__(self, name):
        self.name = name
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())


class FakeMongoClient:
    """Callable as a client factory; records how it was created."""

    def __init__(self, database_name="reservations", ping=None):
        self.database = FakeDatabase(database_name)
        self.admin = SimpleNamespace(command=ping or AsyncMock(return_value={"ok": 1.0}))
        self.uri = None
        self.kwargs = {}
        self.closed = False

    def __call__(self, uri, **kwargs):
        self.uri = uri
        self.kwargs = kwargs
        return self

    def get_default_database(self, default=None):
        return self.database

    def close(self):
        self.closed = True


@pytest.fixture
def fake_client_cls():
    return FakeMongoClient


@pytest.fixture
def fake_client():
    return FakeMongoClient()


@pytest.fixture
def test_uri():
    return TEST_URI


@pytest.fixture
def connection_manager(fake_client):
    return ConnectionManager(client_factory=fake_client)


@pytest.fixture
def connected_manager(connection_manager):
    asyncio.run(connection_manager.connect(TEST_URI))
    return connection_manager


@pytest.fixture
def make_settings():
    def _make(**overrides):
        return Settings(_env_file=None, **overrides)
    return _make


@pytest.fixture
def make_bootstrap(connection_manager, make_settings):
    def _make(collaborators=None, manager=None, **overrides):
        return GatewayBootstrap(
            settings=make_settings(**overrides),
            connection_manager=manager or connection_manager,
            collaborators=collaborators,
        )
    return _make


@pytest.fixture
def make_app(make_bootstrap):
    def _make(collaborators=None, manager=None, **overrides):
        return make_bootstrap(collaborators=collaborators, manager=manager, **overrides).create_app()
    return _make
