"""
Shared pytest fixtures for the maintenance runner tests.

FakeCollection keeps documents and indexes in memory and answers the handful
of driver calls Store makes, so runner behavior can be checked without a
MongoDB server.
"""
import pytest
import sys
import os
from contextlib import contextmanager
from unittest.mock import Mock, MagicMock

from bson import ObjectId
from pymongo.errors import OperationFailure

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tournament_maintenance.config import Settings
from tournament_maintenance.store import Store, INDEX_NOT_FOUND

TEST_URI = 'mongodb://localhost:27017/tournaments'


def _matches(doc, selector):
    for field, expected in selector.items():
        # Mongo semantics: {field: None} also matches a missing field
        if expected is None:
            if doc.get(field) is not None:
                return False
        elif doc.get(field) != expected:
            return False
    return True


class FakeCollection:
    def __init__(self, documents=None, indexes=None):
        self.documents = list(documents or [])
        self.indexes = ['_id_'] + list(indexes or [])
        self.find_calls = []
        self.delete_calls = []
        self.drop_calls = []

    def find(self, selector):
        self.find_calls.append(selector)
        return iter([doc for doc in self.documents if _matches(doc, selector)])

    def delete_many(self, selector):
        self.delete_calls.append(selector)
        before = len(self.documents)
        self.documents = [doc for doc in self.documents if not _matches(doc, selector)]
        return Mock(deleted_count=before - len(self.documents))

    def list_indexes(self):
        return iter([{'name': name, 'v': 2} for name in self.indexes])

    def drop_index(self, name):
        self.drop_calls.append(name)
        if name not in self.indexes:
            raise OperationFailure(f'index not found with name [{name}]', code=INDEX_NOT_FOUND)
        self.indexes.remove(name)


class FakeDatabase:
    def __init__(self, name='tournaments'):
        self.name = name
        self.collections = {}

    def __getitem__(self, collection):
        if collection not in self.collections:
            self.collections[collection] = FakeCollection()
        return self.collections[collection]


def make_team(name, tournament=None, **fields):
    doc = {
        '_id': ObjectId(),
        'tournament': tournament or ObjectId(),
        'institution': 'Test University',
        'status': 'confirmed',
    }
    if name is not ...:
        doc['name'] = name
    doc.update(fields)
    return doc


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def teams_collection(fake_db):
    """3 teams with a null or missing name, 7 properly named ones."""
    tournament = ObjectId()
    documents = [make_team(f"Team {i}", tournament) for i in range(1, 8)]
    documents += [make_team(None, tournament), make_team(None, tournament), make_team(..., tournament)]
    collection = FakeCollection(
        documents=documents,
        indexes=['tournament_1_status_1', 'captain_1', 'tournament_1_name_1'],
    )
    fake_db.collections['teams'] = collection
    return collection


@pytest.fixture
def fake_client(fake_db):
    """Stand-in for pymongo.MongoClient(...) that hands out fake_db."""
    client = MagicMock()
    client.get_default_database.return_value = fake_db
    client.__getitem__.return_value = fake_db
    return client


@pytest.fixture
def fake_store(fake_client, fake_db):
    return Store(fake_client, fake_db)


@pytest.fixture
def store_factory(fake_store):
    """open_store replacement that records connects and disconnects."""
    events = []

    @contextmanager
    def factory(uri, database=None, timeout_ms=None):
        events.append('connect')
        try:
            yield fake_store
        finally:
            events.append('disconnect')

    factory.events = events
    return factory


@pytest.fixture
def settings():
    return Settings(uri=TEST_URI, lock_file=None)
