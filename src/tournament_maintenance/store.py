"""
MongoDB access for maintenance tasks.

open_store() owns the client for the duration of a ``with`` block and always
closes it, so a task never touches a global connection. Driver exceptions are
translated into the runner's error kinds here and nowhere else.
"""
import logging
import re
from contextlib import contextmanager

from bson.errors import BSONError
from pymongo import MongoClient
from pymongo.errors import ConfigurationError, ConnectionFailure, OperationFailure, PyMongoError

from tournament_maintenance.errors import ExpectedAbsence, OperationError, StoreConnectionError

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = 'test'
DEFAULT_TIMEOUT_MS = 5000

# Server error codes
AUTHENTICATION_FAILED = 18
NAMESPACE_NOT_FOUND = 26
INDEX_NOT_FOUND = 27

_CREDENTIALS_RE = re.compile(r'(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)(?P<user>[^:@/]+):[^@/]*@')


def redact_uri(uri: str) -> str:
    """Hide the password in a connection string before it reaches the log."""
    if not uri:
        return uri
    return _CREDENTIALS_RE.sub(r'\g<scheme>\g<user>:***@', uri)


@contextmanager
def _driver_errors(description: str):
    try:
        yield
    except ConnectionFailure as e:
        raise StoreConnectionError(f"Lost connection while trying to {description}: {e}") from e
    except (PyMongoError, BSONError) as e:
        raise OperationError(f"Failed to {description}: {e}") from e


class Store:
    """A connected handle on one database."""

    def __init__(self, client, database):
        self.client = client
        self.database = database

    @property
    def database_name(self):
        return getattr(self.database, 'name', None)

    def find_matching(self, collection: str, selector: dict) -> list:
        """Return every document in ``collection`` matching ``selector``. Read only."""
        with _driver_errors(f"query '{collection}'"):
            return list(self.database[collection].find(selector))

    def list_indexes(self, collection: str) -> list:
        """Return the index names defined on ``collection``."""
        with _driver_errors(f"list indexes on '{collection}'"):
            return [index['name'] for index in self.database[collection].list_indexes()]

    def delete_matching(self, collection: str, selector: dict) -> int:
        with _driver_errors(f"delete from '{collection}'"):
            result = self.database[collection].delete_many(selector)
        return result.deleted_count or 0

    def drop_index(self, collection: str, name: str):
        """Drop index ``name``; raise ExpectedAbsence if the server has no such index."""
        try:
            self.database[collection].drop_index(name)
        except OperationFailure as e:
            if e.code in (INDEX_NOT_FOUND, NAMESPACE_NOT_FOUND):
                raise ExpectedAbsence(f"Index does not exist: {name}", name=name) from e
            raise OperationError(f"Failed to drop index '{name}' on '{collection}': {e}") from e
        except ConnectionFailure as e:
            raise StoreConnectionError(f"Lost connection while dropping index '{name}': {e}") from e
        except (PyMongoError, BSONError) as e:
            raise OperationError(f"Failed to drop index '{name}' on '{collection}': {e}") from e

    def close(self):
        self.client.close()


def connect(uri: str, database: str = None, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> Store:
    """
    Connect to the store and verify it answers.

    MongoClient connects lazily, so a ping is issued to surface an unreachable
    server or bad credentials now rather than halfway through a task.
    """
    try:
        client = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
    except (ConfigurationError, ValueError, TypeError) as e:
        raise StoreConnectionError(f"Invalid connection URI {redact_uri(uri)!r}: {e}") from e

    try:
        client.admin.command('ping')
        if database:
            db = client[database]
        else:
            db = client.get_default_database(default=DEFAULT_DATABASE)
    except OperationFailure as e:
        client.close()
        if e.code == AUTHENTICATION_FAILED:
            raise StoreConnectionError(f"Authentication failed for {redact_uri(uri)}: {e}") from e
        raise StoreConnectionError(f"Store rejected connection to {redact_uri(uri)}: {e}") from e
    except PyMongoError as e:
        client.close()
        raise StoreConnectionError(f"Cannot reach {redact_uri(uri)}: {e}") from e

    logger.info("Connected to MongoDB (database '%s')", db.name)
    return Store(client, db)


@contextmanager
def open_store(uri: str, database: str = None, timeout_ms: int = DEFAULT_TIMEOUT_MS):
    """Yield a connected Store and disconnect on every exit path."""
    store = connect(uri, database=database, timeout_ms=timeout_ms)
    try:
        yield store
    finally:
        try:
            store.close()
        except PyMongoError as e:
            logger.warning("Error while disconnecting: %s", e)
        else:
            logger.debug("Disconnected from MongoDB")
