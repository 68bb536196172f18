"""
Runs a single maintenance task: connect, audit, mutate, disconnect.

run_task() holds the audit-then-mutate logic against an already connected
Store and raises MaintenanceError subclasses. execute() owns the run lock and
the connection, and turns every failure into a failed TaskResult, so
callers only ever inspect the result.
"""
import logging
from contextlib import contextmanager

from filelock import FileLock, Timeout

from tournament_maintenance.errors import ConfigError, ExpectedAbsence, LockTimeout, MaintenanceError
from tournament_maintenance.models import (
    TaskResult, DELETE_MATCHING, DROP_NAMED_INDEX,
    INIT, CONNECTED, AUDITED, MUTATED, DISCONNECTED, TERMINATED,
)
from tournament_maintenance.store import open_store

logger = logging.getLogger(__name__)


def audit(task, store):
    """
    Enumerate what the task would touch and log it before anything changes.

    Returns the matching documents for delete_matching, or a list holding the
    index name (empty if absent) for drop_named_index.
    """
    collection = task.target_collection
    if task.action == DELETE_MATCHING:
        documents = store.find_matching(collection, task.selector)
        logger.info("Found %d document(s) in '%s' matching %s", len(documents), collection, task.selector)
        for doc in documents:
            logger.info("  %s", doc)
        return documents

    indexes = store.list_indexes(collection)
    logger.info("Current indexes on '%s': %s", collection, ', '.join(indexes) if indexes else '(none)')
    return [task.index_name] if task.index_name in indexes else []


def _delete_matching(task, store, result):
    if not result.matched:
        result.message = f"No documents in '{task.target_collection}' match {task.selector}; nothing to delete"
        logger.info(result.message)
        return
    deleted = store.delete_matching(task.target_collection, task.selector)
    result.state = MUTATED
    result.affected_count = deleted
    result.message = f"Deleted {deleted} document(s) from '{task.target_collection}'"
    logger.info("✓ %s", result.message)


def _drop_named_index(task, store, result):
    try:
        if not result.matched:
            raise ExpectedAbsence(f"Index does not exist: {task.index_name}", name=task.index_name)
        store.drop_index(task.target_collection, task.index_name)
    except ExpectedAbsence as e:
        # Dropped by an earlier run or never created
        result.message = str(e)
        logger.info(result.message)
        return
    result.state = MUTATED
    result.affected_count = 1
    result.message = f"Dropped index {task.index_name} from '{task.target_collection}'"
    logger.info("✓ %s", result.message)


def run_task(task, store, result=None, dry_run=False):
    """Audit then apply ``task`` against a connected store. Raises MaintenanceError."""
    if result is None:
        result = TaskResult(task, state=CONNECTED, dry_run=dry_run)

    result.matched = audit(task, store)
    result.state = AUDITED

    if dry_run:
        if task.action == DELETE_MATCHING:
            result.message = f"Dry run: would delete {result.matched_count} document(s) from '{task.target_collection}'"
        elif result.matched:
            result.message = f"Dry run: would drop index {task.index_name} from '{task.target_collection}'"
        else:
            result.message = f"Dry run: index does not exist: {task.index_name}"
        logger.info(result.message)
        return result

    if task.action == DELETE_MATCHING:
        _delete_matching(task, store, result)
    elif task.action == DROP_NAMED_INDEX:
        _drop_named_index(task, store, result)
    return result


@contextmanager
def run_lock(lock_file, timeout):
    """Hold an exclusive file lock for the run; no-op when lock_file is None."""
    if not lock_file:
        yield
        return
    lock = FileLock(lock_file, timeout=timeout)
    try:
        lock.acquire()
    except Timeout as e:
        raise LockTimeout(f"Another maintenance run holds {lock_file} (waited {timeout}s)") from e
    except OSError as e:
        raise ConfigError(f"Cannot create lock file {lock_file}: {e}") from e
    try:
        yield
    finally:
        lock.release()


def execute(task, settings, dry_run=False, store_factory=open_store):
    """
    Run ``task`` end to end and return its TaskResult.

    Never raises: failures come back as a result with succeeded=False,
    error_kind set and state TERMINATED. Unexpected exceptions are logged
    with their traceback and reported under their class name. The connection is
    released before this returns on every path.
    """
    result = TaskResult(task, state=INIT, dry_run=dry_run)
    logger.info("Running task '%s' (%s on '%s')%s", task.name, task.action, task.target_collection,
                ' [dry run]' if dry_run else '')
    try:
        with run_lock(settings.lock_file, settings.lock_timeout):
            with store_factory(settings.uri, database=settings.database, timeout_ms=settings.timeout_ms) as store:
                result.state = CONNECTED
                run_task(task, store, result=result, dry_run=dry_run)
            result.state = DISCONNECTED
    except MaintenanceError as e:
        logger.error("Task '%s' failed (state %s): %s", task.name, result.state, e)
        result.succeeded = False
        result.error_kind = e.kind
        result.message = str(e)
        result.state = TERMINATED
        return result
    except Exception as e:
        logger.exception("Task '%s' failed unexpectedly (state %s)", task.name, result.state)
        result.succeeded = False
        result.error_kind = type(e).__name__
        result.message = str(e)
        result.state = TERMINATED
        return result

    result.succeeded = True
    result.state = TERMINATED
    return result
