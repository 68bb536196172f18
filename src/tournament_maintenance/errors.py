"""
Error kinds raised by the maintenance runner.

Everything derives from MaintenanceError so the runner can catch one type at
the process boundary. ExpectedAbsence is not a failure: the runner downgrades
it to an informational message.
"""


class MaintenanceError(Exception):
    """Base class for maintenance failures."""

    kind = 'MaintenanceError'


class StoreConnectionError(MaintenanceError, ConnectionError):
    """The document store is unreachable, the URI is invalid, or auth failed."""

    kind = 'ConnectionError'


class OperationError(MaintenanceError):
    """A find, delete or index operation was rejected by the store."""

    kind = 'OperationError'


class ExpectedAbsence(MaintenanceError):
    """The named index is not there (already dropped or never created)."""

    kind = 'ExpectedAbsence'

    def __init__(self, message, name=None):
        super().__init__(message)
        self.name = name


class TaskDefinitionError(MaintenanceError):
    kind = 'TaskDefinitionError'


class ConfigError(MaintenanceError):
    kind = 'ConfigError'


class LockTimeout(MaintenanceError):
    kind = 'LockTimeout'
