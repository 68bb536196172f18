"""
Runner settings, read from the environment and overridden by CLI flags.
"""
import os
import tempfile

from dotenv import dotenv_values

from tournament_maintenance.errors import ConfigError
from tournament_maintenance.store import DEFAULT_TIMEOUT_MS

DEFAULT_LOCK_FILE = os.path.join(tempfile.gettempdir(), 'tournament-maintenance.lock')
LOCK_TIMEOUT_SECONDS = 10
DEFAULT_ENV_FILE = '.env'


class Settings:
    def __init__(self, uri=None, database=None, timeout_ms=DEFAULT_TIMEOUT_MS,
                 lock_file=DEFAULT_LOCK_FILE, lock_timeout=LOCK_TIMEOUT_SECONDS):
        self.uri = uri
        self.database = database
        self.timeout_ms = timeout_ms
        self.lock_file = lock_file
        self.lock_timeout = lock_timeout

    def __repr__(self):
        # Never show the URI, it may carry credentials
        return f"Settings(database={self.database}, timeout_ms={self.timeout_ms}, lock_file={self.lock_file})"


def _parse_timeout(value):
    try:
        timeout = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"MAINTENANCE_TIMEOUT_MS must be an integer, got {value!r}")
    if timeout <= 0:
        raise ConfigError(f"MAINTENANCE_TIMEOUT_MS must be positive, got {timeout}")
    return timeout


def read_environment(env_file=DEFAULT_ENV_FILE):
    """os.environ layered over the values in ``env_file``, if it exists."""
    env = {}
    if env_file and os.path.isfile(env_file):
        env.update({key: value for key, value in dotenv_values(env_file).items() if value is not None})
    env.update(os.environ)
    return env


def load_settings(environ=None, uri=None, database=None, lock_file=None, use_lock=True,
                  env_file=DEFAULT_ENV_FILE) -> Settings:
    """
    Build Settings from ``environ``, which defaults to os.environ plus ``env_file``.

    Explicit arguments win over environment variables. A connection URI is
    required from one source or the other.
    """
    env = read_environment(env_file) if environ is None else environ

    uri = uri or env.get('MONGO_URI')
    if not uri or not uri.strip():
        raise ConfigError("MONGO_URI not provided. Use --uri or set MONGO_URI in the environment or a .env file.")

    timeout_ms = DEFAULT_TIMEOUT_MS
    if env.get('MAINTENANCE_TIMEOUT_MS'):
        timeout_ms = _parse_timeout(env['MAINTENANCE_TIMEOUT_MS'])

    if use_lock:
        lock_file = lock_file or env.get('MAINTENANCE_LOCK_FILE') or DEFAULT_LOCK_FILE
    else:
        lock_file = None

    return Settings(
        uri=uri.strip(),
        database=database or env.get('MONGO_DB_NAME') or None,
        timeout_ms=timeout_ms,
        lock_file=lock_file,
    )
