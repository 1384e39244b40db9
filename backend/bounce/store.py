"""Store handle helpers: bounded timeouts and failure translation."""
from contextlib import contextmanager

from sqlalchemy import exc as sa_exc

from bounce.errors import StoreTimeoutError, StoreUnavailableError

_TIMEOUT_MARKERS = ('timeout', 'timed out', 'canceling statement')


def engine_options_for(database_uri: str, timeout_sec: int) -> dict:
    """SQLAlchemy engine options that bound every trip to the store."""
    if database_uri.startswith('postgresql'):
        return {
            'pool_pre_ping': True,
            'pool_timeout': timeout_sec,
            'connect_args': {
                'connect_timeout': timeout_sec,
                'options': f'-c statement_timeout={timeout_sec * 1000}',
            },
        }
    return {}


def is_timeout(error: Exception) -> bool:
    if isinstance(error, sa_exc.TimeoutError):
        return True
    text = str(getattr(error, 'orig', None) or error).lower()
    return any(marker in text for marker in _TIMEOUT_MARKERS)


@contextmanager
def store_errors(session, operation: str):
    """Run a unit of store work, translating driver failures to error kinds.

    The session is rolled back before the translated error propagates, so the
    request-scoped handle is left usable for teardown.
    """
    try:
        yield session
    except (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.TimeoutError) as error:
        session.rollback()
        if is_timeout(error):
            raise StoreTimeoutError(operation, str(error)) from error
        raise StoreUnavailableError(operation, str(error)) from error
    except sa_exc.DBAPIError as error:
        if not error.connection_invalidated:
            raise
        session.rollback()
        raise StoreUnavailableError(operation, str(error)) from error
