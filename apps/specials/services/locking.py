"""
Per-special claim scope.

``claim_transaction`` opens the unit of work a claim runs in: a database
transaction with a bounded lock wait, entered only once the caller holds
exclusivity on that one special. Claims on different specials never share
a lock.

On PostgreSQL and MySQL the exclusivity is the ``SELECT ... FOR UPDATE``
row lock taken by ``get_special_for_claim``. Backends without row locks
(SQLite) get an in-process lock per special with the same bounded wait.
"""

import logging
import math
import threading
from contextlib import contextmanager

from django.conf import settings
from django.db import connection, transaction

from .exceptions import LockTimeoutError

logger = logging.getLogger(__name__)

POSTGRES_LOCK_NOT_AVAILABLE = '55P03'
MYSQL_LOCK_WAIT_TIMEOUT = 1205


class SpecialLockRegistry:
    """Process-local lock per special id, dropped when nobody holds it."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    @contextmanager
    def hold(self, key, timeout_seconds):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1

        try:
            if not entry[0].acquire(timeout=timeout_seconds):
                raise LockTimeoutError()
            try:
                yield
            finally:
                entry[0].release()
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self):
        with self._guard:
            return len(self._locks)


_registry = SpecialLockRegistry()


def get_lock_timeout_ms():
    return settings.SPECIALS_LOCK_TIMEOUT_MS


def uses_row_locks():
    return connection.features.has_select_for_update


def _apply_lock_timeout(timeout_ms):
    """
    Bound how long SELECT ... FOR UPDATE may wait in this transaction.

    Returns:
        The previous MySQL session timeout to restore afterwards, or None
    """
    vendor = connection.vendor
    with connection.cursor() as cursor:
        if vendor == 'postgresql':
            # SET LOCAL ends with the transaction
            cursor.execute(f"SET LOCAL lock_timeout = {int(timeout_ms)}")
        elif vendor == 'mysql':
            # Session scoped, whole seconds, minimum 1
            cursor.execute("SELECT @@SESSION.innodb_lock_wait_timeout")
            previous = cursor.fetchone()[0]
            seconds = max(1, math.ceil(timeout_ms / 1000))
            cursor.execute(f"SET SESSION innodb_lock_wait_timeout = {seconds}")
            return previous
    return None


def _restore_lock_timeout(previous):
    """Put back the MySQL session timeout for later queries on a pooled connection."""
    with connection.cursor() as cursor:
        cursor.execute(f"SET SESSION innodb_lock_wait_timeout = {int(previous)}")


@contextmanager
def claim_transaction(special_id, *, timeout_ms=None):
    """
    Atomic scope for one claim on ``special_id``.

    Commits when the block exits normally and rolls back on any exception,
    including early rejections raised from inside the block.

    Raises:
        LockTimeoutError: In-process lock not acquired in time. Row-lock
            timeouts surface as DatabaseError; see ``is_lock_timeout``.
    """
    if timeout_ms is None:
        timeout_ms = get_lock_timeout_ms()

    if uses_row_locks():
        previous = None
        try:
            with transaction.atomic():
                previous = _apply_lock_timeout(timeout_ms)
                yield
        finally:
            if previous is not None:
                _restore_lock_timeout(previous)
        return

    with _registry.hold(str(special_id), timeout_ms / 1000):
        with transaction.atomic():
            yield


def is_lock_timeout(exc):
    """True when a DatabaseError means we gave up waiting for a lock."""
    cause = exc.__cause__
    code = getattr(cause, 'sqlstate', None) or getattr(cause, 'pgcode', None)
    if code == POSTGRES_LOCK_NOT_AVAILABLE:
        return True

    args = getattr(cause, 'args', ())
    if args and args[0] == MYSQL_LOCK_WAIT_TIMEOUT:
        return True

    return 'database is locked' in str(exc)
