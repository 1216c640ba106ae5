"""
Pytest fixtures for the timelock kernel test suite.

Provides:
- Structured logging capture
- In-memory registries wired to a deterministic clock (t=1000)
- SQLite in-memory SQLAlchemy sessions for the durable store and log
"""

import json
import logging
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from timelock_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from timelock_kernel.domain.authority import InvocationAuthority
from timelock_kernel.domain.clock import DeterministicClock
from timelock_kernel.domain.notification import InMemoryNotificationLog
from timelock_kernel.domain.policy import DelayPolicy
from timelock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from timelock_kernel.services.notification_log import SqlNotificationLog
from timelock_kernel.services.operation_registry import OperationRegistry
from timelock_kernel.storage.memory import InMemoryStore
from timelock_kernel.storage.sql import SqlStore

ADMIN = "admin-a"
OUTSIDER = "mallory"
START_TIME = 1000
MIN_DELAY = 60
MAX_DELAY = 86_400


def make_registry(
    *,
    start: int = START_TIME,
    policy: DelayPolicy | None = None,
    pinned_admin: str | None = None,
):
    """Build an in-memory registry and return it with its collaborators.

    Usable from Hypothesis tests, which cannot take function-scoped fixtures.
    """
    clock = DeterministicClock(start)
    store = InMemoryStore()
    log = InMemoryNotificationLog()
    authority = InvocationAuthority()
    registry = OperationRegistry(
        store=store,
        clock=clock,
        authority=authority,
        notifications=log,
        policy=policy,
        pinned_admin=pinned_admin,
    )
    return registry, clock, store, log, authority


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture timelock_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, authorized_registry):
            authorized_registry.queue(b"op", 60)
            assert any(r["message"] == "operation_queued" for r in captured_logs())
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("timelock_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# In-memory collaborators
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(START_TIME)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def notification_log() -> InMemoryNotificationLog:
    return InMemoryNotificationLog()


@pytest.fixture
def authority() -> InvocationAuthority:
    return InvocationAuthority()


@pytest.fixture
def registry(store, deterministic_clock, authority, notification_log) -> OperationRegistry:
    """A registry that has not been initialized yet."""
    return OperationRegistry(
        store=store,
        clock=deterministic_clock,
        authority=authority,
        notifications=notification_log,
    )


@pytest.fixture
def initialized_registry(registry) -> OperationRegistry:
    """A registry initialized with ADMIN; the test carries no proof."""
    registry.initialize(ADMIN)
    return registry


@pytest.fixture
def authorized_registry(initialized_registry, authority) -> Generator[OperationRegistry, None, None]:
    """An initialized registry, with ADMIN's proof bound for the whole test."""
    with authority.authorize(ADMIN):
        yield initialized_registry


# =============================================================================
# SQL fixtures
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh SQLite in-memory database per test."""
    engine = init_engine_from_url("sqlite://")
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    s = get_session()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def sql_store(session) -> SqlStore:
    return SqlStore(session)


@pytest.fixture
def sql_notification_log(session, deterministic_clock) -> SqlNotificationLog:
    return SqlNotificationLog(session, deterministic_clock)


@pytest.fixture
def sql_registry(
    sql_store, deterministic_clock, authority, sql_notification_log
) -> Generator[OperationRegistry, None, None]:
    """An initialized, SQL-backed registry with ADMIN's proof bound."""
    registry = OperationRegistry(
        store=sql_store,
        clock=deterministic_clock,
        authority=authority,
        notifications=sql_notification_log,
    )
    registry.initialize(ADMIN)
    with authority.authorize(ADMIN):
        yield registry
