"""
OperationRegistry -- delayed-execution authorization engine.

Responsibility:
    Maps opaque operation identifiers to scheduled execution times and owns
    the initialize / queue / execute / cancel protocol together with every
    timing rule.  It is the only component with business logic; the clock,
    store, authority check and notification log are narrow collaborators
    injected at construction.

Architecture position:
    Kernel > Services -- imperative shell.  Storage-agnostic: the same
    registry runs on InMemoryStore or on SqlStore inside a caller-owned
    transaction.

Invariants enforced:
    - At most one live record per identifier (AlreadyQueuedError).
    - A scheduled time is never rewritten; execute and cancel remove it.
    - The administrator slot is written once (AlreadyInitializedError).
    - Every mutation requires the administrator's authority.
    - Execution happens at most once and never before ``execute_at``.
    - Every precondition is checked before the first write, so a failed
      call leaves no store change and emits no notification.

Failure modes:
    - NotInitializedError, UnauthorizedError, InvalidOperationIdError,
      InvalidDelayError, DelayOutOfRangeError, AlreadyQueuedError,
      TimestampOverflowError, OperationNotFoundError, TooEarlyError.
    - InvalidStoredValueError when a stored schedule is not an int; timing
      decisions are never made on a coerced or rounded value.
    - A failing NotificationLog never fails the call: the mutation has
      already happened, so the failure is logged and dropped.

Audit relevance:
    Each successful transition publishes exactly one notification, after
    the store write.  Rejections are logged as ``operation_rejected`` with
    the error code.
"""

from functools import wraps
from threading import RLock
from typing import Any

from timelock_kernel.domain.authority import AuthorityCheck, Principal
from timelock_kernel.domain.clock import Clock
from timelock_kernel.domain.notification import NotificationAction, NotificationLog
from timelock_kernel.domain.operation import (
    MAX_TIMESTAMP,
    NO_EXECUTE_AT,
    OperationIdLike,
    OperationState,
    ScheduledOperation,
    derive_state,
    normalize_operation_id,
    operation_id_hex,
)
from timelock_kernel.domain.policy import DelayPolicy
from timelock_kernel.exceptions import (
    AlreadyInitializedError,
    AlreadyQueuedError,
    DelayOutOfRangeError,
    InvalidDelayError,
    InvalidStoredValueError,
    NotInitializedError,
    OperationNotFoundError,
    StoreWriteConflictError,
    TimelockError,
    TimestampOverflowError,
    TooEarlyError,
    UnauthorizedError,
)
from timelock_kernel.logging_config import LogContext, get_logger
from timelock_kernel.storage.base import DurableStore
from timelock_kernel.storage.keys import ADMIN_KEY, operation_key

logger = get_logger("services.operation_registry")


def _serialized(method):
    """Run a public call under the registry lock and log rejections."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            try:
                return method(self, *args, **kwargs)
            except TimelockError as exc:
                logger.info(
                    "operation_rejected",
                    extra={"call": method.__name__, "code": exc.code},
                )
                raise

    return wrapper


class OperationRegistry:
    """
    The timelock.

    Contract:
        ``initialize(admin)`` once, then the administrator may ``queue``,
        ``execute`` and ``cancel``.  ``get_state``, ``get_execute_at`` and
        ``get_admin`` are public reads.

    Guarantees:
        - Calls on one registry are strictly serialized by a re-entrant
          lock.  A notification subscriber that calls back into the registry
          sees the state after the mutation that notified it.
        - ``execute`` removes the record before publishing, and treats a
          removal that finds nothing (a concurrent executor won) as
          OperationNotFoundError.

    Non-goals:
        - Does NOT interpret identifiers or run anything on their behalf.
        - Does NOT retry.  Every failed call is a no-op, so callers may
          re-issue it safely.
        - Does NOT commit.  With SqlStore, the caller owns the transaction.
    """

    def __init__(
        self,
        store: DurableStore,
        clock: Clock,
        authority: AuthorityCheck,
        notifications: NotificationLog,
        policy: DelayPolicy | None = None,
        pinned_admin: Principal | None = None,
    ):
        """
        Args:
            store: Durable store for the admin slot and operation records.
            clock: Ledger time source.
            authority: Authorization collaborator.
            notifications: Transition log.
            policy: Accepted delay window.  Defaults to 60s..24h.
            pinned_admin: If given, the only identity ``initialize`` accepts.
        """
        self._store = store
        self._clock = clock
        self._authority = authority
        self._notifications = notifications
        self._policy = policy or DelayPolicy()
        self._pinned_admin = pinned_admin
        self._lock = RLock()

    @property
    def policy(self) -> DelayPolicy:
        return self._policy

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_admin(self, action: str) -> Principal:
        admin = self._store.get(ADMIN_KEY)
        if admin is None:
            raise NotInitializedError(action)
        self._authority.require_authorized(admin)
        return admin

    def _scheduled_time(self, op_id: bytes) -> int | None:
        """Stored execute_at for ``op_id``, None when there is no live record."""
        execute_at = self._store.get(operation_key(op_id))
        if execute_at is None:
            return None
        if not isinstance(execute_at, int) or isinstance(execute_at, bool):
            raise InvalidStoredValueError(
                operation_id_hex(op_id), type(execute_at).__name__
            )
        return execute_at

    def _publish(self, topics: tuple[str, ...], payload: dict[str, Any]) -> None:
        try:
            self._notifications.publish(topics, payload)
        except Exception:
            logger.warning(
                "notification_publish_failed",
                extra={"topics": list(topics)},
                exc_info=True,
            )

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    @_serialized
    def initialize(self, admin: Principal) -> None:
        """
        Populate the administrator slot.

        No authorization is required: the first caller wins, unless the
        registry was constructed with ``pinned_admin``, in which case only
        that identity is accepted.

        Raises:
            AlreadyInitializedError: The slot is already populated.
            UnauthorizedError: ``admin`` differs from the pinned identity.
        """
        if not isinstance(admin, str) or not admin:
            raise ValueError("Administrator must be a non-empty principal string")

        existing = self._store.get(ADMIN_KEY)
        if existing is not None:
            raise AlreadyInitializedError(existing)
        if self._pinned_admin is not None and admin != self._pinned_admin:
            raise UnauthorizedError(admin, "not the pinned administrator")

        try:
            self._store.set(ADMIN_KEY, admin)
        except StoreWriteConflictError:
            raise AlreadyInitializedError(self._store.get(ADMIN_KEY) or "unknown")

        logger.info("registry_initialized", extra={"admin": admin})
        self._publish((NotificationAction.INITIALIZED.value,), {"admin": admin})

    def get_admin(self) -> Principal | None:
        return self._store.get(ADMIN_KEY)

    def is_initialized(self) -> bool:
        return self._store.has(ADMIN_KEY)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @_serialized
    def queue(self, operation_id: OperationIdLike, delay: int) -> ScheduledOperation:
        """
        Schedule ``operation_id`` to become executable ``delay`` seconds from now.

        Preconditions (checked in this order):
            - registry initialized, caller authorized as administrator
            - ``min_delay <= delay <= max_delay``
            - no live record for ``operation_id``
            - ``now + delay <= MAX_TIMESTAMP``

        Postconditions:
            - ``get_state(operation_id) == PENDING`` until ``execute_at``
              (for a zero-delay policy, READY immediately).
            - one ``queued`` notification with (operation_id, execute_at).
        """
        self._require_admin("queue")

        op_id = normalize_operation_id(operation_id)
        if not isinstance(delay, int) or isinstance(delay, bool):
            raise InvalidDelayError(type(delay).__name__)

        if not self._policy.accepts(delay):
            raise DelayOutOfRangeError(
                delay, self._policy.min_delay, self._policy.max_delay
            )

        op_hex = operation_id_hex(op_id)
        key = operation_key(op_id)
        if self._store.has(key):
            raise AlreadyQueuedError(op_hex)

        now = self._clock.now()
        if now > MAX_TIMESTAMP - delay:
            raise TimestampOverflowError(now, delay, MAX_TIMESTAMP)
        execute_at = now + delay

        try:
            self._store.set(key, execute_at)
        except StoreWriteConflictError:
            raise AlreadyQueuedError(op_hex)

        with LogContext.bind(operation_id=op_hex):
            logger.info(
                "operation_queued",
                extra={"execute_at": execute_at, "delay": delay},
            )
        self._publish(
            (NotificationAction.QUEUED.value, op_hex),
            {"operation_id": op_hex, "execute_at": execute_at},
        )
        return ScheduledOperation(operation_id=op_id, execute_at=execute_at, queued_at=now)

    @_serialized
    def execute(self, operation_id: OperationIdLike) -> int:
        """
        Execute a ready operation exactly once.

        The record is removed before the notification is published, so no
        re-entrant call can observe it afterwards.

        Returns:
            The clock reading at execution.

        Raises:
            OperationNotFoundError: No live record (includes replays).
            TooEarlyError: ``now < execute_at``; the record is untouched.
        """
        self._require_admin("execute")
        op_id = normalize_operation_id(operation_id)

        op_hex = operation_id_hex(op_id)
        key = operation_key(op_id)
        execute_at = self._scheduled_time(op_id)
        if execute_at is None:
            raise OperationNotFoundError(op_hex)

        now = self._clock.now()
        if now < execute_at:
            raise TooEarlyError(op_hex, execute_at, now)

        if not self._store.delete(key):
            raise OperationNotFoundError(op_hex)

        with LogContext.bind(operation_id=op_hex):
            logger.info(
                "operation_executed",
                extra={"execute_at": execute_at, "executed_at": now},
            )
        self._publish(
            (NotificationAction.EXECUTED.value, op_hex),
            {"operation_id": op_hex, "executed_at": now},
        )
        return now

    @_serialized
    def cancel(self, operation_id: OperationIdLike) -> None:
        """
        Remove a pending or ready operation.

        Afterwards the identifier is indistinguishable from one never queued
        and may be queued again.

        Raises:
            OperationNotFoundError: No live record.
        """
        self._require_admin("cancel")
        op_id = normalize_operation_id(operation_id)

        op_hex = operation_id_hex(op_id)
        if not self._store.delete(operation_key(op_id)):
            raise OperationNotFoundError(op_hex)

        with LogContext.bind(operation_id=op_hex):
            logger.info("operation_cancelled")
        self._publish(
            (NotificationAction.CANCELLED.value, op_hex),
            {"operation_id": op_hex},
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @_serialized
    def get_execute_at(self, operation_id: OperationIdLike) -> int:
        """Scheduled time of the live record, or 0 when there is none."""
        execute_at = self._scheduled_time(normalize_operation_id(operation_id))
        return NO_EXECUTE_AT if execute_at is None else execute_at

    @_serialized
    def get_state(self, operation_id: OperationIdLike) -> OperationState:
        """UNKNOWN, PENDING or READY.  Public; requires no authorization."""
        execute_at = self._scheduled_time(normalize_operation_id(operation_id))
        if execute_at is None:
            return OperationState.UNKNOWN
        return derive_state(execute_at, self._clock.now())
