"""
Typed Exception Hierarchy for the Timelock Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A delayed-execution engine is only useful if callers can react precisely to
each refusal. "Too early" means wait and retry; "not found" means the
operation was already executed or cancelled; "unauthorized" means the
invocation never carried the administrator's proof. Parsing message strings
to tell these apart is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example - WRONG way to handle errors:
    try:
        registry.execute(op_id)
    except Exception as e:
        if "early" in str(e):  # FRAGILE - message might change
            reschedule()

Example - RIGHT way (what this module enables):
    try:
        registry.execute(op_id)
    except TooEarlyError as e:
        reschedule(at=e.execute_at)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from TimelockError:

    TimelockError (base)
    |
    +-- AdministrationError
    |   +-- AlreadyInitializedError
    |   +-- NotInitializedError
    |
    +-- AuthorizationError
    |   +-- UnauthorizedError
    |
    +-- ScheduleError
    |   +-- InvalidOperationIdError
    |   +-- InvalidDelayError
    |   +-- DelayOutOfRangeError
    |   +-- TimestampOverflowError
    |   +-- AlreadyQueuedError
    |
    +-- ExecutionError
    |   +-- OperationNotFoundError
    |   +-- TooEarlyError
    |
    +-- StorageError
    |   +-- StoreWriteConflictError
    |   +-- InvalidStoredValueError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- AuditError
        +-- NotificationChainBrokenError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Administration  | ALREADY_INITIALIZED         | initialize() after admin slot is set
                | NOT_INITIALIZED             | Mutating call before initialize()
----------------|-----------------------------|-----------------------------------------
Authorization   | UNAUTHORIZED                | Invocation lacks the admin's proof
----------------|-----------------------------|-----------------------------------------
Schedule        | INVALID_OPERATION_ID        | Identifier is not bytes-like or str
                | INVALID_DELAY               | Delay is not an integer
                | DELAY_OUT_OF_RANGE          | Delay outside [min_delay, max_delay]
                | TIMESTAMP_OVERFLOW          | now + delay exceeds MAX_TIMESTAMP
                | ALREADY_QUEUED              | Live record exists for identifier
----------------|-----------------------------|-----------------------------------------
Execution       | OPERATION_NOT_FOUND         | No live record (never queued, or
                |                             | already executed/cancelled)
                | TOO_EARLY                   | now < execute_at
----------------|-----------------------------|-----------------------------------------
Storage         | STORE_WRITE_CONFLICT        | Concurrent insert of the same key
                | INVALID_STORED_VALUE        | Operation record is not an integer time
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Rewriting a write-once record
----------------|-----------------------------|-----------------------------------------
Audit           | NOTIFICATION_CHAIN_BROKEN   | Durable log hash chain mismatch

===============================================================================
DESIGN DECISIONS
===============================================================================

1. OperationNotFoundError deliberately does not say WHY the record is absent.
   "Never queued", "already executed" and "cancelled" are indistinguishable
   to the caller; the durable notification log is the place to ask.

2. Operation identifiers are opaque bytes. Exceptions store them as lowercase
   hex strings so they survive JSON logging and API serialization.

===============================================================================
"""


class TimelockError(Exception):
    """
    Base exception for all timelock kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "TIMELOCK_ERROR"


# Administration exceptions


class AdministrationError(TimelockError):
    """Base exception for administrator slot errors."""

    code: str = "ADMINISTRATION_ERROR"


class AlreadyInitializedError(AdministrationError):
    """The administrator slot is already populated."""

    code: str = "ALREADY_INITIALIZED"

    def __init__(self, admin: str):
        self.admin = admin
        super().__init__(f"Already initialized with administrator {admin}")


class NotInitializedError(AdministrationError):
    """An administrative call was made before initialize()."""

    code: str = "NOT_INITIALIZED"

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Not initialized: cannot {action} before initialize()")


# Authorization exceptions


class AuthorizationError(TimelockError):
    """Base exception for authorization failures."""

    code: str = "AUTHORIZATION_ERROR"


class UnauthorizedError(AuthorizationError):
    """The current invocation does not carry proof of authority from principal."""

    code: str = "UNAUTHORIZED"

    def __init__(self, principal: str, reason: str = "authorization missing"):
        self.principal = principal
        self.reason = reason
        super().__init__(f"Unauthorized for principal {principal}: {reason}")


# Schedule exceptions


class ScheduleError(TimelockError):
    """Base exception for queueing errors."""

    code: str = "SCHEDULE_ERROR"


class InvalidOperationIdError(ScheduleError):
    """Operation identifier is not a byte sequence or string."""

    code: str = "INVALID_OPERATION_ID"

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(
            f"Operation identifier must be bytes-like or str, got {type_name}"
        )


class InvalidDelayError(ScheduleError):
    """Delay is not an integer number of seconds."""

    code: str = "INVALID_DELAY"

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(f"Delay must be an integer number of seconds, got {type_name}")


class DelayOutOfRangeError(ScheduleError):
    """Delay falls outside the accepted [min_delay, max_delay] window."""

    code: str = "DELAY_OUT_OF_RANGE"

    def __init__(self, delay: int, min_delay: int, max_delay: int):
        self.delay = delay
        self.min_delay = min_delay
        self.max_delay = max_delay
        super().__init__(
            f"Delay out of range: {delay} not in [{min_delay}, {max_delay}]"
        )


class TimestampOverflowError(ScheduleError):
    """now + delay would exceed the representable timestamp range."""

    code: str = "TIMESTAMP_OVERFLOW"

    def __init__(self, now: int, delay: int, max_timestamp: int):
        self.now = now
        self.delay = delay
        self.max_timestamp = max_timestamp
        super().__init__(
            f"Scheduled time overflows: {now} + {delay} > {max_timestamp}"
        )


class AlreadyQueuedError(ScheduleError):
    """A live record already exists for the operation identifier."""

    code: str = "ALREADY_QUEUED"

    def __init__(self, operation_id: str):
        self.operation_id = operation_id
        super().__init__(f"Operation already queued: {operation_id}")


# Execution exceptions


class ExecutionError(TimelockError):
    """Base exception for execute/cancel errors."""

    code: str = "EXECUTION_ERROR"


class OperationNotFoundError(ExecutionError):
    """No live record for the identifier (never queued, executed, or cancelled)."""

    code: str = "OPERATION_NOT_FOUND"

    def __init__(self, operation_id: str):
        self.operation_id = operation_id
        super().__init__(f"Operation not found: {operation_id}")


class TooEarlyError(ExecutionError):
    """Execution attempted before the scheduled execution time."""

    code: str = "TOO_EARLY"

    def __init__(self, operation_id: str, execute_at: int, now: int):
        self.operation_id = operation_id
        self.execute_at = execute_at
        self.now = now
        super().__init__(
            f"Too early to execute {operation_id}: now={now}, "
            f"execute_at={execute_at}"
        )


# Storage exceptions


class StorageError(TimelockError):
    """Base exception for durable store errors."""

    code: str = "STORAGE_ERROR"


class StoreWriteConflictError(StorageError):
    """Another writer inserted the same key concurrently."""

    code: str = "STORE_WRITE_CONFLICT"

    def __init__(self, namespace: str, key: str):
        self.namespace = namespace
        self.key = key
        super().__init__(f"Concurrent write conflict on {namespace}:{key}")


class InvalidStoredValueError(StorageError):
    """A stored operation record does not hold an integer scheduled time."""

    code: str = "INVALID_STORED_VALUE"

    def __init__(self, operation_id: str, type_name: str):
        self.operation_id = operation_id
        self.type_name = type_name
        super().__init__(
            f"Stored schedule for operation {operation_id} is a {type_name}, "
            "not an integer timestamp"
        )


# Immutability exceptions


class ImmutabilityError(TimelockError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify a write-once or append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )


# Audit exceptions


class AuditError(TimelockError):
    """Base exception for notification log integrity errors."""

    code: str = "AUDIT_ERROR"


class NotificationChainBrokenError(AuditError):
    """The durable notification log's hash chain failed validation."""

    code: str = "NOTIFICATION_CHAIN_BROKEN"

    def __init__(self, seq: int, expected_hash: str, actual_hash: str):
        self.seq = seq
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Notification chain broken at seq {seq}: "
            f"expected {expected_hash}, got {actual_hash}"
        )
