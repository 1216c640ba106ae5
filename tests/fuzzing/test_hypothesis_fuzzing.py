"""
Hypothesis-based fuzzing of the registry.

Boundaries fuzzed here:
- Delay window: every integer is either accepted with execute_at = now + delay
  or rejected with no state change
- Timing: execution succeeds iff now >= execute_at, and at most once
- Identifiers: arbitrary bytes and text, including the empty identifier
- Call sequences: a stateful model compared against a plain dict after
  every step
"""

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from hypothesis.stateful import (
    Bundle,
    RuleBasedStateMachine,
    initialize,
    invariant,
    rule,
)

from tests.conftest import ADMIN, OUTSIDER, make_registry
from timelock_kernel.domain.operation import MAX_TIMESTAMP, OperationState
from timelock_kernel.exceptions import (
    AlreadyQueuedError,
    DelayOutOfRangeError,
    OperationNotFoundError,
    TimestampOverflowError,
    TooEarlyError,
    UnauthorizedError,
)

operation_ids = st.one_of(st.binary(max_size=64), st.text(max_size=32))


class TestDelayBoundary:
    @given(delay=st.integers(min_value=-(2**70), max_value=2**70))
    @settings(max_examples=200)
    def test_delay_accepted_iff_in_window(self, delay):
        registry, clock, store, log, authority = make_registry()
        registry.initialize(ADMIN)
        before = store.snapshot()

        with authority.authorize(ADMIN):
            if 60 <= delay <= 86_400:
                scheduled = registry.queue(b"op", delay)
                assert scheduled.execute_at == clock.now() + delay
            else:
                with pytest.raises(DelayOutOfRangeError):
                    registry.queue(b"op", delay)
                assert store.snapshot() == before
                assert log.filter("queued") == []

    @given(start=st.integers(min_value=MAX_TIMESTAMP - 100_000, max_value=MAX_TIMESTAMP))
    @settings(max_examples=100)
    def test_never_schedules_past_max_timestamp(self, start):
        registry, _, _, _, authority = make_registry(start=start)
        registry.initialize(ADMIN)

        with authority.authorize(ADMIN):
            try:
                scheduled = registry.queue(b"op", 86_400)
            except TimestampOverflowError:
                assert start + 86_400 > MAX_TIMESTAMP
                assert registry.get_state(b"op") is OperationState.UNKNOWN
            else:
                assert scheduled.execute_at <= MAX_TIMESTAMP


class TestTiming:
    @given(
        delay=st.integers(min_value=60, max_value=86_400),
        elapsed=st.integers(min_value=0, max_value=200_000),
    )
    @settings(max_examples=200)
    def test_execute_succeeds_iff_due(self, delay, elapsed):
        registry, clock, _, log, authority = make_registry()
        registry.initialize(ADMIN)

        with authority.authorize(ADMIN):
            scheduled = registry.queue(b"op", delay)
            clock.advance(elapsed)

            if elapsed >= delay:
                assert registry.get_state(b"op") is OperationState.READY
                assert registry.execute(b"op") == clock.now()
                with pytest.raises(OperationNotFoundError):
                    registry.execute(b"op")
                assert len(log.filter("executed")) == 1
            else:
                assert registry.get_state(b"op") is OperationState.PENDING
                with pytest.raises(TooEarlyError):
                    registry.execute(b"op")
                assert registry.get_execute_at(b"op") == scheduled.execute_at


class TestIdentifiers:
    @given(operation_id=operation_ids)
    @settings(max_examples=150)
    def test_any_identifier_round_trips(self, operation_id):
        registry, clock, _, _, authority = make_registry()
        registry.initialize(ADMIN)

        with authority.authorize(ADMIN):
            registry.queue(operation_id, 60)
            assert registry.get_execute_at(operation_id) == clock.now() + 60
            with pytest.raises(AlreadyQueuedError):
                registry.queue(operation_id, 60)
            registry.cancel(operation_id)
        assert registry.get_state(operation_id) is OperationState.UNKNOWN
        assert registry.get_admin() == ADMIN

    @given(principal=st.text(min_size=1).filter(lambda p: p != ADMIN))
    @settings(max_examples=100, suppress_health_check=[HealthCheck.filter_too_much])
    def test_only_admin_can_queue(self, principal):
        registry, _, store, _, authority = make_registry()
        registry.initialize(ADMIN)
        before = store.snapshot()

        with authority.authorize(principal):
            with pytest.raises(UnauthorizedError):
                registry.queue(b"op", 60)
        assert store.snapshot() == before


class RegistryStateMachine(RuleBasedStateMachine):
    """Compare the registry against a dict of identifier -> execute_at."""

    ids = Bundle("ids")

    @initialize()
    def setup(self):
        self.registry, self.clock, _, self.log, self.authority = make_registry()
        self.registry.initialize(ADMIN)
        self.model: dict[bytes, int] = {}
        self.transitions = 1

    @rule(target=ids, operation_id=st.binary(max_size=4))
    def new_id(self, operation_id):
        return operation_id

    @rule(operation_id=ids, delay=st.integers(min_value=0, max_value=100_000))
    def queue(self, operation_id, delay):
        with self.authority.authorize(ADMIN):
            if operation_id in self.model:
                with pytest.raises(AlreadyQueuedError):
                    self.registry.queue(operation_id, delay)
            elif not 60 <= delay <= 86_400:
                with pytest.raises(DelayOutOfRangeError):
                    self.registry.queue(operation_id, delay)
            else:
                scheduled = self.registry.queue(operation_id, delay)
                self.model[operation_id] = scheduled.execute_at
                self.transitions += 1

    @rule(operation_id=ids)
    def execute(self, operation_id):
        with self.authority.authorize(ADMIN):
            if operation_id not in self.model:
                with pytest.raises(OperationNotFoundError):
                    self.registry.execute(operation_id)
            elif self.clock.now() < self.model[operation_id]:
                with pytest.raises(TooEarlyError):
                    self.registry.execute(operation_id)
            else:
                self.registry.execute(operation_id)
                del self.model[operation_id]
                self.transitions += 1

    @rule(operation_id=ids)
    def cancel(self, operation_id):
        with self.authority.authorize(ADMIN):
            if operation_id not in self.model:
                with pytest.raises(OperationNotFoundError):
                    self.registry.cancel(operation_id)
            else:
                self.registry.cancel(operation_id)
                del self.model[operation_id]
                self.transitions += 1

    @rule(operation_id=ids)
    def unauthorized_cancel(self, operation_id):
        with self.authority.authorize(OUTSIDER):
            with pytest.raises(UnauthorizedError):
                self.registry.cancel(operation_id)

    @rule(seconds=st.integers(min_value=0, max_value=100_000))
    def advance(self, seconds):
        self.clock.advance(seconds)

    @invariant()
    def matches_model(self):
        now = self.clock.now()
        for operation_id, execute_at in self.model.items():
            assert self.registry.get_execute_at(operation_id) == execute_at
            expected = OperationState.PENDING if now < execute_at else OperationState.READY
            assert self.registry.get_state(operation_id) is expected

    @invariant()
    def one_notification_per_transition(self):
        assert len(self.log) == self.transitions


TestRegistryStateMachine = RegistryStateMachine.TestCase
TestRegistryStateMachine.settings = settings(max_examples=50, stateful_step_count=40)
