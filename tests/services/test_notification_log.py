"""Tests for the durable, hash-chained notification log."""

import pytest
from sqlalchemy import select

from timelock_kernel.models.notification import NotificationEntry
from timelock_kernel.services.sequence_service import SequenceService
from timelock_kernel.utils.hashing import hash_notification, hash_payload, hash_subject


def _entries(session) -> list[NotificationEntry]:
    return list(
        session.execute(select(NotificationEntry).order_by(NotificationEntry.seq)).scalars()
    )


class TestSqlNotificationLog:
    def test_first_entry_links_to_genesis(self, sql_notification_log, session):
        sql_notification_log.publish(("initialized",), {"admin": "admin-a"})

        (entry,) = _entries(session)
        assert entry.seq == 1
        assert entry.action == "initialized"
        assert entry.subject == ""
        assert entry.topics == ["initialized"]
        assert entry.prev_hash is None
        assert entry.published_at == 1000
        assert entry.payload_hash == hash_payload({"admin": "admin-a"})
        assert entry.hash == hash_notification(
            seq=1,
            action="initialized",
            subject="",
            payload_hash=entry.payload_hash,
            prev_hash=None,
        )

    def test_entries_chain(self, sql_notification_log, session, deterministic_clock):
        sql_notification_log.publish(("queued", "aa"), {"execute_at": 1060})
        deterministic_clock.advance(60)
        sql_notification_log.publish(("executed", "aa"), {"executed_at": 1060})

        first, second = _entries(session)
        assert (first.seq, second.seq) == (1, 2)
        assert second.prev_hash == first.hash
        assert second.subject == "aa"
        assert second.published_at == 1060

    def test_sequence_uses_counter_row(self, sql_notification_log, session):
        for _ in range(3):
            sql_notification_log.publish(("queued", "aa"), {})
        assert SequenceService(session).current_value(SequenceService.NOTIFICATION) == 3

    def test_empty_topics_rejected(self, sql_notification_log, session):
        with pytest.raises(ValueError):
            sql_notification_log.publish((), {})
        assert _entries(session) == []

    def test_failed_append_rolls_back_only_itself(self, sql_notification_log, session):
        sql_notification_log.publish(("queued", "aa"), {})
        with pytest.raises(Exception):
            # Sets are not JSON-serializable.
            sql_notification_log.publish(("queued", "bb"), {"bad": {1, 2}})

        entries = _entries(session)
        assert [e.subject for e in entries] == ["aa"]

    def test_appended_logged(self, sql_notification_log, captured_logs):
        sql_notification_log.publish(("cancelled", "aa"), {})
        appended = [r for r in captured_logs() if r["message"] == "notification_appended"]
        assert appended[0]["seq"] == 1
        assert appended[0]["action"] == "cancelled"


class TestSequenceService:
    def test_monotonic(self, session):
        service = SequenceService(session)
        assert service.current_value("x") == 0
        assert [service.next_value("x") for _ in range(3)] == [1, 2, 3]
        assert service.next_value("y") == 1
        assert service.current_value("x") == 3


class TestNotificationLogRange:
    def test_published_at_beyond_signed_range(
        self, sql_notification_log, session, deterministic_clock
    ):
        deterministic_clock.set_time(2**64 - 1)
        sql_notification_log.publish(("executed", "aa"), {"executed_at": 2**64 - 1})
        session.expire_all()

        (entry,) = _entries(session)
        assert type(entry.published_at) is int
        assert entry.published_at == 2**64 - 1
        assert entry.payload == {"executed_at": 2**64 - 1}

    def test_subject_has_no_length_cap(self, sql_notification_log, session):
        subject = "ab" * 2048
        sql_notification_log.publish(("queued", subject), {})
        session.expire_all()

        (entry,) = _entries(session)
        assert entry.subject == subject
        assert entry.subject_digest == hash_subject(subject)
