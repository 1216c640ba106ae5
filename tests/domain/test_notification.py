"""Tests for the in-memory notification log."""

import pytest

from timelock_kernel.domain.notification import (
    InMemoryNotificationLog,
    Notification,
    NotificationAction,
)


class TestInMemoryNotificationLog:
    def test_publish_assigns_sequence(self):
        log = InMemoryNotificationLog()
        log.publish(("queued", "6f7031"), {"execute_at": 1060})
        log.publish(("executed", "6f7031"), {"executed_at": 1061})

        assert [r.seq for r in log.records] == [1, 2]
        assert len(log) == 2
        assert log.records[0].action == "queued"
        assert log.records[0].payload == {"execute_at": 1060}

    def test_empty_topics_rejected(self):
        log = InMemoryNotificationLog()
        with pytest.raises(ValueError):
            log.publish((), {})
        assert len(log) == 0

    def test_payload_copied(self):
        log = InMemoryNotificationLog()
        payload = {"execute_at": 1060}
        log.publish(("queued", "aa"), payload)
        payload["execute_at"] = 0
        assert log.records[0].payload == {"execute_at": 1060}

    def test_filter_by_topic_prefix(self):
        log = InMemoryNotificationLog()
        log.publish(("initialized",), {"admin": "a"})
        log.publish(("queued", "aa"), {})
        log.publish(("queued", "bb"), {})
        log.publish(("cancelled", "aa"), {})

        assert [r.seq for r in log.filter("queued")] == [2, 3]
        assert [r.seq for r in log.filter("queued", "bb")] == [3]
        assert log.filter("executed") == []
        assert len(log.filter()) == 4

    def test_subscribers_called_in_order(self):
        log = InMemoryNotificationLog()
        seen = []
        log.subscribe(lambda r: seen.append(("first", r.seq)))
        log.subscribe(lambda r: seen.append(("second", r.seq)))
        log.publish(("queued", "aa"), {})
        assert seen == [("first", 1), ("second", 1)]

    def test_subscriber_error_propagates_after_append(self):
        log = InMemoryNotificationLog()

        def broken(record):
            raise RuntimeError("observer down")

        log.subscribe(broken)
        with pytest.raises(RuntimeError):
            log.publish(("queued", "aa"), {})
        assert len(log) == 1


class TestNotification:
    def test_matches(self):
        record = Notification(seq=1, topics=("executed", "aa"))
        assert record.matches("executed")
        assert record.matches("executed", "aa")
        assert not record.matches("executed", "bb")
        assert not record.matches("executed", "aa", "extra")

    def test_action_values(self):
        assert NotificationAction.QUEUED.value == "queued"
        assert NotificationAction("executed") is NotificationAction.EXECUTED
