"""Tests for the change notifier."""

from joysync.core.changes import MESSAGES, PROFILES, ChangeEvent, ChangeNotifier


def _event(collection=MESSAGES, action="insert"):
    return ChangeEvent(collection=collection, action=action, record_id="r1")


def test_publish_reaches_subscribers_of_collection():
    notifier = ChangeNotifier()
    seen = []
    notifier.subscribe(MESSAGES, seen.append)

    assert notifier.publish(_event()) == 1
    assert notifier.publish(_event(collection=PROFILES)) == 0
    assert [e.collection for e in seen] == [MESSAGES]


def test_unsubscribe_stops_delivery():
    notifier = ChangeNotifier()
    seen = []
    unsubscribe = notifier.subscribe(MESSAGES, seen.append)
    unsubscribe()
    unsubscribe()

    assert notifier.subscriber_count(MESSAGES) == 0
    assert notifier.publish(_event()) == 0
    assert seen == []


def test_failing_subscriber_does_not_block_others(caplog):
    notifier = ChangeNotifier()
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    notifier.subscribe(MESSAGES, broken)
    notifier.subscribe(MESSAGES, seen.append)

    with caplog.at_level("ERROR"):
        delivered = notifier.publish(_event(action="update"))

    assert delivered == 1
    assert len(seen) == 1
    assert "Change handler failed" in caplog.text
