"""Tests for the notification hub."""

import threading

from purse.services.notifications import NotificationHub


class TestNotificationHub:
    """Test per-user sinks."""

    def test_delivers_to_registered_sink(self):
        hub = NotificationHub()
        received = []
        hub.register("u1", received.append)

        assert hub.notify("u1", {"event": "ping"}) is True
        assert received == [{"event": "ping"}]

    def test_no_sink(self):
        hub = NotificationHub()

        assert hub.notify("u1", {"event": "ping"}) is False

    def test_sinks_are_per_user(self):
        hub = NotificationHub()
        first, second = [], []
        hub.register("u1", first.append)
        hub.register("u2", second.append)

        hub.notify("u2", {"n": 1})

        assert first == []
        assert second == [{"n": 1}]

    def test_register_replaces_and_unregister_removes(self):
        hub = NotificationHub()
        old, new = [], []
        hub.register("u1", old.append)
        hub.register("u1", new.append)
        hub.notify("u1", {"n": 1})

        hub.unregister("u1")
        hub.unregister("u1")

        assert old == []
        assert new == [{"n": 1}]
        assert not hub.is_registered("u1")

    def test_failing_sink_is_not_fatal(self):
        hub = NotificationHub()

        def broken(message):
            raise ConnectionError("gone")

        hub.register("u1", broken)

        assert hub.notify("u1", {"n": 1}) is False

    def test_concurrent_registration(self):
        hub = NotificationHub()

        def register(i):
            hub.register(f"u{i}", lambda message: None)

        threads = [threading.Thread(target=register, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(hub.is_registered(f"u{i}") for i in range(20))
