"""Window-scoped channel tests: targeting, teardown and debounced intents."""

from __future__ import annotations

import unittest

from imagedeck.sync.bus import HostRequestError, InProcessBus
from imagedeck.sync.channel import SyncChannel


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class SyncChannelTests(unittest.TestCase):
    def setUp(self) -> None:
        self.bus = InProcessBus()
        self.clock = FakeClock()
        self.sent: list[dict[str, object]] = []
        self.bus.register_command("intent", lambda payload: self.sent.append(payload))
        self.channel = SyncChannel(self.bus, "main", clock=self.clock)

    def test_receives_broadcast_and_own_target_only(self) -> None:
        seen: list[object] = []
        self.channel.subscribe("evt", seen.append)
        self.bus.emit("evt", "all")
        self.bus.emit("evt", "mine", "main")
        self.bus.emit("evt", "other", "second")
        self.bus.dispatch_pending()
        self.assertEqual(seen, ["all", "mine"])

    def test_unsubscribe_drops_queued_deliveries(self) -> None:
        seen: list[object] = []
        unsubscribe = self.channel.subscribe("evt", seen.append)
        self.bus.emit("evt", 1)
        unsubscribe()
        self.bus.dispatch_pending()
        self.assertEqual(seen, [])
        self.assertEqual(self.bus.listener_count("evt"), 0)

    def test_publish_adds_window_label(self) -> None:
        self.assertTrue(self.channel.publish("intent", {"key": "t1"}))
        self.assertEqual(self.sent, [{"label": "main", "key": "t1"}])

    def test_rejected_publish_returns_false(self) -> None:
        with self.assertLogs("imagedeck.sync", level="WARNING"):
            self.assertFalse(self.channel.publish("missing"))

    def test_request_raises_on_failure(self) -> None:
        with self.assertRaises(HostRequestError):
            self.channel.request("missing")

    def test_debounced_publish_sends_latest_payload_once(self) -> None:
        outcomes: list[bool] = []
        for text in ("a", "ab", "abc"):
            self.channel.publish_debounced("search", "intent", {"query": text}, 0.3, on_sent=outcomes.append)
            self.clock.now += 0.1
        self.assertTrue(self.channel.has_pending("search"))
        self.assertEqual(self.channel.poll(self.clock.now), 0)
        self.assertEqual(self.channel.poll(self.clock.now + 0.2), 1)
        self.assertEqual(self.sent, [{"label": "main", "query": "abc"}])
        self.assertEqual(outcomes, [True])

    def test_close_tears_down_everything(self) -> None:
        seen: list[object] = []
        self.channel.subscribe("evt", seen.append)
        self.channel.publish_debounced("search", "intent", {"query": "x"}, 0.1)
        child = self.channel.child()
        child.subscribe("evt", seen.append)
        self.bus.emit("evt", 1)

        self.channel.close()
        self.bus.dispatch_pending()

        self.assertEqual(seen, [])
        self.assertTrue(child.closed)
        self.assertEqual(self.bus.listener_count("evt"), 0)
        self.assertEqual(self.channel.poll(100.0), 0)
        self.assertEqual(self.sent, [])
        self.assertFalse(self.channel.publish("intent"))

    def test_closing_child_leaves_parent_alive(self) -> None:
        seen: list[object] = []
        self.channel.subscribe("evt", seen.append)
        child = self.channel.child()
        child.subscribe("evt", seen.append)
        child.close()
        self.bus.emit("evt", "x")
        self.bus.dispatch_pending()
        self.assertEqual(seen, ["x"])

    def test_child_debounce_is_polled_through_parent(self) -> None:
        child = self.channel.child()
        child.publish_debounced("slot", "intent", {"n": 1}, 0.1)
        self.assertEqual(self.channel.poll(self.clock.now + 0.1), 1)
        self.assertEqual(self.sent, [{"label": "main", "n": 1}])


if __name__ == "__main__":
    unittest.main()
