"""In-process bus tests: command errors and queued event delivery."""

from __future__ import annotations

import unittest

from imagedeck.sync.bus import HostRequestError, InProcessBus


class InProcessBusTests(unittest.TestCase):
    def test_invoke_returns_handler_result(self) -> None:
        bus = InProcessBus()
        bus.register_command("echo", lambda payload: payload["value"])
        self.assertEqual(bus.invoke("echo", {"value": 3}), 3)

    def test_handler_exceptions_become_host_request_errors(self) -> None:
        bus = InProcessBus()

        def fail(_payload: object) -> None:
            raise ValueError("bad page")

        bus.register_command("fail", fail)
        with self.assertRaises(HostRequestError) as ctx:
            bus.invoke("fail")
        self.assertEqual(ctx.exception.name, "fail")
        self.assertIn("bad page", str(ctx.exception))

    def test_unknown_command_is_rejected(self) -> None:
        with self.assertRaises(HostRequestError):
            InProcessBus().invoke("missing")

    def test_events_are_queued_until_dispatch(self) -> None:
        bus = InProcessBus()
        seen: list[tuple[object, object]] = []
        bus.listen("evt", lambda payload, target: seen.append((payload, target)))

        bus.emit("evt", 1)
        bus.emit("evt", 2, "main")
        self.assertEqual(seen, [])
        self.assertEqual(bus.dispatch_pending(), 2)
        self.assertEqual(seen, [(1, None), (2, "main")])

    def test_unlisten_is_idempotent(self) -> None:
        bus = InProcessBus()
        unlisten = bus.listen("evt", lambda _payload, _target: None)
        self.assertEqual(bus.listener_count("evt"), 1)
        unlisten()
        unlisten()
        self.assertEqual(bus.listener_count("evt"), 0)

    def test_failing_listener_does_not_stop_delivery(self) -> None:
        bus = InProcessBus()
        seen: list[object] = []

        def broken(_payload: object, _target: object) -> None:
            raise RuntimeError("boom")

        bus.listen("evt", broken)
        bus.listen("evt", lambda payload, _target: seen.append(payload))
        bus.emit("evt", "x")
        with self.assertLogs("imagedeck.bus", level="ERROR"):
            bus.dispatch_pending()
        self.assertEqual(seen, ["x"])


if __name__ == "__main__":
    unittest.main()
