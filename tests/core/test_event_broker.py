import unittest
from unittest.mock import Mock
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from core.event_broker import EventBroker, EventPriority, event_aware


class TestEventBroker(unittest.TestCase):

    def setUp(self):
        self.broker = EventBroker.get_broker(f"test-{self._testMethodName}")
        self.broker.clear()

    def test_named_brokers_are_shared(self):
        self.assertIs(EventBroker.get_broker(self.broker.name), self.broker)
        self.assertIs(EventBroker.get_default(), EventBroker.get_broker("default"))

    def test_publish_passes_arguments(self):
        callback = Mock()
        self.broker.subscribe("tag.seen", callback)

        handled = self.broker.publish("tag.seen", 7, family="tag36h11")

        self.assertEqual(handled, 1)
        callback.assert_called_once_with(7, family="tag36h11")

    def test_publish_without_subscribers(self):
        self.assertEqual(self.broker.publish("nobody.listens"), 0)

    def test_priority_order(self):
        calls = []
        self.broker.subscribe("evt", lambda: calls.append("low"), EventPriority.LOW)
        self.broker.subscribe("evt", lambda: calls.append("critical"), EventPriority.CRITICAL)
        self.broker.subscribe("evt", lambda: calls.append("normal"))

        self.broker.publish("evt")

        self.assertEqual(calls, ["critical", "normal", "low"])

    def test_failing_subscriber_isolated(self):
        error_handler = Mock()
        good = Mock()
        self.broker.subscribe("evt", Mock(side_effect=RuntimeError("bad")), EventPriority.HIGH,
                              error_handler=error_handler)
        self.broker.subscribe("evt", good)

        handled = self.broker.publish("evt")

        self.assertEqual(handled, 1)
        good.assert_called_once()
        self.assertIsInstance(error_handler.call_args[0][0], RuntimeError)

    def test_unsubscribe(self):
        callback = Mock()
        sub = self.broker.subscribe("evt", callback)

        self.assertTrue(self.broker.unsubscribe("evt", sub))
        self.assertFalse(self.broker.unsubscribe("evt", sub))
        self.assertFalse(self.broker.has_subscribers("evt"))

        self.broker.publish("evt")
        callback.assert_not_called()

    def test_unsubscribe_by_callback(self):
        callback = Mock()
        self.broker.subscribe("evt", callback)
        self.assertTrue(self.broker.unsubscribe("evt", callback=callback))


class TestEventAware(unittest.TestCase):

    def setUp(self):
        EventBroker.get_broker("aware-test").clear()

        @event_aware("aware-test")
        class Emitter:
            def __init__(self, name):
                self.name = name

        self.Emitter = Emitter

    def test_init_preserved(self):
        self.assertEqual(self.Emitter("a").name, "a")

    def test_emit_and_listen(self):
        sender, receiver = self.Emitter("s"), self.Emitter("r")
        received = []
        receiver.listen("ping", received.append)

        self.assertEqual(sender.emit("ping", 1), 1)
        self.assertEqual(received, [1])

    def test_stop_listening(self):
        obj = self.Emitter("x")
        received = []
        sub = obj.listen("ping", received.append)

        self.assertTrue(obj.stop_listening("ping", sub))
        obj.emit("ping", 1)
        self.assertEqual(received, [])

    def test_stop_all_listening(self):
        obj = self.Emitter("x")
        obj.listen("a", Mock())
        obj.listen("b", Mock())

        obj.stop_all_listening()

        broker = EventBroker.get_broker("aware-test")
        self.assertFalse(broker.has_subscribers("a"))
        self.assertFalse(broker.has_subscribers("b"))


if __name__ == '__main__':
    unittest.main()
