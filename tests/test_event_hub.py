"""
Tests for event envelopes, the in-process hub and publisher fan-out.
"""

import json
import unittest
from unittest import mock

from fleetsim.events import GLOBAL_TOPIC, Event, EventHub, EventKind, FanOutPublisher, Publisher, owner_topic


class TestEvent(unittest.TestCase):
    """Test Event serialization and topic naming."""

    def test_owner_topic(self):
        """Owners get their own channel, ownerless drones the global one."""
        self.assertEqual(owner_topic("42"), "user_42")
        self.assertEqual(owner_topic(None), GLOBAL_TOPIC)
        self.assertEqual(owner_topic(""), GLOBAL_TOPIC)

    def test_to_json(self):
        """Events serialize with their kind, topic, payload and timestamp."""
        event = Event(kind=EventKind.MISSION_PROGRESS, topic="user_1", payload={"progress": 50.0})
        data = json.loads(event.to_json())
        self.assertEqual(data["type"], "missionProgress")
        self.assertEqual(data["topic"], "user_1")
        self.assertEqual(data["payload"], {"progress": 50.0})
        self.assertEqual(data["timestamp"], event.timestamp.isoformat())


class TestEventHub(unittest.TestCase):
    """Test EventHub fan-out."""

    def setUp(self):
        self.hub = EventHub()

    def test_topic_isolation(self):
        """Subscribers only see their own topic."""
        alice = self.hub.subscribe("user_alice")
        bob = self.hub.subscribe("user_bob")
        self.hub.publish("user_alice", EventKind.DRONE_UPDATE, {"id": "d1"})
        self.assertEqual([e.payload["id"] for e in alice.drain()], ["d1"])
        self.assertEqual(bob.drain(), [])

    def test_global_subscribers_see_everything(self):
        """The global topic receives every event exactly once."""
        fleet = self.hub.subscribe(GLOBAL_TOPIC)
        self.hub.publish("user_alice", EventKind.DRONE_UPDATE, {"id": "d1"})
        self.hub.publish(GLOBAL_TOPIC, EventKind.DRONE_UPDATE, {"id": "d2"})
        self.assertEqual([e.payload["id"] for e in fleet.drain()], ["d1", "d2"])

    def test_publish_order(self):
        """Events arrive in the order they were published."""
        sub = self.hub.subscribe("user_1")
        kinds = [EventKind.DRONE_UPDATE, EventKind.MISSION_PROGRESS, EventKind.MISSION_COMPLETED]
        for kind in kinds:
            self.hub.publish("user_1", kind, {})
        self.assertEqual([e.kind for e in sub], kinds)

    def test_no_replay(self):
        """A late subscriber misses earlier events."""
        self.hub.publish("user_1", EventKind.DRONE_UPDATE, {})
        late = self.hub.subscribe("user_1")
        self.assertIsNone(late.get(timeout=0.01))
        self.assertEqual(self.hub.published_count, 1)

    def test_callback_subscribers(self):
        """Callbacks run synchronously; a failing one does not block others."""
        received = []
        self.hub.subscribe("user_1", mock.Mock(side_effect=RuntimeError("broken dashboard")))
        self.hub.subscribe("user_1", received.append)
        with self.assertLogs("fleetsim.events.hub", level="ERROR"):
            self.hub.publish("user_1", EventKind.DRONE_UPDATE, {"id": "d1"})
        self.assertEqual(len(received), 1)

    def test_close(self):
        """Closed subscriptions stop receiving and are removed."""
        sub = self.hub.subscribe("user_1")
        self.assertEqual(self.hub.subscriber_count("user_1"), 1)
        sub.close()
        self.assertTrue(sub.closed)
        self.assertEqual(self.hub.subscriber_count(), 0)
        self.hub.publish("user_1", EventKind.DRONE_UPDATE, {})
        self.assertEqual(sub.drain(), [])


class TestFanOutPublisher(unittest.TestCase):
    """Test FanOutPublisher."""

    def test_forwards_to_all(self):
        """Every publisher receives the event even if one fails."""
        failing = mock.Mock(spec=Publisher)
        failing.publish.side_effect = ConnectionError("broker down")
        hub = EventHub()
        sub = hub.subscribe("user_1")
        fan_out = FanOutPublisher(failing, hub)
        with self.assertRaises(ConnectionError):
            fan_out.publish("user_1", EventKind.DRONE_UPDATE, {"id": "d1"})
        self.assertEqual(len(sub.drain()), 1)


if __name__ == '__main__':
    unittest.main()
