"""
Tests for the MQTT publisher with a mocked paho client.
"""

import json
import unittest
from unittest import mock

import paho.mqtt.client as mqtt

from fleetsim.config import MqttSettings
from fleetsim.events import EventKind, MqttPublisher


class TestMqttPublisher(unittest.TestCase):
    """Test MqttPublisher."""

    def setUp(self):
        self.client = mock.MagicMock()
        self.client.publish.return_value = mock.Mock(rc=mqtt.MQTT_ERR_SUCCESS)
        self.settings = MqttSettings(host="broker", port=1884, topic_prefix="fleet-test")
        self.publisher = MqttPublisher(self.settings, client=self.client)

    def test_publish_json_on_prefixed_topic(self):
        """Events are published as JSON under the topic prefix with QoS 0."""
        self.publisher.publish("user_1", EventKind.DRONE_UPDATE, {"id": "d1", "battery": 99.5})
        topic, body = self.client.publish.call_args.args
        self.assertEqual(topic, "fleet-test/user_1")
        self.assertEqual(self.client.publish.call_args.kwargs["qos"], 0)
        data = json.loads(body)
        self.assertEqual(data["type"], "droneUpdate")
        self.assertEqual(data["payload"]["battery"], 99.5)

    def test_failed_publish_is_logged(self):
        """A non-success return code is logged, not raised."""
        self.client.publish.return_value = mock.Mock(rc=mqtt.MQTT_ERR_NO_CONN)
        with self.assertLogs("fleetsim.events.mqtt", level="WARNING"):
            self.publisher.publish("user_1", EventKind.DRONE_UPDATE, {})

    def test_connect_and_close(self):
        """connect starts the network loop; close stops it."""
        self.publisher.connect(keepalive=30)
        self.client.connect.assert_called_once_with("broker", 1884, 30)
        self.client.loop_start.assert_called_once_with()
        self.publisher.close()
        self.client.loop_stop.assert_called_once_with()
        self.client.disconnect.assert_called_once_with()

    def test_credentials(self):
        """Username and password are passed to the client."""
        client = mock.MagicMock()
        MqttPublisher(MqttSettings(username="sim", password="secret"), client=client)
        client.username_pw_set.assert_called_once_with("sim", "secret")

    def test_no_credentials(self):
        """Anonymous connections do not set credentials."""
        self.client.username_pw_set.assert_not_called()


if __name__ == '__main__':
    unittest.main()
