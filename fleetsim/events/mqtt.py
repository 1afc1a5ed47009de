"""MQTT transport for simulation events.

Dashboards subscribe over MQTT (for example through the broker's WebSocket
listener) to ``<prefix>/<topic>``; events are serialized to JSON and published
with QoS 0, which matches the best-effort delivery contract.
"""

import logging

import paho.mqtt.client as mqtt

from fleetsim.config import MqttSettings

from .event import Event, EventKind
from .publisher import Publisher

logger = logging.getLogger(__name__)


class MqttPublisher(Publisher):
    """Publishes events to an MQTT broker.

    Args:
        settings (MqttSettings): Broker address, credentials and topic prefix.
        client: Pre-built paho client. A new one is created when omitted.

    Example:
        >>> publisher = MqttPublisher(MqttSettings(host="localhost"))
        >>> publisher.connect()
        >>> publisher.publish("user_42", EventKind.DRONE_UPDATE, {"id": "d1"})
        >>> publisher.close()
    """

    def __init__(self, settings: MqttSettings | None = None, client=None):
        self.settings = settings or MqttSettings.from_env()
        if client is None:
            client = mqtt.Client(
                callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
                client_id="fleetsim-publisher",
            )
        self._client = client
        if self.settings.username and self.settings.password:
            self._client.username_pw_set(self.settings.username, self.settings.password)
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code == 0:
            logger.info("Connected to MQTT broker %s:%s", self.settings.host, self.settings.port)
        else:
            logger.warning("MQTT connection refused: %s", reason_code)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        logger.warning("Disconnected from MQTT broker: %s", reason_code)

    def connect(self, keepalive: int = 60) -> None:
        """Connect and start the client's network loop in the background."""
        self._client.connect(self.settings.host, self.settings.port, keepalive)
        self._client.loop_start()

    def close(self) -> None:
        self._client.loop_stop()
        self._client.disconnect()

    def topic_for(self, topic: str) -> str:
        return f"{self.settings.topic_prefix}/{topic}"

    def publish(self, topic: str, kind: EventKind, payload: dict) -> None:
        event = Event(kind=kind, topic=topic, payload=payload)
        info = self._client.publish(self.topic_for(topic), event.to_json(), qos=0)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning("MQTT publish on %s failed with rc=%s", topic, info.rc)
