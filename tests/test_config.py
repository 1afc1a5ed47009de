"""
Tests for configuration defaults and environment loading.
"""

import os
import unittest
from unittest import mock

from fleetsim.config import (
    DEFAULT_ARRIVAL_THRESHOLD,
    DEFAULT_STEP_DISTANCE,
    MqttSettings,
    SimulationConfig,
    StoreSettings,
)


class TestSimulationConfig(unittest.TestCase):
    """Test SimulationConfig."""

    def test_defaults(self):
        """Defaults describe a 2 s tick and 200 m steps."""
        config = SimulationConfig()
        self.assertEqual(config.tick_interval_ms, 2000)
        self.assertEqual(config.step_distance, DEFAULT_STEP_DISTANCE)
        self.assertEqual(config.arrival_threshold, DEFAULT_ARRIVAL_THRESHOLD)
        self.assertEqual(config.pause_duration, 10.0)
        self.assertEqual(config.low_battery_threshold, 15.0)
        self.assertTrue(config.per_owner_channels)

    def test_validation(self):
        """Nonsensical values are rejected."""
        with self.assertRaises(ValueError):
            SimulationConfig(tick_interval=0)
        with self.assertRaises(ValueError):
            SimulationConfig(step_distance=-1)
        with self.assertRaises(ValueError):
            SimulationConfig(idle_drain_min=0.2, idle_drain_max=0.1)
        with self.assertRaises(ValueError):
            SimulationConfig(weather_min=1.2, weather_max=1.0)

    @mock.patch("fleetsim.config.load_dotenv")
    def test_from_env(self, _load_dotenv):
        """FLEETSIM_* variables override the defaults."""
        env = {
            "FLEETSIM_TICK_INTERVAL": "0.5",
            "FLEETSIM_STEP_DISTANCE": "50",
            "FLEETSIM_PER_OWNER_CHANNELS": "false",
        }
        with mock.patch.dict(os.environ, env):
            config = SimulationConfig.from_env()
        self.assertEqual(config.tick_interval_ms, 500)
        self.assertEqual(config.step_distance, 50.0)
        self.assertFalse(config.per_owner_channels)

    @mock.patch("fleetsim.config.load_dotenv")
    def test_overrides_win(self, _load_dotenv):
        """Keyword overrides take precedence over the environment."""
        with mock.patch.dict(os.environ, {"FLEETSIM_TICK_INTERVAL": "0.5"}):
            config = SimulationConfig.from_env(tick_interval=3.0)
        self.assertEqual(config.tick_interval, 3.0)

    @mock.patch("fleetsim.config.load_dotenv")
    def test_bad_value(self, _load_dotenv):
        """Unparseable numbers raise ValueError."""
        with mock.patch.dict(os.environ, {"FLEETSIM_STEP_DISTANCE": "far"}):
            with self.assertRaises(ValueError):
                SimulationConfig.from_env()


class TestSettings(unittest.TestCase):
    """Test connection settings."""

    @mock.patch("fleetsim.config.load_dotenv")
    def test_store_settings(self, _load_dotenv):
        """MONGO_URI and MONGO_DB_NAME are honored."""
        env = {"MONGO_URI": "mongodb://db:27017/", "MONGO_DB_NAME": "fleet_test"}
        with mock.patch.dict(os.environ, env):
            settings = StoreSettings.from_env()
        self.assertEqual(settings, StoreSettings("mongodb://db:27017/", "fleet_test"))

    @mock.patch("fleetsim.config.load_dotenv")
    def test_mqtt_settings(self, _load_dotenv):
        """MQTT_* variables configure the broker."""
        env = {"MQTT_BROKER": "broker", "MQTT_PORT": "8883", "MQTT_USERNAME": "sim"}
        with mock.patch.dict(os.environ, env):
            settings = MqttSettings.from_env()
        self.assertEqual(settings.host, "broker")
        self.assertEqual(settings.port, 8883)
        self.assertEqual(settings.username, "sim")
        self.assertEqual(settings.topic_prefix, "fleetsim")


if __name__ == '__main__':
    unittest.main()
