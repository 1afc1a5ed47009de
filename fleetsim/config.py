"""Global configuration for the fleet simulation engine.

This module centralizes the tunable constants of the simulation: tick timing,
movement step, arrival detection, manual-override cooldown, battery drain
coefficients and the connection settings of the external collaborators
(document store and MQTT broker).

Every constant has a module-level default so that code and tests can refer to
the documented value directly, while ``SimulationConfig.from_env`` lets a
deployment override any of them through ``FLEETSIM_*`` environment variables
(optionally loaded from a ``.env`` file).

Type Definitions:
    BASE_TYPE: Numeric types accepted by the geodesy helpers. Plain Python
               scalars and NumPy arrays are both supported so that a whole
               fleet can be processed in one vectorized call.

Example:
    >>> from fleetsim.config import SimulationConfig
    >>> config = SimulationConfig(tick_interval=0.5)
    >>> config.tick_interval_ms
    500
    >>> config.step_distance
    200.0
"""

from dataclasses import dataclass, fields
import os

from dotenv import load_dotenv
from numpy import ndarray

BASE_TYPE = int | float | ndarray

ENV_PREFIX = "FLEETSIM_"

DEFAULT_TICK_INTERVAL = 2.0  # seconds between ticks
DEFAULT_STEP_DISTANCE = 200.0  # meters flown per tick
DEFAULT_ARRIVAL_THRESHOLD = 10.0  # meters
DEFAULT_PAUSE_DURATION = 10.0  # seconds of manual-override cooldown
DEFAULT_LOW_BATTERY_THRESHOLD = 15.0  # percent
DEFAULT_WAYPOINT_BATTERY_COST = 0.5  # percentage points per reached waypoint

DEFAULT_IDLE_DRAIN_MIN = 0.05
DEFAULT_IDLE_DRAIN_MAX = 0.10
DEFAULT_BASE_DRAIN = 0.1
DEFAULT_DRAIN_PER_KM = 0.2
DEFAULT_HEAVY_MODEL_FACTOR = 1.3
DEFAULT_WEATHER_MIN = 0.9
DEFAULT_WEATHER_MAX = 1.1
DEFAULT_MAX_DRAIN_PER_TICK = 1.0

DEFAULT_STORE_TIMEOUT = 5.0  # seconds


@dataclass(frozen=True)
class SimulationConfig:
    """Tunable parameters of the simulation engine.

    Attributes:
        tick_interval (float): Seconds between two ticks of the timer loop.
        step_distance (float): Meters a moving drone covers in one tick.
        arrival_threshold (float): Distance in meters under which a waypoint
            counts as reached.
        pause_duration (float): Seconds a drone stays paused after a manual update.
        low_battery_threshold (float): Battery percentage at or below which a
            drone is forced into ``charging``.
        waypoint_battery_cost (float): Fixed battery cost of reaching a waypoint.
        idle_drain_min (float): Lower bound of the idle drain band.
        idle_drain_max (float): Upper bound of the idle drain band.
        base_drain (float): Constant part of the moving drain per tick.
        drain_per_km (float): Moving drain per kilometer flown.
        heavy_model_factor (float): Drain multiplier for "heavy" drone models.
        weather_min (float): Lower bound of the random weather multiplier.
        weather_max (float): Upper bound of the random weather multiplier.
        max_drain_per_tick (float): Cap of the drain applied in a single tick.
        store_timeout (float): Timeout in seconds for one persistence call.
        per_owner_channels (bool): Publish on ``user_<owner>`` topics instead of
            the global topic.
    """

    tick_interval: float = DEFAULT_TICK_INTERVAL
    step_distance: float = DEFAULT_STEP_DISTANCE
    arrival_threshold: float = DEFAULT_ARRIVAL_THRESHOLD
    pause_duration: float = DEFAULT_PAUSE_DURATION
    low_battery_threshold: float = DEFAULT_LOW_BATTERY_THRESHOLD
    waypoint_battery_cost: float = DEFAULT_WAYPOINT_BATTERY_COST

    idle_drain_min: float = DEFAULT_IDLE_DRAIN_MIN
    idle_drain_max: float = DEFAULT_IDLE_DRAIN_MAX
    base_drain: float = DEFAULT_BASE_DRAIN
    drain_per_km: float = DEFAULT_DRAIN_PER_KM
    heavy_model_factor: float = DEFAULT_HEAVY_MODEL_FACTOR
    weather_min: float = DEFAULT_WEATHER_MIN
    weather_max: float = DEFAULT_WEATHER_MAX
    max_drain_per_tick: float = DEFAULT_MAX_DRAIN_PER_TICK

    store_timeout: float = DEFAULT_STORE_TIMEOUT
    per_owner_channels: bool = True

    def __post_init__(self):
        if self.tick_interval <= 0:
            msg = "tick_interval must be positive"
            raise ValueError(msg)
        if self.step_distance <= 0:
            msg = "step_distance must be positive"
            raise ValueError(msg)
        if self.idle_drain_min > self.idle_drain_max:
            msg = "idle_drain_min cannot exceed idle_drain_max"
            raise ValueError(msg)
        if self.weather_min > self.weather_max:
            msg = "weather_min cannot exceed weather_max"
            raise ValueError(msg)
        if self.max_drain_per_tick < 0:
            msg = "max_drain_per_tick cannot be negative"
            raise ValueError(msg)

    @property
    def tick_interval_ms(self) -> int:
        """Tick interval in whole milliseconds, as reported by the status call."""
        return int(round(self.tick_interval * 1000))

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, **overrides) -> "SimulationConfig":
        """Build a configuration from ``<prefix><FIELD>`` environment variables.

        A ``.env`` file in the working directory is loaded first. Unknown or
        unset variables fall back to the defaults; explicit keyword overrides
        win over the environment.

        Args:
            prefix (str): Environment variable prefix, ``FLEETSIM_`` by default.
            **overrides: Field values taking precedence over the environment.

        Returns:
            SimulationConfig: The resolved configuration.

        Raises:
            ValueError: If a variable cannot be parsed into the field type.

        Example:
            >>> os.environ["FLEETSIM_TICK_INTERVAL"] = "0.5"
            >>> SimulationConfig.from_env().tick_interval
            0.5
        """
        load_dotenv()
        values = {}
        for field in fields(cls):
            raw = os.getenv(f"{prefix}{field.name.upper()}")
            if raw is None:
                continue
            if field.type in (bool, "bool"):
                values[field.name] = raw.strip().lower() in ("1", "true", "yes", "on")
            else:
                values[field.name] = float(raw)
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class StoreSettings:
    """Connection settings of the MongoDB document store."""

    uri: str = "mongodb://localhost:27017/"
    database: str = "drone_fleet"

    @classmethod
    def from_env(cls) -> "StoreSettings":
        load_dotenv()
        return cls(
            uri=os.getenv("MONGO_URI", cls.uri),
            database=os.getenv("MONGO_DB_NAME", cls.database),
        )


@dataclass(frozen=True)
class MqttSettings:
    """Broker address used by the MQTT event publisher."""

    host: str = "localhost"
    port: int = 1883
    topic_prefix: str = "fleetsim"
    username: str | None = None
    password: str | None = None

    @classmethod
    def from_env(cls) -> "MqttSettings":
        load_dotenv()
        return cls(
            host=os.getenv("MQTT_BROKER", cls.host),
            port=int(os.getenv("MQTT_PORT", cls.port)),
            topic_prefix=os.getenv("MQTT_TOPIC_PREFIX", cls.topic_prefix),
            username=os.getenv("MQTT_USERNAME"),
            password=os.getenv("MQTT_PASSWORD"),
        )
