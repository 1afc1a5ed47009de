"""Battery drain model for simulated drones.

Battery levels are expressed as a percentage in ``[0, 100]`` and drain
monotonically: the subsystem has no charging-while-flying model, so every value
produced here is a non-negative number of percentage points to subtract.

Two regimes are modeled:

* Idle drain: standby power draw while the drone waits without a mission, a
  small random amount in a fixed band each tick.
* Moving drain: a constant per tick plus a term proportional to the distance
  flown, scaled by the airframe weight and by a random weather multiplier.

Both are capped per tick so that an unusually long step cannot empty a battery
in one update.
"""

from dataclasses import dataclass
from typing import Protocol

import numpy as np

from fleetsim.config import SimulationConfig

MIN_BATTERY = 0.0
MAX_BATTERY = 100.0

HEAVY_MODEL_MARKER = "heavy"


class RandomSource(Protocol):
    """Anything that can draw a uniform float, e.g. ``numpy.random.Generator``."""

    def uniform(self, low: float, high: float) -> float: ...


def clamp_battery(level: float) -> float:
    """Clamp a battery percentage into ``[0, 100]``."""
    return min(MAX_BATTERY, max(MIN_BATTERY, float(level)))


def apply_drain(level: float, drain: float) -> float:
    """Subtract ``drain`` from ``level`` and clamp the result into ``[0, 100]``.

    Raises:
        ValueError: If ``drain`` is negative.
    """
    if drain < 0:
        msg = "Battery drain cannot be negative"
        raise ValueError(msg)
    return clamp_battery(level - drain)


@dataclass(frozen=True)
class DrainProfile:
    """Airframe-specific drain characteristics.

    Attributes:
        weight (float): Multiplier applied to the moving drain. Heavy-lift
            airframes drain faster than the standard class.
    """

    weight: float = 1.0

    @classmethod
    def for_model(cls, model: str | None, heavy_factor: float = 1.3) -> "DrainProfile":
        """Derive the profile from a drone model name.

        Any model whose name contains "heavy" (case insensitive) gets the
        heavy-class weight; everything else uses the standard weight.

        Example:
            >>> DrainProfile.for_model("DJI Matrice Heavy Lifter").weight
            1.3
            >>> DrainProfile.for_model("Mavic 3").weight
            1.0
        """
        if model and HEAVY_MODEL_MARKER in model.lower():
            return cls(weight=heavy_factor)
        return cls()


class BatteryModel:
    """Computes per-tick battery drain from the simulation configuration.

    The random elements (idle jitter and weather) are drawn from an injectable
    random source so that tests can pin them to fixed values.

    Attributes:
        config (SimulationConfig): Drain coefficients and per-tick cap.

    Example:
        >>> model = BatteryModel(SimulationConfig(), np.random.default_rng(7))
        >>> profile = DrainProfile.for_model("Quad X")
        >>> drain = model.drain(profile, 200.0, is_idle=False)
        >>> 0.0 <= drain <= model.config.max_drain_per_tick
        True
    """

    config: SimulationConfig
    _rng: RandomSource

    def __init__(self, config: SimulationConfig | None = None, rng: RandomSource | None = None):
        self.config = config or SimulationConfig()
        self._rng = rng if rng is not None else np.random.default_rng()

    def profile_for(self, model: str | None) -> DrainProfile:
        return DrainProfile.for_model(model, self.config.heavy_model_factor)

    def idle_drain(self) -> float:
        """Standby drain for one tick, uniform in the configured idle band."""
        drain = float(self._rng.uniform(self.config.idle_drain_min, self.config.idle_drain_max))
        return self._bounded(drain)

    def moving_drain(self, profile: DrainProfile, meters: float) -> float:
        """Drain for one tick of flight covering ``meters``.

        Args:
            profile (DrainProfile): Airframe weight profile.
            meters (float): Distance flown during the tick.

        Returns:
            float: Percentage points to subtract, at most ``max_drain_per_tick``.
        """
        if meters < 0:
            msg = "Distance flown cannot be negative"
            raise ValueError(msg)
        drain = self.config.base_drain + (meters / 1000.0) * self.config.drain_per_km
        drain *= profile.weight
        drain *= float(self._rng.uniform(self.config.weather_min, self.config.weather_max))
        return self._bounded(drain)

    def drain(self, profile: DrainProfile, meters: float, is_idle: bool) -> float:
        """Drain for one tick in either regime."""
        if is_idle:
            return self.idle_drain()
        return self.moving_drain(profile, meters)

    @property
    def waypoint_cost(self) -> float:
        """Fixed cost of reaching a waypoint (hover and turn)."""
        return self._bounded(self.config.waypoint_battery_cost)

    def _bounded(self, drain: float) -> float:
        return min(max(drain, 0.0), self.config.max_drain_per_tick)
