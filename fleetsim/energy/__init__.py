"""Energy management for the fleet simulation.

This package models how simulated drones lose battery charge: a slow random
standby drain while idle, and a distance-dependent drain while flying that
depends on the airframe class and on a random weather factor.

Components:
    BatteryModel: Per-tick drain computation with an injectable random source
    DrainProfile: Airframe weight profile derived from the model name
    apply_drain: Subtract a drain from a battery level, clamped to [0, 100]
    clamp_battery: Clamp a battery level to [0, 100]

Example:
    >>> import numpy as np
    >>> from fleetsim.energy import BatteryModel, apply_drain
    >>>
    >>> model = BatteryModel(rng=np.random.default_rng(42))
    >>> profile = model.profile_for("Heavy Lifter X8")
    >>> level = apply_drain(82.0, model.moving_drain(profile, 200.0))
"""

from .battery import (
    MAX_BATTERY,
    MIN_BATTERY,
    BatteryModel,
    DrainProfile,
    RandomSource,
    apply_drain,
    clamp_battery,
)

__all__ = [
    "MAX_BATTERY",
    "MIN_BATTERY",
    "BatteryModel",
    "DrainProfile",
    "RandomSource",
    "apply_drain",
    "clamp_battery",
]
