"""Geographic coordinate utilities for the fleet simulation.

This package provides the spherical geodesy used to move simulated drones
between mission waypoints: great-circle distance, initial bearing, and the
direct (destination) problem, all solved with ``pyproj.Geod`` on a sphere,
plus a mutable ``GeoPoint`` for in-place updates.

Components:
    distance: Great-circle distance in meters
    bearing: Initial forward azimuth in radians
    destination: Point reached along a bearing after a given distance
    normalize_heading: Radians to compass degrees in [0, 360)
    GeoPoint: Mutable latitude/longitude/altitude point

Typical Usage:
    >>> from fleetsim.geo import GeoPoint, bearing, distance
    >>>
    >>> start = GeoPoint.from_deg(40.785091, -73.968285)
    >>> target = GeoPoint.from_deg(40.758895, -73.985131)
    >>>
    >>> remaining = distance(start, target)
    >>> start.move_to(bearing(start, target), min(200.0, remaining))
"""

from .geo_point import GeoPoint
from .geodesy import EARTH_RADIUS, bearing, destination, distance, normalize_heading

__all__ = [
    "EARTH_RADIUS",
    "GeoPoint",
    "bearing",
    "destination",
    "distance",
    "normalize_heading",
]
