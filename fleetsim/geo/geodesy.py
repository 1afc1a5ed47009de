"""Geodesy on a mean-radius spherical Earth.

Functions for the three navigation problems the simulation needs:

* ``distance``: great-circle distance between two points,
* ``bearing``: initial forward azimuth from one point toward another,
* ``destination``: point reached by flying a distance along a bearing.

Points may be ``(lat, lon)`` pairs in degrees or any object exposing
``latitude``/``longitude`` attributes (``GeoPoint``, ``Location``, ``Waypoint``).
Coordinates may also be NumPy arrays, in which case the computation is
element-wise and an array is returned.

All three are solved by ``pyproj.Geod`` on a sphere of the mean Earth radius
(6,371 km, no flattening), so distances agree with the haversine formula and
``destination`` is the inverse of ``bearing``/``distance``.
"""

import numpy as np
from pyproj import Geod

from fleetsim.config import BASE_TYPE

EARTH_RADIUS = 6_371_000.0  # meters

_SPHERE = Geod(a=EARTH_RADIUS, f=0.0)


def _coords(point) -> tuple[BASE_TYPE, BASE_TYPE]:
    if hasattr(point, "latitude") and hasattr(point, "longitude"):
        return point.latitude, point.longitude
    lat, lon = point[0], point[1]
    return lat, lon


def _result(value):
    if np.ndim(value) == 0:
        return float(value)
    return value


def distance(p1, p2) -> BASE_TYPE:
    """Great-circle distance between two points in meters.

    The two points are put in a fixed order before solving, so
    ``distance(a, b) == distance(b, a)`` holds exactly and ``distance(a, a)``
    is exactly ``0.0``.

    Args:
        p1: Start point, ``(lat, lon)`` in degrees or an object with
            ``latitude``/``longitude``.
        p2: End point, same forms as ``p1``.

    Returns:
        float | ndarray: Distance in meters.

    Example:
        >>> # Central Park to Times Square, a little over 3 km
        >>> round(distance((40.785091, -73.968285), (40.758895, -73.985131)), -2)
        3200.0
    """
    lat1, lon1 = _coords(p1)
    lat2, lon2 = _coords(p2)

    swap = (np.asarray(lat1) > np.asarray(lat2)) | (
        (np.asarray(lat1) == np.asarray(lat2)) & (np.asarray(lon1) > np.asarray(lon2))
    )
    lat_a, lat_b = _result(np.where(swap, lat2, lat1)), _result(np.where(swap, lat1, lat2))
    lon_a, lon_b = _result(np.where(swap, lon2, lon1)), _result(np.where(swap, lon1, lon2))

    _, _, dist = _SPHERE.inv(lon_a, lat_a, lon_b, lat_b)
    return _result(dist)


def bearing(p1, p2) -> BASE_TYPE:
    """Initial compass bearing from ``p1`` toward ``p2`` in radians.

    Zero is true north and angles grow clockwise; the result lies in
    ``(-pi, pi]``. The bearing between identical points is undefined and
    reported as ``0.0``.

    Args:
        p1: Origin point.
        p2: Target point.

    Returns:
        float | ndarray: Forward azimuth in radians.
    """
    lat1, lon1 = _coords(p1)
    lat2, lon2 = _coords(p2)

    az12, _, dist = _SPHERE.inv(lon1, lat1, lon2, lat2)
    az12 = np.where(np.asarray(az12) <= -180.0, np.asarray(az12) + 360.0, az12)
    az12 = np.where(np.asarray(dist) == 0.0, 0.0, az12)
    return _result(np.radians(az12))


def destination(point, azimuth: BASE_TYPE, meters: BASE_TYPE) -> tuple[BASE_TYPE, BASE_TYPE]:
    """Solve the direct problem: where do we land flying ``meters`` along ``azimuth``.

    Args:
        point: Origin point.
        azimuth: Initial bearing in radians (0 = north, clockwise).
        meters: Distance to travel along the great circle.

    Returns:
        tuple: ``(latitude, longitude)`` of the destination in degrees, with
        the longitude normalized into ``[-180, 180)``.

    Example:
        >>> lat, lon = destination((0.0, 0.0), 0.0, 111_195.0)
        >>> round(lat, 3), round(lon, 3)
        (1.0, 0.0)
    """
    lat, lon = _coords(point)
    lon2, lat2, _ = _SPHERE.fwd(lon, lat, np.degrees(azimuth), meters)

    lon2 = (np.asarray(lon2) + 540.0) % 360.0 - 180.0
    return _result(lat2), _result(lon2)


def normalize_heading(azimuth: float) -> float:
    """Convert a bearing in radians into a compass heading in ``[0, 360)`` degrees."""
    return float(np.degrees(azimuth) % 360.0)
