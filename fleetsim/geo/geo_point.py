"""Mutable geographic point used by the simulation shadow state."""

from dataclasses import dataclass

from .geodesy import bearing, destination, distance


@dataclass
class GeoPoint:
    """Represents a geographic point with latitude and longitude in degrees.

    The class is mutable so that a simulated drone can be advanced in place
    tick after tick without allocating a new point each time. All navigation
    methods delegate to the spherical helpers in ``fleetsim.geo.geodesy``.

    Attributes:
        latitude (float): Latitude in decimal degrees (-90 to +90).
        longitude (float): Longitude in decimal degrees (-180 to +180).
        altitude (float | None): Altitude in meters, when known.

    Example:
        >>> central_park = GeoPoint.from_deg(40.785091, -73.968285)
        >>> times_square = GeoPoint.from_deg(40.758895, -73.985131)
        >>> heading = central_park.bearing_to(times_square)
        >>> central_park.move_to(heading, 200.0)  # one simulation step
    """

    latitude: float
    longitude: float
    altitude: float | None = None

    @classmethod
    def from_deg(cls, lat: float, lon: float, alt: float | None = None) -> "GeoPoint":
        """Create a GeoPoint from decimal degree coordinates."""
        return cls(float(lat), float(lon), alt)

    @classmethod
    def of(cls, point) -> "GeoPoint":
        """Copy any object exposing ``latitude``/``longitude`` into a GeoPoint."""
        return cls(
            float(point.latitude),
            float(point.longitude),
            getattr(point, "altitude", None),
        )

    def as_tuple(self) -> tuple[float, float]:
        return self.latitude, self.longitude

    def distance_to(self, other) -> float:
        """Great-circle distance to ``other`` in meters."""
        return distance(self, other)

    def bearing_to(self, other) -> float:
        """Initial bearing toward ``other`` in radians."""
        return bearing(self, other)

    def forward(self, azimuth: float, meters: float) -> "GeoPoint":
        """Return the point reached after flying ``meters`` along ``azimuth``.

        This method does not modify the current instance; use ``move_to`` for
        in-place updates.
        """
        lat, lon = destination(self, azimuth, meters)
        return GeoPoint(lat, lon, self.altitude)

    def move_to(self, azimuth: float, meters: float) -> None:
        """Advance this point in place along ``azimuth`` by ``meters``."""
        self.latitude, self.longitude = destination(self, azimuth, meters)
