"""Grid cell coordinates."""

from typing import NamedTuple


class CellCoordinate(NamedTuple):
    """Immutable identifier of a grid cell.

    Latitude index 0 is the band starting at -90°, longitude index 0 the band
    starting at -180°. Coordinates order by latitude index, then longitude
    index, which is the order every grid query returns cells in.
    """

    lat_index: int
    lon_index: int

    def latitude(self, lat_size: float) -> float:
        """Latitude of this cell in degrees for the given cell height."""
        return self.lat_index * lat_size - 90.0

    def longitude(self, lon_size: float) -> float:
        """Longitude of this cell in degrees for the given cell width."""
        return self.lon_index * lon_size - 180.0

    def __str__(self) -> str:
        return f"({self.lat_index}, {self.lon_index})"
