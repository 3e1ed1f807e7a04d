"""Layer record model."""

from dataclasses import dataclass, replace
from typing import Optional, Protocol

from alert_dashboard.models.legend import LegendDescriptor


@dataclass(frozen=True)
class Coordinate:
    """A clicked or queried point in WGS84 degrees."""

    lon: float
    lat: float

    def __post_init__(self):
        """Validate coordinate ranges."""
        if not -180 <= self.lon <= 180:
            raise ValueError(f"Longitude must be between -180 and 180, got {self.lon}")
        if not -90 <= self.lat <= 90:
            raise ValueError(f"Latitude must be between -90 and 90, got {self.lat}")


@dataclass(frozen=True)
class RasterHandle:
    """Reference to a raster owned by the raster backend.

    The dashboard never reads pixels through this object; it only passes it
    back to the backend for sampling and to the map host for rendering.
    """

    asset_id: str
    band: str
    tile_url: Optional[str] = None


class MapLayerHandle(Protocol):
    """Live map layer created by the map host."""

    def set_shown(self, shown: bool) -> None:
        ...

    def set_opacity(self, opacity: float) -> None:
        ...


@dataclass
class LayerRecord:
    """Layer metadata plus its mutable UI state."""

    name: str
    description: str
    source: RasterHandle
    legend: LegendDescriptor
    visible: bool = True
    opacity: float = 1.0
    bound_layer: Optional[MapLayerHandle] = None

    def __post_init__(self):
        """Validate record settings."""
        if not self.name:
            raise ValueError("Layer name cannot be empty")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"Opacity must be between 0 and 1, got {self.opacity}")

    @property
    def is_attached(self) -> bool:
        """Check if the layer has been added to the map."""
        return self.bound_layer is not None

    def snapshot(self) -> "LayerRecord":
        """
        Create a copy of this record for read-only use.

        Note:
            The legend and source are immutable, and the bound handle belongs
            to the map host, so a shallow copy is safe.
        """
        return replace(self)
