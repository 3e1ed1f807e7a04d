"""Configuration for dashboard layers and application settings."""

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from alert_dashboard.core.layer_registry import LayerRegistry
from alert_dashboard.models.layer_record import LayerRecord, RasterHandle
from alert_dashboard.models.legend import DiscreteLegend, GradientLegend, legend_from_dict

# RADD forest disturbance alerts (Reiche et al. 2021)
RADD_ASSET = "projects/radar-wur/raddalert/v1"

ALERT_DATE_PALETTE = [
    "ffffcc", "ffeda0", "fed976", "feb24c", "fd8d3c",
    "fc4e2a", "e31a1c", "bd0026", "800026",
]
ALERT_CONFIDENCE_PALETTE = ["00ffff", "ea7e7d"]

# Layers shown on the dashboard, top to bottom
DEFAULT_LAYERS: List[LayerRecord] = [
    LayerRecord(
        name="Alert Date",
        description="",
        source=RasterHandle(asset_id=RADD_ASSET, band="Date"),
        legend=GradientLegend(
            palette=tuple(ALERT_DATE_PALETTE),
            min=20000,
            max=24000,
            label_min="2000",
            label_max="2024",
        ),
        visible=True,
    ),
    LayerRecord(
        name="Confidence",
        description="",
        source=RasterHandle(asset_id=RADD_ASSET, band="Alert"),
        # 2 = unconfirmed (low confidence) alert; 3 = confirmed (high confidence) alert
        legend=DiscreteLegend(
            palette=tuple(ALERT_CONFIDENCE_PALETTE),
            labels=("2", "3"),
            min=2,
            max=3,
        ),
        visible=False,
    ),
    LayerRecord(
        name="Primary humid tropical forest",
        description="Primary humid tropical forest mask 2001 from Turubanova et al (2018) with annual "
        "(Africa: 2001 - 2018; Other geographies: 2001 - 2019) forest loss (Hansen et al 2013) "
        "and mangroves (Bunting et al 2018) removed.",
        source=RasterHandle(asset_id=RADD_ASSET, band="forest_baseline"),
        legend=DiscreteLegend(palette=("black",), labels=("",), opacity=0.3),
        visible=True,
        opacity=0.3,
    ),
]

# Layer whose values are sampled on map click
DEFAULT_QUERY_LAYER = "Alert Date"

# Query settings
EPOCH_YEAR = 2000
SAMPLE_SCALE_METERS = 10
QUERY_TIMEOUT = 30  # seconds
MAX_RETRIES = 3
RETRY_DELAY = 1  # seconds

# UI settings
APP_TITLE = "Forest Disturbance Alerts"
APP_INFO = (
    "Radar-based forest disturbance alerts (RADD). Toggle layers and adjust their "
    "opacity on the left, click the map to look up the alert date at a point."
)
DEFAULT_MAP_CENTER = [-20.0, 10.0]  # lat, lon
DEFAULT_MAP_ZOOM = 3
PANEL_WIDTH = 400  # pixels

# Inspection label texts
PROMPT_TEXT = "Click on the map to query alert date -->"
QUERYING_TEXT = "Querying alert date..."
RESULT_TEXT = "Clicked point date: {date}"
NO_DATA_TEXT = "No alert at clicked point"
ERROR_TEXT = "Could not query alert date: {error}"


class LegendSettings(BaseModel):
    """Legend section of a layer in the YAML config."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["gradient", "discrete"]
    palette: List[str] = Field(min_length=1)
    min: Optional[float] = None
    max: Optional[float] = None
    label_min: Optional[Union[str, int, float]] = None
    label_max: Optional[Union[str, int, float]] = None
    labels: List[Union[str, int, float]] = Field(default_factory=list)
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)


class LayerSettings(BaseModel):
    """Layer entry in the YAML config."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    description: str = ""
    asset: str
    band: str
    tile_url: Optional[str] = None
    legend: LegendSettings
    shown: bool = True


class DashboardConfig(BaseModel):
    """Validated dashboard configuration."""

    model_config = ConfigDict(extra="forbid")

    title: str = APP_TITLE
    info: str = APP_INFO
    backend_url: Optional[str] = None
    query_layer: str = DEFAULT_QUERY_LAYER
    epoch_year: int = EPOCH_YEAR
    scale_meters: float = Field(default=SAMPLE_SCALE_METERS, gt=0)
    timeout: float = Field(default=QUERY_TIMEOUT, gt=0)
    center: Tuple[float, float] = (DEFAULT_MAP_CENTER[0], DEFAULT_MAP_CENTER[1])
    zoom: int = Field(default=DEFAULT_MAP_ZOOM, ge=0, le=22)
    layers: List[LayerSettings] = Field(default_factory=list)


def load_config(config_path: str) -> Tuple[Dict[str, Any], Path]:
    """
    Load YAML configuration file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Tuple of (configuration dictionary, config directory path)

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_file) as f:
        config = yaml.safe_load(f) or {}

    return config, config_file.parent.resolve()


def validate_config(config: Dict[str, Any]) -> DashboardConfig:
    """
    Validate a configuration dictionary.

    Args:
        config: Configuration dictionary

    Returns:
        DashboardConfig instance

    Raises:
        ValueError: If configuration is invalid
    """
    try:
        settings = DashboardConfig.model_validate(config)
    except ValidationError as e:
        # Convert Pydantic errors to ValueError for consistency
        raise ValueError(f"Configuration validation failed:\n{e}") from e

    layer_names = [layer.name for layer in settings.layers]
    duplicates = sorted({name for name in layer_names if layer_names.count(name) > 1})
    if duplicates:
        raise ValueError(f"Duplicate layer names: {', '.join(duplicates)}")

    # Business rules Pydantic can't express
    known_layers = layer_names or [layer.name for layer in DEFAULT_LAYERS]
    if settings.query_layer not in known_layers:
        raise ValueError(
            f"Invalid query layer: {settings.query_layer}. Valid layers: {', '.join(known_layers)}"
        )

    # Legends are checked when records are built
    build_layer_records(settings)

    return settings


def load_dashboard_config(config_path: Optional[str] = None) -> DashboardConfig:
    """
    Load and validate a dashboard config, or return the defaults.

    Args:
        config_path: Optional path to YAML config file

    Returns:
        DashboardConfig instance
    """
    if config_path is None:
        return DashboardConfig()

    config, _ = load_config(config_path)
    return validate_config(config)


def build_layer_records(settings: DashboardConfig) -> List[LayerRecord]:
    """
    Create fresh layer records from the config.

    Falls back to DEFAULT_LAYERS when the config declares no layers.

    Args:
        settings: Validated configuration

    Returns:
        List of unattached layer records in panel order
    """
    if not settings.layers:
        return [layer.snapshot() for layer in DEFAULT_LAYERS]

    records = []
    for layer in settings.layers:
        legend = legend_from_dict(layer.legend.model_dump(exclude_none=True))
        records.append(
            LayerRecord(
                name=layer.name,
                description=layer.description,
                source=RasterHandle(asset_id=layer.asset, band=layer.band, tile_url=layer.tile_url),
                legend=legend,
                visible=layer.shown,
                opacity=legend.opacity,
            )
        )
    return records


def build_registry(records: List[LayerRecord]) -> LayerRegistry:
    """
    Register layer records in panel order.

    Args:
        records: Unattached layer records

    Returns:
        LayerRegistry holding the records
    """
    registry = LayerRegistry()
    for record in records:
        registry.register(record)
    return registry
