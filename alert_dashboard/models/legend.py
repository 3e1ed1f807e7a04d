"""Legend descriptors and the entries UI code renders for them."""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

HEX_COLOR_PATTERN = re.compile(r"^#?([0-9a-fA-F]{6})$")


def normalize_color(color: str) -> str:
    """
    Normalize a palette color.

    Args:
        color: Hex color with or without leading '#', or a CSS color name

    Returns:
        '#rrggbb' for hex colors, the lowercased name otherwise
    """
    match = HEX_COLOR_PATTERN.match(color.strip())
    if match:
        return f"#{match.group(1).lower()}"
    return color.strip().lower()


def _validate_opacity(opacity: float):
    if not 0.0 <= opacity <= 1.0:
        raise ValueError(f"Opacity must be between 0 and 1, got {opacity}")


@dataclass(frozen=True)
class GradientLegend:
    """Continuous color ramp over [min, max] with two endpoint labels."""

    palette: tuple
    min: float
    max: float
    label_min: str
    label_max: str
    opacity: float = 1.0

    def __post_init__(self):
        """Validate gradient settings."""
        object.__setattr__(self, "palette", tuple(self.palette))
        if len(self.palette) < 2:
            raise ValueError("Gradient legend needs at least two colors")
        if self.min >= self.max:
            raise ValueError(f"Gradient min ({self.min}) must be less than max ({self.max})")
        _validate_opacity(self.opacity)


@dataclass(frozen=True)
class DiscreteLegend:
    """One swatch and label per palette entry."""

    palette: tuple
    labels: tuple
    min: Optional[float] = None
    max: Optional[float] = None
    opacity: float = 1.0

    def __post_init__(self):
        """Validate discrete settings."""
        object.__setattr__(self, "palette", tuple(self.palette))
        object.__setattr__(self, "labels", tuple(self.labels))
        if not self.palette:
            raise ValueError("Discrete legend needs at least one color")
        if len(self.palette) != len(self.labels):
            raise ValueError(
                f"Discrete legend has {len(self.palette)} colors but {len(self.labels)} labels"
            )
        _validate_opacity(self.opacity)


LegendDescriptor = Union[GradientLegend, DiscreteLegend]


@dataclass(frozen=True)
class ColorRamp:
    """Rendered form of a gradient legend."""

    colors: List[str]
    min: float
    max: float
    label_min: str
    label_max: str


@dataclass(frozen=True)
class Swatch:
    """Rendered form of one discrete legend entry."""

    color: str
    label: str


@dataclass(frozen=True)
class LegendEntries:
    """What a legend widget draws: either one ramp or a list of swatches."""

    ramp: Optional[ColorRamp] = None
    swatches: List[Swatch] = field(default_factory=list)


def legend_entries(legend: LegendDescriptor) -> LegendEntries:
    """
    Build the renderable entries for a legend.

    Args:
        legend: Gradient or discrete legend

    Returns:
        LegendEntries with a ramp for gradients, swatches for discrete legends

    Raises:
        TypeError: If legend is not one of the known legend classes
    """
    if isinstance(legend, GradientLegend):
        ramp = ColorRamp(
            colors=[normalize_color(c) for c in legend.palette],
            min=legend.min,
            max=legend.max,
            label_min=legend.label_min,
            label_max=legend.label_max,
        )
        return LegendEntries(ramp=ramp)
    elif isinstance(legend, DiscreteLegend):
        swatches = [
            Swatch(color=normalize_color(color), label=label)
            for color, label in zip(legend.palette, legend.labels)
        ]
        return LegendEntries(swatches=swatches)
    raise TypeError(f"Unsupported legend type: {type(legend).__name__}")


def vis_params(legend: LegendDescriptor) -> Dict[str, Any]:
    """
    Get visualization parameters for the map host.

    Args:
        legend: Layer legend

    Returns:
        Dictionary with palette and, when known, min/max
    """
    params: Dict[str, Any] = {"palette": [normalize_color(c) for c in legend.palette]}
    if legend.min is not None:
        params["min"] = legend.min
    if legend.max is not None:
        params["max"] = legend.max
    return params


def _as_list(value: Union[str, Sequence[Any]]) -> List[Any]:
    if isinstance(value, str):
        return [value]
    return list(value)


def legend_from_dict(data: Dict[str, Any]) -> LegendDescriptor:
    """
    Create a legend from a dictionary (loaded from YAML).

    Args:
        data: Dictionary with a 'type' key ('gradient' or 'discrete') and the
              fields of the matching legend

    Returns:
        GradientLegend or DiscreteLegend

    Raises:
        ValueError: If the legend type is unknown or fields are invalid
    """
    legend_type = data.get("type")
    opacity = float(data.get("opacity", 1.0))

    try:
        if legend_type == "gradient":
            return GradientLegend(
                palette=tuple(_as_list(data["palette"])),
                min=data["min"],
                max=data["max"],
                label_min=str(data.get("label_min", data["min"])),
                label_max=str(data.get("label_max", data["max"])),
                opacity=opacity,
            )
        elif legend_type == "discrete":
            return DiscreteLegend(
                palette=tuple(_as_list(data["palette"])),
                labels=tuple(str(label) for label in _as_list(data.get("labels", []))),
                min=data.get("min"),
                max=data.get("max"),
                opacity=opacity,
            )
    except KeyError as e:
        raise ValueError(f"Missing {legend_type} legend field: {e}") from e

    raise ValueError(f"Unknown legend type: {legend_type}. Valid types: gradient, discrete")


def legend_to_dict(legend: LegendDescriptor) -> Dict[str, Any]:
    """
    Convert a legend to a dictionary for YAML serialization.

    Args:
        legend: Layer legend

    Returns:
        Dictionary accepted by legend_from_dict
    """
    if isinstance(legend, GradientLegend):
        result = {
            "type": "gradient",
            "palette": list(legend.palette),
            "min": legend.min,
            "max": legend.max,
            "label_min": legend.label_min,
            "label_max": legend.label_max,
        }
    elif isinstance(legend, DiscreteLegend):
        result = {
            "type": "discrete",
            "palette": list(legend.palette),
            "labels": list(legend.labels),
        }
        if legend.min is not None:
            result["min"] = legend.min
        if legend.max is not None:
            result["max"] = legend.max
    else:
        raise TypeError(f"Unsupported legend type: {type(legend).__name__}")

    # Only include opacity if not default
    if legend.opacity != 1.0:
        result["opacity"] = legend.opacity

    return result
