"""Tests for legend descriptors."""

import pytest

from alert_dashboard.models.legend import (
    DiscreteLegend,
    GradientLegend,
    Swatch,
    legend_entries,
    legend_from_dict,
    legend_to_dict,
    normalize_color,
    vis_params,
)


def test_discrete_legend_entries_in_palette_order():
    """Test that a discrete legend renders one swatch per color, in order."""
    legend = DiscreteLegend(palette=["00ffff", "ea7e7d"], labels=["2", "3"])

    entries = legend_entries(legend)

    assert entries.ramp is None
    assert entries.swatches == [Swatch("#00ffff", "2"), Swatch("#ea7e7d", "3")]


def test_discrete_legend_length_mismatch():
    """Test that palette and labels must have the same length."""
    with pytest.raises(ValueError):
        DiscreteLegend(palette=["00ffff", "ea7e7d"], labels=["2"])

    with pytest.raises(ValueError):
        DiscreteLegend(palette=[], labels=[])


def test_gradient_legend_entries(gradient_legend):
    """Test that a gradient legend renders one ramp with endpoint labels."""
    entries = legend_entries(gradient_legend)

    assert entries.swatches == []
    assert entries.ramp.colors == ["#ffffcc", "#fd8d3c", "#800026"]
    assert (entries.ramp.min, entries.ramp.max) == (20000, 24000)
    assert (entries.ramp.label_min, entries.ramp.label_max) == ("2000", "2024")


def test_gradient_legend_validation():
    """Test gradient range and palette checks."""
    with pytest.raises(ValueError):
        GradientLegend(palette=["000000", "ffffff"], min=5, max=5, label_min="", label_max="")

    with pytest.raises(ValueError):
        GradientLegend(palette=["000000"], min=0, max=1, label_min="", label_max="")

    with pytest.raises(ValueError):
        GradientLegend(palette=["000000", "ffffff"], min=0, max=1, label_min="", label_max="", opacity=2)


def test_legend_entries_rejects_other_types():
    """Test that only the two legend classes are accepted."""
    with pytest.raises(TypeError):
        legend_entries({"type": "gradient"})


def test_normalize_color():
    """Test hex and named colors."""
    assert normalize_color("EA7E7D") == "#ea7e7d"
    assert normalize_color("#00FFFF") == "#00ffff"
    assert normalize_color("Black") == "black"


def test_vis_params(gradient_legend):
    """Test visualization parameters for the map host."""
    assert vis_params(gradient_legend) == {
        "palette": ["#ffffcc", "#fd8d3c", "#800026"],
        "min": 20000,
        "max": 24000,
    }
    assert vis_params(DiscreteLegend(palette=["black"], labels=[""])) == {"palette": ["black"]}


def test_legend_from_dict():
    """Test building legends from config dictionaries."""
    gradient = legend_from_dict(
        {"type": "gradient", "palette": ["ffffcc", "800026"], "min": 20000, "max": 24000,
         "label_min": 2000, "label_max": 2024}
    )
    assert isinstance(gradient, GradientLegend)
    assert gradient.label_min == "2000"

    discrete = legend_from_dict({"type": "discrete", "palette": "black", "labels": [""], "opacity": 0.3})
    assert isinstance(discrete, DiscreteLegend)
    assert discrete.palette == ("black",)
    assert discrete.opacity == 0.3


def test_legend_from_dict_errors():
    """Test unknown types and missing fields."""
    with pytest.raises(ValueError, match="Unknown legend type"):
        legend_from_dict({"type": "categorical", "palette": ["000000"]})

    with pytest.raises(ValueError, match="Missing"):
        legend_from_dict({"type": "gradient", "palette": ["000000", "ffffff"]})


def test_legend_to_dict(gradient_legend):
    """Test that legends convert back to config dictionaries."""
    assert legend_from_dict(legend_to_dict(gradient_legend)) == gradient_legend

    data = legend_to_dict(DiscreteLegend(palette=["black"], labels=[""], opacity=0.3))
    assert data == {"type": "discrete", "palette": ["black"], "labels": [""], "opacity": 0.3}
