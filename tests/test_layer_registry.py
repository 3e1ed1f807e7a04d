"""Tests for the layer registry."""

import pytest

from alert_dashboard.core.errors import AlreadyAttachedError, DuplicateLayerError, UnknownLayerError
from alert_dashboard.core.layer_registry import LayerRegistry
from tests.fakes import FakeLayerHandle


def test_register_returns_layer_name(record_factory):
    """Test that register returns the layer name as id."""
    registry = LayerRegistry()

    layer_id = registry.register(record_factory("Alert Date"))

    assert layer_id == "Alert Date"
    assert "Alert Date" in registry
    assert len(registry) == 1


def test_register_duplicate_name(record_factory):
    """Test that layer names must be unique."""
    registry = LayerRegistry()
    registry.register(record_factory("Alert Date"))

    with pytest.raises(DuplicateLayerError):
        registry.register(record_factory("Alert Date"))


def test_map_order_is_reversed(record_factory):
    """Test that the first registered layer is added to the map last (topmost)."""
    registry = LayerRegistry()
    for name in ["L1", "L2", "L3"]:
        registry.register(record_factory(name))

    assert [record.name for record in registry.map_order()] == ["L3", "L2", "L1"]
    # Panel order stays as registered
    assert [record.name for record in registry.records()] == ["L1", "L2", "L3"]


def test_attach_all_adds_layers_in_map_order(record_factory, map_host):
    """Test that attach_all adds layers in reverse order and binds them."""
    registry = LayerRegistry()
    registry.register(record_factory("L1", visible=True, opacity=0.3))
    registry.register(record_factory("L2", visible=False))
    registry.register(record_factory("L3"))

    registry.attach_all(map_host)

    assert [name for name, _, _, _ in map_host.added] == ["L3", "L2", "L1"]
    assert map_host.added[2] == ("L1", {"palette": ["#00ffff", "#ea7e7d"]}, True, 0.3)
    for name in ["L1", "L2", "L3"]:
        assert registry.describe(name).bound_layer is map_host.handles[name]


def test_attach_twice_fails_and_keeps_first_handle(record_factory):
    """Test that a second attach raises and the first handle stays bound."""
    registry = LayerRegistry()
    registry.register(record_factory("Confidence"))
    first = FakeLayerHandle()
    second = FakeLayerHandle()

    registry.attach("Confidence", first)
    with pytest.raises(AlreadyAttachedError):
        registry.attach("Confidence", second)

    assert registry.describe("Confidence").bound_layer is first
    assert second.calls == []


def test_updates_before_attach_are_forwarded_on_attach(record_factory):
    """Test that the handle receives the latest state, not the initial one."""
    registry = LayerRegistry()
    registry.register(record_factory("Confidence", visible=True, opacity=1.0))

    registry.set_visible("Confidence", False)
    registry.set_opacity("Confidence", 0.2)
    registry.set_opacity("Confidence", 0.6)

    handle = FakeLayerHandle()
    registry.attach("Confidence", handle)

    assert handle.calls == [("shown", False), ("opacity", 0.6)]


def test_updates_after_attach_are_forwarded_immediately(record_factory):
    """Test that visibility and opacity changes reach the bound handle."""
    registry = LayerRegistry()
    registry.register(record_factory("Alert Date"))
    handle = FakeLayerHandle()
    registry.attach("Alert Date", handle)

    registry.set_visible("Alert Date", False)
    registry.set_opacity("Alert Date", 0.4)

    record = registry.describe("Alert Date")
    assert record.visible is False
    assert record.opacity == 0.4
    assert handle.shown is False
    assert handle.opacity == 0.4


def test_unknown_layer(record_factory):
    """Test that every operation rejects unknown ids."""
    registry = LayerRegistry()
    registry.register(record_factory("Alert Date"))

    with pytest.raises(UnknownLayerError):
        registry.set_visible("Missing", True)
    with pytest.raises(UnknownLayerError):
        registry.set_opacity("Missing", 0.5)
    with pytest.raises(UnknownLayerError):
        registry.attach("Missing", FakeLayerHandle())
    with pytest.raises(UnknownLayerError):
        registry.describe("Missing")


def test_set_opacity_out_of_range(record_factory):
    """Test that opacity must be within [0, 1] and the state is unchanged on error."""
    registry = LayerRegistry()
    registry.register(record_factory("Alert Date", opacity=0.5))

    with pytest.raises(ValueError):
        registry.set_opacity("Alert Date", 1.5)

    assert registry.describe("Alert Date").opacity == 0.5


def test_describe_returns_snapshot(record_factory):
    """Test that mutating a described record does not change the registry."""
    registry = LayerRegistry()
    registry.register(record_factory("Alert Date"))

    snapshot = registry.describe("Alert Date")
    snapshot.visible = False

    assert registry.describe("Alert Date").visible is True


def test_attach_all_skips_attached_layers(record_factory, map_host):
    """Test that attach_all leaves layers with a handle alone."""
    registry = LayerRegistry()
    registry.register(record_factory("L1"))
    registry.register(record_factory("L2"))
    handle = FakeLayerHandle()
    registry.attach("L2", handle)

    assert registry.describe("L2").is_attached
    assert not registry.describe("L1").is_attached

    registry.attach_all(map_host)

    assert [name for name, _, _, _ in map_host.added] == ["L1"]
    assert registry.describe("L2").bound_layer is handle
    assert registry.describe("L1").is_attached
