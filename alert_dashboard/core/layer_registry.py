"""Registry of map layers and their visibility/opacity state."""

import logging
from typing import Any, Dict, Iterator, List, Protocol

from alert_dashboard.core.errors import AlreadyAttachedError, DuplicateLayerError, UnknownLayerError
from alert_dashboard.models.layer_record import LayerRecord, MapLayerHandle, RasterHandle
from alert_dashboard.models.legend import vis_params

logger = logging.getLogger(__name__)

LayerId = str


class MapHost(Protocol):
    """Map rendering host that creates layer handles."""

    def add_layer(
        self,
        source: RasterHandle,
        vis_params: Dict[str, Any],
        name: str,
        shown: bool,
        opacity: float,
    ) -> MapLayerHandle:
        ...


class LayerRegistry:
    """Single source of truth for layer visibility and opacity.

    Layers are kept in registration order. The first registered layer is the
    topmost one on the map, so map_order() returns them reversed (the map host
    draws the last added layer on top).
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._records: Dict[LayerId, LayerRecord] = {}
        self._order: List[LayerId] = []

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, layer_id: object) -> bool:
        return layer_id in self._records

    def register(self, record: LayerRecord) -> LayerId:
        """
        Add a layer record.

        Args:
            record: Layer record, not yet attached to the map

        Returns:
            Layer id (the layer name)

        Raises:
            DuplicateLayerError: If a layer with the same name is registered
        """
        if record.name in self._records:
            raise DuplicateLayerError(record.name)

        self._records[record.name] = record
        self._order.append(record.name)
        logger.debug(f"Registered layer '{record.name}' (visible={record.visible}, opacity={record.opacity})")
        return record.name

    def attach(self, layer_id: LayerId, handle: MapLayerHandle):
        """
        Bind a layer to its map handle.

        The handle receives the latest recorded visibility and opacity, so
        changes made before the layer reached the map are not lost.

        Args:
            layer_id: Layer id returned by register()
            handle: Map layer handle created by the map host

        Raises:
            UnknownLayerError: If layer_id is not registered
            AlreadyAttachedError: If the layer already has a handle
        """
        record = self._get(layer_id)
        if record.is_attached:
            raise AlreadyAttachedError(layer_id)

        record.bound_layer = handle
        handle.set_shown(record.visible)
        handle.set_opacity(record.opacity)
        logger.debug(f"Attached layer '{layer_id}'")

    def set_visible(self, layer_id: LayerId, visible: bool):
        """
        Show or hide a layer.

        Args:
            layer_id: Layer id
            visible: New visibility

        Raises:
            UnknownLayerError: If layer_id is not registered
        """
        record = self._get(layer_id)
        record.visible = bool(visible)
        if record.is_attached:
            record.bound_layer.set_shown(record.visible)

    def set_opacity(self, layer_id: LayerId, opacity: float):
        """
        Change a layer's opacity.

        Args:
            layer_id: Layer id
            opacity: New opacity in [0, 1]

        Raises:
            UnknownLayerError: If layer_id is not registered
            ValueError: If opacity is outside [0, 1]
        """
        record = self._get(layer_id)
        opacity = float(opacity)
        if not 0.0 <= opacity <= 1.0:
            raise ValueError(f"Opacity must be between 0 and 1, got {opacity}")

        record.opacity = opacity
        if record.is_attached:
            record.bound_layer.set_opacity(opacity)

    def describe(self, layer_id: LayerId) -> LayerRecord:
        """
        Get a read-only snapshot of a layer.

        Raises:
            UnknownLayerError: If layer_id is not registered
        """
        return self._get(layer_id).snapshot()

    def records(self) -> Iterator[LayerRecord]:
        """Iterate snapshots in registration order (layer panel order)."""
        for layer_id in self._order:
            yield self._records[layer_id].snapshot()

    def map_order(self) -> List[LayerRecord]:
        """Get snapshots in the order layers must be added to the map."""
        return [self._records[layer_id].snapshot() for layer_id in reversed(self._order)]

    def attach_all(self, host: MapHost):
        """
        Add every unattached layer to the map host and bind the handles.

        Args:
            host: Map host providing add_layer()
        """
        for record in self.map_order():
            if record.is_attached:
                continue

            handle = host.add_layer(
                record.source,
                vis_params(record.legend),
                record.name,
                record.visible,
                record.opacity,
            )
            self.attach(record.name, handle)

        logger.info(f"Added {len(self._order)} layers to the map")

    def _get(self, layer_id: LayerId) -> LayerRecord:
        try:
            return self._records[layer_id]
        except KeyError:
            raise UnknownLayerError(layer_id) from None
