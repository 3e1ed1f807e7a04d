"""Per-layer panels: name, legend, visibility/opacity controls, description."""

import logging

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QCheckBox, QFrame, QHBoxLayout, QLabel, QSlider, QVBoxLayout, QWidget

from alert_dashboard.core.layer_registry import LayerId, LayerRegistry
from alert_dashboard.gui.legend_widget import LegendWidget

logger = logging.getLogger(__name__)


class LayerPanel(QFrame):
    """Controls for a single registered layer.

    The panel holds no layer state of its own: every control change goes
    through the registry, which forwards it to the map layer.
    """

    def __init__(self, registry: LayerRegistry, layer_id: LayerId, parent=None):
        """Initialize layer panel.

        Args:
            registry: Registry owning the layer
            layer_id: Layer shown by this panel
            parent: Parent widget
        """
        super().__init__(parent)
        self.registry = registry
        self.layer_id = layer_id
        self.init_ui()

    def init_ui(self):
        """Initialize the UI."""
        record = self.registry.describe(self.layer_id)

        layout = QVBoxLayout()
        layout.setContentsMargins(5, 5, 5, 5)

        self.name_label = QLabel(record.name)
        self.name_label.setStyleSheet("font-weight: bold;")
        layout.addWidget(self.name_label)

        # Legend on the left, controls on the right
        body = QHBoxLayout()
        body.addWidget(LegendWidget(record.legend), 1)

        controls = QWidget()
        controls.setFixedWidth(200)
        controls_layout = QHBoxLayout(controls)
        controls_layout.setContentsMargins(0, 0, 0, 0)

        self.visible_checkbox = QCheckBox()
        self.visible_checkbox.setChecked(record.visible)
        self.visible_checkbox.setToolTip("Show/hide this layer")
        self.visible_checkbox.toggled.connect(self._on_visible_changed)
        controls_layout.addWidget(self.visible_checkbox)

        self.opacity_slider = QSlider(Qt.Orientation.Horizontal)
        self.opacity_slider.setMinimum(0)
        self.opacity_slider.setMaximum(100)
        self.opacity_slider.setSingleStep(10)
        self.opacity_slider.setValue(round(record.opacity * 100))
        self.opacity_slider.setToolTip("Layer opacity")
        self.opacity_slider.valueChanged.connect(self._on_opacity_changed)
        controls_layout.addWidget(self.opacity_slider, 1)

        body.addWidget(controls)
        layout.addLayout(body)

        if record.description:
            description = QLabel(record.description)
            description.setWordWrap(True)
            description.setStyleSheet("color: grey; font-size: 11px;")
            layout.addWidget(description)

        self.setLayout(layout)
        self.setFrameStyle(QFrame.Shape.Box | QFrame.Shadow.Plain)
        self.setStyleSheet("LayerPanel { border: 1px solid black; margin: 5px 5px 0px 5px; }")

    def _on_visible_changed(self, checked: bool):
        self.registry.set_visible(self.layer_id, checked)
        logger.debug(f"Layer '{self.layer_id}' visible={checked}")

    def _on_opacity_changed(self, value: int):
        self.registry.set_opacity(self.layer_id, value / 100)
