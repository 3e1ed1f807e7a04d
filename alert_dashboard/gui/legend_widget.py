"""Legend widgets for gradient and discrete legends."""

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor, QLinearGradient, QPainter
from PyQt6.QtWidgets import QHBoxLayout, QLabel, QVBoxLayout, QWidget

from alert_dashboard.models.legend import ColorRamp, LegendDescriptor, legend_entries


class ColorRampBar(QWidget):
    """Horizontal bar painted with an evenly spaced color gradient."""

    def __init__(self, colors: list[str], parent=None):
        super().__init__(parent)
        self.colors = colors
        self.setMinimumSize(100, 10)
        self.setMaximumHeight(24)

    def paintEvent(self, event):
        painter = QPainter(self)
        rect = self.rect()
        gradient = QLinearGradient(rect.left(), 0, rect.right(), 0)
        last = max(len(self.colors) - 1, 1)
        for i, color in enumerate(self.colors):
            gradient.setColorAt(i / last, QColor(color))
        painter.fillRect(rect, gradient)
        painter.end()


class LegendWidget(QWidget):
    """Renders a layer legend: a color ramp or a list of swatches."""

    def __init__(self, legend: LegendDescriptor, parent=None):
        """Initialize legend widget.

        Args:
            legend: Legend to render
            parent: Parent widget
        """
        super().__init__(parent)
        self.entries = legend_entries(legend)
        self.init_ui()

    def init_ui(self):
        """Initialize the UI."""
        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)

        if self.entries.ramp is not None:
            self._add_ramp(layout, self.entries.ramp)
        else:
            for swatch in self.entries.swatches:
                row = QHBoxLayout()
                row.setContentsMargins(10, 3, 0, 0)

                color_box = QLabel()
                color_box.setFixedSize(15, 15)
                color_box.setStyleSheet(f"background-color: {swatch.color}; border: 1px solid black;")
                row.addWidget(color_box)

                row.addWidget(QLabel(swatch.label), 1)
                layout.addLayout(row)

        self.setLayout(layout)

    def _add_ramp(self, layout: QVBoxLayout, ramp: ColorRamp):
        layout.addWidget(ColorRampBar(ramp.colors))

        labels = QHBoxLayout()
        labels.setContentsMargins(8, 4, 8, 0)
        labels.addWidget(QLabel(ramp.label_min))
        max_label = QLabel(ramp.label_max)
        max_label.setAlignment(Qt.AlignmentFlag.AlignRight)
        labels.addWidget(max_label, 1)
        layout.addLayout(labels)
