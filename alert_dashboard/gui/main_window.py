"""Main application window."""

import logging

from PyQt6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from alert_dashboard.core.config import PANEL_WIDTH, DashboardConfig
from alert_dashboard.core.layer_registry import LayerRegistry
from alert_dashboard.core.query import PointQueryController
from alert_dashboard.gui.layer_panel import LayerPanel
from alert_dashboard.gui.map_widget import MapWidget
from alert_dashboard.gui.query_worker import QueryLoopThread
from alert_dashboard.models.layer_record import Coordinate

logger = logging.getLogger(__name__)


class InspectionLabel(QLabel):
    """Label showing the state of the latest point query."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWordWrap(True)

    def set_text(self, text: str):
        self.setText(text)


class MainWindow(QMainWindow):
    """Dashboard window: layer panels on the left, map on the right."""

    def __init__(
        self,
        settings: DashboardConfig,
        registry: LayerRegistry,
        controller: PointQueryController,
        map_widget: MapWidget,
        inspection_label: InspectionLabel,
        query_thread: QueryLoopThread,
    ):
        """
        Initialize main window.

        Args:
            settings: Dashboard configuration
            registry: Layer registry (layers not yet attached)
            controller: Point query controller writing to inspection_label
            map_widget: Map host the registry layers are added to
            inspection_label: Label displaying query results
            query_thread: Worker running the controller's queries
        """
        super().__init__()
        self.settings = settings
        self.registry = registry
        self.controller = controller
        self.map_widget = map_widget
        self.inspection_label = inspection_label
        self.query_thread = query_thread

        self.registry.attach_all(self.map_widget)
        self.map_widget.clicked.connect(self._on_map_clicked)
        self.query_thread.result_ready.connect(self.controller.reconcile)

        self.init_ui()

    def init_ui(self):
        """Initialize the UI."""
        self.setWindowTitle(self.settings.title)
        self.setGeometry(100, 100, 1400, 800)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        main_layout = QHBoxLayout()

        # Left side: title, info, layer panels and query result
        panel = QWidget()
        panel_layout = QVBoxLayout(panel)

        title_label = QLabel(self.settings.title)
        title_label.setStyleSheet("font-size: 22px; font-weight: bold;")
        panel_layout.addWidget(title_label)

        info_label = QLabel(self.settings.info)
        info_label.setWordWrap(True)
        panel_layout.addWidget(info_label)

        for record in self.registry.records():
            panel_layout.addWidget(LayerPanel(self.registry, record.name))

        panel_layout.addWidget(self.inspection_label)
        panel_layout.addStretch()

        scroll = QScrollArea()
        scroll.setWidget(panel)
        scroll.setWidgetResizable(True)
        scroll.setFixedWidth(PANEL_WIDTH)
        main_layout.addWidget(scroll)

        # Right side: map
        main_layout.addWidget(self.map_widget, 1)

        central_widget.setLayout(main_layout)

    def _on_map_clicked(self, point: Coordinate):
        """Start a query for a clicked point."""
        token = self.controller.handle_click(point)
        self.query_thread.submit(self.controller.run_query(token, point))

    def closeEvent(self, event):
        """Stop the query thread before closing."""
        close = getattr(self.controller.backend, "close", None)
        self.query_thread.stop(cleanup=close() if close else None)
        super().closeEvent(event)
