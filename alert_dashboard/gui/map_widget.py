"""Map widget hosting the layer stack and click handling."""

import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from PyQt6.QtCore import QObject, QUrl, pyqtSignal, pyqtSlot
from PyQt6.QtWebChannel import QWebChannel
from PyQt6.QtWebEngineCore import QWebEngineSettings
from PyQt6.QtWebEngineWidgets import QWebEngineView
from PyQt6.QtWidgets import QVBoxLayout, QWidget

from alert_dashboard.core.config import DEFAULT_MAP_CENTER, DEFAULT_MAP_ZOOM
from alert_dashboard.models.layer_record import Coordinate, RasterHandle

logger = logging.getLogger(__name__)

TEMPLATE_PATH = Path(__file__).parent.parent.parent / "resources" / "map_template.html"


class MapBridge(QObject):
    """Bridge for JavaScript to Python communication."""

    clicked = pyqtSignal(float, float)  # lat, lon

    @pyqtSlot(float, float)
    def on_map_clicked(self, lat: float, lon: float):
        """
        Receive a map click from JavaScript.

        Args:
            lat: Clicked latitude
            lon: Clicked longitude
        """
        self.clicked.emit(lat, lon)


class WebMapLayer:
    """Handle to a layer living in the web map."""

    def __init__(self, map_widget: "MapWidget", layer_id: int, name: str):
        self.map_widget = map_widget
        self.layer_id = layer_id
        self.name = name

    def set_shown(self, shown: bool):
        self.map_widget.run_js(f"setShown({self.layer_id}, {json.dumps(bool(shown))});")

    def set_opacity(self, opacity: float):
        self.map_widget.run_js(f"setOpacity({self.layer_id}, {float(opacity)});")


class MapWidget(QWidget):
    """Widget displaying the interactive map.

    JavaScript issued before the page has loaded is queued and replayed once
    loading finishes, so layers can be added right after construction.
    """

    clicked = pyqtSignal(object)  # Coordinate

    def __init__(self, center: Optional[List[float]] = None, zoom: Optional[int] = None):
        """
        Initialize map widget.

        Args:
            center: [lat, lon] of the initial view (default: DEFAULT_MAP_CENTER)
            zoom: Initial zoom level (default: DEFAULT_MAP_ZOOM)
        """
        super().__init__()
        self.center = list(center) if center else list(DEFAULT_MAP_CENTER)
        self.zoom = DEFAULT_MAP_ZOOM if zoom is None else zoom
        self._layer_count = 0
        self._loaded = False
        self._pending_js: List[str] = []

        self.bridge = MapBridge()
        self.bridge.clicked.connect(self._on_clicked)

        self.init_ui()

    def init_ui(self):
        """Initialize the UI."""
        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)

        self.web_view = QWebEngineView()

        settings = self.web_view.page().settings()
        settings.setAttribute(QWebEngineSettings.WebAttribute.JavascriptEnabled, True)
        settings.setAttribute(QWebEngineSettings.WebAttribute.LocalContentCanAccessRemoteUrls, True)

        # Set up web channel for JS communication
        self.channel = QWebChannel()
        self.channel.registerObject("bridge", self.bridge)
        self.web_view.page().setWebChannel(self.channel)
        self.web_view.loadFinished.connect(self._on_load_finished)

        layout.addWidget(self.web_view)
        self.setLayout(layout)

        self.create_map()

    def create_map(self):
        """Render the map template and load it in the web view."""
        with open(TEMPLATE_PATH, "r", encoding="utf-8") as f:
            template = f.read()

        html = template.replace("MAP_LAT", str(self.center[0]))
        html = html.replace("MAP_LON", str(self.center[1]))
        html = html.replace("MAP_ZOOM", str(self.zoom))

        with tempfile.NamedTemporaryFile(mode="w", suffix=".html", delete=False, encoding="utf-8") as f:
            f.write(html)
            temp_path = f.name

        self.web_view.setUrl(QUrl.fromLocalFile(temp_path))

    def run_js(self, js_code: str):
        """Run JavaScript now, or after the page has loaded."""
        if self._loaded:
            self.web_view.page().runJavaScript(js_code)
        else:
            self._pending_js.append(js_code)

    def add_layer(
        self,
        source: RasterHandle,
        vis_params: Dict[str, Any],
        name: str,
        shown: bool,
        opacity: float,
    ) -> WebMapLayer:
        """
        Add a raster layer on top of the existing ones.

        Args:
            source: Raster to render; only its tile URL is used
            vis_params: Visualization parameters (applied server side by the tile service)
            name: Layer name
            shown: Initial visibility
            opacity: Initial opacity in [0, 1]

        Returns:
            Handle controlling the layer
        """
        self._layer_count += 1
        layer_id = self._layer_count

        if source.tile_url is None:
            logger.info(f"Layer '{name}' has no tile URL, it will not be drawn")

        self.run_js(
            f"addLayer({layer_id}, {json.dumps(source.tile_url)}, "
            f"{json.dumps(bool(shown))}, {float(opacity)});"
        )
        logger.debug(f"Added map layer {layer_id} '{name}' with {vis_params}")
        return WebMapLayer(self, layer_id, name)

    def set_point(self, point: Coordinate):
        """Move the clicked point marker."""
        self.run_js(f"setMarker({point.lat}, {point.lon});")

    def _on_load_finished(self, ok: bool):
        if not ok:
            logger.error("Failed to load map page")
            return

        self._loaded = True
        pending, self._pending_js = self._pending_js, []
        for js_code in pending:
            self.web_view.page().runJavaScript(js_code)

    def _on_clicked(self, lat: float, lon: float):
        """
        Handle a click received from JavaScript.

        Args:
            lat: Clicked latitude
            lon: Clicked longitude
        """
        # Leaflet reports longitudes beyond +-180 after panning across the antimeridian
        lon = ((lon + 180.0) % 360.0) - 180.0
        try:
            point = Coordinate(lon=lon, lat=lat)
        except ValueError:
            logger.warning(f"Ignoring click outside valid range: ({lon}, {lat})")
            return
        self.clicked.emit(point)
