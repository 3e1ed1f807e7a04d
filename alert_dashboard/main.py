"""Main application entry point."""

import argparse
import asyncio
import logging
import sys

from alert_dashboard.core.config import (
    NO_DATA_TEXT,
    DashboardConfig,
    build_layer_records,
    build_registry,
    load_dashboard_config,
)
from alert_dashboard.core.query import PointQueryController
from alert_dashboard.core.raster_client import (
    DEMO_BOUNDS,
    HttpRasterClient,
    RasterBackend,
    build_demo_backend,
)
from alert_dashboard.models.layer_record import Coordinate, RasterHandle
from alert_dashboard.models.legend import legend_to_dict

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """
    Set up logging configuration.

    Args:
        verbose: Enable verbose logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
        ],
    )


class ConsoleLabel:
    """Display label for command line queries; keeps every text it was given."""

    def __init__(self):
        self.history: list[str] = []

    def set_text(self, text: str):
        self.history.append(text)
        logger.debug(f"Label: {text}")


def create_backend(settings: DashboardConfig, demo_delay: float = 0.0) -> RasterBackend:
    """
    Create the raster backend for a configuration.

    Args:
        settings: Dashboard configuration
        demo_delay: Max random latency of the demo backend, in seconds

    Returns:
        HTTP client if a backend URL is configured, demo grid backend otherwise
    """
    if settings.backend_url:
        return HttpRasterClient(settings.backend_url, timeout=settings.timeout)

    logger.warning("No backend_url configured, sampling synthetic demo rasters")
    return build_demo_backend(max_delay=demo_delay)


def query_raster(settings: DashboardConfig) -> RasterHandle:
    """Get the raster sampled on click."""
    for record in build_layer_records(settings):
        if record.name == settings.query_layer:
            return record.source
    raise ValueError(f"Invalid query layer: {settings.query_layer}")


async def _close_backend(backend: RasterBackend):
    close = getattr(backend, "close", None)
    if close is not None:
        await close()


def cmd_query(args):
    """Handle query subcommand - sample the query layer at one point."""
    setup_logging(args.verbose)

    try:
        settings = load_dashboard_config(args.config)
        if args.backend_url:
            settings = settings.model_copy(update={"backend_url": args.backend_url})
        point = Coordinate(lon=args.lon, lat=args.lat)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    backend = create_backend(settings)
    controller = PointQueryController(
        backend,
        query_raster(settings),
        ConsoleLabel(),
        scale_meters=settings.scale_meters,
        epoch_year=settings.epoch_year,
        timeout=settings.timeout,
    )

    async def run():
        try:
            return await controller.query_point(point)
        finally:
            await _close_backend(backend)

    result = asyncio.run(run())
    print(controller.display_text)

    if not result.ok or controller.display_text == NO_DATA_TEXT:
        return 1
    return 0


def cmd_demo(args):
    """Handle demo subcommand - fire rapid clicks at a slow demo backend."""
    import random

    from rich.console import Console
    from rich.table import Table

    setup_logging(args.verbose)

    settings = DashboardConfig()
    backend = build_demo_backend(seed=args.seed, max_delay=args.max_delay)
    label = ConsoleLabel()
    controller = PointQueryController(
        backend,
        query_raster(settings),
        label,
        scale_meters=settings.scale_meters,
        epoch_year=settings.epoch_year,
        timeout=settings.timeout,
    )

    rng = random.Random(args.seed)
    min_lon, min_lat, max_lon, max_lat = DEMO_BOUNDS
    rows = []

    async def run():
        tasks = []
        for _ in range(args.clicks):
            point = Coordinate(lon=rng.uniform(min_lon, max_lon), lat=rng.uniform(min_lat, max_lat))
            token = controller.handle_click(point)
            tasks.append(asyncio.create_task(controller.run_query(token, point)))
            await asyncio.sleep(args.interval)

        for completed in asyncio.as_completed(tasks):
            result = await completed
            shown = controller.reconcile(result)
            rows.append((result, shown))

    asyncio.run(run())

    table = Table(title="Query completions")
    table.add_column("Order", justify="right")
    table.add_column("Token", justify="right")
    table.add_column("Result")
    table.add_column("Shown")
    for order, (result, shown) in enumerate(rows, 1):
        outcome = f"{result.value:.0f}" if result.ok else result.error.reason
        table.add_row(str(order), str(result.token), outcome, "yes" if shown else "stale")

    console = Console()
    console.print(table)
    console.print(f"Final label: {controller.display_text}")
    return 0


def cmd_list_layers(args):
    """Handle list-layers subcommand."""
    try:
        settings = load_dashboard_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Dashboard layers (top to bottom):")
    print()

    for record in build_layer_records(settings):
        legend = legend_to_dict(record.legend)
        marker = " (queried)" if record.name == settings.query_layer else ""
        print(f"  {record.name}{marker}")
        print(f"           Source: {record.source.asset_id} [{record.source.band}]")
        print(f"           Legend: {legend['type']}, {len(legend['palette'])} colors")
        print(f"           Shown: {'yes' if record.visible else 'no'}, Opacity: {record.opacity:.1f}")
        print()

    return 0


def launch_gui(config_file: str | None = None):
    """
    Launch the GUI application.

    Args:
        config_file: Optional path to config file to load on startup
    """
    import signal

    from PyQt6.QtCore import QTimer
    from PyQt6.QtWidgets import QApplication

    from alert_dashboard.gui.main_window import InspectionLabel, MainWindow
    from alert_dashboard.gui.map_widget import MapWidget
    from alert_dashboard.gui.query_worker import QueryLoopThread

    settings = load_dashboard_config(config_file)

    app = QApplication(sys.argv)
    app.setApplicationName("alert-dashboard")

    # Set up Ctrl+C handling
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    # Let Python process signals while Qt runs
    timer = QTimer()
    timer.timeout.connect(lambda: None)
    timer.start(500)

    registry = build_registry(build_layer_records(settings))
    map_widget = MapWidget(center=list(settings.center), zoom=settings.zoom)
    inspection_label = InspectionLabel()
    controller = PointQueryController(
        create_backend(settings, demo_delay=1.5),
        registry.describe(settings.query_layer).source,
        inspection_label,
        marker=map_widget,
        scale_meters=settings.scale_meters,
        epoch_year=settings.epoch_year,
        timeout=settings.timeout,
    )

    query_thread = QueryLoopThread()
    query_thread.start()

    window = MainWindow(settings, registry, controller, map_widget, inspection_label, query_thread)
    window.show()

    sys.exit(app.exec())


def cmd_open(args):
    """Handle open subcommand - launch GUI with config file loaded."""
    launch_gui(config_file=args.config)


def main():
    """Main application entry point."""
    parser = argparse.ArgumentParser(
        description="Alert Dashboard - Browse raster alert layers and query alert dates",
        epilog="Run without arguments to launch GUI mode.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Open subcommand (launch GUI with file)
    open_parser = subparsers.add_parser("open", help="Open config file in GUI")
    open_parser.add_argument("config", help="YAML configuration file to open")
    open_parser.set_defaults(func=cmd_open)

    # Query subcommand
    query_parser = subparsers.add_parser("query", help="Query the alert date at a point")
    query_parser.add_argument("lon", type=float, help="Longitude in degrees")
    query_parser.add_argument("lat", type=float, help="Latitude in degrees")
    query_parser.add_argument("-c", "--config", help="YAML configuration file")
    query_parser.add_argument("--backend-url", help="Raster sampling service URL (overrides config)")
    query_parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    query_parser.set_defaults(func=cmd_query)

    # Demo subcommand
    demo_parser = subparsers.add_parser("demo", help="Simulate rapid clicks against a slow backend")
    demo_parser.add_argument("--clicks", type=int, default=5, help="Number of clicks")
    demo_parser.add_argument("--interval", type=float, default=0.05, help="Seconds between clicks")
    demo_parser.add_argument("--max-delay", type=float, default=1.0, help="Max backend latency in seconds")
    demo_parser.add_argument("--seed", type=int, default=0, help="Random seed")
    demo_parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    demo_parser.set_defaults(func=cmd_demo)

    # List layers subcommand
    list_parser = subparsers.add_parser("list-layers", help="List dashboard layers")
    list_parser.add_argument("-c", "--config", help="YAML configuration file")
    list_parser.set_defaults(func=cmd_list_layers)

    args = parser.parse_args()

    # If no subcommand provided, launch GUI
    if args.command is None:
        launch_gui()
    else:
        return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
