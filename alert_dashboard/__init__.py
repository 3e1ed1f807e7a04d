"""Map dashboard for raster layers with asynchronous point queries."""

__version__ = "0.1.0"
