"""Layer registry, point queries and raster backends."""
