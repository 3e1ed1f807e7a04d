"""Data models for layers, legends and coordinates."""
