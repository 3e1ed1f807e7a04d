"""PyQt6 user interface."""
