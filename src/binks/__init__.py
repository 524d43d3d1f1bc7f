"""Binks: re-run feature and spec files as they change."""

__version__ = "0.4.0"

__all__ = ["__version__"]
