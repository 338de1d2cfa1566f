"""CLI commands."""

from . import config, disk, main, vm

__all__ = ["config", "disk", "main", "vm"]
