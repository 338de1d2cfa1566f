"""ovirtcli - VM lifecycle management for oVirt."""

__version__ = "0.1.0"
