"""Configuration management."""

from .manager import Config, ConfigManager
from ..models.config import AuthConfig, LifecycleConfig, OutputConfig, ProfileConfig

__all__ = [
    "AuthConfig",
    "Config",
    "ConfigManager",
    "LifecycleConfig",
    "OutputConfig",
    "ProfileConfig",
]
