"""Configuration manager for ovirtcli."""

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from ..api.exceptions import ConfigError
from ..crypto import decrypt, encrypt, is_encrypted
from ..models.config import LifecycleConfig, OutputConfig, ProfileConfig

SECRET_FIELDS = ("password", "token")


class Config(BaseModel):
    """Main configuration model."""

    default_profile: str | None = None
    profiles: dict[str, ProfileConfig] = Field(default_factory=dict)
    output: OutputConfig = Field(default_factory=OutputConfig)
    lifecycle: LifecycleConfig = Field(default_factory=LifecycleConfig)


class ConfigManager:
    """Manage ovirtcli configuration."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize config manager.

        Args:
            config_dir: Custom config directory (defaults to ~/.config/ovirtcli)
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "ovirtcli"
        self.config_dir = config_dir
        self.config_file = self.config_dir / "config.yaml"
        self.identity_file = self.config_dir / ".age-identity"
        self._config: Config | None = None

    def _ensure_config_dir(self) -> None:
        """Create config directory if it doesn't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self.config_dir, 0o700)

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_file.exists()

    def load(self) -> Config:
        """Load configuration from file.

        Secrets found in plaintext are encrypted on disk as a side effect.

        Returns:
            Loaded configuration, with secrets decrypted

        Raises:
            ConfigError: If config file doesn't exist or is invalid
        """
        if not self.exists():
            raise ConfigError(
                f"Configuration file not found at {self.config_file}. "
                "Run 'ovirtcli config add' to create one."
            )

        try:
            with open(self.config_file) as f:
                data = yaml.safe_load(f) or {}
            needs_save = self._decrypt_data(data)
            self._config = Config(**data)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file: {e}")
        except ValidationError as e:
            raise ConfigError(f"Invalid config file {self.config_file}: {e}")

        if needs_save:
            logger.debug(f"Encrypting plaintext secrets in {self.config_file}")
            self.save(self._config)
        return self._config

    def save(self, config: Config) -> None:
        """Save configuration to file.

        Args:
            config: Configuration to save

        Raises:
            ConfigError: If save fails
        """
        self._ensure_config_dir()
        try:
            data = config.model_dump(mode="json", exclude_none=True)
            self._encrypt_data(data)
            with open(self.config_file, "w") as f:
                yaml.safe_dump(data, f, default_flow_style=False)
            os.chmod(self.config_file, 0o600)
        except OSError as e:
            raise ConfigError(f"Failed to save config: {e}")
        self._config = config

    def get(self) -> Config:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def get_profile(self, name: str | None = None) -> ProfileConfig:
        """Get a specific profile or the default.

        Args:
            name: Profile name (uses default if None)

        Returns:
            Profile configuration

        Raises:
            ConfigError: If profile not found
        """
        config = self.get()

        if name is None:
            if config.default_profile is None:
                raise ConfigError("No default profile set. Use --profile to specify one.")
            name = config.default_profile

        if name not in config.profiles:
            raise ConfigError(
                f"Profile '{name}' not found. Available profiles: "
                f"{', '.join(config.profiles.keys()) or 'none'}"
            )

        return config.profiles[name]

    def add_profile(self, name: str, profile: ProfileConfig) -> None:
        """Add or update a profile; the first profile becomes the default."""
        config = self.get() if self.exists() else Config()
        config.profiles[name] = profile

        if config.default_profile is None:
            config.default_profile = name

        self.save(config)

    def remove_profile(self, name: str) -> None:
        """Remove a profile.

        Raises:
            ConfigError: If profile not found
        """
        config = self.get()

        if name not in config.profiles:
            raise ConfigError(f"Profile '{name}' not found")

        del config.profiles[name]

        if config.default_profile == name:
            config.default_profile = next(iter(config.profiles.keys()), None)

        self.save(config)

    def set_default_profile(self, name: str) -> None:
        """Set the default profile.

        Raises:
            ConfigError: If profile not found
        """
        config = self.get()

        if name not in config.profiles:
            raise ConfigError(f"Profile '{name}' not found")

        config.default_profile = name
        self.save(config)

    def list_profiles(self) -> list[str]:
        """List all profile names."""
        return list(self.get().profiles.keys())

    def _decrypt_data(self, data: dict[str, Any]) -> bool:
        """Decrypt secrets in the raw dict in place.

        Returns:
            True if a plaintext secret was found and the file needs re-saving
        """
        needs_save = False
        for profile in (data.get("profiles") or {}).values():
            auth = profile.get("auth") or {}
            for key in SECRET_FIELDS:
                value = auth.get(key)
                if not value:
                    continue
                if is_encrypted(value):
                    auth[key] = decrypt(value, self.identity_file)
                else:
                    needs_save = True
        return needs_save

    def _encrypt_data(self, data: dict[str, Any]) -> None:
        """Encrypt secrets in the serialized dict before writing."""
        for profile in data.get("profiles", {}).values():
            auth = profile.get("auth", {})
            for key in SECRET_FIELDS:
                if auth.get(key):
                    auth[key] = encrypt(auth[key], self.identity_file)
