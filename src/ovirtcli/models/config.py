"""Configuration models."""

from pydantic import BaseModel, Field, model_validator


class AuthConfig(BaseModel):
    """Authentication configuration."""

    type: str = Field(..., pattern="^(token|password)$")
    user: str | None = None
    token: str | None = None
    password: str | None = None

    @model_validator(mode="after")
    def check_credentials(self) -> "AuthConfig":
        """Require a token for token auth, and a user and password for password auth.

        Raises:
            ValueError: If a credential required by the auth type is missing
        """
        if self.type == "token" and not self.token:
            raise ValueError("token required when auth type is 'token'")
        if self.type == "password":
            if not self.user:
                raise ValueError("user required when auth type is 'password'")
            if not self.password:
                raise ValueError("password required when auth type is 'password'")
        return self


class ProfileConfig(BaseModel):
    """Profile configuration for an oVirt engine."""

    host: str
    port: int = 443
    verify_ssl: bool = True
    ca_file: str | None = None
    auth: AuthConfig
    timeout: int = 30


class OutputConfig(BaseModel):
    """Output preferences."""

    format: str = Field(default="table", pattern="^(table|json|yaml)$")
    colors: bool = True
    confirm_destructive: bool = True


class LifecycleConfig(BaseModel):
    """Bounds for the waits and retries of VM lifecycle operations, in seconds."""

    disk_lock_timeout: float = Field(default=30, gt=0)
    disk_lock_interval: float = Field(default=2, gt=0)
    create_settle_timeout: float = Field(default=120, gt=0)
    shutdown_settle_timeout: float = Field(default=120, gt=0)
    delete_timeout: float = Field(default=180, gt=0)
    poll_interval: float = Field(default=2, gt=0)
    backoff_max: float = Field(default=15, gt=0)
