"""API client and authentication."""

from .auth import AuthHandler
from .client import OvirtClient
from .exceptions import (
    AmbiguousReferenceError,
    APIError,
    AttachRejectedError,
    AuthenticationError,
    ConfigError,
    DiskLockedError,
    LifecycleError,
    NetworkError,
    NicCreateFailedError,
    OvirtCliError,
    PermissionError,
    ProfileNotFoundError,
    RequestRejectedError,
    ResourceNotFoundError,
    TimeoutError,
    UnsupportedOperationError,
)

__all__ = [
    "AmbiguousReferenceError",
    "APIError",
    "AttachRejectedError",
    "AuthHandler",
    "AuthenticationError",
    "ConfigError",
    "DiskLockedError",
    "LifecycleError",
    "NetworkError",
    "NicCreateFailedError",
    "OvirtCliError",
    "OvirtClient",
    "PermissionError",
    "ProfileNotFoundError",
    "RequestRejectedError",
    "ResourceNotFoundError",
    "TimeoutError",
    "UnsupportedOperationError",
]
