"""Cluster, template and network models."""

from typing import Any

from pydantic import BaseModel


def unwrap(value: Any, key: str) -> Any:
    """Unwrap an engine collection ({"nic_configuration": [...]}) into its list."""
    if isinstance(value, dict):
        return value.get(key, [])
    return value


class Link(BaseModel):
    """Reference to another entity, as embedded by the engine."""

    model_config = {"extra": "allow"}

    id: str | None = None
    href: str | None = None


class Cluster(BaseModel):
    """Cluster information."""

    id: str
    name: str | None = None
    data_center: Link | None = None

    @property
    def datacenter_id(self) -> str | None:
        return self.data_center.id if self.data_center else None


class Template(BaseModel):
    """Template information."""

    id: str
    name: str | None = None
    version: dict[str, Any] | None = None


class Network(BaseModel):
    """Logical network information."""

    id: str
    name: str | None = None
    data_center: Link | None = None

    @property
    def datacenter_id(self) -> str | None:
        return self.data_center.id if self.data_center else None


class VnicProfile(BaseModel):
    """vNIC profile information."""

    id: str
    name: str
    network: Link | None = None


class Nic(BaseModel):
    """NIC attached to a VM."""

    id: str | None = None
    name: str
    description: str | None = None
    vnic_profile: Link | None = None
