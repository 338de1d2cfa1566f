"""Desired state models for VM lifecycle operations.

These are the inputs to the orchestrator and the shape the state flattener
produces. They are validated once when built from user input, so the
lifecycle code can rely on their invariants without re-checking fields.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, model_validator

from .disk import DiskInterface

READ_BACK = "read_back"


def _is_read_back(info: ValidationInfo) -> bool:
    return bool(info.context and info.context.get(READ_BACK))


class BootProtocol(str, Enum):
    STATIC = "static"
    DHCP = "dhcp"
    NONE = "none"


class NetworkInterfaceSpec(BaseModel):
    """Desired guest network interface."""

    label: str | None = Field(None, description="Guest interface name, e.g. eth0")
    network: str | None = Field(None, description="vNIC profile name to bind the NIC to")
    boot_protocol: BootProtocol
    ip_address: str | None = None
    subnet_mask: str | None = None
    gateway: str | None = None
    on_boot: bool = True

    @model_validator(mode="after")
    def check_static_addressing(self, info: ValidationInfo) -> "NetworkInterfaceSpec":
        """Require ip, netmask and gateway exactly when the protocol is static."""
        if _is_read_back(info):
            return self
        addressing = {
            "ip_address": self.ip_address,
            "subnet_mask": self.subnet_mask,
            "gateway": self.gateway,
        }
        if self.boot_protocol == BootProtocol.STATIC:
            missing = [k for k, v in addressing.items() if not v]
            if missing:
                raise ValueError(f"static boot protocol requires {', '.join(missing)}")
        else:
            present = [k for k, v in addressing.items() if v]
            if present:
                raise ValueError(
                    f"{', '.join(present)} only allowed with static boot protocol, "
                    f"got '{self.boot_protocol.value}'"
                )
        return self


class DiskAttachmentSpec(BaseModel):
    """Desired attachment of an existing disk."""

    disk_id: str
    interface: DiskInterface
    bootable: bool = False
    active: bool = True
    logical_name: str | None = None
    pass_discard: bool = False
    read_only: bool = False
    use_scsi_reservation: bool = False


class VmDesiredState(BaseModel):
    """Desired state of a VM."""

    name: str = Field(..., min_length=1)
    cluster: str = Field(..., min_length=1, description="Cluster name or id")
    template: str = Field("Blank", min_length=1, description="Template name or id")
    cores: int = Field(1, ge=1)
    sockets: int = Field(1, ge=1)
    threads: int = Field(1, ge=1)
    memory: int | None = Field(None, gt=0, description="Memory in MiB")
    authorized_ssh_key: str = ""
    network_interfaces: list[NetworkInterfaceSpec] = Field(default_factory=list)
    disk_attachments: list[DiskAttachmentSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_collections(self, info: ValidationInfo) -> "VmDesiredState":
        if _is_read_back(info):
            return self
        if not self.network_interfaces:
            raise ValueError("at least one network interface is required")
        disk_ids = [d.disk_id for d in self.disk_attachments]
        duplicates = sorted({d for d in disk_ids if disk_ids.count(d) > 1})
        if duplicates:
            raise ValueError(f"disk attached more than once: {', '.join(duplicates)}")
        return self

    @classmethod
    def from_remote(cls, data: dict[str, Any]) -> "VmDesiredState":
        """Build a desired state from values read off the engine."""
        return cls.model_validate(data, context={READ_BACK: True})


class BootDiskVmDesiredState(VmDesiredState):
    """Desired state of a VM that must boot from at least one attached disk."""

    @model_validator(mode="after")
    def check_disks(self, info: ValidationInfo) -> "BootDiskVmDesiredState":
        if not _is_read_back(info) and not self.disk_attachments:
            raise ValueError("at least one disk attachment is required")
        return self
