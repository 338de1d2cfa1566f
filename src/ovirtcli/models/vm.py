"""VM models as reported by the engine."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .disk import DiskAttachment
from .network import Link, unwrap


class VmStatus(str, Enum):
    """VM status values reported by the engine."""

    DOWN = "down"
    IMAGE_LOCKED = "image_locked"
    MIGRATING = "migrating"
    NOT_RESPONDING = "not_responding"
    PAUSED = "paused"
    POWERING_DOWN = "powering_down"
    POWERING_UP = "powering_up"
    REBOOT_IN_PROGRESS = "reboot_in_progress"
    RESTORING_STATE = "restoring_state"
    SAVING_STATE = "saving_state"
    SUSPENDED = "suspended"
    UNASSIGNED = "unassigned"
    UNKNOWN = "unknown"
    UP = "up"
    WAIT_FOR_LAUNCH = "wait_for_launch"


class CpuTopology(BaseModel):
    cores: int = 1
    sockets: int = 1
    threads: int = 1


class Cpu(BaseModel):
    topology: CpuTopology = Field(default_factory=CpuTopology)


class Ip(BaseModel):
    address: str | None = None
    netmask: str | None = None
    gateway: str | None = None


class NicConfiguration(BaseModel):
    """Guest NIC configuration carried by the initialization payload."""

    name: str | None = None
    boot_protocol: str | None = None
    on_boot: bool | None = None
    ip: Ip | None = None


class Initialization(BaseModel):
    """Cloud-init style initialization of a VM."""

    authorized_ssh_keys: str | None = None
    nic_configurations: list[NicConfiguration] = Field(default_factory=list)

    @field_validator("nic_configurations", mode="before")
    @classmethod
    def unwrap_nic_configurations(cls, v: Any) -> Any:
        return unwrap(v, "nic_configuration")


class RemoteVm(BaseModel):
    """VM as reported by the engine."""

    id: str
    name: str | None = None
    status: str | None = None
    cluster: Link | None = None
    template: Link | None = None
    cpu: Cpu = Field(default_factory=Cpu)
    memory: int | None = None
    initialization: Initialization | None = None
    disk_attachments: list[DiskAttachment] = Field(default_factory=list)

    @field_validator("disk_attachments", mode="before")
    @classmethod
    def unwrap_disk_attachments(cls, v: Any) -> Any:
        # Without ?follow the engine embeds only a link to the sub-collection
        if isinstance(v, dict) and "disk_attachment" not in v:
            return []
        return unwrap(v, "disk_attachment")

    @property
    def is_down(self) -> bool:
        return self.status == VmStatus.DOWN.value
