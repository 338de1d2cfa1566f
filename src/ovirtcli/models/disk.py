"""Disk and disk attachment models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .network import Link, unwrap


class DiskStatus(str, Enum):
    OK = "ok"
    LOCKED = "locked"
    ILLEGAL = "illegal"


class DiskFormat(str, Enum):
    COW = "cow"
    RAW = "raw"


class DiskInterface(str, Enum):
    VIRTIO = "virtio"
    VIRTIO_SCSI = "virtio_scsi"
    IDE = "ide"
    SATA = "sata"
    SPAPR_VSCSI = "spapr_vscsi"


class Disk(BaseModel):
    """Disk as reported by the engine."""

    id: str
    name: str | None = None
    alias: str | None = None
    status: str | None = None
    provisioned_size: int | None = None
    format: str | None = None
    bootable: bool | None = None
    shareable: bool | None = None
    sparse: bool | None = None
    storage_domains: list[Link] = Field(default_factory=list)

    @field_validator("storage_domains", mode="before")
    @classmethod
    def unwrap_storage_domains(cls, v: Any) -> Any:
        return unwrap(v, "storage_domain")

    @property
    def locked(self) -> bool:
        return self.status == DiskStatus.LOCKED.value


class DiskAttachment(BaseModel):
    """Attachment of a disk to a VM, as reported by the engine."""

    id: str | None = None
    disk: Link
    interface: str | None = None
    bootable: bool | None = None
    active: bool | None = None
    logical_name: str | None = None
    pass_discard: bool | None = None
    read_only: bool | None = None
    uses_scsi_reservation: bool | None = None


class DiskSpec(BaseModel):
    """Desired state of a standalone disk."""

    name: str
    size: int = Field(..., gt=0, description="Provisioned size in bytes")
    format: DiskFormat
    storage_domain_id: str
    bootable: bool = False
    shareable: bool = False
    sparse: bool = False
