"""VM lifecycle orchestration against the oVirt engine."""

from .attachments import DiskAttachmentReconciler
from .disks import DiskManager
from .flatten import flatten_disk_attachments, flatten_network_interfaces, flatten_vm
from .nics import NicProvisioner
from .orchestrator import CreateResult, CreateState, DeleteState, VmOrchestrator
from .platform import PlatformClient
from .polling import retry_until
from .resolver import ReferenceResolver

__all__ = [
    "CreateResult",
    "CreateState",
    "DeleteState",
    "DiskAttachmentReconciler",
    "DiskManager",
    "NicProvisioner",
    "PlatformClient",
    "ReferenceResolver",
    "VmOrchestrator",
    "flatten_disk_attachments",
    "flatten_network_interfaces",
    "flatten_vm",
    "retry_until",
]
