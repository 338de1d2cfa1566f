"""Data models."""

from .config import AuthConfig, LifecycleConfig, OutputConfig, ProfileConfig
from .desired import (
    BootDiskVmDesiredState,
    BootProtocol,
    DiskAttachmentSpec,
    NetworkInterfaceSpec,
    VmDesiredState,
)
from .disk import (
    Disk,
    DiskAttachment,
    DiskFormat,
    DiskInterface,
    DiskSpec,
    DiskStatus,
)
from .network import (
    Cluster,
    Link,
    Network,
    Nic,
    Template,
    VnicProfile,
)
from .vm import (
    Cpu,
    CpuTopology,
    Initialization,
    Ip,
    NicConfiguration,
    RemoteVm,
    VmStatus,
)

__all__ = [
    "AuthConfig",
    "BootDiskVmDesiredState",
    "BootProtocol",
    "Cluster",
    "Cpu",
    "CpuTopology",
    "Disk",
    "DiskAttachment",
    "DiskAttachmentSpec",
    "DiskFormat",
    "DiskInterface",
    "DiskSpec",
    "DiskStatus",
    "Initialization",
    "Ip",
    "LifecycleConfig",
    "Link",
    "Network",
    "NetworkInterfaceSpec",
    "Nic",
    "NicConfiguration",
    "OutputConfig",
    "ProfileConfig",
    "RemoteVm",
    "Template",
    "VmDesiredState",
    "VmStatus",
    "VnicProfile",
]
