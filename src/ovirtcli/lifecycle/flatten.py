"""Projection of engine state back into the desired-state shape."""

from typing import Any

from ..models.desired import BootProtocol, VmDesiredState
from ..models.disk import DiskAttachment
from ..models.vm import NicConfiguration, RemoteVm

MIB = 1024 * 1024


def _reported(attrs: dict[str, Any]) -> dict[str, Any]:
    """Drop attributes the engine did not report."""
    return {k: v for k, v in attrs.items() if v is not None}


def flatten_disk_attachments(attachments: list[DiskAttachment]) -> list[dict[str, Any]]:
    """One desired attachment per engine attachment, values copied as reported.

    A flag the engine leaves out takes the engine's own default, which is
    the model default. An attachment without an interface cannot be
    projected and fails validation.
    """
    return [
        _reported({
            "disk_id": a.disk.id,
            "active": a.active,
            "bootable": a.bootable,
            "interface": a.interface,
            "logical_name": a.logical_name,
            "pass_discard": a.pass_discard,
            "read_only": a.read_only,
            "use_scsi_reservation": a.uses_scsi_reservation,
        })
        for a in attachments
    ]


def flatten_network_interfaces(
    configs: list[NicConfiguration], networks: list[str | None] | None = None
) -> list[dict[str, Any]]:
    """One desired interface per nic configuration.

    Addressing fields are only present when the engine reports them. A
    missing boot protocol means the engine configures none.
    ``networks`` holds the profile name of the NIC at the same position.
    """
    networks = networks or []
    interfaces = []
    for index, config in enumerate(configs):
        attrs = _reported({
            "label": config.name,
            "network": networks[index] if index < len(networks) else None,
            "boot_protocol": config.boot_protocol or BootProtocol.NONE.value,
            "on_boot": config.on_boot,
        })
        if config.ip is not None:
            if config.ip.address is not None:
                attrs["ip_address"] = config.ip.address
            if config.ip.netmask is not None:
                attrs["subnet_mask"] = config.ip.netmask
            if config.ip.gateway is not None:
                attrs["gateway"] = config.ip.gateway
        interfaces.append(attrs)
    return interfaces


def flatten_vm(
    vm: RemoteVm,
    attachments: list[DiskAttachment],
    cluster: str | None = None,
    template: str | None = None,
    networks: list[str | None] | None = None,
) -> VmDesiredState:
    """Build the desired state that describes a VM as the engine reports it.

    Args:
        vm: VM as reported by the engine
        attachments: The VM's disk attachments
        cluster: Cluster name; falls back to the cluster id
        template: Template name; falls back to the template id
        networks: vNIC profile name per interface, in interface order

    Returns:
        Desired state; equal inputs always give equal output
    """
    topology = vm.cpu.topology
    initialization = vm.initialization
    data: dict[str, Any] = {
        "name": vm.name,
        "cluster": cluster or (vm.cluster.id if vm.cluster else None),
        "template": template or (vm.template.id if vm.template else None),
        "cores": topology.cores,
        "sockets": topology.sockets,
        "threads": topology.threads,
        "memory": vm.memory // MIB if vm.memory else None,
        "authorized_ssh_key": (initialization.authorized_ssh_keys or "") if initialization else "",
        "network_interfaces": flatten_network_interfaces(
            initialization.nic_configurations if initialization else [], networks
        ),
        "disk_attachments": flatten_disk_attachments(attachments),
    }
    return VmDesiredState.from_remote(data)
