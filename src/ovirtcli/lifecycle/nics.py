"""Creation of NIC objects on VMs."""

from typing import Any

from loguru import logger

from ..api.exceptions import NicCreateFailedError, OvirtCliError
from ..models.desired import NetworkInterfaceSpec
from ..models.network import Nic, VnicProfile
from .platform import PlatformClient


def nic_name(index: int) -> str:
    """Name of the NIC created for the interface at ``index`` (0-based)."""
    return f"nic{index + 1}"


class NicProvisioner:
    """Create NICs bound to resolved vNIC profiles.

    Guest addressing (boot protocol, static ip) is not a NIC property; it
    travels in the VM's initialization payload built at create time.
    """

    def __init__(self, client: PlatformClient) -> None:
        self.client = client

    async def provision(
        self,
        vm_id: str,
        index: int,
        spec: NetworkInterfaceSpec,
        profile: VnicProfile | None,
    ) -> Nic:
        """Create the NIC for the interface at ``index``.

        Args:
            vm_id: VM ID
            index: Position of the interface in the desired state
            spec: Desired interface
            profile: Resolved vNIC profile, None for an unconnected NIC

        Returns:
            Created NIC

        Raises:
            NicCreateFailedError: If the NIC could not be created, whether the
                engine refused it or the request never completed
        """
        name = nic_name(index)
        nic: dict[str, Any] = {
            "name": name,
            "description": f"Network interface #{index + 1}"
            + (f" ({spec.label})" if spec.label else ""),
        }
        if profile is not None:
            nic["vnic_profile"] = {"id": profile.id}

        try:
            created = await self.client.add_nic(vm_id, nic)
        except OvirtCliError as e:
            raise NicCreateFailedError(name, str(e), getattr(e, "status_code", None)) from e

        logger.info(
            f"Created {name} on VM {vm_id}"
            + (f" with profile {profile.name} ({profile.id})" if profile else " without profile")
        )
        return Nic.model_validate(created or nic)
