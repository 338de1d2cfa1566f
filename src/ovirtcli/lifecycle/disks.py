"""Standalone disks, whose lifecycle is independent of the VMs using them."""

import asyncio
import time
from typing import Any

from loguru import logger

from ..api.exceptions import APIError, OvirtCliError, ResourceNotFoundError
from ..models.config import LifecycleConfig
from ..models.disk import Disk, DiskSpec, DiskStatus
from .platform import PlatformClient
from .polling import Clock, NotReadyError, Sleep, fixed_interval, retry_until


def build_disk_request(spec: DiskSpec) -> dict[str, Any]:
    return {
        "name": spec.name,
        "alias": spec.name,
        "provisioned_size": spec.size,
        "format": spec.format.value,
        "storage_domains": {"storage_domain": [{"id": spec.storage_domain_id}]},
        "bootable": spec.bootable,
        "shareable": spec.shareable,
        "sparse": spec.sparse,
    }


class DiskManager:
    """Create, read and delete floating disks."""

    def __init__(
        self,
        client: PlatformClient,
        settings: LifecycleConfig | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
    ) -> None:
        self.client = client
        self.settings = settings or LifecycleConfig()
        self.sleep = sleep
        self.clock = clock

    async def create(self, spec: DiskSpec, wait: bool = False, timeout: float = 300) -> str:
        """Create a disk.

        Args:
            spec: Desired disk
            wait: Wait until the engine has finished provisioning the disk
            timeout: Maximum wait time in seconds

        Returns:
            Disk ID

        Raises:
            APIError: If the engine refuses the disk or provisioning fails
            TimeoutError: If provisioning does not finish within timeout
        """
        created = Disk.model_validate(await self.client.add_disk(build_disk_request(spec)))
        logger.info(f"Created disk '{spec.name}' ({created.id})")
        if not wait:
            return created.id

        try:
            await self._wait_for_ok(created.id, timeout)
        except OvirtCliError:
            logger.warning(f"Disk {created.id} failed to provision, removing it")
            try:
                await self.client.remove_disk(created.id)
            except OvirtCliError as e:
                logger.error(f"Removing disk {created.id} failed: {e}")
            raise
        return created.id

    async def _wait_for_ok(self, disk_id: str, timeout: float) -> Disk:
        async def check() -> Disk:
            disk = Disk.model_validate(await self.client.get_disk(disk_id))
            if disk.status == DiskStatus.ILLEGAL.value:
                raise APIError(f"Disk {disk_id} is in illegal state")
            if disk.status != DiskStatus.OK.value:
                raise NotReadyError(f"status is {disk.status}")
            return disk

        return await retry_until(
            check,
            description=f"Waiting for disk {disk_id} to be provisioned",
            timeout=timeout,
            wait=fixed_interval(self.settings.poll_interval),
            sleep=self.sleep,
            clock=self.clock,
        )

    async def read(self, disk_id: str) -> DiskSpec | None:
        """Read a disk back into its desired-state shape.

        Returns:
            Disk spec, or None if the disk does not exist
        """
        try:
            disk = Disk.model_validate(await self.client.get_disk(disk_id))
        except ResourceNotFoundError:
            return None

        return DiskSpec(
            name=disk.name or disk.alias or disk.id,
            size=disk.provisioned_size,
            format=disk.format,
            storage_domain_id=disk.storage_domains[0].id if disk.storage_domains else "",
            bootable=bool(disk.bootable),
            shareable=bool(disk.shareable),
            sparse=bool(disk.sparse),
        )

    async def delete(self, disk_id: str) -> None:
        """Delete a disk; deleting an absent disk succeeds."""
        try:
            await self.client.remove_disk(disk_id)
        except ResourceNotFoundError:
            logger.debug(f"Disk {disk_id} already absent")
            return
        logger.info(f"Removed disk {disk_id}")
