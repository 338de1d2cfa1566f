"""Attachment of existing disks to VMs."""

import asyncio
import time
from typing import Any

from loguru import logger

from ..api.exceptions import (
    AttachRejectedError,
    DiskLockedError,
    RequestRejectedError,
)
from ..models.desired import DiskAttachmentSpec
from ..models.disk import Disk, DiskAttachment
from .platform import PlatformClient
from .polling import Clock, Sleep, fixed_interval, retry_until

DISK_LOCK_TIMEOUT = 30.0
DISK_LOCK_INTERVAL = 2.0


def build_attachment_request(spec: DiskAttachmentSpec) -> dict[str, Any]:
    """Build the engine attachment document for a desired attachment."""
    attachment: dict[str, Any] = {
        "disk": {"id": spec.disk_id},
        "interface": spec.interface.value,
        "bootable": spec.bootable,
        "active": spec.active,
        "pass_discard": spec.pass_discard,
        "read_only": spec.read_only,
        "uses_scsi_reservation": spec.use_scsi_reservation,
    }
    if spec.logical_name:
        attachment["logical_name"] = spec.logical_name
    return attachment


class DiskAttachmentReconciler:
    """Attach a disk to a VM once the engine has released its lock."""

    def __init__(
        self,
        client: PlatformClient,
        lock_timeout: float = DISK_LOCK_TIMEOUT,
        lock_interval: float = DISK_LOCK_INTERVAL,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
    ) -> None:
        self.client = client
        self.lock_timeout = lock_timeout
        self.lock_interval = lock_interval
        self.sleep = sleep
        self.clock = clock

    async def wait_for_unlocked(self, disk_id: str) -> Disk:
        """Fetch a disk, re-fetching while it is locked.

        Raises:
            ResourceNotFoundError: If the disk does not exist
            TimeoutError: If the disk stays locked past the lock timeout
        """

        async def fetch() -> Disk:
            disk = Disk.model_validate(await self.client.get_disk(disk_id))
            if disk.locked:
                raise DiskLockedError(disk_id)
            return disk

        return await retry_until(
            fetch,
            description=f"Waiting for disk {disk_id} to unlock",
            timeout=self.lock_timeout,
            wait=fixed_interval(self.lock_interval),
            retry_on=DiskLockedError,
            sleep=self.sleep,
            clock=self.clock,
        )

    async def attach(self, vm_id: str, spec: DiskAttachmentSpec) -> DiskAttachment:
        """Attach the disk described by ``spec`` to a VM.

        Args:
            vm_id: VM ID
            spec: Desired attachment

        Returns:
            Attachment as created by the engine

        Raises:
            TimeoutError: If the disk stays locked
            AttachRejectedError: If the engine refuses the attachment
        """
        await self.wait_for_unlocked(spec.disk_id)

        try:
            created = await self.client.add_disk_attachment(vm_id, build_attachment_request(spec))
        except RequestRejectedError as e:
            raise AttachRejectedError(spec.disk_id, str(e), e.status_code) from e

        logger.info(f"Attached disk {spec.disk_id} to VM {vm_id} ({spec.interface.value})")
        return DiskAttachment.model_validate(created or {"disk": {"id": spec.disk_id}})
