"""VM lifecycle orchestration.

Creation runs Building -> DisksAttached -> NicsProvisioned -> Starting ->
Started. A failure after the VM exists but before NICs are provisioned rolls
the VM back (detach-only remove); NIC failures are collected and reported;
a start failure leaves the VM and its disks in place.

Deletion runs Checking -> ShuttingDown -> Removing -> Removed, with an absent
VM counting as already removed. The whole sequence is retried as a unit so
every attempt re-reads the VM status before deciding to shut it down.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NoReturn

from loguru import logger
from pydantic import ValidationError

from ..api.exceptions import (
    APIError,
    LifecycleError,
    NicCreateFailedError,
    OvirtCliError,
    ResourceNotFoundError,
    UnsupportedOperationError,
)
from ..models.config import LifecycleConfig
from ..models.desired import BootProtocol, VmDesiredState
from ..models.disk import DiskAttachment
from ..models.network import Cluster, Link, Nic, Template, VnicProfile
from ..models.vm import RemoteVm, VmStatus
from .attachments import DiskAttachmentReconciler
from .flatten import MIB, flatten_vm
from .nics import NicProvisioner, nic_name
from .platform import PlatformClient
from .polling import Clock, NotReadyError, Sleep, backoff, fixed_interval, retry_until
from .resolver import ReferenceResolver


class CreateState(str, Enum):
    BUILDING = "building"
    DISKS_ATTACHED = "disks_attached"
    NICS_PROVISIONED = "nics_provisioned"
    STARTING = "starting"
    STARTED = "started"
    ROLLED_BACK = "rolled_back"


class DeleteState(str, Enum):
    CHECKING = "checking"
    SHUTTING_DOWN = "shutting_down"
    REMOVING = "removing"
    REMOVED = "removed"
    NOT_FOUND = "not_found"


@dataclass
class CreateResult:
    """Outcome of a successful create."""

    vm_id: str
    state: VmDesiredState
    nic_errors: list[NicCreateFailedError] = field(default_factory=list)


def build_vm_request(desired: VmDesiredState, cluster: Cluster, template: Template) -> dict[str, Any]:
    """Build the engine VM document for a create call.

    Guest addressing for every interface goes into the initialization
    payload; the NIC objects themselves are created separately.
    """
    nic_configurations = []
    for spec in desired.network_interfaces:
        config: dict[str, Any] = {
            "boot_protocol": spec.boot_protocol.value,
            "on_boot": spec.on_boot,
        }
        if spec.label:
            config["name"] = spec.label
        if spec.boot_protocol == BootProtocol.STATIC:
            config["ip"] = {
                "address": spec.ip_address,
                "netmask": spec.subnet_mask,
                "gateway": spec.gateway,
            }
        nic_configurations.append(config)

    vm: dict[str, Any] = {
        "name": desired.name,
        "cluster": {"id": cluster.id},
        "template": {"id": template.id},
        "cpu": {
            "topology": {
                "cores": desired.cores,
                "sockets": desired.sockets,
                "threads": desired.threads,
            }
        },
        "initialization": {
            "authorized_ssh_keys": desired.authorized_ssh_key,
            "nic_configurations": {"nic_configuration": nic_configurations},
        },
    }
    if desired.memory:
        vm["memory"] = desired.memory * MIB
    return vm


class VmOrchestrator:
    """Create, read and delete VMs against an injected platform client.

    The orchestrator keeps no state between calls, so one instance (and one
    client) can serve concurrent operations on different VMs.
    """

    def __init__(
        self,
        client: PlatformClient,
        settings: LifecycleConfig | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            client: Platform client (usually an ``OvirtClient``)
            settings: Wait and retry bounds
            sleep: Sleep function used between polls
            clock: Clock the wait deadlines are measured on
        """
        self.client = client
        self.settings = settings or LifecycleConfig()
        self.sleep = sleep
        self.clock = clock
        self.resolver = ReferenceResolver(client)
        self.attachments = DiskAttachmentReconciler(
            client,
            lock_timeout=self.settings.disk_lock_timeout,
            lock_interval=self.settings.disk_lock_interval,
            sleep=sleep,
            clock=clock,
        )
        self.nics = NicProvisioner(client)

    # Create

    async def create(self, desired: VmDesiredState) -> CreateResult:
        """Create, wire up and start a VM.

        Args:
            desired: Validated desired state

        Returns:
            The VM id, the state read back from the engine and any NIC errors

        Raises:
            LifecycleError: Annotated with the failing step; ``vm_id`` is set
                when the failure left a VM on the engine
        """
        step = CreateState.BUILDING
        logger.debug(f"Creating VM '{desired.name}': {step.value}")
        try:
            cluster = await self.resolver.resolve_cluster(desired.cluster)
            template = await self.resolver.resolve_template(desired.template)
            profiles = await self._resolve_profiles(cluster, desired)
            created = RemoteVm.model_validate(
                await self.client.add_vm(build_vm_request(desired, cluster, template))
            )
        except OvirtCliError as e:
            raise LifecycleError(
                f"Creating VM '{desired.name}' failed: {e}", step=step.value, cause=e
            ) from e

        vm_id = created.id
        logger.info(f"Created VM '{desired.name}' ({vm_id})")

        try:
            await self._wait_for_down(
                vm_id,
                timeout=self.settings.create_settle_timeout,
                description=f"Waiting for VM {vm_id} to finish creating",
            )
        except OvirtCliError as e:
            await self._fail_with_rollback(vm_id, f"VM {vm_id} did not settle: {e}", step, e)

        step = CreateState.DISKS_ATTACHED
        for index, spec in enumerate(desired.disk_attachments):
            try:
                await self.attachments.attach(vm_id, spec)
            except OvirtCliError as e:
                await self._fail_with_rollback(
                    vm_id,
                    f"Attaching disk #{index + 1} ({spec.disk_id}) failed: {e}",
                    step,
                    e,
                    index=index,
                    resource_id=spec.disk_id,
                )
        logger.debug(f"VM {vm_id}: {step.value}")

        step = CreateState.NICS_PROVISIONED
        nic_errors: list[NicCreateFailedError] = []
        for index, spec in enumerate(desired.network_interfaces):
            try:
                await self.nics.provision(vm_id, index, spec, profiles[index])
            except NicCreateFailedError as e:
                logger.warning(f"VM {vm_id}: {e}")
                nic_errors.append(e)
        logger.debug(f"VM {vm_id}: {step.value}")

        step = CreateState.STARTING
        try:
            await self.client.start_vm(vm_id)
        except OvirtCliError as e:
            raise LifecycleError(
                f"Starting VM {vm_id} failed: {e}", step=step.value, vm_id=vm_id, cause=e
            ) from e

        step = CreateState.STARTED
        logger.info(f"Started VM {vm_id}")

        try:
            state = await self.read(vm_id)
        except OvirtCliError as e:
            raise LifecycleError(
                f"Reading back VM {vm_id} failed: {e}", step=step.value, vm_id=vm_id, cause=e
            ) from e
        if state is None:
            raise LifecycleError(f"VM {vm_id} disappeared after start", step=step.value)
        return CreateResult(vm_id=vm_id, state=state, nic_errors=nic_errors)

    async def _resolve_profiles(
        self, cluster: Cluster, desired: VmDesiredState
    ) -> list[VnicProfile | None]:
        """Resolve one profile per interface (None for interfaces without a network)."""
        if not any(spec.network for spec in desired.network_interfaces):
            return [None] * len(desired.network_interfaces)

        datacenter_id = cluster.datacenter_id
        if not datacenter_id:
            raise ResourceNotFoundError("datacenter", f"of cluster {cluster.id}")

        profiles: list[VnicProfile | None] = []
        for spec in desired.network_interfaces:
            if spec.network:
                profiles.append(await self.resolver.resolve_vnic_profile(datacenter_id, spec.network))
            else:
                profiles.append(None)
        return profiles

    async def _fail_with_rollback(
        self,
        vm_id: str,
        message: str,
        step: CreateState,
        cause: Exception,
        index: int | None = None,
        resource_id: str | None = None,
    ) -> NoReturn:
        """Roll back a partially created VM and raise the step's error."""
        rolled_back = await self._rollback(vm_id)
        raise LifecycleError(
            message,
            step=step.value,
            vm_id=None if rolled_back else vm_id,
            cause=cause,
            index=index,
            resource_id=resource_id,
        ) from cause

    async def _rollback(self, vm_id: str) -> bool:
        """Best-effort removal of a VM whose creation failed.

        Disks are detached, never destroyed. Failures are logged, not raised.

        Returns:
            True if the VM is gone
        """
        logger.warning(f"Rolling back VM {vm_id}")
        try:
            await self.client.remove_vm(vm_id, detach_only=True)
        except ResourceNotFoundError:
            return True
        except OvirtCliError as e:
            logger.error(f"Rollback of VM {vm_id} failed, it must be removed manually: {e}")
            return False
        logger.info(f"VM {vm_id}: {CreateState.ROLLED_BACK.value}")
        return True

    # Read

    async def read(self, vm_id: str) -> VmDesiredState | None:
        """Read a VM back into its desired-state shape.

        Args:
            vm_id: VM ID

        Returns:
            Desired state, or None if the VM does not exist

        Raises:
            APIError: If the engine reports a VM that cannot be projected
        """
        try:
            vm = RemoteVm.model_validate(await self.client.get_vm(vm_id))
            attachments = [
                DiskAttachment.model_validate(a)
                for a in await self.client.list_disk_attachments(vm_id)
            ]
            nics = [Nic.model_validate(n) for n in await self.client.list_nics(vm_id)]
        except ResourceNotFoundError:
            return None

        cluster = await self._linked_name(vm.cluster)
        template = await self._linked_name(vm.template)
        configs = vm.initialization.nic_configurations if vm.initialization else []
        profile_names = {nic.name: await self._linked_name(nic.vnic_profile) for nic in nics}
        networks = [profile_names.get(nic_name(index)) for index in range(len(configs))]
        try:
            return flatten_vm(
                vm, attachments, cluster=cluster, template=template, networks=networks
            )
        except ValidationError as e:
            raise APIError(f"VM {vm_id} cannot be read back: {e}") from e

    async def _linked_name(self, link: Link | None) -> str | None:
        if link is None or not link.href:
            return None
        try:
            entity = await self.client.follow_link(link.model_dump(exclude_none=True))
        except ResourceNotFoundError:
            return None
        return entity.get("name")

    # Update

    async def update(self, vm_id: str, desired: VmDesiredState) -> None:
        """Updating a VM in place is not supported; delete and re-create it instead.

        Raises:
            UnsupportedOperationError: Always
        """
        raise UnsupportedOperationError(
            f"Updating VM {vm_id} in place is not supported; delete and re-create it"
        )

    # Delete

    async def delete(self, vm_id: str) -> DeleteState:
        """Shut a VM down and remove it, keeping its disks.

        Args:
            vm_id: VM ID

        Returns:
            REMOVED, or NOT_FOUND if the VM was already gone

        Raises:
            TimeoutError: If the VM could not be removed within the delete timeout
        """
        final = await retry_until(
            lambda: self._delete_once(vm_id),
            description=f"Deleting VM {vm_id}",
            timeout=self.settings.delete_timeout,
            wait=backoff(self.settings.backoff_max),
            retry_on=OvirtCliError,
            sleep=self.sleep,
            clock=self.clock,
        )
        logger.info(f"VM {vm_id}: {final.value}")
        return final

    async def _delete_once(self, vm_id: str) -> DeleteState:
        logger.debug(f"VM {vm_id}: {DeleteState.CHECKING.value}")
        try:
            vm = RemoteVm.model_validate(await self.client.get_vm(vm_id))
        except ResourceNotFoundError:
            return DeleteState.NOT_FOUND

        if not vm.is_down:
            logger.debug(f"VM {vm_id}: {DeleteState.SHUTTING_DOWN.value} (status {vm.status})")
            await self.client.shutdown_vm(vm_id)
            await self._wait_for_down(
                vm_id,
                timeout=self.settings.shutdown_settle_timeout,
                description=f"Waiting for VM {vm_id} to shut down",
            )

        logger.debug(f"VM {vm_id}: {DeleteState.REMOVING.value}")
        try:
            await self.client.remove_vm(vm_id, detach_only=True)
        except ResourceNotFoundError:
            return DeleteState.NOT_FOUND
        return DeleteState.REMOVED

    async def _wait_for_down(self, vm_id: str, timeout: float, description: str) -> RemoteVm:
        async def check() -> RemoteVm:
            vm = RemoteVm.model_validate(await self.client.get_vm(vm_id))
            if vm.status != VmStatus.DOWN.value:
                raise NotReadyError(f"status is {vm.status}")
            return vm

        return await retry_until(
            check,
            description=description,
            timeout=timeout,
            wait=fixed_interval(self.settings.poll_interval),
            sleep=self.sleep,
            clock=self.clock,
        )
