"""Tests for VM creation: ordering, rollback and read-back."""

from __future__ import annotations

import pytest

from ovirtcli.api.exceptions import (
    APIError,
    AttachRejectedError,
    LifecycleError,
    NetworkError,
    NicCreateFailedError,
    RequestRejectedError,
    TimeoutError,
)
from ovirtcli.lifecycle import CreateState, VmOrchestrator
from ovirtcli.lifecycle.orchestrator import build_vm_request
from ovirtcli.models.config import LifecycleConfig
from ovirtcli.models.desired import VmDesiredState
from ovirtcli.models.network import Cluster, Template

from .conftest import FakePlatform


def _desired(**overrides) -> VmDesiredState:
    data = {
        "name": "web1",
        "cluster": "Default",
        "template": "Blank",
        "cores": 2,
        "memory": 2048,
        "authorized_ssh_key": "ssh-ed25519 AAAAC3Nza ops@example.com",
        "network_interfaces": [
            {
                "label": "eth0",
                "network": "ovirtmgmt",
                "boot_protocol": "static",
                "ip_address": "10.1.60.60",
                "subnet_mask": "255.255.255.0",
                "gateway": "10.1.60.1",
            }
        ],
        "disk_attachments": [],
    }
    data.update(overrides)
    return VmDesiredState.model_validate(data)


def _orchestrator(platform: FakePlatform, settings: LifecycleConfig | None = None) -> VmOrchestrator:
    return VmOrchestrator(platform, settings=settings, sleep=platform.sleep, clock=platform.clock)


class TestBuildVmRequest:
    def test_static_interface_carries_ip(self) -> None:
        request = build_vm_request(
            _desired(), Cluster(id="c1", name="Default"), Template(id="t1", name="Blank")
        )
        configs = request["initialization"]["nic_configurations"]["nic_configuration"]
        assert configs == [
            {
                "name": "eth0",
                "boot_protocol": "static",
                "on_boot": True,
                "ip": {"address": "10.1.60.60", "netmask": "255.255.255.0", "gateway": "10.1.60.1"},
            }
        ]
        assert request["memory"] == 2048 * 1024 * 1024
        assert request["cpu"]["topology"] == {"cores": 2, "sockets": 1, "threads": 1}

    def test_dhcp_interface_has_no_ip(self) -> None:
        desired = _desired(network_interfaces=[{"boot_protocol": "dhcp"}], memory=None)
        request = build_vm_request(desired, Cluster(id="c1"), Template(id="t1"))
        configs = request["initialization"]["nic_configurations"]["nic_configuration"]
        assert configs == [{"boot_protocol": "dhcp", "on_boot": True}]
        assert "memory" not in request


class TestCreate:
    @pytest.mark.asyncio
    async def test_end_to_end_read_back(self, platform: FakePlatform) -> None:
        disk_id = platform.add_existing_disk("web1-root")
        desired = _desired(
            disk_attachments=[{"disk_id": disk_id, "interface": "virtio", "bootable": True}]
        )

        result = await _orchestrator(platform).create(desired)

        assert result.nic_errors == []
        assert platform.vms[result.vm_id]["status"] == "up"
        assert result.state == desired

        nic = result.state.network_interfaces[0]
        assert nic.ip_address == "10.1.60.60"
        assert nic.subnet_mask == "255.255.255.0"
        assert nic.gateway == "10.1.60.1"
        assert result.state.disk_attachments[0].bootable is True

    @pytest.mark.asyncio
    async def test_nic_transport_error_is_reported_and_vm_starts(self, platform: FakePlatform) -> None:
        platform.nic_errors["nic1"] = NetworkError("Network error: connection reset")

        result = await _orchestrator(platform).create(_desired())

        [error] = result.nic_errors
        assert isinstance(error, NicCreateFailedError)
        assert error.nic_name == "nic1"
        assert error.status_code is None
        assert isinstance(error.__cause__, NetworkError)
        assert platform.called("start_vm") == [("start_vm", result.vm_id)]
        assert platform.vms[result.vm_id]["status"] == "up"

    @pytest.mark.asyncio
    async def test_read_back_failure_names_started_vm(self, platform: FakePlatform) -> None:
        async def list_nics(vm_id):
            raise NetworkError("Network error: connection reset")

        platform.list_nics = list_nics

        with pytest.raises(LifecycleError) as exc_info:
            await _orchestrator(platform).create(_desired())

        error = exc_info.value
        assert error.step == CreateState.STARTED.value
        assert platform.vms[error.vm_id]["status"] == "up"
        assert isinstance(error.cause, NetworkError)

    @pytest.mark.asyncio
    async def test_steps_run_in_order(self, platform: FakePlatform) -> None:
        disks = [platform.add_existing_disk(f"d{i}") for i in range(2)]
        desired = _desired(
            disk_attachments=[{"disk_id": d, "interface": "virtio_scsi"} for d in disks],
            network_interfaces=[
                {"network": "ovirtmgmt", "boot_protocol": "dhcp"},
                {"boot_protocol": "none"},
            ],
        )

        await _orchestrator(platform).create(desired)

        mutations = [
            c[0] for c in platform.calls
            if c[0] in {"add_vm", "add_disk_attachment", "add_nic", "start_vm"}
        ]
        assert mutations == [
            "add_vm",
            "add_disk_attachment",
            "add_disk_attachment",
            "add_nic",
            "add_nic",
            "start_vm",
        ]
        assert [c[2] for c in platform.called("add_disk_attachment")] == disks
        assert [c[2] for c in platform.called("add_nic")] == ["nic1", "nic2"]

    @pytest.mark.asyncio
    async def test_nic_without_network_has_no_profile(self, platform: FakePlatform) -> None:
        result = await _orchestrator(platform).create(
            _desired(network_interfaces=[{"boot_protocol": "dhcp"}])
        )
        nic = platform.nics[result.vm_id][0]
        assert "vnic_profile" not in nic
        assert nic["description"] == "Network interface #1"

    @pytest.mark.asyncio
    async def test_waits_for_image_lock(self, platform: FakePlatform) -> None:
        platform.settle_polls = 2
        result = await _orchestrator(platform).create(_desired())
        assert platform.vms[result.vm_id]["status"] == "up"
        assert len(platform.sleeps) == 2

    @pytest.mark.asyncio
    async def test_disk_failure_rolls_back(self, platform: FakePlatform) -> None:
        disks = [platform.add_existing_disk(f"d{i}") for i in range(3)]
        platform.attach_errors[disks[1]] = RequestRejectedError("disk is shareable=false", 409)
        desired = _desired(
            disk_attachments=[{"disk_id": d, "interface": "virtio"} for d in disks]
        )

        with pytest.raises(LifecycleError) as exc_info:
            await _orchestrator(platform).create(desired)

        error = exc_info.value
        assert error.step == CreateState.DISKS_ATTACHED.value
        assert error.index == 1
        assert error.resource_id == disks[1]
        assert error.vm_id is None
        assert isinstance(error.cause, AttachRejectedError)

        assert platform.vms == {}
        vm_id = platform.calls[[c[0] for c in platform.calls].index("remove_vm")][1]
        assert platform.called("remove_vm") == [("remove_vm", vm_id, True)]
        assert platform.called("add_nic") == []
        assert platform.called("start_vm") == []
        # detach-only: every disk survives, including the one already attached
        assert set(disks) <= set(platform.disks)

    @pytest.mark.asyncio
    async def test_disk_lock_timeout_rolls_back(
        self, platform: FakePlatform, fast_settings: LifecycleConfig
    ) -> None:
        disk_id = platform.add_existing_disk("busy")
        platform.locked_polls[disk_id] = 10**6

        orchestrator = VmOrchestrator(platform, settings=fast_settings)
        with pytest.raises(LifecycleError) as exc_info:
            await orchestrator.create(
                _desired(disk_attachments=[{"disk_id": disk_id, "interface": "virtio"}])
            )

        assert isinstance(exc_info.value.cause, TimeoutError)
        assert exc_info.value.index == 0
        assert platform.vms == {}

    @pytest.mark.asyncio
    async def test_failed_rollback_reports_vm(self, platform: FakePlatform) -> None:
        disk_id = platform.add_existing_disk("d0")
        platform.attach_errors[disk_id] = RequestRejectedError("no", 400)
        platform.remove_errors = [APIError("engine busy", 500)]

        with pytest.raises(LifecycleError) as exc_info:
            await _orchestrator(platform).create(
                _desired(disk_attachments=[{"disk_id": disk_id, "interface": "virtio"}])
            )

        assert exc_info.value.vm_id in platform.vms

    @pytest.mark.asyncio
    async def test_nic_failure_is_reported_not_rolled_back(self, platform: FakePlatform) -> None:
        platform.nic_errors["nic1"] = APIError("network is not allowed on cluster", 400)
        desired = _desired(
            network_interfaces=[
                {"network": "ovirtmgmt", "boot_protocol": "dhcp"},
                {"network": "ovirtmgmt", "boot_protocol": "dhcp"},
            ]
        )

        result = await _orchestrator(platform).create(desired)

        assert len(result.nic_errors) == 1
        assert isinstance(result.nic_errors[0], NicCreateFailedError)
        assert result.nic_errors[0].nic_name == "nic1"
        assert [n["name"] for n in platform.nics[result.vm_id]] == ["nic2"]
        assert platform.called("remove_vm") == []
        assert platform.vms[result.vm_id]["status"] == "up"

    @pytest.mark.asyncio
    async def test_missing_profile_fails_before_create(self, platform: FakePlatform) -> None:
        desired = _desired(network_interfaces=[{"network": "dmz", "boot_protocol": "dhcp"}])

        with pytest.raises(LifecycleError) as exc_info:
            await _orchestrator(platform).create(desired)

        assert exc_info.value.step == CreateState.BUILDING.value
        assert "dmz" in str(exc_info.value)
        assert platform.called("add_vm") == []

    @pytest.mark.asyncio
    async def test_unknown_template_fails_before_create(self, platform: FakePlatform) -> None:
        with pytest.raises(LifecycleError) as exc_info:
            await _orchestrator(platform).create(_desired(template="rhel9"))

        assert exc_info.value.vm_id is None
        assert platform.called("add_vm") == []

    @pytest.mark.asyncio
    async def test_start_failure_keeps_vm(self, platform: FakePlatform) -> None:
        disk_id = platform.add_existing_disk("d0")
        platform.start_error = RequestRejectedError("Cannot run VM without at least one bootable disk", 409)

        with pytest.raises(LifecycleError) as exc_info:
            await _orchestrator(platform).create(
                _desired(disk_attachments=[{"disk_id": disk_id, "interface": "virtio"}])
            )

        error = exc_info.value
        assert error.step == CreateState.STARTING.value
        assert error.vm_id in platform.vms
        assert platform.called("remove_vm") == []
        assert len(platform.attachments[error.vm_id]) == 1


class TestReadAndUpdate:
    @pytest.mark.asyncio
    async def test_read_absent_vm(self, platform: FakePlatform) -> None:
        assert await _orchestrator(platform).read("44444444-4444-4444-4444-444444444444") is None

    @pytest.mark.asyncio
    async def test_update_is_unsupported(self, platform: FakePlatform) -> None:
        from ovirtcli.api.exceptions import UnsupportedOperationError

        with pytest.raises(UnsupportedOperationError):
            await _orchestrator(platform).update("vm-1", _desired())

    @pytest.mark.asyncio
    async def test_read_without_boot_protocol(self, platform: FakePlatform) -> None:
        result = await _orchestrator(platform).create(_desired())
        platform.vms[result.vm_id]["initialization"]["nic_configurations"] = {
            "nic_configuration": [{"name": "eth0"}]
        }

        state = await _orchestrator(platform).read(result.vm_id)

        [eth0] = state.network_interfaces
        assert eth0.boot_protocol.value == "none"
        assert eth0.network == "ovirtmgmt"

    @pytest.mark.asyncio
    async def test_unprojectable_attachment_is_an_api_error(self, platform: FakePlatform) -> None:
        result = await _orchestrator(platform).create(_desired())
        platform.attachments[result.vm_id] = [{"disk": {"id": "d-9"}}]

        with pytest.raises(APIError, match="cannot be read back"):
            await _orchestrator(platform).read(result.vm_id)
