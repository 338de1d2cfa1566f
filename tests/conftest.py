"""Shared fixtures: an in-memory engine implementing ``PlatformClient``."""

from __future__ import annotations

import copy
import uuid
from typing import Any

import pytest

from ovirtcli.api.auth import API_PATH
from ovirtcli.api.exceptions import ResourceNotFoundError
from ovirtcli.models.config import LifecycleConfig

GIB = 1024**3


def _new_id() -> str:
    return str(uuid.uuid4())


class FakePlatform:
    """Engine stand-in that keeps entities in dicts and records every call.

    Failure injection:
        locked_polls: disk id -> number of reads that report the disk locked
        attach_errors: disk id -> exception raised by add_disk_attachment
        nic_errors: NIC name -> exception raised by add_nic
        start_error: exception raised by start_vm
        remove_errors: exceptions raised, in order, by successive remove_vm calls
        settle_polls: reads of a new VM that report image_locked
        shutdown_polls: reads after a shutdown that report powering_down
        new_disk_status: status a newly created disk settles to
    """

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.sleeps: list[float] = []
        self.now = 0.0
        self.links: dict[str, dict[str, Any]] = {}

        self.clusters: dict[str, dict[str, Any]] = {}
        self.templates: dict[str, dict[str, Any]] = {}
        self.networks: dict[str, dict[str, Any]] = {}
        self.profiles: list[dict[str, Any]] = []
        self.vms: dict[str, dict[str, Any]] = {}
        self.disks: dict[str, dict[str, Any]] = {}
        self.attachments: dict[str, list[dict[str, Any]]] = {}
        self.nics: dict[str, list[dict[str, Any]]] = {}

        self.locked_polls: dict[str, int] = {}
        self.attach_errors: dict[str, Exception] = {}
        self.nic_errors: dict[str, Exception] = {}
        self.start_error: Exception | None = None
        self.remove_errors: list[Exception] = []
        self.settle_polls = 0
        self.shutdown_polls = 1
        self.new_disk_status = "ok"
        self._transitions: dict[str, tuple[int, str]] = {}

    # Fixture builders

    def _register(self, collection: str, entity: dict[str, Any]) -> dict[str, Any]:
        entity["href"] = f"{API_PATH}/{collection}/{entity['id']}"
        self.links[entity["href"]] = entity
        return entity

    def add_datacenter_network(self, name: str, datacenter_id: str) -> dict[str, Any]:
        network = self._register(
            "networks",
            {"id": _new_id(), "name": name, "data_center": {"id": datacenter_id}},
        )
        self.networks[network["id"]] = network
        return network

    def add_profile(self, name: str, network: dict[str, Any]) -> dict[str, Any]:
        profile = self._register(
            "vnicprofiles",
            {"id": _new_id(), "name": name, "network": {"id": network["id"], "href": network["href"]}},
        )
        self.profiles.append(profile)
        return profile

    def add_cluster(self, name: str, datacenter_id: str | None = None) -> dict[str, Any]:
        cluster = self._register(
            "clusters",
            {"id": _new_id(), "name": name, "data_center": {"id": datacenter_id or _new_id()}},
        )
        self.clusters[cluster["id"]] = cluster
        return cluster

    def add_template(self, name: str) -> dict[str, Any]:
        template = self._register("templates", {"id": _new_id(), "name": name})
        self.templates[template["id"]] = template
        return template

    def add_existing_disk(self, name: str, size: int = 10 * GIB) -> str:
        disk = self._register(
            "disks",
            {
                "id": _new_id(),
                "name": name,
                "alias": name,
                "status": "ok",
                "provisioned_size": size,
                "format": "cow",
                "bootable": False,
                "shareable": False,
                "sparse": True,
                "storage_domains": {"storage_domain": [{"id": "sd-1"}]},
            },
        )
        self.disks[disk["id"]] = disk
        return disk["id"]

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def clock(self) -> float:
        return self.now

    def called(self, name: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == name]

    def _vm(self, vm_id: str) -> dict[str, Any]:
        if vm_id not in self.vms:
            raise ResourceNotFoundError("vm", vm_id)
        return self.vms[vm_id]

    # PlatformClient

    async def get_vm(self, vm_id: str) -> dict[str, Any]:
        self.calls.append(("get_vm", vm_id))
        vm = self._vm(vm_id)
        if vm_id in self._transitions:
            remaining, final = self._transitions[vm_id]
            if remaining <= 0:
                vm["status"] = final
                del self._transitions[vm_id]
            else:
                self._transitions[vm_id] = (remaining - 1, final)
        return copy.deepcopy(vm)

    async def add_vm(self, vm: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("add_vm", vm["name"]))
        cluster = self.clusters[vm["cluster"]["id"]]
        template = self.templates[vm["template"]["id"]]
        created = {
            "id": _new_id(),
            "name": vm["name"],
            "status": "image_locked" if self.settle_polls else "down",
            "cluster": {"id": cluster["id"], "href": cluster["href"]},
            "template": {"id": template["id"], "href": template["href"]},
            "cpu": copy.deepcopy(vm["cpu"]),
            "memory": vm.get("memory", GIB),
            "initialization": copy.deepcopy(vm["initialization"]),
        }
        self.vms[created["id"]] = created
        self.attachments[created["id"]] = []
        self.nics[created["id"]] = []
        if self.settle_polls:
            self._transitions[created["id"]] = (self.settle_polls, "down")
        return copy.deepcopy(created)

    async def start_vm(self, vm_id: str) -> dict[str, Any]:
        self.calls.append(("start_vm", vm_id))
        if self.start_error is not None:
            raise self.start_error
        self._vm(vm_id)["status"] = "up"
        return {"status": "complete"}

    async def shutdown_vm(self, vm_id: str) -> dict[str, Any]:
        self.calls.append(("shutdown_vm", vm_id))
        self._vm(vm_id)["status"] = "powering_down"
        self._transitions[vm_id] = (self.shutdown_polls, "down")
        return {"status": "complete"}

    async def remove_vm(self, vm_id: str, detach_only: bool = True) -> None:
        self.calls.append(("remove_vm", vm_id, detach_only))
        if self.remove_errors:
            raise self.remove_errors.pop(0)
        self._vm(vm_id)
        del self.vms[vm_id]
        self.attachments.pop(vm_id, None)
        self.nics.pop(vm_id, None)

    async def list_disk_attachments(self, vm_id: str) -> list[dict[str, Any]]:
        self.calls.append(("list_disk_attachments", vm_id))
        self._vm(vm_id)
        return copy.deepcopy(self.attachments[vm_id])

    async def add_disk_attachment(self, vm_id: str, attachment: dict[str, Any]) -> dict[str, Any]:
        disk_id = attachment["disk"]["id"]
        self.calls.append(("add_disk_attachment", vm_id, disk_id))
        self._vm(vm_id)
        if disk_id in self.attach_errors:
            raise self.attach_errors[disk_id]
        if disk_id not in self.disks:
            raise ResourceNotFoundError("disk", disk_id)
        created = {
            **copy.deepcopy(attachment),
            "id": disk_id,
            "disk": {"id": disk_id, "href": self.disks[disk_id]["href"]},
        }
        self.attachments[vm_id].append(created)
        return copy.deepcopy(created)

    async def list_nics(self, vm_id: str) -> list[dict[str, Any]]:
        self.calls.append(("list_nics", vm_id))
        self._vm(vm_id)
        return copy.deepcopy(self.nics[vm_id])

    async def add_nic(self, vm_id: str, nic: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("add_nic", vm_id, nic["name"]))
        self._vm(vm_id)
        if nic["name"] in self.nic_errors:
            raise self.nic_errors[nic["name"]]
        created = {**copy.deepcopy(nic), "id": _new_id()}
        if "vnic_profile" in nic:
            profile_id = nic["vnic_profile"]["id"]
            created["vnic_profile"] = {
                "id": profile_id,
                "href": f"{API_PATH}/vnicprofiles/{profile_id}",
            }
        self.nics[vm_id].append(created)
        return copy.deepcopy(created)

    async def get_disk(self, disk_id: str) -> dict[str, Any]:
        self.calls.append(("get_disk", disk_id))
        if disk_id not in self.disks:
            raise ResourceNotFoundError("disk", disk_id)
        disk = copy.deepcopy(self.disks[disk_id])
        if self.locked_polls.get(disk_id, 0) > 0:
            self.locked_polls[disk_id] -= 1
            disk["status"] = "locked"
        return disk

    async def add_disk(self, disk: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("add_disk", disk["name"]))
        created = self._register(
            "disks", {**copy.deepcopy(disk), "id": _new_id(), "status": self.new_disk_status}
        )
        self.disks[created["id"]] = created
        return {**copy.deepcopy(created), "status": "locked"}

    async def remove_disk(self, disk_id: str) -> None:
        self.calls.append(("remove_disk", disk_id))
        if disk_id not in self.disks:
            raise ResourceNotFoundError("disk", disk_id)
        del self.disks[disk_id]

    async def get_cluster(self, cluster_id: str) -> dict[str, Any]:
        self.calls.append(("get_cluster", cluster_id))
        if cluster_id not in self.clusters:
            raise ResourceNotFoundError("cluster", cluster_id)
        return copy.deepcopy(self.clusters[cluster_id])

    async def find_clusters(self, name: str) -> list[dict[str, Any]]:
        self.calls.append(("find_clusters", name))
        # The engine search matches prefixes
        return [copy.deepcopy(c) for c in self.clusters.values() if c["name"].startswith(name)]

    async def get_template(self, template_id: str) -> dict[str, Any]:
        self.calls.append(("get_template", template_id))
        if template_id not in self.templates:
            raise ResourceNotFoundError("template", template_id)
        return copy.deepcopy(self.templates[template_id])

    async def find_templates(self, name: str) -> list[dict[str, Any]]:
        self.calls.append(("find_templates", name))
        return [copy.deepcopy(t) for t in self.templates.values() if t["name"].startswith(name)]

    async def list_vnic_profiles(self) -> list[dict[str, Any]]:
        self.calls.append(("list_vnic_profiles",))
        return copy.deepcopy(self.profiles)

    async def follow_link(self, link: dict[str, Any]) -> dict[str, Any]:
        href = link["href"]
        self.calls.append(("follow_link", href))
        if href not in self.links:
            raise ResourceNotFoundError("link", href)
        return copy.deepcopy(self.links[href])


@pytest.fixture
def platform() -> FakePlatform:
    """Engine with one datacenter holding cluster 'Default', template 'Blank' and profile 'ovirtmgmt'."""
    fake = FakePlatform()
    datacenter_id = _new_id()
    fake.datacenter_id = datacenter_id
    fake.cluster = fake.add_cluster("Default", datacenter_id)
    fake.template = fake.add_template("Blank")
    fake.network = fake.add_datacenter_network("ovirtmgmt", datacenter_id)
    fake.profile = fake.add_profile("ovirtmgmt", fake.network)
    return fake


@pytest.fixture
def fast_settings() -> LifecycleConfig:
    return LifecycleConfig(
        disk_lock_timeout=0.2,
        disk_lock_interval=0.01,
        create_settle_timeout=5,
        shutdown_settle_timeout=5,
        delete_timeout=5,
        poll_interval=0.01,
        backoff_max=0.05,
    )
