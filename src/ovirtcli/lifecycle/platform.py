"""Operations the lifecycle core needs from the engine.

``OvirtClient`` implements this protocol over HTTP. Every method returns the
engine's JSON document as a dict and raises ``ResourceNotFoundError`` when
the entity does not exist.
"""

from typing import Any, Protocol


class PlatformClient(Protocol):
    async def get_vm(self, vm_id: str) -> dict[str, Any]: ...

    async def add_vm(self, vm: dict[str, Any]) -> dict[str, Any]: ...

    async def start_vm(self, vm_id: str) -> dict[str, Any]: ...

    async def shutdown_vm(self, vm_id: str) -> dict[str, Any]: ...

    async def remove_vm(self, vm_id: str, detach_only: bool = True) -> None: ...

    async def list_disk_attachments(self, vm_id: str) -> list[dict[str, Any]]: ...

    async def add_disk_attachment(self, vm_id: str, attachment: dict[str, Any]) -> dict[str, Any]: ...

    async def list_nics(self, vm_id: str) -> list[dict[str, Any]]: ...

    async def add_nic(self, vm_id: str, nic: dict[str, Any]) -> dict[str, Any]: ...

    async def get_disk(self, disk_id: str) -> dict[str, Any]: ...

    async def add_disk(self, disk: dict[str, Any]) -> dict[str, Any]: ...

    async def remove_disk(self, disk_id: str) -> None: ...

    async def get_cluster(self, cluster_id: str) -> dict[str, Any]: ...

    async def find_clusters(self, name: str) -> list[dict[str, Any]]: ...

    async def get_template(self, template_id: str) -> dict[str, Any]: ...

    async def find_templates(self, name: str) -> list[dict[str, Any]]: ...

    async def list_vnic_profiles(self) -> list[dict[str, Any]]: ...

    async def follow_link(self, link: dict[str, Any]) -> dict[str, Any]: ...
