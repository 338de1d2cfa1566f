"""oVirt engine API client."""

import asyncio
from typing import Any

import httpx

from .auth import API_PATH, AuthHandler
from .exceptions import (
    APIError,
    AuthenticationError,
    NetworkError,
    OvirtCliError,
    PermissionError,
    RequestRejectedError,
    ResourceNotFoundError,
    TimeoutError,
)
from ..models.config import ProfileConfig


class OvirtClient:
    """Async client for the oVirt engine REST API (v4, JSON).

    One client wraps one ``httpx.AsyncClient`` and may be shared by
    concurrent lifecycle operations; it keeps no per-operation state.
    """

    def __init__(
        self, profile: ProfileConfig, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        """Initialize oVirt client.

        Args:
            profile: Profile configuration
            transport: Optional httpx transport (used by tests)
        """
        self.profile = profile
        self.transport = transport
        verify: bool | str = profile.ca_file if profile.verify_ssl and profile.ca_file else profile.verify_ssl
        self.auth_handler = AuthHandler(
            host=profile.host,
            port=profile.port,
            verify_ssl=verify,
            timeout=profile.timeout,
            transport=transport,
        )
        self.origin = self.auth_handler.origin
        self.base_url = self.auth_handler.base_url
        self._verify = verify
        self._headers: dict[str, str] | None = None
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "OvirtClient":
        """Async context manager entry.

        Returns:
            Self
        """
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def connect(self) -> None:
        """Establish connection and authenticate."""
        auth = self.profile.auth
        if auth.type == "token":
            if not auth.token:
                raise AuthenticationError("Token required for token auth")
            self._headers = self.auth_handler.get_token_headers(auth.token)
        else:
            if not auth.user or not auth.password:
                raise AuthenticationError("User and password required for password auth")
            self._headers = await self.auth_handler.authenticate_with_password(
                auth.user, auth.password
            )

        self._headers = {**self._headers, "Accept": "application/json", "Version": "4"}
        self._client = httpx.AsyncClient(
            verify=self._verify, timeout=self.profile.timeout, transport=self.transport
        )

        await self.auth_handler.verify_authentication(self._headers)

    async def close(self) -> None:
        """Close the client connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_connected(self) -> httpx.AsyncClient:
        """Ensure client is connected.

        Returns:
            HTTP client

        Raises:
            RuntimeError: If not connected
        """
        if not self._client or not self._headers:
            raise RuntimeError("Client not connected. Use async with or call connect().")
        return self._client

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        not_found: tuple[str, str] | None = None,
        retry_count: int = 3,
    ) -> Any:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            endpoint: API endpoint (without /ovirt-engine/api prefix)
            params: Query parameters
            json: Request body
            not_found: (resource, identifier) reported if the engine answers 404
            retry_count: Number of retries for transient failures

        Returns:
            Decoded response body, or None for an empty body

        Raises:
            APIError: On API errors
            NetworkError: On network errors
            TimeoutError: On timeout
        """
        client = self._ensure_connected()
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        for attempt in range(retry_count):
            try:
                response = await client.request(
                    method, url, headers=self._headers, params=params, json=json
                )

                if response.status_code == 401:
                    raise AuthenticationError("Authentication failed or expired")
                elif response.status_code == 403:
                    raise PermissionError("Permission denied for this operation")
                elif response.status_code == 404:
                    resource, identifier = not_found or ("resource", endpoint)
                    raise ResourceNotFoundError(resource, identifier)
                elif response.status_code in (400, 409):
                    raise RequestRejectedError(
                        self._extract_error_message(response), status_code=response.status_code
                    )
                elif response.status_code >= 400:
                    error_msg = self._extract_error_message(response)
                    raise APIError(error_msg, status_code=response.status_code)

                response.raise_for_status()
                if not response.content:
                    return None
                return response.json()

            except httpx.TimeoutException:
                if attempt < retry_count - 1:
                    await asyncio.sleep(2**attempt)
                    continue
                raise TimeoutError(f"Request to {endpoint} timed out")

            except httpx.NetworkError as e:
                if attempt < retry_count - 1:
                    await asyncio.sleep(2**attempt)
                    continue
                raise NetworkError(f"Network error: {e}")

            except OvirtCliError:
                raise

            except Exception as e:
                raise APIError(f"Unexpected error: {e}")

        raise APIError("Max retries exceeded")

    def _extract_error_message(self, response: httpx.Response) -> str:
        """Extract error message from an engine fault.

        Args:
            response: HTTP response

        Returns:
            Error message
        """
        try:
            data = response.json()
            parts = [data.get("reason"), data.get("detail")]
            message = ": ".join(str(p).strip("[] ") for p in parts if p)
            return message or response.text
        except Exception:
            return response.text or f"HTTP {response.status_code}"

    async def get(self, endpoint: str, params: dict[str, Any] | None = None, **kwargs: Any) -> Any:
        """Make a GET request."""
        return await self._request("GET", endpoint, params=params, **kwargs)

    async def post(
        self,
        endpoint: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Make a POST request."""
        return await self._request("POST", endpoint, params=params, json=json, **kwargs)

    async def put(
        self,
        endpoint: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Make a PUT request."""
        return await self._request("PUT", endpoint, params=params, json=json, **kwargs)

    async def delete(self, endpoint: str, params: dict[str, Any] | None = None, **kwargs: Any) -> Any:
        """Make a DELETE request."""
        return await self._request("DELETE", endpoint, params=params, **kwargs)

    async def _list(self, endpoint: str, key: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """GET a collection and unwrap it ({"vm": [...]} -> [...])."""
        result = await self.get(endpoint, params=params)
        if not result:
            return []
        return result.get(key, [])

    async def get_api_info(self) -> dict[str, Any]:
        """Get engine product and version information.

        Returns:
            API root document
        """
        return await self.get("/")

    async def follow_link(self, link: dict[str, Any]) -> dict[str, Any]:
        """Resolve an embedded entity reference to the full entity.

        Args:
            link: Embedded reference carrying an ``href``

        Returns:
            Referenced entity
        """
        href = link.get("href")
        if not href:
            raise APIError(f"Cannot follow link without href: {link}")
        endpoint = href.removeprefix(API_PATH)
        return await self.get(endpoint, not_found=("link", href))

    # VM methods

    async def get_vm(self, vm_id: str) -> dict[str, Any]:
        """Get a VM.

        Args:
            vm_id: VM ID

        Returns:
            VM, including its initialization
        """
        return await self.get(
            f"/vms/{vm_id}", params={"all_content": "true"}, not_found=("vm", vm_id)
        )

    async def add_vm(self, vm: dict[str, Any]) -> dict[str, Any]:
        """Create a VM.

        Args:
            vm: VM definition (name, cluster, template, cpu, initialization, ...)

        Returns:
            Created VM, including its engine-assigned id
        """
        return await self.post("/vms", json=vm)

    async def start_vm(self, vm_id: str) -> dict[str, Any]:
        """Start a VM.

        Args:
            vm_id: VM ID

        Returns:
            Action result
        """
        return await self.post(f"/vms/{vm_id}/start", json={}, not_found=("vm", vm_id))

    async def shutdown_vm(self, vm_id: str) -> dict[str, Any]:
        """Shut a VM down gracefully through the guest.

        Args:
            vm_id: VM ID

        Returns:
            Action result
        """
        return await self.post(f"/vms/{vm_id}/shutdown", json={}, not_found=("vm", vm_id))

    async def remove_vm(self, vm_id: str, detach_only: bool = True) -> None:
        """Remove a VM.

        Args:
            vm_id: VM ID
            detach_only: Detach the VM's disks instead of removing them
        """
        params = {"detach_only": "true"} if detach_only else None
        await self.delete(f"/vms/{vm_id}", params=params, not_found=("vm", vm_id))

    async def list_disk_attachments(self, vm_id: str) -> list[dict[str, Any]]:
        """List the disk attachments of a VM.

        Args:
            vm_id: VM ID

        Returns:
            List of disk attachments
        """
        return await self._list(f"/vms/{vm_id}/diskattachments", "disk_attachment")

    async def add_disk_attachment(self, vm_id: str, attachment: dict[str, Any]) -> dict[str, Any]:
        """Attach an existing disk to a VM.

        Args:
            vm_id: VM ID
            attachment: Attachment definition (disk id, interface, flags)

        Returns:
            Created disk attachment
        """
        return await self.post(
            f"/vms/{vm_id}/diskattachments", json=attachment, not_found=("vm", vm_id)
        )

    async def list_nics(self, vm_id: str) -> list[dict[str, Any]]:
        """List the NICs of a VM.

        Args:
            vm_id: VM ID

        Returns:
            List of NICs
        """
        return await self._list(f"/vms/{vm_id}/nics", "nic")

    async def add_nic(self, vm_id: str, nic: dict[str, Any]) -> dict[str, Any]:
        """Add a NIC to a VM.

        Args:
            vm_id: VM ID
            nic: NIC definition (name, vnic profile)

        Returns:
            Created NIC
        """
        return await self.post(f"/vms/{vm_id}/nics", json=nic, not_found=("vm", vm_id))

    # Disk methods

    async def get_disk(self, disk_id: str) -> dict[str, Any]:
        """Get a disk.

        Args:
            disk_id: Disk ID

        Returns:
            Disk
        """
        return await self.get(f"/disks/{disk_id}", not_found=("disk", disk_id))

    async def add_disk(self, disk: dict[str, Any]) -> dict[str, Any]:
        """Create a floating disk.

        Args:
            disk: Disk definition

        Returns:
            Created disk
        """
        return await self.post("/disks", json=disk)

    async def remove_disk(self, disk_id: str) -> None:
        """Remove a disk.

        Args:
            disk_id: Disk ID
        """
        await self.delete(f"/disks/{disk_id}", not_found=("disk", disk_id))

    # Cluster, template and network methods

    async def get_cluster(self, cluster_id: str) -> dict[str, Any]:
        """Get a cluster by id."""
        return await self.get(f"/clusters/{cluster_id}", not_found=("cluster", cluster_id))

    async def find_clusters(self, name: str) -> list[dict[str, Any]]:
        """Search clusters by name."""
        return await self._list("/clusters", "cluster", params={"search": f"name={name}"})

    async def get_template(self, template_id: str) -> dict[str, Any]:
        """Get a template by id."""
        return await self.get(f"/templates/{template_id}", not_found=("template", template_id))

    async def find_templates(self, name: str) -> list[dict[str, Any]]:
        """Search templates by name."""
        return await self._list("/templates", "template", params={"search": f"name={name}"})

    async def list_vnic_profiles(self) -> list[dict[str, Any]]:
        """List all vNIC profiles visible to the user.

        Returns:
            List of vNIC profiles
        """
        return await self._list("/vnicprofiles", "vnic_profile")
