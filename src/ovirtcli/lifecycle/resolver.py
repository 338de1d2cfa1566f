"""Resolution of user-supplied names to engine entities."""

import re

from loguru import logger

from ..api.exceptions import (
    AmbiguousReferenceError,
    ProfileNotFoundError,
    ResourceNotFoundError,
)
from ..models.network import Cluster, Network, Template, VnicProfile
from .platform import PlatformClient

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_entity_id(ref: str) -> bool:
    """Tell whether a reference is an engine id (UUID) rather than a name."""
    return bool(_UUID_RE.match(ref))


class ReferenceResolver:
    """Resolve cluster, template and vNIC profile references.

    All lookups are fresh remote reads; nothing is cached between calls.
    """

    def __init__(self, client: PlatformClient) -> None:
        self.client = client

    async def resolve_cluster(self, ref: str) -> Cluster:
        """Resolve a cluster by id or name.

        Args:
            ref: Cluster id or name

        Returns:
            Cluster, including its datacenter reference

        Raises:
            ResourceNotFoundError: If no such cluster exists
            AmbiguousReferenceError: If the name matches several clusters
        """
        if is_entity_id(ref):
            return Cluster.model_validate(await self.client.get_cluster(ref))

        matches = [c for c in await self.client.find_clusters(ref) if c.get("name") == ref]
        if not matches:
            raise ResourceNotFoundError("cluster", ref)
        if len(matches) > 1:
            raise AmbiguousReferenceError("cluster", ref, [c["id"] for c in matches])
        return Cluster.model_validate(matches[0])

    async def cluster_datacenter_id(self, ref: str) -> str:
        """Return the id of the datacenter a cluster belongs to."""
        cluster = await self.resolve_cluster(ref)
        if not cluster.datacenter_id:
            raise ResourceNotFoundError("datacenter", f"of cluster {ref}")
        return cluster.datacenter_id

    async def resolve_template(self, ref: str) -> Template:
        """Resolve a template by id or name.

        Duplicate names are refused rather than guessed at.

        Raises:
            ResourceNotFoundError: If no such template exists
            AmbiguousReferenceError: If the name matches several templates
        """
        if is_entity_id(ref):
            return Template.model_validate(await self.client.get_template(ref))

        matches = [t for t in await self.client.find_templates(ref) if t.get("name") == ref]
        if not matches:
            raise ResourceNotFoundError("template", ref)
        if len(matches) > 1:
            raise AmbiguousReferenceError("template", ref, [t["id"] for t in matches])
        return Template.model_validate(matches[0])

    async def resolve_vnic_profile(self, datacenter_id: str, network_name: str) -> VnicProfile:
        """Find the vNIC profile named ``network_name`` within a datacenter.

        Profile names are only unique per datacenter, so each candidate's
        network is followed to check which datacenter it lives in.

        Args:
            datacenter_id: Datacenter of the cluster the NIC's VM runs in
            network_name: Requested profile name

        Returns:
            Matching vNIC profile

        Raises:
            ProfileNotFoundError: If no profile with that name exists in the datacenter
        """
        networks: dict[str, Network] = {}
        for raw in await self.client.list_vnic_profiles():
            profile = VnicProfile.model_validate(raw)
            if profile.name != network_name or profile.network is None:
                continue

            key = profile.network.id or profile.network.href or ""
            if key not in networks:
                networks[key] = Network.model_validate(
                    await self.client.follow_link(profile.network.model_dump(exclude_none=True))
                )
            if networks[key].datacenter_id == datacenter_id:
                logger.debug(
                    f"Resolved vNIC profile '{network_name}' to {profile.id} "
                    f"in datacenter {datacenter_id}"
                )
                return profile

        raise ProfileNotFoundError(network_name, datacenter_id)
