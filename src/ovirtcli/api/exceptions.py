"""Custom exceptions for ovirtcli API interactions."""


class OvirtCliError(Exception):
    """Base exception for ovirtcli."""

    pass


class ConfigError(OvirtCliError):
    """Configuration related errors."""

    pass


class AuthenticationError(OvirtCliError):
    """Authentication failures."""

    pass


class APIError(OvirtCliError):
    """General API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code if applicable
        """
        super().__init__(message)
        self.status_code = status_code


class ResourceNotFoundError(APIError):
    """Resource not found (404)."""

    def __init__(self, resource: str, identifier: str, message: str | None = None) -> None:
        """Initialize resource not found error.

        Args:
            resource: Type of resource (vm, disk, cluster, etc.)
            identifier: Resource identifier
            message: Error message, derived from resource and identifier if omitted
        """
        super().__init__(message or f"{resource} '{identifier}' not found", status_code=404)
        self.resource = resource
        self.identifier = identifier


class PermissionError(APIError):
    """Permission denied (403)."""

    def __init__(self, message: str = "Permission denied") -> None:
        """Initialize permission error.

        Args:
            message: Error message
        """
        super().__init__(message, status_code=403)


class RequestRejectedError(APIError):
    """The engine refused the operation (400/409)."""

    pass


class AttachRejectedError(RequestRejectedError):
    """The engine refused to attach a disk to a VM."""

    def __init__(self, disk_id: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"Attaching disk '{disk_id}' was rejected: {reason}", status_code)
        self.disk_id = disk_id


class NicCreateFailedError(APIError):
    """The engine refused to create a NIC on a VM."""

    def __init__(self, nic_name: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"Creating NIC '{nic_name}' failed: {reason}", status_code)
        self.nic_name = nic_name


class ProfileNotFoundError(ResourceNotFoundError):
    """No vNIC profile matches a network name within a datacenter."""

    def __init__(self, network: str, datacenter_id: str) -> None:
        """Initialize profile not found error.

        Args:
            network: Requested network (profile) name
            datacenter_id: Datacenter the profile had to belong to
        """
        super().__init__(
            "vnic profile",
            network,
            f"No vNIC profile named '{network}' in datacenter '{datacenter_id}'",
        )
        self.network = network
        self.datacenter_id = datacenter_id


class AmbiguousReferenceError(OvirtCliError):
    """A name resolves to more than one entity."""

    def __init__(self, resource: str, name: str, ids: list[str]) -> None:
        super().__init__(
            f"{resource} name '{name}' is ambiguous, matches: {', '.join(ids)}. Use an id instead."
        )
        self.resource = resource
        self.name = name
        self.ids = ids


class DiskLockedError(OvirtCliError):
    """Disk is still locked by the engine."""

    def __init__(self, disk_id: str) -> None:
        super().__init__(f"Disk '{disk_id}' is locked")
        self.disk_id = disk_id


class UnsupportedOperationError(OvirtCliError):
    """Operation is not supported."""

    pass


class LifecycleError(OvirtCliError):
    """A VM lifecycle step failed.

    Carries the step of the state machine that failed and, where one exists,
    the id of the VM the failure left behind.
    """

    def __init__(
        self,
        message: str,
        step: str,
        vm_id: str | None = None,
        cause: Exception | None = None,
        index: int | None = None,
        resource_id: str | None = None,
    ) -> None:
        """Initialize lifecycle error.

        Args:
            message: Error message
            step: State machine step that failed
            vm_id: VM id, if the VM exists on the engine
            cause: Underlying exception
            index: Position of the failing item within its collection
            resource_id: Id of the failing item (disk id, NIC name)
        """
        super().__init__(f"[{step}] {message}")
        self.step = step
        self.vm_id = vm_id
        self.cause = cause
        self.index = index
        self.resource_id = resource_id


class NetworkError(OvirtCliError):
    """Network related errors."""

    pass


class TimeoutError(OvirtCliError):
    """Request or wait timeout errors."""

    pass
