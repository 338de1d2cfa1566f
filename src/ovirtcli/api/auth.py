"""Authentication handling for the oVirt engine API."""

import httpx

from .exceptions import AuthenticationError

API_PATH = "/ovirt-engine/api"
SSO_PATH = "/ovirt-engine/sso/oauth/token"


class AuthHandler:
    """Handle authentication for the oVirt engine API."""

    def __init__(
        self,
        host: str,
        port: int,
        verify_ssl: bool | str = True,
        timeout: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize auth handler.

        Args:
            host: Engine host
            port: Engine port
            verify_ssl: Whether to verify SSL certificates, or a CA bundle path
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.host = host
        self.port = port
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self.transport = transport
        self.origin = f"https://{host}:{port}"
        self.base_url = f"{self.origin}{API_PATH}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            verify=self.verify_ssl, timeout=self.timeout, transport=self.transport
        )

    def get_token_headers(self, token: str) -> dict[str, str]:
        """Get headers for bearer token authentication.

        Args:
            token: SSO access token

        Returns:
            Headers dict with Authorization
        """
        return {"Authorization": f"Bearer {token}"}

    async def authenticate_with_password(self, user: str, password: str) -> dict[str, str]:
        """Authenticate using username and password to get an SSO token.

        Args:
            user: Username including profile, e.g. admin@internal
            password: User password

        Returns:
            Headers dict with Authorization

        Raises:
            AuthenticationError: If authentication fails
        """
        async with self._client() as client:
            try:
                response = await client.post(
                    f"{self.origin}{SSO_PATH}",
                    data={
                        "grant_type": "password",
                        "scope": "ovirt-app-api",
                        "username": user,
                        "password": password,
                    },
                    headers={"Accept": "application/json"},
                )

                if response.status_code in (400, 401):
                    raise AuthenticationError("Invalid username or password")

                response.raise_for_status()
                data = response.json()
                if "error" in data:
                    raise AuthenticationError(
                        f"Authentication failed: {data.get('error_description', data['error'])}"
                    )

                return self.get_token_headers(data["access_token"])

            except httpx.HTTPStatusError as e:
                raise AuthenticationError(f"Authentication failed: {e}")
            except httpx.RequestError as e:
                raise AuthenticationError(f"Connection failed: {e}")
            except (KeyError, ValueError):
                raise AuthenticationError("Invalid response from server")

    async def verify_authentication(self, headers: dict[str, str]) -> bool:
        """Verify authentication is valid by fetching the API root.

        Args:
            headers: Authentication headers

        Returns:
            True if authentication is valid

        Raises:
            AuthenticationError: If authentication verification fails
        """
        async with self._client() as client:
            try:
                response = await client.get(
                    self.base_url, headers={**headers, "Accept": "application/json"}
                )

                if response.status_code == 401:
                    raise AuthenticationError("Authentication invalid or expired")

                response.raise_for_status()
                return True

            except httpx.HTTPStatusError as e:
                raise AuthenticationError(f"Verification failed: {e}")
            except httpx.RequestError as e:
                raise AuthenticationError(f"Connection failed: {e}")
