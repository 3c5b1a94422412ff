"""Identity provider adapter over HTTP.

The provider owns credentials and sessions. This adapter only asks it who
a bearer token belongs to; token signatures are never checked locally.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

import httpx
import structlog

from routegate.core.auth.types import Principal
from routegate.core.exceptions import IdentityProviderError

logger = structlog.get_logger()


@dataclass
class IdentityProviderConfig:
    """Identity provider configuration."""

    base_url: str
    api_key: str | None = None
    user_path: str = "/auth/v1/user"
    timeout_seconds: float = 10.0


class HttpIdentityProvider:
    """Resolves access tokens by calling the provider's user endpoint."""

    def __init__(
        self,
        config: IdentityProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the identity provider adapter.

        Args:
            config: Provider location and credentials.
            transport: Optional transport, used to stub the provider in tests.
        """
        self.config = config
        self._transport = transport

    async def get_principal(self, access_token: str) -> Principal | None:
        """Ask the provider who the token belongs to.

        Returns:
            The principal, or None if the provider rejects the token.

        Raises:
            IdentityProviderError: If the provider is unreachable, errors, or
                answers with something that is not a user.
        """
        headers = {"Authorization": f"Bearer {access_token}"}
        if self.config.api_key:
            headers["apikey"] = self.config.api_key

        url = self.config.base_url.rstrip("/") + self.config.user_path
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    url, headers=headers, timeout=self.config.timeout_seconds
                )
        except httpx.HTTPError as e:
            logger.error("identity_provider_unreachable", url=url, error=str(e))
            raise IdentityProviderError(f"Identity provider unreachable: {e}") from e

        if response.status_code in (401, 403):
            logger.info("identity_token_rejected", status_code=response.status_code)
            return None
        if not response.is_success:
            logger.error("identity_provider_error", status_code=response.status_code)
            raise IdentityProviderError(
                f"Identity provider returned {response.status_code}",
                status_code=response.status_code,
            )

        return self._to_principal(response)

    def _to_principal(self, response: httpx.Response) -> Principal:
        try:
            body: Any = response.json()
            return Principal(id=UUID(str(body["id"])), email=str(body["email"]))
        except (KeyError, TypeError, ValueError) as e:
            raise IdentityProviderError(f"Malformed user payload: {e}") from e
