"""Fixed token table standing in for an identity provider."""

from routegate.core.auth.types import Principal


class StaticIdentityProvider:
    """Maps known access tokens to principals.

    Used with the in-memory store for local development and tests.
    """

    def __init__(self, tokens: dict[str, Principal] | None = None) -> None:
        self.tokens: dict[str, Principal] = dict(tokens or {})

    def register(self, token: str, principal: Principal) -> None:
        """Make a token resolve to a principal."""
        self.tokens[token] = principal

    async def get_principal(self, access_token: str) -> Principal | None:
        return self.tokens.get(access_token)
