"""Identity provider adapters."""

from routegate.adapters.identity.http import HttpIdentityProvider, IdentityProviderConfig
from routegate.adapters.identity.static import StaticIdentityProvider

__all__ = ["HttpIdentityProvider", "IdentityProviderConfig", "StaticIdentityProvider"]
