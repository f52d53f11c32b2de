from minecraft_identity.shared.config import MinecraftIdentityProviderConfig, resolve_config
from minecraft_identity.shared.errors import (
    IdentityException,
    IdentityBrokerException,
    UpstreamError,
    XboxPolicyError,
)
from minecraft_identity.shared.models import Edition, FederatedIdentity
from minecraft_identity.shared.provider import MinecraftIdentityProvider

__all__ = [
    "Edition",
    "FederatedIdentity",
    "IdentityBrokerException",
    "IdentityException",
    "MinecraftIdentityProvider",
    "MinecraftIdentityProviderConfig",
    "UpstreamError",
    "XboxPolicyError",
    "resolve_config",
]
