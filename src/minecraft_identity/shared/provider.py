#    Copyright 2025 FAO
#
#    Licensed under the Apache License, Version 2.0 (the "License");
#    you may not use this file except in compliance with the License.
#    You may obtain a copy of the License at
#
#        http://www.apache.org/licenses/LICENSE-2.0
#
#    Unless required by applicable law or agreed to in writing, software
#    distributed under the License is distributed on an "AS IS" BASIS,
#    WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#    See the License for the specific language governing permissions and
#    limitations under the License.
#
#    Author: Carlo Cancellieri (ccancellieri@gmail.com)
#    Company: FAO, Viale delle Terme di Caracalla, 00100 Rome, Italy
#    Contact: copyright@fao.org - http://fao.org/contact-us/terms/en/

import logging
from typing import Any, Mapping, Optional

import httpx

from minecraft_identity.shared.config import MinecraftIdentityProviderConfig
from minecraft_identity.shared.errors import (
    IdentityBrokerException,
    UpstreamError,
    XboxPolicyError,
)
from minecraft_identity.shared.microsoft import MicrosoftAuthApi
from minecraft_identity.shared.minecraft import MinecraftApi
from minecraft_identity.shared.models import (
    Edition,
    FederatedIdentity,
    MinecraftProfile,
    XstsToken,
    gamertag_hash,
    is_blank,
)
from minecraft_identity.shared.xbox import XboxAuthApi

logger = logging.getLogger(__name__)

PROVIDER_ID = "minecraft"
PROVIDER_NAME = "Minecraft"

GENERIC_FAILURE = "Minecraft authentication failed. Please try again."
MISSING_GAMERTAG = "Could not retrieve Xbox Gamertag for Bedrock user"


def java_identity(profile: MinecraftProfile, xsts: XstsToken) -> FederatedIdentity:
    attributes = {
        "minecraft_uuid": profile.id,
        "minecraft_username": profile.name,
        "minecraft_edition": Edition.JAVA.value,
    }
    if xsts.gamertag is not None:
        attributes["xbox_gamertag"] = xsts.gamertag
    if xsts.xbox_user_id is not None:
        attributes["xbox_user_id"] = xsts.xbox_user_id

    return FederatedIdentity(
        id=profile.formatted_uuid,
        username=profile.name,
        edition=Edition.JAVA,
        attributes=attributes,
        provider=PROVIDER_ID,
    )


def bedrock_identity(xsts: XstsToken) -> FederatedIdentity:
    """
    Identity for an account without Java Edition, keyed by Xbox identity.

    Raises:
        IdentityBrokerException: when no gamertag is available to use as username.
    """
    gamertag = xsts.gamertag
    if gamertag is None or is_blank(gamertag):
        raise IdentityBrokerException(MISSING_GAMERTAG)

    if xsts.xbox_user_id is not None:
        unique_id = f"xbox-{xsts.xbox_user_id}"
    else:
        unique_id = f"xbox-{gamertag_hash(gamertag)}"

    attributes = {
        "minecraft_username": gamertag,
        "minecraft_edition": Edition.BEDROCK.value,
        "xbox_gamertag": gamertag,
    }
    if xsts.xbox_user_id is not None:
        attributes["xbox_user_id"] = xsts.xbox_user_id

    return FederatedIdentity(
        id=unique_id,
        username=gamertag,
        edition=Edition.BEDROCK,
        attributes=attributes,
        provider=PROVIDER_ID,
    )


class MinecraftIdentityProvider:
    """
    Resolves a Minecraft identity from a Microsoft access token.

    Chains Xbox Live user authentication, XSTS authorization for Minecraft
    services, Minecraft login and the Java Edition profile lookup. Accounts
    without Java Edition fall back to an identity built from their Xbox
    gamertag.

    The provider keeps no per-login state, so one instance (and its HTTP
    client) can serve concurrent logins.
    """

    def __init__(
        self,
        config: MinecraftIdentityProviderConfig,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            config: Resolved provider configuration (see `resolve_config`).
            client: Shared HTTP client. If omitted, the provider creates and owns one.
        """
        self.config = config
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()
        self.microsoft = MicrosoftAuthApi(self.client, token_url=config.token_url)
        self.xbox = XboxAuthApi(self.client)
        self.minecraft = MinecraftApi(self.client)

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "MinecraftIdentityProvider":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def get_federated_identity(
        self, access_token: str, context: Optional[Mapping[str, Any]] = None
    ) -> FederatedIdentity:
        """
        Runs the token-exchange chain for one login attempt.

        Args:
            access_token: Microsoft access token obtained by the host.
            context: Opaque host context (realm, event), only used for logging.

        Raises:
            IdentityBrokerException: with a message fit for the end user.
        """
        realm = (context or {}).get("realm")
        logger.info(f"Starting Minecraft authentication flow (realm: {realm})")
        try:
            logger.debug("Authenticating with Xbox Live...")
            xbox_token = await self.xbox.authenticate_with_xbox(access_token)
            logger.debug(f"Xbox authentication successful, user hash: {xbox_token.user_hash}")

            logger.debug("Obtaining XSTS token...")
            xsts = await self.xbox.obtain_xsts_token(xbox_token)
            logger.debug(f"XSTS token obtained successfully, Gamertag: {xsts.gamertag}")

            logger.debug("Authenticating with Minecraft services...")
            mc_token = await self.minecraft.authenticate_with_minecraft(xbox_token.user_hash, xsts.token)
            logger.debug("Minecraft authentication successful")

            logger.debug("Fetching Minecraft profile...")
            profile = await self.minecraft.get_profile(mc_token.access_token)
        except XboxPolicyError as e:
            logger.warning(f"Xbox XSTS authentication failed: {e.detail}")
            raise IdentityBrokerException(e.detail, status_code=e.status_code) from e
        except UpstreamError as e:
            logger.error(f"Failed to authenticate with Minecraft services: {e.detail}")
            raise IdentityBrokerException(GENERIC_FAILURE) from e

        if profile is not None:
            identity = java_identity(profile, xsts)
            logger.info(f"Minecraft Java Edition profile retrieved: {identity.username} (UUID: {identity.id})")
            return identity

        logger.info(f"User does not own Java Edition, falling back to Xbox Gamertag: {xsts.gamertag}")
        return bedrock_identity(xsts)

    async def authenticate_with_code(
        self, code: str, redirect_uri: str, context: Optional[Mapping[str, Any]] = None
    ) -> FederatedIdentity:
        """Exchanges a Microsoft authorization code, then resolves the identity."""
        try:
            token = await self.microsoft.exchange_code_for_token(
                self.config.client_id,
                self.config.client_secret,
                code,
                self.config.effective_redirect_uri(redirect_uri),
            )
        except UpstreamError as e:
            logger.error(f"Microsoft token exchange failed: {e.detail}")
            raise IdentityBrokerException(GENERIC_FAILURE) from e
        return await self.get_federated_identity(token.access_token, context)
