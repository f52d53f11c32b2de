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
from typing import Optional

import httpx

from minecraft_identity.shared.models import MinecraftAccessToken, MinecraftProfile
from minecraft_identity.shared.transport import JSON_HEADERS, parse, send, upstream_failure

logger = logging.getLogger(__name__)

MINECRAFT_AUTH_URL = "https://api.minecraftservices.com/authentication/login_with_xbox"
MINECRAFT_PROFILE_URL = "https://api.minecraftservices.com/minecraft/profile"


class MinecraftApi:
    """Minecraft Services calls: Xbox login and Java Edition profile lookup."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def authenticate_with_minecraft(self, user_hash: Optional[str], xsts_token: Optional[str]) -> MinecraftAccessToken:
        payload = {"identityToken": f"XBL3.0 x={user_hash};{xsts_token}"}
        response = await send(self.client, "Minecraft authentication", "POST", MINECRAFT_AUTH_URL,
                              json=payload, headers=JSON_HEADERS)
        if response.status_code != 200:
            raise upstream_failure("Minecraft authentication", response)

        return parse("Minecraft authentication", response, MinecraftAccessToken)

    async def get_profile(self, minecraft_access_token: str) -> Optional[MinecraftProfile]:
        """
        Fetches the Java Edition profile.

        Returns:
            The profile, or None when the account does not own Java Edition (HTTP 404).
        """
        response = await send(
            self.client,
            "Minecraft profile request",
            "GET",
            MINECRAFT_PROFILE_URL,
            headers={"Authorization": f"Bearer {minecraft_access_token}", "Accept": "application/json"},
        )
        if response.status_code == 404:
            logger.debug("Minecraft profile not found, account does not own Java Edition")
            return None
        if response.status_code != 200:
            raise upstream_failure("Minecraft profile request", response)

        return parse("Minecraft profile request", response, MinecraftProfile)
