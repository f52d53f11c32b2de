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
from typing import Dict

import httpx

from minecraft_identity.shared.config import TOKEN_URL
from minecraft_identity.shared.models import MicrosoftTokenResponse
from minecraft_identity.shared.transport import parse, send, upstream_failure

logger = logging.getLogger(__name__)


class MicrosoftAuthApi:
    """Microsoft OAuth2 token endpoint (login.live.com)."""

    def __init__(self, client: httpx.AsyncClient, token_url: str = TOKEN_URL):
        self.client = client
        self.token_url = token_url

    async def _token_request(self, hop: str, form: Dict[str, str]) -> MicrosoftTokenResponse:
        # Client credentials go in the POST body, not in a Basic auth header
        response = await send(self.client, hop, "POST", self.token_url, data=form,
                              headers={"Accept": "application/json"})
        if response.status_code != 200:
            raise upstream_failure(hop, response)
        return parse(hop, response, MicrosoftTokenResponse)

    async def exchange_code_for_token(
        self, client_id: str, client_secret: str, code: str, redirect_uri: str
    ) -> MicrosoftTokenResponse:
        logger.debug("Exchanging Microsoft authorization code for an access token")
        return await self._token_request("Microsoft token exchange", {
            "client_id": client_id,
            "client_secret": client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri,
        })

    async def refresh_token(self, client_id: str, client_secret: str, refresh_token: str) -> MicrosoftTokenResponse:
        logger.debug("Refreshing Microsoft access token")
        return await self._token_request("Microsoft token refresh", {
            "client_id": client_id,
            "client_secret": client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        })
