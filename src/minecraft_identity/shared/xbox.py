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

import httpx

from minecraft_identity.shared.errors import XboxPolicyError
from minecraft_identity.shared.models import (
    XboxAuthResponse,
    XboxUserToken,
    XstsErrorResponse,
    XstsToken,
)
from minecraft_identity.shared.transport import JSON_HEADERS, parse, send, upstream_failure

logger = logging.getLogger(__name__)

XBOX_USER_AUTH_URL = "https://user.auth.xboxlive.com/user/authenticate"
XBOX_XSTS_AUTH_URL = "https://xsts.auth.xboxlive.com/xsts/authorize"
MINECRAFT_RELYING_PARTY = "rp://api.minecraftservices.com/"


class XboxAuthApi:
    """
    Exchanges a Microsoft access token for an Xbox user token, and that for an
    XSTS token scoped to Minecraft services.
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def authenticate_with_xbox(self, microsoft_access_token: str) -> XboxUserToken:
        payload = {
            "Properties": {
                "AuthMethod": "RPS",
                "SiteName": "user.auth.xboxlive.com",
                "RpsTicket": f"d={microsoft_access_token}",
            },
            "RelyingParty": "http://auth.xboxlive.com",
            "TokenType": "JWT",
        }
        response = await send(self.client, "Xbox authentication", "POST", XBOX_USER_AUTH_URL,
                              json=payload, headers=JSON_HEADERS)
        if response.status_code != 200:
            raise upstream_failure("Xbox authentication", response)

        return XboxUserToken.from_response(parse("Xbox authentication", response, XboxAuthResponse))

    async def obtain_xsts_token(self, xbox_user_token: XboxUserToken) -> XstsToken:
        payload = {
            "Properties": {
                "SandboxId": "RETAIL",
                "UserTokens": [xbox_user_token.token],
            },
            "RelyingParty": MINECRAFT_RELYING_PARTY,
            "TokenType": "JWT",
        }
        response = await send(self.client, "XSTS token request", "POST", XBOX_XSTS_AUTH_URL,
                              json=payload, headers=JSON_HEADERS)
        if response.status_code == 401:
            # Account policy refusal, body carries the XErr code
            logger.warning(f"XSTS token request failed with status 401: {response.text}")
            error = parse("XSTS token request", response, XstsErrorResponse)
            raise XboxPolicyError(error.xerr, error.redirect)
        if response.status_code != 200:
            raise upstream_failure("XSTS token request", response)

        return XstsToken.from_response(parse("XSTS token request", response, XboxAuthResponse))
