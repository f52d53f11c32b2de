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

"""
Provider configuration for the Microsoft app registration.

Stored values (client id, secret) can be overridden from the environment:

    MINECRAFT_IDP_CLIENT_ID
    MINECRAFT_IDP_CLIENT_SECRET
    MINECRAFT_IDP_REDIRECT_URI

An override only applies when it is set and not blank.
"""

import os
from typing import Mapping, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field

AUTHORIZATION_URL = "https://login.live.com/oauth20_authorize.srf"
TOKEN_URL = "https://login.live.com/oauth20_token.srf"
DEFAULT_SCOPE = "XboxLive.signin offline_access"

ENV_CLIENT_ID = "MINECRAFT_IDP_CLIENT_ID"
ENV_CLIENT_SECRET = "MINECRAFT_IDP_CLIENT_SECRET"
ENV_REDIRECT_URI = "MINECRAFT_IDP_REDIRECT_URI"


class MinecraftIdentityProviderConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., description="Client ID of the Microsoft Azure app registration.")
    client_secret: str = Field(..., description="Client secret of the Microsoft Azure app registration.")
    default_scope: str = DEFAULT_SCOPE
    redirect_uri: Optional[str] = Field(None, description="Replaces the redirect URI computed by the host, if set.")
    authorization_url: str = AUTHORIZATION_URL
    token_url: str = TOKEN_URL

    def effective_redirect_uri(self, redirect_uri: str) -> str:
        return self.redirect_uri or redirect_uri


def _override(environ: Mapping[str, str], key: str) -> Optional[str]:
    value = environ.get(key)
    if value is None or not value.strip():
        return None
    return value


def resolve_config(
    config: MinecraftIdentityProviderConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> MinecraftIdentityProviderConfig:
    """Returns a copy of `config` with the environment overrides applied."""
    if environ is None:
        environ = os.environ

    updates = {}
    for field, key in (
        ("client_id", ENV_CLIENT_ID),
        ("client_secret", ENV_CLIENT_SECRET),
        ("redirect_uri", ENV_REDIRECT_URI),
    ):
        value = _override(environ, key)
        if value is not None:
            updates[field] = value
    return config.model_copy(update=updates)


def build_authorization_url(config: MinecraftIdentityProviderConfig, redirect_uri: str, state: str) -> str:
    params = {
        "client_id": config.client_id,
        "response_type": "code",
        "redirect_uri": config.effective_redirect_uri(redirect_uri),
        "scope": config.default_scope,
        "state": state,
    }
    return f"{config.authorization_url}?{urlencode(params)}"
