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

import unicodedata
from enum import Enum
from typing import Optional, Dict, List
from pydantic import BaseModel, ConfigDict, Field


def format_uuid(raw_id: Optional[str]) -> Optional[str]:
    """
    Formats a 32 character Mojang id as a hyphenated UUID (8-4-4-4-12).
    Anything that is not exactly 32 characters long is returned unchanged.
    """
    if raw_id is None or len(raw_id) != 32:
        return raw_id
    return "-".join((raw_id[:8], raw_id[8:12], raw_id[12:16], raw_id[16:20], raw_id[20:]))


def gamertag_hash(gamertag: str) -> int:
    """
    Deterministic 32-bit hash of a gamertag (same value as java.lang.String#hashCode),
    so ids minted for gamertag-only Bedrock users stay stable across processes.
    """
    h = 0
    data = gamertag.encode("utf-16-be", "surrogatepass")
    for i in range(0, len(data), 2):
        h = (31 * h + int.from_bytes(data[i:i + 2], "big")) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


_NON_BREAKING_SPACES = "\u00a0\u2007\u202f"
_CONTROL_WHITESPACE = "\t\n\u000b\u000c\r\u001c\u001d\u001e\u001f"


def _is_whitespace(ch: str) -> bool:
    # java.lang.Character#isWhitespace
    if ch in _NON_BREAKING_SPACES:
        return False
    return ch in _CONTROL_WHITESPACE or unicodedata.category(ch) in ("Zs", "Zl", "Zp")


def is_blank(value: str) -> bool:
    """True for an empty string or one made only of whitespace, as java.lang.String#isBlank."""
    return all(_is_whitespace(ch) for ch in value)


# --- Xbox Live ---

class XuiClaim(BaseModel):
    uhs: Optional[str] = None
    gtg: Optional[str] = None
    xid: Optional[str] = None


class DisplayClaims(BaseModel):
    xui: List[XuiClaim] = Field(default_factory=list)


class XboxAuthResponse(BaseModel):
    """Body returned by both user.auth.xboxlive.com and xsts.auth.xboxlive.com."""
    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = Field(None, alias="Token")
    display_claims: Optional[DisplayClaims] = Field(None, alias="DisplayClaims")

    @property
    def first_claim(self) -> XuiClaim:
        if self.display_claims and self.display_claims.xui:
            return self.display_claims.xui[0]
        return XuiClaim()


class XstsErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    xerr: int = Field(0, alias="XErr")
    message: Optional[str] = Field(None, alias="Message")
    redirect: Optional[str] = Field(None, alias="Redirect")


class XboxUserToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: Optional[str] = None
    user_hash: Optional[str] = None

    @classmethod
    def from_response(cls, response: XboxAuthResponse) -> "XboxUserToken":
        return cls(token=response.token, user_hash=response.first_claim.uhs)


class XstsToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: Optional[str] = None
    user_hash: Optional[str] = None
    gamertag: Optional[str] = None
    xbox_user_id: Optional[str] = None

    @classmethod
    def from_response(cls, response: XboxAuthResponse) -> "XstsToken":
        claim = response.first_claim
        return cls(
            token=response.token,
            user_hash=claim.uhs,
            gamertag=claim.gtg,
            xbox_user_id=claim.xid,
        )


# --- Microsoft ---

class MicrosoftTokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int = 0
    token_type: Optional[str] = None


# --- Minecraft services ---

class MinecraftAccessToken(BaseModel):
    access_token: str
    token_type: Optional[str] = None
    expires_in: int = 0
    username: Optional[str] = None


class Skin(BaseModel):
    id: Optional[str] = None
    state: Optional[str] = None
    url: Optional[str] = None
    variant: Optional[str] = None


class Cape(BaseModel):
    id: Optional[str] = None
    state: Optional[str] = None
    url: Optional[str] = None
    alias: Optional[str] = None


class MinecraftProfile(BaseModel):
    id: str = Field(..., description="Raw Java Edition UUID, 32 hex characters without hyphens.")
    name: str
    skins: List[Skin] = Field(default_factory=list)
    capes: List[Cape] = Field(default_factory=list)

    @property
    def formatted_uuid(self) -> str:
        return format_uuid(self.id)


# --- Resolved identity ---

class Edition(str, Enum):
    JAVA = "java"
    BEDROCK = "bedrock"


class FederatedIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Formatted Minecraft UUID (java) or 'xbox-' prefixed id (bedrock).")
    username: str = Field(..., description="Java profile name or Xbox gamertag.")
    edition: Edition
    attributes: Dict[str, str] = Field(default_factory=dict, description="minecraft_* and xbox_* user attributes.")
    provider: str = Field("minecraft", description="The identity provider that resolved the identity.")
