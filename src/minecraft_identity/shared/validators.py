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
from abc import ABC, abstractmethod
from typing import Optional, Any

from minecraft_identity.shared.models import FederatedIdentity
from minecraft_identity.shared.provider import MinecraftIdentityProvider

logger = logging.getLogger(__name__)


class IdentityValidator(ABC):
    """
    Abstract base class for identity validators.
    """

    @abstractmethod
    async def validate(self, request: Any) -> Optional[FederatedIdentity]:
        """
        Validate the request for user authentication.
        Args:
            request: The incoming web framework request object.
        """
        pass


class MicrosoftTokenValidator(IdentityValidator):
    """
    Resolves a Minecraft identity from a Microsoft access token sent by the client.

    Returns None when the header is missing; any pipeline failure is raised
    as an IdentityException so the middleware can report it.
    """

    def __init__(
        self,
        provider: MinecraftIdentityProvider,
        header_key: str = "Authorization",
        scheme: Optional[str] = "Bearer",
        realm: Optional[str] = None,
    ):
        self.provider = provider
        self.header_key = header_key
        self.scheme = scheme.lower().strip() + " " if scheme else None
        self.scheme_len = len(self.scheme) if self.scheme else 0
        self.realm = realm

    async def validate(self, request: Any) -> Optional[FederatedIdentity]:
        header_value = request.headers.get(self.header_key)
        if not header_value:
            return None

        if self.scheme:
            if not header_value.lower().startswith(self.scheme):
                return None
            token = header_value[self.scheme_len:]
        else:
            token = header_value

        if not token:
            return None

        identity = await self.provider.get_federated_identity(token, {"realm": self.realm})
        logger.info(f"Microsoft token resolved to {identity.edition.value} identity {identity.id}")
        return identity
