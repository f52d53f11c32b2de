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
Shared HTTP plumbing for the upstream hops.

Every hop goes through `send()` so network errors surface as `UpstreamError`,
and through `parse()` so a malformed body does too.
"""

import logging
from typing import Any, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from minecraft_identity.shared.errors import UpstreamError

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}

ModelT = TypeVar("ModelT", bound=BaseModel)


async def send(client: httpx.AsyncClient, hop: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
    try:
        return await client.request(method, url, **kwargs)
    except httpx.HTTPError as e:
        logger.error(f"{hop} request to {url} failed: {e}")
        raise UpstreamError(hop, reason=f"request failed: {e.__class__.__name__}") from e


def upstream_failure(hop: str, response: httpx.Response) -> UpstreamError:
    logger.error(f"{hop} failed with status {response.status_code}: {response.text}")
    return UpstreamError(hop, response.status_code, response.text)


def parse(hop: str, response: httpx.Response, model: Type[ModelT]) -> ModelT:
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as e:
        logger.error(f"{hop} returned an unreadable body: {e}")
        raise UpstreamError(hop, response.status_code, response.text, reason="returned an unreadable body") from e
