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
FastAPI helpers for the Minecraft identity broker.

- `get_current_user` / `require_auth`: dependencies reading the identity
  stored by `IdentifyMiddleware`.
- `create_login_router`: the browser login handshake (redirect to Microsoft,
  then resolve the identity on callback).
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse

from minecraft_identity.shared.config import build_authorization_url
from minecraft_identity.shared.errors import IdentityException
from minecraft_identity.shared.models import FederatedIdentity
from minecraft_identity.shared.provider import PROVIDER_NAME, MinecraftIdentityProvider

logger = logging.getLogger(__name__)

STATE_COOKIE = "minecraft_oauth_state"


def get_current_user(request: Request) -> Optional[FederatedIdentity]:
    """
    FastAPI dependency to get the current user, or None for public access.

    Usage:
        @app.get("/hello")
        async def hello(user: Optional[FederatedIdentity] = Depends(get_current_user)):
            return {"message": f"Hello, {user.username}" if user else "Hello, guest"}
    """
    return getattr(request.state, "user", None)


def require_auth(
    user: Optional[FederatedIdentity] = Depends(get_current_user)
) -> FederatedIdentity:
    """FastAPI dependency that raises 401 when no identity was resolved."""
    if not user:
        logger.warning("require_auth: No user found, raising 401.")
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def create_login_router(provider: MinecraftIdentityProvider, realm: Optional[str] = None) -> APIRouter:
    router = APIRouter(tags=[PROVIDER_NAME])

    @router.get("/login", name="minecraft_login")
    async def login(request: Request):
        state = secrets.token_urlsafe(16)
        redirect_uri = str(request.url_for("minecraft_callback"))
        url = build_authorization_url(provider.config, redirect_uri, state)
        response = RedirectResponse(url=url)
        response.set_cookie(STATE_COOKIE, state, httponly=True, samesite="lax")
        return response

    @router.get("/callback", name="minecraft_callback", response_model=FederatedIdentity)
    async def callback(request: Request, code: Optional[str] = None, state: Optional[str] = None):
        expected_state = request.cookies.get(STATE_COOKIE)
        if not state or not expected_state or not secrets.compare_digest(state, expected_state):
            logger.warning("Login callback with a missing or mismatched state.")
            raise HTTPException(status_code=400, detail="Invalid login state")
        if not code:
            response = JSONResponse(status_code=400, content={"detail": "Missing authorization code"})
        else:
            redirect_uri = str(request.url_for("minecraft_callback"))
            try:
                identity = await provider.authenticate_with_code(code, redirect_uri, {"realm": realm})
                response = JSONResponse(content=identity.model_dump(mode="json"))
            except IdentityException as e:
                response = JSONResponse(status_code=e.status_code, content={"detail": e.detail})

        # A matched state is single use
        response.delete_cookie(STATE_COOKIE)
        return response

    return router
