# fastapi_middleware/tests/test_fastapi_identify.py
from typing import Optional
from unittest.mock import AsyncMock, MagicMock, Mock
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi import Depends, FastAPI, Request
from starlette.testclient import TestClient

from minecraft_identity.fastapi_middleware.fastapi_identify import IdentifyMiddleware
from minecraft_identity.fastapi_middleware.tools import (
    STATE_COOKIE,
    create_login_router,
    get_current_user,
    require_auth,
)
from minecraft_identity.shared.config import MinecraftIdentityProviderConfig
from minecraft_identity.shared.errors import IdentityBrokerException
from minecraft_identity.shared.models import Edition, FederatedIdentity
from minecraft_identity.shared.provider import MinecraftIdentityProvider
from minecraft_identity.shared.validators import MicrosoftTokenValidator


@pytest.fixture
def java_identity():
    return FederatedIdentity(
        id="069a79f4-44e9-4726-a5be-fca90e38aaf5",
        username="Notch",
        edition=Edition.JAVA,
        attributes={
            "minecraft_uuid": "069a79f444e94726a5befca90e38aaf5",
            "minecraft_username": "Notch",
            "minecraft_edition": "java",
            "xbox_gamertag": "Gamer1",
            "xbox_user_id": "X1",
        },
    )


@pytest.fixture
def provider(java_identity):
    provider = MagicMock(spec=MinecraftIdentityProvider)
    provider.config = MinecraftIdentityProviderConfig(client_id="app-id", client_secret="app-secret")
    provider.get_federated_identity = AsyncMock(return_value=java_identity)
    provider.authenticate_with_code = AsyncMock(return_value=java_identity)
    return provider


@pytest.fixture
def app(provider):
    app = FastAPI()
    app.add_middleware(IdentifyMiddleware, validators=[MicrosoftTokenValidator(provider)])
    app.include_router(create_login_router(provider, realm="players"), prefix="/auth")

    @app.get("/secure-endpoint")
    async def secure_endpoint(user: FederatedIdentity = Depends(require_auth)):
        return {"message": "Access granted", "user": user.model_dump(mode="json")}

    @app.get("/optional-endpoint")
    async def optional_endpoint(user: Optional[FederatedIdentity] = Depends(get_current_user)):
        return {"user": user.username if user else None}

    return app


@pytest.fixture
def client(app):
    return TestClient(app)


# Middleware
def test_no_auth_provided(client, provider):
    response = client.get("/optional-endpoint")
    assert response.status_code == 200
    assert response.json() == {"user": None}
    provider.get_federated_identity.assert_not_awaited()


def test_require_auth_without_token(client):
    response = client.get("/secure-endpoint")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


def test_bearer_token_success(client, provider):
    response = client.get("/secure-endpoint", headers={"Authorization": "Bearer ms-token"})

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["id"] == "069a79f4-44e9-4726-a5be-fca90e38aaf5"
    assert user["edition"] == "java"
    assert user["attributes"]["xbox_gamertag"] == "Gamer1"
    provider.get_federated_identity.assert_awaited_once_with("ms-token", {"realm": None})


def test_pipeline_failure_is_reported(client, provider):
    provider.get_federated_identity.side_effect = IdentityBrokerException(
        "Xbox Live is not available in your country.", status_code=403
    )

    response = client.get("/optional-endpoint", headers={"Authorization": "Bearer ms-token"})

    assert response.status_code == 403
    assert response.json() == {"detail": "Xbox Live is not available in your country."}


def test_validators_run_in_order(java_identity):
    first = Mock()
    first.validate = AsyncMock(return_value=None)
    second = Mock()
    second.validate = AsyncMock(return_value=java_identity)

    app = FastAPI()
    app.add_middleware(IdentifyMiddleware, validators=[first, second])

    @app.get("/whoami")
    async def whoami(request: Request):
        return {"user": request.state.user.username}

    response = TestClient(app).get("/whoami")
    assert response.json() == {"user": "Notch"}
    first.validate.assert_awaited_once()
    second.validate.assert_awaited_once()


# Login router
def test_login_redirects_to_microsoft(client):
    response = client.get("/auth/login", follow_redirects=False)

    assert response.status_code == 307
    location = urlparse(response.headers["location"])
    query = parse_qs(location.query)
    assert location.netloc == "login.live.com"
    assert query["client_id"] == ["app-id"]
    assert query["scope"] == ["XboxLive.signin offline_access"]
    assert query["redirect_uri"] == ["http://testserver/auth/callback"]
    assert query["state"] == [response.cookies[STATE_COOKIE]]


def test_callback_resolves_identity(client, provider):
    client.cookies.set(STATE_COOKIE, "abc")

    response = client.get("/auth/callback", params={"code": "the-code", "state": "abc"})

    assert response.status_code == 200
    assert response.json()["username"] == "Notch"
    provider.authenticate_with_code.assert_awaited_once_with(
        "the-code", "http://testserver/auth/callback", {"realm": "players"}
    )


def test_callback_rejects_state_mismatch(client, provider):
    client.cookies.set(STATE_COOKIE, "abc")

    response = client.get("/auth/callback", params={"code": "the-code", "state": "other"})

    assert response.status_code == 400
    provider.authenticate_with_code.assert_not_awaited()


def test_callback_requires_code(client):
    client.cookies.set(STATE_COOKIE, "abc")
    response = client.get("/auth/callback", params={"state": "abc"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing authorization code"


def test_callback_failure_message(client, provider):
    provider.authenticate_with_code.side_effect = IdentityBrokerException(
        "Could not retrieve Xbox Gamertag for Bedrock user"
    )
    client.cookies.set(STATE_COOKIE, "abc")

    response = client.get("/auth/callback", params={"code": "the-code", "state": "abc"})

    assert response.status_code == 502
    assert response.json()["detail"] == "Could not retrieve Xbox Gamertag for Bedrock user"


def test_callback_clears_state_cookie(client):
    client.cookies.set(STATE_COOKIE, "abc")

    response = client.get("/auth/callback", params={"code": "the-code", "state": "abc"})

    assert response.status_code == 200
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{STATE_COOKIE}=")
    assert "max-age=0" in set_cookie.lower()


def test_callback_failure_clears_state_cookie(client, provider):
    provider.authenticate_with_code.side_effect = IdentityBrokerException("Minecraft authentication failed.")
    client.cookies.set(STATE_COOKIE, "abc")

    response = client.get("/auth/callback", params={"code": "the-code", "state": "abc"})

    assert response.status_code == 502
    assert "max-age=0" in response.headers["set-cookie"].lower()


def test_login_router_is_tagged(provider):
    router = create_login_router(provider)
    assert router.tags == ["Minecraft"]
