import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from minecraft_identity.shared.config import MinecraftIdentityProviderConfig
from minecraft_identity.shared.minecraft import MINECRAFT_AUTH_URL, MINECRAFT_PROFILE_URL
from minecraft_identity.shared.xbox import XBOX_USER_AUTH_URL, XBOX_XSTS_AUTH_URL

NOTCH_ID = "069a79f444e94726a5befca90e38aaf5"


def _base_url(request: httpx.Request) -> str:
    return f"{request.url.scheme}://{request.url.host}{request.url.path}"


class FakeUpstream:
    """Answers requests by URL with canned responses and records every call."""

    def __init__(self):
        self.routes: Dict[str, httpx.Response] = {}
        self.errors: Dict[str, Exception] = {}
        self.requests: List[httpx.Request] = []

    def reply(self, url: str, status_code: int = 200, body: Any = None):
        if isinstance(body, (dict, list)):
            self.routes[url] = httpx.Response(status_code, json=body)
        else:
            self.routes[url] = httpx.Response(status_code, text=body or "")

    def fail(self, url: str, error: Exception):
        self.errors[url] = error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = _base_url(request)
        if url in self.errors:
            raise self.errors[url]
        if url not in self.routes:
            return httpx.Response(500, text=f"unexpected call to {url}")
        return self.routes[url]

    def calls_to(self, url: str) -> List[httpx.Request]:
        return [r for r in self.requests if _base_url(r) == url]

    def json_body(self, url: str) -> Any:
        return json.loads(self.calls_to(url)[-1].content)

    def xbox_claims(self, gtg: Optional[str] = "Gamer1", xid: Optional[str] = "X1") -> Dict[str, Any]:
        claim = {"uhs": "h1"}
        if gtg is not None:
            claim["gtg"] = gtg
        if xid is not None:
            claim["xid"] = xid
        return {"xui": [claim]}

    def login_chain(self, gtg: Optional[str] = "Gamer1", xid: Optional[str] = "X1", profile_status: int = 200):
        """Scripts every hop of a login; the profile answer depends on `profile_status`."""
        self.reply(XBOX_USER_AUTH_URL, 200, {"Token": "T1", "DisplayClaims": self.xbox_claims(gtg, xid)})
        self.reply(XBOX_XSTS_AUTH_URL, 200, {"Token": "T2", "DisplayClaims": self.xbox_claims(gtg, xid)})
        self.reply(MINECRAFT_AUTH_URL, 200, {"access_token": "M1", "token_type": "Bearer", "expires_in": 86400})
        if profile_status == 200:
            self.reply(MINECRAFT_PROFILE_URL, 200, {"id": NOTCH_ID, "name": "Notch"})
        else:
            self.reply(MINECRAFT_PROFILE_URL, profile_status, {"error": "NOT_FOUND"})


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def client(upstream):
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream))


@pytest.fixture
def config():
    return MinecraftIdentityProviderConfig(client_id="app-id", client_secret="app-secret")
