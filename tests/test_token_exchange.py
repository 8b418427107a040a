from __future__ import annotations

import json

import httpx
import pytest

from oauth.exceptions import TokenExchangeError
from oauth.models import TokenBundle
from oauth.token_exchange import exchange_code

NOW = 1_700_000_000.0
TOKEN_URL = "https://auth.example.test/v1/oauth/token"


def _transport(status: int = 200, body=None, text: str | None = None, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if text is not None:
            return httpx.Response(status, text=text)
        return httpx.Response(status, json=body)

    return httpx.MockTransport(handler)


@pytest.fixture(autouse=True)
def frozen_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("oauth.token_exchange.time.time", lambda: NOW)


@pytest.mark.asyncio
async def test_successful_exchange_builds_bundle() -> None:
    seen: list[httpx.Request] = []
    transport = _transport(
        body={
            "access_token": "sk-ant-oat01-access",
            "refresh_token": "sk-ant-ort01-refresh",
            "expires_in": 28800,
            "token_type": "Bearer",
            "scope": "user:inference user:profile",
        },
        seen=seen,
    )

    bundle = await exchange_code(
        "the-code",
        "the-verifier",
        client_id="client-1",
        redirect_uri="https://cb.example.test/callback",
        token_url=TOKEN_URL,
        transport=transport,
    )

    assert bundle == TokenBundle(
        access_token="sk-ant-oat01-access",
        refresh_token="sk-ant-ort01-refresh",
        expires_at=int((NOW + 28800) * 1000),
        scopes=["user:inference", "user:profile"],
    )
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == TOKEN_URL
    assert json.loads(request.content) == {
        "grant_type": "authorization_code",
        "client_id": "client-1",
        "code": "the-code",
        "redirect_uri": "https://cb.example.test/callback",
        "code_verifier": "the-verifier",
    }


@pytest.mark.asyncio
async def test_issued_state_is_sent_when_given() -> None:
    seen: list[httpx.Request] = []
    body = {"access_token": "a", "refresh_token": "r", "expires_in": 60}

    await exchange_code("c", "v", state="issued-state", token_url=TOKEN_URL, transport=_transport(body=body, seen=seen))

    assert json.loads(seen[0].content)["state"] == "issued-state"


@pytest.mark.asyncio
async def test_missing_scope_falls_back_to_configured_scopes() -> None:
    body = {"access_token": "a", "refresh_token": "r", "expires_in": 60}

    bundle = await exchange_code(
        "c", "v", token_url=TOKEN_URL, default_scopes="user:profile user:inference", transport=_transport(body=body)
    )

    assert bundle.scopes == ["user:profile", "user:inference"]
    assert bundle.expires_at == int((NOW + 60) * 1000)


@pytest.mark.asyncio
async def test_non_200_surfaces_status_and_body() -> None:
    transport = _transport(400, text='{"error": "invalid_grant", "error_description": "Invalid code"}')

    with pytest.raises(TokenExchangeError) as excinfo:
        await exchange_code("c", "v", token_url=TOKEN_URL, transport=transport)

    assert excinfo.value.status_code == 400
    assert "invalid_grant" in excinfo.value.body
    assert "HTTP 400" in str(excinfo.value)


@pytest.mark.asyncio
async def test_other_success_status_is_a_failure() -> None:
    with pytest.raises(TokenExchangeError) as excinfo:
        await exchange_code("c", "v", token_url=TOKEN_URL, transport=_transport(201, body={"access_token": "a"}))

    assert excinfo.value.status_code == 201


@pytest.mark.asyncio
async def test_unparseable_body_is_a_failure() -> None:
    with pytest.raises(TokenExchangeError) as excinfo:
        await exchange_code("c", "v", token_url=TOKEN_URL, transport=_transport(200, text="<html>oops</html>"))

    assert excinfo.value.body == "<html>oops</html>"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"refresh_token": "r", "expires_in": 60},
        {"access_token": "a", "expires_in": 60},
        {"access_token": "a", "refresh_token": "r"},
        {"access_token": "a", "refresh_token": "r", "expires_in": "soon"},
        ["not", "an", "object"],
    ],
)
async def test_incomplete_body_is_a_failure(body) -> None:
    with pytest.raises(TokenExchangeError):
        await exchange_code("c", "v", token_url=TOKEN_URL, transport=_transport(body=body))


@pytest.mark.asyncio
async def test_transport_error_is_a_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TokenExchangeError, match="request failed"):
        await exchange_code("c", "v", token_url=TOKEN_URL, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_timeout_is_a_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(TokenExchangeError, match="timed out"):
        await exchange_code("c", "v", token_url=TOKEN_URL, timeout=1.5, transport=httpx.MockTransport(handler))
