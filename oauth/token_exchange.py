"""OAuth token exchange functionality"""

import json
import logging
import time
from typing import Optional

import httpx

from settings import CLIENT_ID, REDIRECT_URI, SCOPES, TOKEN_EXCHANGE_TIMEOUT, TOKEN_URL
from .exceptions import TokenExchangeError
from .models import TokenBundle

logger = logging.getLogger(__name__)


async def exchange_code(
    code: str,
    code_verifier: str,
    state: Optional[str] = None,
    client_id: str = CLIENT_ID,
    redirect_uri: str = REDIRECT_URI,
    token_url: str = TOKEN_URL,
    default_scopes: str = SCOPES,
    timeout: float = TOKEN_EXCHANGE_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TokenBundle:
    """Exchange an authorization code for tokens

    Single attempt; never retried.

    Args:
        code: Authorization code with any "#state" suffix already removed
        code_verifier: PKCE verifier matching the challenge sent at authorize time
        state: State issued for this flow, sent along when given
        transport: Optional httpx transport (tests)

    Returns:
        TokenBundle with expiry computed from the receipt time

    Raises:
        TokenExchangeError: On transport failure, non-200 status or unusable body
    """
    body = {
        "grant_type": "authorization_code",
        "client_id": client_id,
        "code": code,
        "redirect_uri": redirect_uri,
        "code_verifier": code_verifier,
    }
    if state:
        body["state"] = state

    logger.info(f"Exchanging authorization code for tokens at {token_url}")

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(
                token_url,
                json=body,
                headers={"Content-Type": "application/json"},
            )
    except httpx.TimeoutException as e:
        raise TokenExchangeError(f"Token exchange timed out after {timeout}s") from e
    except httpx.RequestError as e:
        raise TokenExchangeError(f"Token exchange request failed: {e}") from e

    received_at = time.time()
    logger.debug(f"Token exchange response status: {response.status_code}")

    if response.status_code != 200:
        raise TokenExchangeError(
            "Token exchange failed", status_code=response.status_code, body=response.text
        )

    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TokenExchangeError(
            "Failed to parse token response", status_code=response.status_code, body=response.text
        ) from e

    if not isinstance(payload, dict):
        raise TokenExchangeError(
            "Token response is not a JSON object", status_code=response.status_code, body=response.text
        )

    try:
        bundle = TokenBundle.from_token_response(payload, default_scopes, received_at=received_at)
    except (KeyError, TypeError, ValueError) as e:
        raise TokenExchangeError(
            f"Token response missing or malformed field {e}",
            status_code=response.status_code,
            body=response.text,
        ) from e

    logger.info("Got access token and refresh token")
    return bundle
