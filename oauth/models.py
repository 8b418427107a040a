"""Data models for the OAuth rotation flow"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class PKCEContext:
    """PKCE values for a single authorization attempt

    Attributes:
        verifier: URL-safe random secret kept local until the token exchange
        challenge: SHA-256 of the verifier text, URL-safe encoded
        state: Independent random token echoed back by the provider
    """
    verifier: str
    challenge: str
    state: str


@dataclass(frozen=True)
class ConsentResult:
    """Outcome of driving the consent page

    Attributes:
        code: Authorization code with any trailing state removed
        reason: Failure reason when no code was obtained
    """
    code: Optional[str] = None
    reason: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.code is not None

    @classmethod
    def not_completed(cls, reason: str) -> "ConsentResult":
        return cls(code=None, reason=reason)


@dataclass
class TokenBundle:
    """Tokens for the active identity

    Attributes:
        access_token: Bearer token for API requests
        refresh_token: Token used to renew the access token
        expires_at: Absolute expiry as epoch milliseconds
        scopes: Granted scopes in provider order
    """
    access_token: str
    refresh_token: str
    expires_at: int
    scopes: List[str] = field(default_factory=list)

    @classmethod
    def from_token_response(
        cls,
        payload: Dict[str, Any],
        default_scopes: str,
        received_at: Optional[float] = None,
    ) -> "TokenBundle":
        """Build a bundle from the token endpoint's JSON body

        Args:
            payload: Parsed response containing access_token, refresh_token, expires_in
            default_scopes: Space separated scopes used when the response has none
            received_at: Receipt time in epoch seconds (default: now)

        Raises:
            KeyError, TypeError, ValueError: If a required field is missing or malformed
        """
        if received_at is None:
            received_at = time.time()

        access_token = payload["access_token"]
        refresh_token = payload["refresh_token"]
        expires_in = payload["expires_in"]
        if not isinstance(access_token, str) or not isinstance(refresh_token, str):
            raise TypeError("access_token and refresh_token must be strings")
        if not access_token or not refresh_token:
            raise ValueError("access_token and refresh_token must not be empty")
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)):
            raise TypeError("expires_in must be a number of seconds")

        scope = payload.get("scope") or default_scopes
        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=int((received_at + expires_in) * 1000),
            scopes=scope.split(),
        )

    def to_credentials(self) -> Dict[str, Any]:
        """Serialize to the credential file layout"""
        return {
            "claudeAiOauth": {
                "accessToken": self.access_token,
                "refreshToken": self.refresh_token,
                "expiresAt": self.expires_at,
                "scopes": list(self.scopes),
            }
        }
