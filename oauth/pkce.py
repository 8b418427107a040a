"""PKCE (Proof Key for Code Exchange) generation"""

import base64
import hashlib
import secrets

from .models import PKCEContext

# Bytes of entropy drawn for the verifier and the state
ENTROPY_BYTES = 32


def base64url(data: bytes) -> str:
    """URL-safe base64 without padding"""
    return base64.urlsafe_b64encode(data).decode('ascii').rstrip('=')


def generate_code_verifier() -> str:
    """Generate a high-entropy code verifier (43 chars for 32 bytes)"""
    return base64url(secrets.token_bytes(ENTROPY_BYTES))


def generate_code_challenge(code_verifier: str) -> str:
    """Derive the S256 challenge from the verifier's text form

    The provider hashes the verifier string it receives, so the hash input
    is the encoded text, not the random bytes behind it.
    """
    return base64url(hashlib.sha256(code_verifier.encode('utf-8')).digest())


def generate_state() -> str:
    return base64url(secrets.token_bytes(ENTROPY_BYTES))


def generate_context() -> PKCEContext:
    """Generate a fresh verifier/challenge/state triple for one flow"""
    verifier = generate_code_verifier()
    return PKCEContext(
        verifier=verifier,
        challenge=generate_code_challenge(verifier),
        state=generate_state(),
    )
