"""OAuth PKCE rotation flow for claude.ai accounts

Only modules that do not depend on ``accounts`` or ``utils`` are re-exported
here; import ``oauth.browser_session`` and ``oauth.flow`` directly.
"""

from .authorization import build_authorize_url
from .code_extraction import extract_authorization_code, split_authorization_code
from .exceptions import (
    AccountNotFoundError,
    BrowserFlowError,
    BrowserNotFoundError,
    CodeExtractionError,
    ConfigurationError,
    ConsentTimeoutError,
    NavigationError,
    PersistenceError,
    ProfileMissingError,
    RedirectTimeoutError,
    RosterError,
    RotationError,
    StateMismatchError,
    TokenExchangeError,
)
from .models import ConsentResult, PKCEContext, TokenBundle
from .pkce import generate_code_challenge, generate_context

__all__ = [
    "build_authorize_url",
    "extract_authorization_code",
    "split_authorization_code",
    "AccountNotFoundError",
    "BrowserFlowError",
    "BrowserNotFoundError",
    "CodeExtractionError",
    "ConfigurationError",
    "ConsentTimeoutError",
    "NavigationError",
    "PersistenceError",
    "ProfileMissingError",
    "RedirectTimeoutError",
    "RosterError",
    "RotationError",
    "StateMismatchError",
    "TokenExchangeError",
    "ConsentResult",
    "PKCEContext",
    "TokenBundle",
    "generate_code_challenge",
    "generate_context",
]
