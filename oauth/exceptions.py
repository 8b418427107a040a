"""Error taxonomy for account rotation"""

from pathlib import Path
from typing import Iterable, Optional


class RotationError(Exception):
    """Base exception for the account rotator"""

    pass


class ConfigurationError(RotationError):
    """Fatal setup problem; reported to the operator, never remediated"""

    pass


class AccountNotFoundError(ConfigurationError):
    """Requested account id is not in the roster"""

    def __init__(self, account_id: str, available: Optional[Iterable[str]] = None):
        self.account_id = account_id
        self.available = list(available or [])
        msg = f'Account "{account_id}" not found in roster'
        if self.available:
            msg += f". Available accounts: {', '.join(self.available)}"
        super().__init__(msg)


class ProfileMissingError(ConfigurationError):
    """No browser profile has been established for the account"""

    def __init__(self, account_id: str, profile_dir: Path):
        self.account_id = account_id
        self.profile_dir = profile_dir
        super().__init__(
            f"No browser profile found for {account_id} at {profile_dir}. Run the setup command first."
        )


class BrowserNotFoundError(ConfigurationError):
    """No usable Chrome/Chromium executable"""

    pass


class RosterError(ConfigurationError):
    """Account roster file is missing or malformed"""

    pass


class BrowserFlowError(RotationError):
    """Single-attempt failure while driving the consent page"""

    reason = "browser_flow_failed"


class NavigationError(BrowserFlowError):
    """Authorize page did not load in time"""

    reason = "navigation_failed"


class ConsentTimeoutError(BrowserFlowError):
    """Consent step could not be completed in time"""

    reason = "consent_timeout"


class RedirectTimeoutError(BrowserFlowError):
    """Browser never reached the callback URL"""

    reason = "redirect_timeout"


class CodeExtractionError(BrowserFlowError):
    """No extraction strategy produced a usable authorization code"""

    reason = "code_not_found"


class StateMismatchError(BrowserFlowError):
    """State returned with the code differs from the one issued"""

    reason = "state_mismatch"


class TokenExchangeError(RotationError):
    """Token endpoint refused the code or answered with garbage"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        detail = message
        if status_code is not None:
            detail += f" (HTTP {status_code})"
        if body:
            detail += f": {body}"
        super().__init__(detail)


class PersistenceError(RotationError):
    """Filesystem failure while writing the roster or credentials"""

    def __init__(self, path: Path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write {path}: {cause}")
