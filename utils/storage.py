import json
import logging
import os
import platform
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from oauth.exceptions import PersistenceError
from oauth.models import TokenBundle
from settings import CREDENTIALS_FILE

logger = logging.getLogger(__name__)


def write_json_atomically(path: Path, data: Any, mode: Optional[int] = None, indent: Optional[int] = 2):
    """Write JSON to a temp file in the same directory, fsync, then rename

    A crash at any point leaves either the old file or the new one, never a
    truncated mix.

    Args:
        path: Destination file
        data: JSON-serializable value
        mode: Permission bits for the new file (default: keep umask default)
        indent: JSON indentation, None for compact output

    Raises:
        PersistenceError: If any filesystem step fails
    """
    path = Path(path)
    content = json.dumps(data, indent=indent) + "\n"
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            if mode is not None and platform.system() != "Windows":
                os.fchmod(fd, mode)
            os.write(fd, content.encode("utf-8"))
            os.fsync(fd)
        finally:
            os.close(fd)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise PersistenceError(path, e) from e


class CredentialStorage:
    """Credential file for the active identity, owner-only permissions"""

    def __init__(self, credentials_file: Optional[Path] = None):
        self.credentials_path = Path(credentials_file if credentials_file else CREDENTIALS_FILE)

    def _ensure_secure_directory(self):
        """Create parent directory with secure permissions"""
        parent_dir = self.credentials_path.parent
        if not parent_dir.exists():
            try:
                parent_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise PersistenceError(parent_dir, e) from e
            # Set directory permissions to 700 on Unix-like systems
            if platform.system() != "Windows":
                os.chmod(parent_dir, 0o700)

    def save_bundle(self, bundle: TokenBundle):
        """Replace the credential file with this bundle

        The previous file is replaced as a whole, never merged.
        """
        self._ensure_secure_directory()
        write_json_atomically(self.credentials_path, bundle.to_credentials(), mode=0o600, indent=None)
        logger.info(f"Credentials saved to {self.credentials_path}")

    def load_credentials(self) -> Optional[Dict[str, Any]]:
        """Load the stored OAuth record, or None if absent/unreadable"""
        if not self.credentials_path.exists():
            return None

        try:
            data = json.loads(self.credentials_path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not read {self.credentials_path}: {e}")
            return None

        if not isinstance(data, dict):
            return None
        oauth = data.get("claudeAiOauth")
        return oauth if isinstance(oauth, dict) else None

    def get_status(self) -> Dict[str, Any]:
        """Describe the stored credentials without exposing secrets"""
        creds = self.load_credentials()
        if not creds:
            return {
                "has_tokens": False,
                "is_expired": True,
                "expires_at": None,
                "time_until_expiry": "No tokens",
                "scopes": [],
            }

        scopes = creds.get("scopes") or []
        expires_at_ms = creds.get("expiresAt") or 0
        try:
            expires_at = int(expires_at_ms) // 1000
        except (TypeError, ValueError):
            logger.warning(f"Ignoring unreadable expiresAt in {self.credentials_path}: {expires_at_ms!r}")
            return {
                "has_tokens": True,
                "is_expired": False,
                "expires_at": None,
                "time_until_expiry": "Unknown",
                "scopes": scopes,
            }
        current_time = int(time.time())
        expires_str = datetime.fromtimestamp(expires_at).isoformat()

        if current_time >= expires_at:
            time_since = current_time - expires_at
            hours_since = time_since // 3600
            mins_since = (time_since % 3600) // 60
            if hours_since > 0:
                time_str = f"{hours_since}h {mins_since}m ago"
            else:
                time_str = f"{mins_since}m ago"

            return {
                "has_tokens": True,
                "is_expired": True,
                "expires_at": expires_str,
                "time_until_expiry": time_str,
                "scopes": scopes,
            }

        time_remaining = expires_at - current_time
        hours = time_remaining // 3600
        minutes = (time_remaining % 3600) // 60
        time_str = f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"

        return {
            "has_tokens": True,
            "is_expired": False,
            "expires_at": expires_str,
            "time_until_expiry": time_str,
            "expires_in_seconds": time_remaining,
            "scopes": scopes,
        }

    @property
    def credentials_file(self) -> Path:
        """Get the credentials file path"""
        return self.credentials_path
