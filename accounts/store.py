"""Account roster and least-recently-used rotation policy"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from oauth.exceptions import AccountNotFoundError, ConfigurationError, RosterError
from settings import ACCOUNTS_FILE
from utils.storage import write_json_atomically

logger = logging.getLogger(__name__)


def parse_timestamp(value: str) -> datetime:
    """Parse ISO-8601 text; a trailing Z and naive values are read as UTC"""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Account:
    """One identity in the roster

    Attributes:
        id: Unique opaque identifier
        email: Display email
        last_used: ISO-8601 text of the last successful rotation, None if never
        extra: Unrecognized roster keys, written back untouched
        source: The roster entry as loaded; unchanged records are written back as is
    """
    id: str
    email: str = ""
    last_used: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    source: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def last_used_at(self) -> Optional[datetime]:
        return parse_timestamp(self.last_used) if self.last_used else None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        extra = {k: v for k, v in data.items() if k not in ("id", "email", "lastUsed")}
        return cls(
            id=data["id"],
            email=data.get("email") or "",
            last_used=data.get("lastUsed"),
            extra=extra,
            source=dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        if not self.source:
            data: Dict[str, Any] = {"id": self.id, "email": self.email, "lastUsed": self.last_used}
            data.update(self.extra)
            return data

        # Key order and absent keys of the loaded entry are kept
        data = dict(self.source)
        if self.last_used != self.source.get("lastUsed"):
            data["lastUsed"] = self.last_used
        return data

    def describe(self) -> str:
        return f"{self.email} ({self.id})" if self.email else self.id


def least_recently_used(accounts: List[Account]) -> Account:
    """Pick the account to rotate to next

    Never-used accounts come first, then the oldest lastUsed; ties keep
    roster order.

    Raises:
        ConfigurationError: If the roster is empty
    """
    if not accounts:
        raise ConfigurationError("No accounts configured in the roster")

    def sort_key(account: Account):
        used_at = account.last_used_at
        if used_at is None:
            return (0, 0.0)
        return (1, used_at.timestamp())

    # sorted() is stable, so exact ties stay in roster order
    return sorted(accounts, key=sort_key)[0]


def find_by_id(accounts: List[Account], account_id: str) -> Optional[Account]:
    """Exact-match lookup; None if absent"""
    for account in accounts:
        if account.id == account_id:
            return account
    return None


class AccountStore:
    """Roster file: read fully, rewritten fully on every change

    Records that did not change are written back exactly as they were loaded.
    """

    def __init__(self, accounts_file: Optional[Path] = None, clock: Callable[[], datetime] = utc_now):
        self.accounts_path = Path(accounts_file if accounts_file else ACCOUNTS_FILE)
        self._clock = clock
        self._document: Dict[str, Any] = {}
        self.accounts: List[Account] = []

    def load(self) -> List[Account]:
        """Read and validate the roster

        Raises:
            RosterError: If the file is missing, malformed or inconsistent
        """
        if not self.accounts_path.exists():
            raise RosterError(f"Account roster not found at {self.accounts_path}")

        try:
            document = json.loads(self.accounts_path.read_text())
        except json.JSONDecodeError as e:
            raise RosterError(f"Failed to parse {self.accounts_path}: {e}") from e
        except OSError as e:
            raise RosterError(f"Failed to read {self.accounts_path}: {e}") from e

        entries = document.get("accounts") if isinstance(document, dict) else None
        if not isinstance(entries, list):
            raise RosterError(f"{self.accounts_path} must contain an \"accounts\" list")

        accounts = []
        seen = set()
        for idx, entry in enumerate(entries):
            if not isinstance(entry, dict) or not entry.get("id"):
                raise RosterError(f"Account at index {idx} has no id")
            account = Account.from_dict(entry)
            if account.id in seen:
                raise RosterError(f"Duplicate account id: {account.id}")
            if account.last_used is not None:
                try:
                    used_at = account.last_used_at
                except (TypeError, ValueError) as e:
                    raise RosterError(f"Invalid lastUsed for {account.id}: {account.last_used!r}") from e
                if used_at > self._clock():
                    logger.warning(f"lastUsed for {account.id} is in the future: {account.last_used}")
            seen.add(account.id)
            accounts.append(account)

        self._document = document
        self.accounts = accounts
        logger.debug(f"Loaded {len(accounts)} account(s) from {self.accounts_path}")
        return accounts

    def save(self):
        document = dict(self._document)
        document["accounts"] = [account.to_dict() for account in self.accounts]
        write_json_atomically(self.accounts_path, document)
        self._document = document

    def get(self, account_id: str) -> Account:
        """Look an account up by id

        Raises:
            AccountNotFoundError: If no account has that id
        """
        account = find_by_id(self.accounts, account_id)
        if account is None:
            raise AccountNotFoundError(account_id, [a.id for a in self.accounts])
        return account

    def least_recently_used(self) -> Account:
        return least_recently_used(self.accounts)

    def mark_used(self, account_id: str) -> Account:
        """Stamp the account with the current time and rewrite the roster

        The in-memory change is rolled back if the write fails.
        """
        account = self.get(account_id)
        previous = account.last_used
        account.last_used = format_timestamp(self._clock())
        try:
            self.save()
        except Exception:
            account.last_used = previous
            raise
        logger.info(f"Marked {account_id} used at {account.last_used}")
        return account
