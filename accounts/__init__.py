"""Account roster, rotation policy and browser profiles"""

from .store import Account, AccountStore, find_by_id, least_recently_used
from .profiles import ProfileLocator, close_signal, setup_profile

__all__ = [
    "Account",
    "AccountStore",
    "find_by_id",
    "least_recently_used",
    "ProfileLocator",
    "close_signal",
    "setup_profile",
]
