"""Per-account persistent browser profiles"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Any, Callable, Optional

from playwright.async_api import async_playwright

from oauth.browser_session import persistent_context_options
from oauth.exceptions import PersistenceError
from settings import PROFILES_DIR, SIGN_IN_URL
from .store import Account

logger = logging.getLogger(__name__)


class ProfileLocator:
    """Maps account ids to browser profile directories"""

    def __init__(self, profiles_dir: Optional[Path] = None):
        self.profiles_dir = Path(profiles_dir if profiles_dir else PROFILES_DIR)

    def profile_dir(self, account_id: str) -> Path:
        return self.profiles_dir / account_id

    def user_data_dir(self, account_id: str) -> Path:
        """Directory handed to the browser as its user data dir"""
        return self.profile_dir(account_id) / "user-data"

    def exists(self, account_id: str) -> bool:
        return self.user_data_dir(account_id).exists()

    def remove(self, account_id: str):
        profile_dir = self.profile_dir(account_id)
        if not profile_dir.exists():
            return
        try:
            shutil.rmtree(profile_dir)
        except OSError as e:
            raise PersistenceError(profile_dir, e) from e
        logger.info(f"Removed profile {profile_dir}")


def close_signal(context: Any) -> asyncio.Event:
    """One-shot event set when the browser context closes

    Awaiting it is cancellable and does not poll the browser.
    """
    closed = asyncio.Event()
    context.on("close", lambda *_: closed.set())
    return closed


async def setup_profile(
    account: Account,
    locator: ProfileLocator,
    executable_path: str,
    sign_in_url: str = SIGN_IN_URL,
    playwright_factory: Callable[[], Any] = async_playwright,
) -> Path:
    """Open a headed browser on the account's profile for a manual sign-in

    Returns once the operator closes the browser window.

    Returns:
        The user data directory that now holds the session
    """
    user_data_dir = locator.user_data_dir(account.id)
    try:
        user_data_dir.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PersistenceError(user_data_dir.parent, e) from e

    async with playwright_factory() as playwright:
        context = await playwright.chromium.launch_persistent_context(
            str(user_data_dir),
            **persistent_context_options(executable_path, headless=False),
        )
        closed = close_signal(context)
        try:
            page = context.pages[0] if context.pages else await context.new_page()
            await page.goto(sign_in_url)
            await closed.wait()
        finally:
            if not closed.is_set():
                await context.close()

    logger.info(f"Profile saved for {account.id} at {user_data_dir}")
    return user_data_dir
