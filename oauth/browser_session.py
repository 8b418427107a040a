"""Automated consent in a persistent browser session

Drives one account's persistent Chrome profile through the authorize page:
navigate, approve, wait for the callback redirect, and pull the
authorization code off whatever the callback renders. Flow failures never
escape ``complete_consent``; they come back as a negative ConsentResult.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from settings import (
    BROWSER_HEADLESS,
    CALLBACK_SETTLE_DELAY,
    CHROME_PATH,
    CONSENT_BUTTON_TIMEOUT,
    NAVIGATION_TIMEOUT,
    REDIRECT_TIMEOUT,
    REDIRECT_URL_PATTERN,
)
from utils.browser_locator import find_chrome
from .code_extraction import extract_authorization_code, split_authorization_code
from .exceptions import (
    BrowserFlowError,
    CodeExtractionError,
    ConsentTimeoutError,
    NavigationError,
    RedirectTimeoutError,
    StateMismatchError,
)
from .models import ConsentResult

logger = logging.getLogger(__name__)

# Checked in order; the first visible match is clicked
APPROVE_BUTTON_SELECTORS = (
    'button:has-text("Allow")',
    'button:has-text("Approve")',
    'button:has-text("Accept")',
    'button:has-text("Authorize")',
    'button:has-text("Continue")',
)


def persistent_context_options(executable_path: str, headless: bool = False) -> Dict[str, Any]:
    """Launch options that make the automated browser look like a normal one"""
    return {
        "headless": headless,
        "executable_path": executable_path,
        "args": [
            "--disable-blink-features=AutomationControlled",
            "--no-first-run",
            "--no-default-browser-check",
        ],
        "ignore_default_args": ["--enable-automation"],
        "viewport": {"width": 1280, "height": 800},
    }


def _ms(seconds: float) -> float:
    return seconds * 1000


class BrowserSessionDriver:
    """Owns a single browser session bound to one account profile"""

    def __init__(
        self,
        executable_path: Optional[str] = None,
        headless: bool = BROWSER_HEADLESS,
        navigation_timeout: float = NAVIGATION_TIMEOUT,
        consent_button_timeout: float = CONSENT_BUTTON_TIMEOUT,
        redirect_timeout: float = REDIRECT_TIMEOUT,
        settle_delay: float = CALLBACK_SETTLE_DELAY,
        redirect_url_pattern: str = REDIRECT_URL_PATTERN,
        approve_selectors: Sequence[str] = APPROVE_BUTTON_SELECTORS,
        playwright_factory: Callable[[], Any] = async_playwright,
    ):
        self.executable_path = executable_path
        self.headless = headless
        self.navigation_timeout = navigation_timeout
        self.consent_button_timeout = consent_button_timeout
        self.redirect_timeout = redirect_timeout
        self.settle_delay = settle_delay
        self.redirect_url_pattern = redirect_url_pattern
        self.approve_selectors = tuple(approve_selectors)
        self._playwright_factory = playwright_factory

    def resolve_executable(self) -> str:
        """Find the browser binary, raising BrowserNotFoundError if absent"""
        if not self.executable_path:
            self.executable_path = find_chrome(CHROME_PATH or None)
        return self.executable_path

    async def complete_consent(
        self,
        profile_dir: Path,
        authorize_url: str,
        expected_state: str,
    ) -> ConsentResult:
        """Complete the consent step and return the authorization code

        Args:
            profile_dir: Persistent browser profile for the account
            authorize_url: Fully built authorization URL
            expected_state: State issued for this flow

        Returns:
            ConsentResult carrying the code, or the reason it was not obtained
        """
        executable_path = self.resolve_executable()

        try:
            async with self._playwright_factory() as playwright:
                context = await playwright.chromium.launch_persistent_context(
                    str(profile_dir),
                    **persistent_context_options(executable_path, self.headless),
                )
                try:
                    page = context.pages[0] if context.pages else await context.new_page()
                    raw_code = await self._drive(page, authorize_url)
                finally:
                    await context.close()
            code = self._accept(raw_code, expected_state)
        except BrowserFlowError as e:
            logger.error(f"Browser flow not completed ({e.reason}): {e}")
            return ConsentResult.not_completed(e.reason)
        except PlaywrightError as e:
            logger.error(f"Browser session failed: {e}")
            return ConsentResult.not_completed("browser_error")

        logger.info(f"Got authorization code: {code[:8]}...")
        return ConsentResult(code=code)

    async def _drive(self, page: Page, authorize_url: str) -> str:
        """Navigate, approve, wait for the redirect and extract the raw code"""
        await self._navigate(page, authorize_url)
        clicked = await self._click_approve(page)
        await self._wait_for_callback(page, clicked)

        if self.settle_delay > 0:
            # Callback page renders the code client-side
            await page.wait_for_timeout(_ms(self.settle_delay))

        raw_code = await extract_authorization_code(page)
        if not raw_code:
            raise CodeExtractionError(f"No authorization code found on {page.url}")
        return raw_code

    async def _navigate(self, page: Page, authorize_url: str) -> None:
        logger.info("Opening authorize page")
        try:
            await page.goto(
                authorize_url,
                wait_until="domcontentloaded",
                timeout=_ms(self.navigation_timeout),
            )
        except PlaywrightTimeoutError as e:
            raise NavigationError(f"Authorize page did not load within {self.navigation_timeout}s") from e
        except PlaywrightError as e:
            raise NavigationError(f"Authorize page failed to load: {e}") from e

    async def _click_approve(self, page: Page) -> bool:
        """Click the first approval button found

        Returns:
            True if a button was clicked; False means none appeared, which is
            fine for an account that is already approved.
        """
        for selector in self.approve_selectors:
            try:
                button = await page.wait_for_selector(
                    selector, timeout=_ms(self.consent_button_timeout)
                )
            except PlaywrightTimeoutError:
                continue
            if button is None:
                continue

            try:
                await button.click(timeout=_ms(self.consent_button_timeout))
            except PlaywrightError as e:
                logger.warning(f"Could not click {selector}: {e}")
                continue
            logger.info(f"Clicked approval button {selector}")
            return True

        logger.info("No approval button found, waiting for redirect anyway")
        return False

    async def _wait_for_callback(self, page: Page, clicked: bool) -> None:
        try:
            await page.wait_for_url(self.redirect_url_pattern, timeout=_ms(self.redirect_timeout))
        except PlaywrightTimeoutError as e:
            if not clicked:
                raise ConsentTimeoutError(
                    f"No approval button and no redirect within {self.redirect_timeout}s"
                ) from e
            raise RedirectTimeoutError(
                f"Callback not reached within {self.redirect_timeout}s of approving"
            ) from e
        logger.debug(f"Reached callback {page.url.split('?')[0]}")

    @staticmethod
    def _accept(raw_code: str, expected_state: str) -> str:
        """Validate any returned state and strip it from the code"""
        code, returned_state = split_authorization_code(raw_code)
        if returned_state is not None and returned_state != expected_state:
            raise StateMismatchError("State returned with the authorization code does not match this flow")
        if not code:
            raise CodeExtractionError("Authorization code is empty")
        return code
