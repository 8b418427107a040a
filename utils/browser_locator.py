"""Chrome/Chromium executable discovery"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from oauth.exceptions import BrowserNotFoundError

logger = logging.getLogger(__name__)

CHROME_PATHS = (
    "/usr/bin/google-chrome-stable",
    "/usr/bin/google-chrome",
    "/usr/bin/chromium-browser",
    "/usr/bin/chromium",
    "/snap/bin/chromium",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
)


def find_chrome(override: Optional[str] = None, candidates: Iterable[str] = CHROME_PATHS) -> str:
    """Locate a Chrome/Chromium executable

    Args:
        override: Explicit path (CHROME_PATH); must exist when given
        candidates: Well-known install locations, checked in order

    Raises:
        BrowserNotFoundError: If nothing usable is found
    """
    if override:
        if Path(override).exists():
            return override
        raise BrowserNotFoundError(f"CHROME_PATH points to a missing file: {override}")

    for candidate in candidates:
        if Path(candidate).exists():
            logger.debug(f"Using browser at {candidate}")
            return candidate

    raise BrowserNotFoundError(
        "Could not find Chrome/Chromium. Install Google Chrome or set CHROME_PATH."
    )
