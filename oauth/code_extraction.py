"""Authorization code extraction from the callback page

The callback page's markup is outside our control, so extraction is an
ordered chain of independent extractors over different evidence: display
elements, the rendered body text, and finally the page URL. The first
extractor to produce a plausible value wins.
"""

import logging
import re
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple
from urllib.parse import parse_qs, urlsplit

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

logger = logging.getLogger(__name__)

# Shorter values are labels or placeholders, not codes
MIN_CODE_LENGTH = 10

# Elements the callback page has been seen to render the code in
CODE_ELEMENT_SELECTORS = (
    "code",
    "pre",
    "input[readonly]",
    "textarea",
    ".code",
    "[data-code]",
)

CODE_STATE_PATTERN = re.compile(r"([A-Za-z0-9_-]{20,}#[A-Za-z0-9_-]{20,})")

Extractor = Callable[[Page], Awaitable[Optional[str]]]


def split_authorization_code(raw: str) -> Tuple[str, Optional[str]]:
    """Split a raw "code#state" value

    Returns:
        Tuple of (code, state); state is None when there is no separator
    """
    code, sep, state = raw.partition("#")
    return code, (state if sep else None)


def find_code_in_text(text: Optional[str]) -> Optional[str]:
    """Find the first code#state token in free text"""
    if not text:
        return None
    match = CODE_STATE_PATTERN.search(text)
    return match.group(1) if match else None


def code_from_url(url: Optional[str]) -> Optional[str]:
    """Rebuild a raw code from the callback URL

    A state in the query wins over a URL fragment when both are present.
    """
    if not url:
        return None

    base_url, _, fragment = url.partition("#")
    params = parse_qs(urlsplit(base_url).query)
    code = (params.get("code") or [""])[0]
    if not code:
        return None

    query_state = (params.get("state") or [""])[0]
    if query_state:
        return f"{code}#{query_state}"
    if fragment:
        return f"{code}#{fragment}"
    return code


def _plausible(candidate: Optional[str]) -> Optional[str]:
    if candidate is None:
        return None
    candidate = candidate.strip()
    return candidate if len(candidate) > MIN_CODE_LENGTH else None


async def _element_candidate(page: Page, selector: str) -> Optional[str]:
    element = await page.query_selector(selector)
    if element is None:
        return None

    try:
        value = await element.input_value()
    except PlaywrightError:
        # Not an input/textarea
        value = None
    if not value and selector == "[data-code]":
        value = await element.get_attribute("data-code")
    if not value:
        value = await element.text_content()
    return value


async def extract_from_elements(page: Page) -> Optional[str]:
    """Scan likely display elements for a value or text content"""
    for selector in CODE_ELEMENT_SELECTORS:
        try:
            candidate = _plausible(await _element_candidate(page, selector))
        except PlaywrightError as e:
            logger.debug(f"Selector {selector!r} unreadable: {e}")
            continue
        if candidate:
            logger.debug(f"Code found in element {selector!r}")
            return candidate
    return None


async def extract_from_body_text(page: Page) -> Optional[str]:
    """Search the rendered body text for a code#state token"""
    try:
        body_text = await page.text_content("body")
    except PlaywrightError as e:
        logger.debug(f"Body text unreadable: {e}")
        return None
    return _plausible(find_code_in_text(body_text))


async def extract_from_location(page: Page) -> Optional[str]:
    """Rebuild the code from the current URL's query and fragment"""
    return _plausible(code_from_url(page.url))


DEFAULT_EXTRACTORS: List[Extractor] = [
    extract_from_elements,
    extract_from_body_text,
    extract_from_location,
]


async def extract_authorization_code(
    page: Page,
    extractors: Sequence[Extractor] = DEFAULT_EXTRACTORS,
) -> Optional[str]:
    """Run extractors in order, returning the first raw code found

    Returns:
        Raw code (possibly "code#state"), or None if every extractor came up empty
    """
    for extractor in extractors:
        raw = await extractor(page)
        if raw:
            logger.info(f"Authorization code extracted via {extractor.__name__}")
            return raw
    return None
