"""Shared fixtures and Playwright fakes for the rotator tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

CODE = "Ab3_" + "c" * 36
STATE = "St8-" + "s" * 36


class FakeElement:
    def __init__(self, text=None, value=None, attrs=None, click_error=None, on_click=None):
        self.text = text
        self.value = value
        self.attrs = attrs or {}
        self.click_error = click_error
        self.on_click = on_click
        self.clicked = False

    async def input_value(self):
        if self.value is None:
            raise PlaywrightError("Node is not an <input>, <textarea> or <select> element")
        return self.value

    async def text_content(self):
        return self.text

    async def get_attribute(self, name):
        return self.attrs.get(name)

    async def click(self, timeout=None):
        if self.click_error:
            raise self.click_error
        self.clicked = True
        if self.on_click:
            self.on_click()


class FakePage:
    """Just enough of playwright's Page for the consent flow"""

    def __init__(
        self,
        elements=None,
        body_text="",
        buttons=None,
        callback_url=None,
        goto_error=None,
        on_goto=None,
    ):
        self.url = "about:blank"
        self.elements = elements or {}
        self.body_text = body_text
        self.buttons = buttons or {}
        self.callback_url = callback_url
        self.goto_error = goto_error
        self.on_goto = on_goto
        self.visited = []
        self.waited_selectors = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        if self.goto_error:
            raise self.goto_error
        self.url = url
        if self.on_goto:
            self.on_goto()

    async def wait_for_selector(self, selector, timeout=None):
        self.waited_selectors.append(selector)
        if selector in self.buttons:
            return self.buttons[selector]
        raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def wait_for_url(self, pattern, timeout=None):
        if self.callback_url is None:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {pattern}")
        self.url = self.callback_url

    async def wait_for_timeout(self, timeout):
        return None

    async def query_selector(self, selector):
        return self.elements.get(selector)

    async def text_content(self, selector):
        return self.body_text


class FakeContext:
    def __init__(self, page: FakePage):
        self.pages = [page]
        self.closed = False
        self._handlers = {}

    def on(self, event, handler):
        self._handlers.setdefault(event, []).append(handler)

    def fire_close(self):
        for handler in self._handlers.get("close", []):
            handler(self)

    async def new_page(self):
        return self.pages[0]

    async def close(self):
        self.closed = True
        self.fire_close()


class FakeChromium:
    def __init__(self, context: FakeContext):
        self.context = context
        self.launches = []

    async def launch_persistent_context(self, user_data_dir, **kwargs):
        self.launches.append((user_data_dir, kwargs))
        return self.context


class FakePlaywright:
    def __init__(self, context: FakeContext):
        self.chromium = FakeChromium(context)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    @property
    def launches(self):
        return self.chromium.launches


@pytest.fixture
def callback_url() -> str:
    return f"https://platform.claude.com/oauth/code/callback?code={CODE}&state={STATE}"


@pytest.fixture
def make_playwright() -> Callable[[FakePage], tuple[FakePlaywright, FakeContext]]:
    def _make(page: FakePage):
        context = FakeContext(page)
        return FakePlaywright(context), context

    return _make


@pytest.fixture
def write_roster(tmp_path: Path) -> Callable[[list[dict[str, Any]]], Path]:
    def _write(accounts: list[dict[str, Any]]) -> Path:
        path = tmp_path / "accounts.json"
        path.write_text(json.dumps({"accounts": accounts}, indent=2) + "\n")
        return path

    return _write
