"""Playwright-backed browser session."""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from playwright.async_api import Browser, Error as PlaywrightError, Page, Playwright, async_playwright

from vowser.src.browser.base import BrowserActionError, BrowserControl
from vowser.src.utils.config import CONFIG, BrowserConfig
from vowser.src.utils.models import SelectOption

logger = logging.getLogger(__name__)

_SELECT_OPTIONS_SCRIPT = """
(el) => Array.from(el.options || []).map((opt) => ({
    value: opt.value,
    label: (opt.label || opt.textContent || "").trim(),
    isSelected: opt.selected,
}))
"""


class PlaywrightBrowser(BrowserControl):
    """Owns one Chromium instance and a single page.

    Lifecycle is explicit: call :meth:`start` before use and :meth:`close`
    when done (or use ``async with``).
    """

    def __init__(self, config: BrowserConfig | None = None) -> None:
        self.config = config or CONFIG.browser
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise BrowserActionError("browser is not started", action="start")
        return self._page

    async def start(self) -> None:
        if self._page is not None:
            return
        logger.info("[Playwright] Launching chromium (headless=%s)", self.config.headless)
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.config.headless)
        self._page = await self._browser.new_page()
        self._page.set_default_timeout(self.config.default_timeout_ms)

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()
        self._browser = None
        self._page = None
        self._playwright = None
        logger.info("[Playwright] Browser closed")

    # ------------------------------------------------------------------
    async def navigate(self, url: str) -> None:
        try:
            await self.page.goto(url, wait_until="domcontentloaded")
        except PlaywrightError as exc:
            raise BrowserActionError(f"navigate to {url} failed: {exc}", action="navigate", target=url) from exc

    async def click(self, selector: str, *, timeout_ms: Optional[float] = None) -> None:
        try:
            await self.page.locator(selector).first.click(timeout=timeout_ms)
        except PlaywrightError as exc:
            raise BrowserActionError(f"click on {selector} failed: {exc}", action="click", target=selector) from exc

    async def type(self, selector: str, value: str) -> None:
        try:
            await self.page.locator(selector).first.fill(value)
        except PlaywrightError as exc:
            raise BrowserActionError(f"fill on {selector} failed: {exc}", action="type", target=selector) from exc

    async def wait_for_selector(self, selector: str, *, timeout_ms: Optional[float] = None) -> None:
        try:
            await self.page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightError as exc:
            raise BrowserActionError(
                f"wait for {selector} failed: {exc}", action="wait_for_selector", target=selector
            ) from exc

    async def wait_for_network_idle(self) -> None:
        try:
            await self.page.wait_for_load_state("networkidle", timeout=self.config.network_idle_timeout_ms)
        except PlaywrightError:
            # long-polling pages never go idle; keep going
            logger.debug("[Playwright] networkidle not reached, continuing")

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        try:
            return await self.page.evaluate(script, arg)
        except PlaywrightError as exc:
            raise BrowserActionError(f"evaluate failed: {exc}", action="evaluate") from exc

    async def get_select_options(self, selector: str) -> List[SelectOption]:
        try:
            raw = await self.page.locator(selector).first.evaluate(_SELECT_OPTIONS_SCRIPT)
        except PlaywrightError as exc:
            raise BrowserActionError(
                f"read options of {selector} failed: {exc}", action="read_options", target=selector
            ) from exc
        return [SelectOption.model_validate(item) for item in raw or []]

    async def select_option(self, selector: str, value: str) -> None:
        try:
            await self.page.locator(selector).first.select_option(value=value)
        except PlaywrightError as exc:
            raise BrowserActionError(f"select on {selector} failed: {exc}", action="select", target=selector) from exc


__all__ = ["PlaywrightBrowser"]
