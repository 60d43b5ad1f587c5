import logging
from typing import Any, List, Optional, Protocol

from playwright.async_api import Browser, BrowserContext, ElementHandle, Page, Playwright, async_playwright
from playwright_stealth import stealth_async

from gig_scrapers.config import GlobalScraperSettings

logger = logging.getLogger(__name__)

SCROLL_TO_BOTTOM_SCRIPT = "window.scrollTo(0, document.body.scrollHeight)"
CLOSEST_LINK_SCRIPT = "el => { const a = el.closest('a'); return a ? a.href : null; }"


class PageDriver(Protocol):
    """What the collector and extractor need from a rendered page."""

    async def navigate(self, url: str, wait_until: str = "domcontentloaded") -> Any: ...

    async def query_all(self, selector: str) -> List[Any]: ...

    async def query_one(self, selector: str) -> Optional[Any]: ...

    async def text_content(self, handle: Any) -> Optional[str]: ...

    async def get_attribute(self, handle: Any, name: str) -> Optional[str]: ...

    async def get_property(self, handle: Any, name: str) -> Any: ...

    async def closest_link(self, handle: Any) -> Optional[str]: ...

    async def evaluate(self, script: str) -> Any: ...

    async def wait_for_selector(self, selector: str) -> Any: ...


class DriverSession(Protocol):
    async def start(self) -> PageDriver: ...

    async def close(self) -> None: ...


class PlaywrightDriver:
    """PageDriver backed by an async Playwright page."""

    def __init__(self, page: Page, navigation_timeout_ms: int = 30000, element_timeout_ms: int = 15000):
        self.page = page
        self.navigation_timeout_ms = navigation_timeout_ms
        self.element_timeout_ms = element_timeout_ms

    async def navigate(self, url: str, wait_until: str = "domcontentloaded") -> Any:
        logger.debug(f"Navigating to {url}")
        return await self.page.goto(url, timeout=self.navigation_timeout_ms, wait_until=wait_until)

    async def query_all(self, selector: str) -> List[ElementHandle]:
        return await self.page.query_selector_all(selector)

    async def query_one(self, selector: str) -> Optional[ElementHandle]:
        return await self.page.query_selector(selector)

    async def text_content(self, handle: ElementHandle) -> Optional[str]:
        return await handle.text_content()

    async def get_attribute(self, handle: ElementHandle, name: str) -> Optional[str]:
        return await handle.get_attribute(name)

    async def get_property(self, handle: ElementHandle, name: str) -> Any:
        js_handle = await handle.get_property(name)
        return await js_handle.json_value()

    async def closest_link(self, handle: ElementHandle) -> Optional[str]:
        return await handle.evaluate(CLOSEST_LINK_SCRIPT)

    async def evaluate(self, script: str) -> Any:
        return await self.page.evaluate(script)

    async def wait_for_selector(self, selector: str) -> Any:
        return await self.page.wait_for_selector(selector, timeout=self.element_timeout_ms)


class PlaywrightSession:
    """
    Owns one stealth Chromium page for a whole run.

    ``start`` launches Playwright, the browser, a context and a page, and
    applies playwright_stealth to the page. ``close`` tears all of it down and
    is safe to call after a failed or skipped ``start``.
    """

    def __init__(self, settings: Optional[GlobalScraperSettings] = None, headless: Optional[bool] = None):
        self.settings = settings or GlobalScraperSettings()
        self.headless = self.settings.default_headless_browser if headless is None else headless
        self.playwright_instance: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None

    async def start(self) -> PlaywrightDriver:
        self.playwright_instance = await async_playwright().start()
        self.browser = await self.playwright_instance.chromium.launch(
            headless=self.headless,
            args=['--no-sandbox', '--disable-blink-features=AutomationControlled']
        )
        self.context = await self.browser.new_context(
            user_agent=self.settings.default_user_agent,
            viewport={"width": self.settings.viewport_width, "height": self.settings.viewport_height},
            java_script_enabled=True
        )
        page = await self.context.new_page()
        await stealth_async(page)
        logger.info(f"Browser initialized (headless={self.headless}).")
        return PlaywrightDriver(
            page,
            navigation_timeout_ms=self.settings.navigation_timeout_ms,
            element_timeout_ms=self.settings.element_timeout_ms,
        )

    async def close(self) -> None:
        if self.browser:
            try:
                await self.browser.close()
                logger.info("Browser closed.")
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
        if self.playwright_instance:
            try:
                await self.playwright_instance.stop()
                logger.info("Playwright instance stopped.")
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")
        self.browser = None
        self.context = None
        self.playwright_instance = None
