import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page

from ..locator import Locator, LocatorKind

logger = logging.getLogger(__name__)

SUPPORTED_BROWSERS = ['chromium', 'firefox', 'webkit']


@dataclass
class ExecutorConfig:
    """Browser settings read from the ``executor`` config section"""
    enabled: bool = True
    browser: str = "chromium"
    headless: bool = True
    timeout: int = 30000
    viewport: Dict[str, int] = field(default_factory=lambda: {"width": 1280, "height": 720})
    base_url: str = ""
    slow_mo: int = 0
    devtools: bool = False
    video_recording: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ExecutorConfig":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})


def to_selector(locator: Locator) -> str:
    """Translate a resolved locator into a Playwright selector"""
    if locator.kind is LocatorKind.XPATH:
        return f"xpath={locator.value}"
    if locator.kind is LocatorKind.CSS:
        return f"css={locator.value}"
    if locator.kind is LocatorKind.ID:
        return f"id={locator.value}"
    if locator.kind is LocatorKind.TEXT:
        return f"text={locator.value}"
    raise ValueError(f"Locator cannot be handed to the browser: {locator.display}")


class BrowserSession:
    """One isolated browser context and page, owned by a single test"""

    def __init__(self, context: BrowserContext, page: Page, timeout: int):
        self.context = context
        self.page = page
        self.timeout = timeout

    def element(self, locator: Locator):
        return self.page.locator(to_selector(locator)).first

    async def goto(self, url: str):
        await self.page.goto(url)
        await self.page.wait_for_load_state('networkidle')

    async def click(self, locator: Locator):
        await self.element(locator).click(timeout=self.timeout)

    async def fill(self, locator: Locator, value: str):
        await self.element(locator).fill(value, timeout=self.timeout)

    async def text_of(self, locator: Locator) -> str:
        return (await self.element(locator).inner_text(timeout=self.timeout)).strip()

    async def texts_of(self, locator: Locator) -> List[str]:
        return [t.strip() for t in await self.page.locator(to_selector(locator)).all_inner_texts()]

    async def attribute_of(self, locator: Locator, name: str) -> Optional[str]:
        return await self.element(locator).get_attribute(name, timeout=self.timeout)

    async def wait_visible(self, locator: Locator):
        await self.element(locator).wait_for(state='visible', timeout=self.timeout)

    async def has_text(self, text: str) -> bool:
        return await self.page.get_by_text(text).count() > 0

    @property
    def current_url(self) -> str:
        return self.page.url

    async def screenshot(self, path: Path) -> str:
        path.parent.mkdir(parents=True, exist_ok=True)
        await self.page.screenshot(path=str(path))
        return str(path)

    async def close(self):
        await self.context.close()


class PlaywrightDriver:
    """Launches one browser per run and hands out a session per test"""

    def __init__(self, config: ExecutorConfig, output_dir: Path):
        self.config = config
        self.output_dir = output_dir
        self._playwright = None
        self._browser: Optional[Browser] = None

    async def start(self):
        if self.config.browser not in SUPPORTED_BROWSERS:
            raise ValueError(f"Unsupported browser: {self.config.browser}")

        self._playwright = await async_playwright().start()
        browser_type = getattr(self._playwright, self.config.browser)

        launch_args = {
            'headless': self.config.headless,
            'slow_mo': self.config.slow_mo,
        }
        if self.config.devtools:
            launch_args['devtools'] = True

        self._browser = await browser_type.launch(**launch_args)
        logger.info(f"Launched {self.config.browser} (headless={self.config.headless})")

    async def new_session(self) -> BrowserSession:
        if self._browser is None:
            raise RuntimeError("Driver not started")

        context = await self._browser.new_context(
            viewport=self.config.viewport,
            record_video_dir=str(self.output_dir / "videos") if self.config.video_recording else None
        )
        page = await context.new_page()
        return BrowserSession(context, page, self.config.timeout)

    async def stop(self):
        try:
            if self._browser is not None:
                await self._browser.close()
        finally:
            self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
