import logging
from typing import List, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route
from playwright.async_api import async_playwright

from .config import BLOCK_IMAGES, CDP_URL, COOKIES_FILE, SLOW_MO_MS, USE_CDP, random_user_agent
from .cookies_auth import apply_cookies, load_cookies
from .scraper_logging import add_debug

logger = logging.getLogger(__name__)


LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-infobars",
    "--window-size=1920,1080",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--mute-audio",
    "--no-first-run",
    "--disable-extensions",
]

STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
window.chrome = { runtime: {} };
"""


async def launch_browser(playwright: Playwright, headless: bool = True, proxy: Optional[str] = None) -> Browser:
    """Launch Chromium with automation signals turned down."""
    return await playwright.chromium.launch(
        headless=headless,
        proxy={"server": proxy} if proxy else None,
        slow_mo=SLOW_MO_MS if SLOW_MO_MS > 0 else None,
        args=LAUNCH_ARGS,
    )


async def new_context(browser: Browser, locale: str = "en-US", user_agent: Optional[str] = None) -> BrowserContext:
    """Desktop-sized context with an English locale so UI labels match our matchers."""
    return await browser.new_context(
        user_agent=user_agent or random_user_agent(),
        viewport={"width": 1920, "height": 1080},
        locale=locale,
        extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
    )


async def apply_stealth(context: BrowserContext) -> None:
    await context.add_init_script(STEALTH_SCRIPT)


async def connect_over_cdp(playwright: Playwright, cdp_url: str) -> Browser:
    """Attach to a running Chrome (`--remote-debugging-port`) to reuse its login."""
    return await playwright.chromium.connect_over_cdp(cdp_url)


class BrowserSession:
    """Owns the playwright driver, browser, context and working tabs.

    Used as `async with BrowserSession(...) as session:`. On exit every tab the
    session opened is closed; the browser itself is only closed when we
    launched it, never when we attached to the user's Chrome over CDP.
    """

    def __init__(
        self,
        headless: bool = True,
        proxy: Optional[str] = None,
        use_cdp: bool = False,
        cdp_url: Optional[str] = None,
        block_images: bool = BLOCK_IMAGES,
        cookies_path: str = COOKIES_FILE,
    ):
        self.headless = headless
        self.proxy = proxy
        self.use_cdp = use_cdp or USE_CDP
        self.cdp_url = cdp_url or CDP_URL
        self.block_images = block_images
        self.cookies_path = cookies_path
        self.debug: List[str] = []
        self.cookies_loaded = False

        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self._pages: List[Page] = []

    async def __aenter__(self) -> "BrowserSession":
        self._playwright = await async_playwright().start()
        try:
            await self._open()
        except Exception:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _open(self) -> None:
        if self.use_cdp:
            logger.info("Connecting via CDP: %s", self.cdp_url)
            try:
                self.browser = await connect_over_cdp(self._playwright, self.cdp_url)
                self.context = self.browser.contexts[0] if self.browser.contexts else await self.browser.new_context()
                add_debug(self.debug, "CDP_MODE")
                return
            except Exception as e:
                logger.warning("CDP connection failed: %s. Falling back to launched browser", e)
                add_debug(self.debug, "CDP_FAIL_FALLBACK")
                self.use_cdp = False

        self.browser = await launch_browser(self._playwright, headless=self.headless, proxy=self.proxy)
        self.context = await new_context(self.browser)
        await apply_stealth(self.context)

        cookies = await load_cookies(self.cookies_path)
        self.cookies_loaded, has_li_at = await apply_cookies(self.context, cookies)
        if not has_li_at:
            logger.warning("li_at cookie not found; LinkedIn will show the guest view")
            add_debug(self.debug, "NO_LI_AT")

    async def new_page(self) -> Page:
        page = await self.context.new_page()
        if self.block_images:
            async def _block_images(route: Route):
                await route.abort()
            await page.route("**/*.{png,jpg,jpeg,gif,svg,ico}", _block_images)
        self._pages.append(page)
        return page

    async def close_page(self, page: Page) -> None:
        try:
            if not page.is_closed():
                await page.close()
        except Exception as e:
            logger.debug("Error closing tab: %s", e)
        if page in self._pages:
            self._pages.remove(page)

    async def close(self) -> None:
        for page in list(self._pages):
            await self.close_page(page)
        if self.browser is not None and not self.use_cdp:
            try:
                await self.browser.close()
            except Exception as e:
                logger.debug("Error closing browser: %s", e)
        self.browser = None
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug("Error stopping playwright: %s", e)
            self._playwright = None
