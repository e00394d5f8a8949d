import asyncio
import logging
import random
from typing import Iterable, Optional, Tuple

from playwright.async_api import ElementHandle, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger(__name__)


EXPERIENCE_SELECTOR = '[data-view-name="profile-card-experience"]'
OVERLAY_CLOSE_SELECTOR = '[aria-label*="Dismiss"], [aria-label*="Close"], button[aria-label]'


async def random_delay(min_sec: float = 0.5, max_sec: float = 1.5) -> None:
    """Sleep for a random duration to emulate human pacing."""
    await asyncio.sleep(random.uniform(min_sec, max_sec))


async def goto_with_retry(page: Page, url: str, timeout_ms: int, tries: int = 2) -> Tuple[bool, str]:
    """Navigate to a URL with bounded retries.

    Returns (success, error_message). LinkedIn keeps long-polling connections
    open, so we wait for `domcontentloaded` rather than network idle.
    """
    last_err = ""
    for attempt in range(tries):
        try:
            await page.goto(url, timeout=timeout_ms, wait_until="domcontentloaded")
            await random_delay(1.0, 2.0)
            return True, ""
        except Exception as e:
            last_err = str(e)
            logger.warning("Navigation attempt %d/%d to %s failed: %s", attempt + 1, tries, url, last_err[:120])
            if attempt < tries - 1:
                await random_delay(1.0, 2.0)
    return False, last_err


async def wait_for_element(page: Page, selector: str, timeout_ms: int = 10000) -> Optional[ElementHandle]:
    """Wait until `selector` is attached, or return None once the deadline passes.

    Playwright watches DOM mutations for us and drops its watcher on both the
    match and the timeout path.
    """
    try:
        return await page.wait_for_selector(selector, timeout=timeout_ms, state="attached")
    except PlaywrightTimeoutError:
        return None


async def wait_for_any(page: Page, selectors: Iterable[str], timeout_ms: int = 10000) -> Optional[ElementHandle]:
    """Resolve with the first selector that appears; cancel the other waits."""
    tasks = [asyncio.ensure_future(wait_for_element(page, sel, timeout_ms)) for sel in selectors]
    try:
        for fut in asyncio.as_completed(tasks):
            element = await fut
            if element is not None:
                return element
        return None
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()


async def dismiss_open_overlay(page: Page) -> bool:
    """Close a dialog left open from an earlier interaction."""
    try:
        dialog = page.locator('[role="dialog"]')
        if await dialog.count() == 0:
            return False
        close_button = dialog.first.locator(OVERLAY_CLOSE_SELECTOR).first
        if await close_button.count() > 0:
            logger.info("Closing existing overlay")
            await close_button.click()
            await page.wait_for_timeout(300)
            return True
    except Exception as e:
        logger.debug("Could not dismiss overlay: %s", e)
    return False


async def wait_for_profile_ready(page: Page, timeout_ms: int = 10000) -> bool:
    """Wait for either the profile heading or the experience card to render."""
    await dismiss_open_overlay(page)
    found = await wait_for_any(page, ["h1, h2", EXPERIENCE_SELECTOR], timeout_ms)
    if found is None:
        logger.warning("Profile content did not appear within %d ms", timeout_ms)
    # Give LinkedIn a moment to finish rendering
    await page.wait_for_timeout(500)
    return found is not None


async def warm_up_scroll(page: Page) -> None:
    """Scroll top to bottom in steps so lazy sections (experience) render."""
    try:
        await page.evaluate("window.scrollTo({top: 0, behavior: 'instant'})")
        for frac in [0.25, 0.5, 0.75, 1.0]:
            await page.evaluate(
                "window.scrollTo({top: document.body.scrollHeight * %s, behavior: 'smooth'})" % frac
            )
            await random_delay(0.6, 1.1)
        await page.evaluate("window.scrollTo({top: 0, behavior: 'instant'})")
    except Exception:
        pass
