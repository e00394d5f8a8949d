"""Email lookup through the profile's "Contact info" overlay.

Opening the overlay changes the page, so it is wrapped in an async context
manager that always sends Escape afterwards, whether an email was found, the
wait timed out, or something raised.
"""
import logging
import re
from contextlib import asynccontextmanager
from typing import List, Optional, Tuple
from urllib.parse import unquote

from playwright.async_api import Locator, Page

from .config import EMAIL_REVEAL_TIMEOUT_MS
from .navigation import wait_for_element
from .scraper_logging import add_debug

logger = logging.getLogger(__name__)


MAILTO_SELECTOR = 'a[href^="mailto:"]'
CONTACT_INFO_TEXT = re.compile(r"contact info", re.I)
CONTACT_INFO_HREF = 'a[href*="overlay/contact-info"]'
EMAIL_IN_MARKUP = re.compile(r"mailto:([a-zA-Z0-9._-]+@[a-zA-Z0-9._-]+\.[a-zA-Z0-9_-]+)")


def email_from_href(href: Optional[str]) -> str:
    """`mailto:jane@acme.com?subject=Hi` -> `jane@acme.com`; "" if not an email."""
    if not href:
        return ""
    address = href.strip()
    if address.lower().startswith("mailto:"):
        address = address[len("mailto:"):]
    address = unquote(address.split("?")[0]).strip()
    return address if "@" in address else ""


async def find_contact_info_trigger(page: Page) -> Optional[Locator]:
    """First "Contact info" link or button that is not already inside a dialog."""
    candidates = page.locator("a, button").filter(has_text=CONTACT_INFO_TEXT).or_(
        page.locator(CONTACT_INFO_HREF)
    )
    count = await candidates.count()
    for i in range(count):
        candidate = candidates.nth(i)
        in_dialog = await candidate.evaluate("el => !!el.closest('[role=\"dialog\"]')")
        if not in_dialog:
            return candidate
    return None


async def close_contact_info_overlay(page: Page) -> None:
    try:
        await page.wait_for_timeout(500)
        await page.keyboard.press("Escape")
        logger.debug("Sent Escape to close Contact info overlay")
    except Exception as e:
        logger.warning("Could not close Contact info overlay: %s", e)


@asynccontextmanager
async def contact_info_overlay(page: Page, trigger: Locator):
    """Open the overlay for the duration of the block, then close it."""
    try:
        await trigger.click()
        # Let the overlay start rendering before polling for links
        await page.wait_for_timeout(1000)
        yield
    finally:
        await close_contact_info_overlay(page)


async def read_revealed_email(page: Page, timeout_ms: int) -> Tuple[str, str]:
    """Return (email, strategy) from an open overlay, or ("", "none")."""
    link = await wait_for_element(page, MAILTO_SELECTOR, timeout_ms)
    if link is not None:
        email = email_from_href(await link.get_attribute("href"))
        if email:
            return email, "mailto"

    # Overlay markup varies; the most recently added mailto link is usually it
    links = page.locator(MAILTO_SELECTOR)
    count = await links.count()
    if count > 0:
        email = email_from_href(await links.nth(count - 1).get_attribute("href"))
        if email:
            return email, "document_mailto"

    overlay = page.locator('[role="dialog"]')
    if await overlay.count() > 0:
        markup = await overlay.first.inner_html()
        match = EMAIL_IN_MARKUP.search(markup)
        if match:
            return match.group(1), "overlay_regex"

    return "", "none"


async def extract_email(
    page: Page,
    timeout_ms: int = EMAIL_REVEAL_TIMEOUT_MS,
    debug: Optional[List[str]] = None,
) -> str:
    """Reveal the Contact info overlay and read the email address, if shared.

    Returns "" when there is no overlay or no email; never raises.
    """
    debug = debug if debug is not None else []
    try:
        trigger = await find_contact_info_trigger(page)
        if trigger is None:
            logger.info("Contact info link not found")
            add_debug(debug, "EMAIL_NO_TRIGGER")
            return ""

        async with contact_info_overlay(page, trigger):
            email, strategy = await read_revealed_email(page, timeout_ms)

        add_debug(debug, f"EMAIL_{strategy.upper()}")
        if email:
            logger.info("Email found via %s", strategy)
        else:
            logger.info("No email found in Contact info overlay")
        return email
    except Exception as e:
        logger.error("Error extracting email from Contact info: %s", e)
        add_debug(debug, "EMAIL_ERROR")
        return ""
