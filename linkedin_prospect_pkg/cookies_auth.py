import json
import logging
import os
import re
from typing import List, Tuple

from playwright.async_api import BrowserContext, Page

from .config import COOKIES_FILE

logger = logging.getLogger(__name__)


AUTHWALL_SELECTORS = [
    ".authwall-join-form",
    "[data-test-id='join-form']",
    "[data-test-id='header-join']",
]
AUTHWALL_URL_MARKERS = ["signup", "login", "authwall", "checkpoint"]
SAME_SITE = {"no_restriction": "None", "none": "None", "lax": "Lax", "strict": "Strict"}


def sanitize_cookie(cookie: dict) -> dict | None:
    """Normalise one exported cookie for `context.add_cookies`.

    Returns None for entries that are not LinkedIn cookies or lack a value.
    """
    if not isinstance(cookie, dict):
        return None
    c = dict(cookie)
    if isinstance(c.get("value"), str):
        c["value"] = re.sub(r"\s+", "", c["value"])
    if not c.get("name") or not c.get("value"):
        return None

    domain = c.get("domain", "")
    if domain and not domain.startswith("."):
        domain = "." + domain
    if "linkedin.com" not in domain:
        return None
    c["domain"] = domain

    if "sameSite" in c:
        c["sameSite"] = SAME_SITE.get(str(c["sameSite"]).lower(), "Lax")
    # Browser-extension exports carry keys Playwright rejects
    for k in ["hostOnly", "session", "storeId", "id"]:
        c.pop(k, None)
    return c


async def load_cookies(path: str = COOKIES_FILE) -> List[dict]:
    if not os.path.exists(path):
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Cannot read cookies file %s: %s", path, e)
        return []
    if not isinstance(raw, list):
        return []
    return [c for c in (sanitize_cookie(item) for item in raw) if c]


async def apply_cookies(context: BrowserContext, cookies: List[dict]) -> Tuple[bool, bool]:
    """Apply cookies and return (cookies_loaded, has_li_at)."""
    has_li_at = any(c.get("name") == "li_at" for c in cookies)
    if not cookies:
        return False, has_li_at
    try:
        await context.add_cookies(cookies)
        return True, has_li_at
    except Exception as e:
        logger.warning("Failed to apply cookies: %s", e)
        return False, has_li_at


async def check_login_status(page: Page) -> Tuple[bool, List[str]]:
    """Detect the guest/authwall view. Returns (is_guest, debug_tags)."""
    debug: List[str] = []
    try:
        for sel in AUTHWALL_SELECTORS:
            if await page.locator(sel).count() > 0:
                debug.append(f"Authwall:{sel}")
                return True, debug
        if any(k in page.url for k in AUTHWALL_URL_MARKERS):
            debug.append(f"URL:{page.url}")
            return True, debug
    except Exception as e:
        debug.append(f"LoginCheckErr:{str(e)[:30]}")
    return False, debug
