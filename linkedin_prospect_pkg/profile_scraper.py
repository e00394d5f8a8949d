import asyncio
import logging
from typing import List, Optional

from bs4 import BeautifulSoup
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .browser import BrowserSession
from .config import (
    BLOCK_IMAGES,
    BRAND_PAGE_TIMEOUT_MS,
    EMAIL_REVEAL_TIMEOUT_MS,
    EXTRACT_MAX_ATTEMPTS,
    EXTRACT_RETRY_DELAY_MS,
    PAGE_READY_TIMEOUT_MS,
)
from .contact_info import extract_email
from .cookies_auth import check_login_status
from .dom import parse_document
from .extraction import extract_brand, extract_profile
from .models import BrandRecord, ExtractRequest, ProfileRecord, ScrapeResult
from .navigation import goto_with_retry, wait_for_profile_ready, warm_up_scroll
from .scraper_logging import add_debug, save_debug_files
from .urls import canonical_profile_url, is_company_url, is_profile_url

logger = logging.getLogger(__name__)


async def snapshot(page: Page) -> BeautifulSoup:
    return parse_document(await page.content())


async def extract_profile_with_retry(
    page: Page,
    max_attempts: int = EXTRACT_MAX_ATTEMPTS,
    retry_delay_ms: int = EXTRACT_RETRY_DELAY_MS,
    include_email: bool = True,
    email_timeout_ms: int = EMAIL_REVEAL_TIMEOUT_MS,
    ready_timeout_ms: int = PAGE_READY_TIMEOUT_MS,
    debug: Optional[List[str]] = None,
    requested_url: str = "",
) -> ProfileRecord:
    """Extract the open profile, retrying while the page is still rendering.

    The first attempt with a name plus a role or company wins. When every
    attempt comes back incomplete the last partial record is returned. The
    Contact info overlay is opened once, after the field extraction.

    The record is keyed by the page URL only while it is still a profile
    page; after a redirect (authwall, login, checkpoint) the requested URL
    is used instead.
    """
    debug = debug if debug is not None else []
    try:
        await wait_for_profile_ready(page, ready_timeout_ms)
    except Exception as e:
        logger.warning("Waiting for profile content failed: %s", e)

    url = canonical_profile_url(page.url if is_profile_url(page.url) else requested_url)
    record = ProfileRecord(linkedin_url=url)
    for attempt in range(1, max_attempts + 1):
        logger.info("Extraction attempt %d/%d", attempt, max_attempts)
        try:
            record = extract_profile(await snapshot(page), url)
        except Exception as e:
            logger.error("Snapshot failed on attempt %d: %s", attempt, e)
            record = ProfileRecord(linkedin_url=url)

        if record.is_complete():
            add_debug(debug, f"PROFILE_OK_{attempt}")
            break
        if attempt < max_attempts:
            logger.info("Incomplete data, retrying in %d ms", retry_delay_ms)
            await asyncio.sleep(retry_delay_ms / 1000)
    else:
        logger.info("Extraction completed with partial data")
        add_debug(debug, "PROFILE_PARTIAL")

    if include_email:
        email = await extract_email(page, email_timeout_ms, debug)
        if email:
            record.email = email
    return record


async def extract_brand_from_url(
    session: BrowserSession,
    url: str,
    timeout_ms: int = BRAND_PAGE_TIMEOUT_MS,
    debug: Optional[List[str]] = None,
) -> Optional[BrandRecord]:
    """Open the company page in a background tab and read the brand fields.

    The tab is closed on every path. Returns None when the page could not be
    read at all.
    """
    debug = debug if debug is not None else []
    page = None
    try:
        page = await session.new_page()
        try:
            await page.goto(url, timeout=timeout_ms, wait_until="load")
        except PlaywrightTimeoutError:
            # A slow load still leaves a usable DOM most of the time
            logger.warning("Company page load timed out after %d ms", timeout_ms)
            add_debug(debug, "BRAND_LOAD_TIMEOUT")
        await page.wait_for_timeout(2000)
        brand = extract_brand(await snapshot(page), page.url)
        add_debug(debug, "BRAND_OK" if brand.brand_name else "BRAND_EMPTY")
        return brand
    except Exception as e:
        logger.error("Error extracting brand data from %s: %s", url, e)
        add_debug(debug, "BRAND_ERROR")
        return None
    finally:
        if page is not None:
            await session.close_page(page)


def _session_for(req: ExtractRequest) -> BrowserSession:
    kwargs = {}
    if req.cookies_path:
        kwargs["cookies_path"] = req.cookies_path
    return BrowserSession(
        headless=req.headless if req.headless is not None else True,
        proxy=req.proxy,
        use_cdp=req.use_cdp,
        cdp_url=req.cdp_url,
        block_images=BLOCK_IMAGES and not req.debug,
        **kwargs,
    )


async def scrape_profile(req: ExtractRequest) -> ScrapeResult:
    """Full profile pass: navigate, extract, reveal email, then the brand pass."""
    debug: List[str] = []
    result = ScrapeResult(url=req.url, profile=ProfileRecord(linkedin_url=canonical_profile_url(req.url)))
    if not is_profile_url(req.url):
        result.error = "Please navigate to a LinkedIn profile page"
        return result

    async with _session_for(req) as session:
        debug.extend(session.debug)
        result.cookies_loaded = session.cookies_loaded
        page = await session.new_page()

        logger.info("Opening: %s", req.url)
        ok, err = await goto_with_retry(page, req.url, timeout_ms=max(20000, req.max_wait))
        if not ok:
            result.error = f"Navigation failed: {err}"
            result.debug_msgs = debug
            return result

        result.guest_mode, login_debug = await check_login_status(page)
        debug.extend(login_debug)
        if result.guest_mode:
            logger.warning("LinkedIn is showing the guest view; fields and email will be limited")

        await warm_up_scroll(page)
        result.profile = await extract_profile_with_retry(
            page, include_email=req.include_email, debug=debug, requested_url=req.url
        )
        if req.debug:
            result.debug_files = await save_debug_files(page, "profile")

        if req.include_brand and result.profile.company_linkedin_url:
            logger.info("Extracting brand data from %s", result.profile.company_linkedin_url)
            result.brand = await extract_brand_from_url(session, result.profile.company_linkedin_url, debug=debug)

    result.debug_msgs = debug
    return result


async def scrape_brand(req: ExtractRequest) -> ScrapeResult:
    """Brand-only pass for a company page URL."""
    debug: List[str] = []
    result = ScrapeResult(url=req.url, profile=ProfileRecord())
    if not is_company_url(req.url):
        result.error = "Please provide a LinkedIn company page URL"
        return result

    async with _session_for(req) as session:
        debug.extend(session.debug)
        result.cookies_loaded = session.cookies_loaded
        result.brand = await extract_brand_from_url(session, req.url, timeout_ms=max(BRAND_PAGE_TIMEOUT_MS, req.max_wait), debug=debug)
        if result.brand is None:
            result.error = "Could not extract brand data"

    result.debug_msgs = debug
    return result
