#!/usr/bin/env python3
"""
Log in to LinkedIn once and keep the session for headless extraction.

Opens a visible browser on the login page, waits until you are signed in,
then writes the LinkedIn cookies to the path the extractor reads
(LINKEDIN_COOKIES_PATH, default cookies.json). The Contact info overlay is
only available to signed-in members, so emails need this step.
"""

import asyncio
import json

from playwright.async_api import async_playwright

from linkedin_prospect_pkg.browser import LAUNCH_ARGS, STEALTH_SCRIPT
from linkedin_prospect_pkg.config import COOKIES_FILE
from linkedin_prospect_pkg.cookies_auth import AUTHWALL_URL_MARKERS, sanitize_cookie

LOGGED_IN_MARKERS = ["/feed", "/mynetwork", "/in/", "/messaging"]
MAX_WAIT_SECONDS = 300


def is_logged_in_url(url: str) -> bool:
    return any(k in url for k in LOGGED_IN_MARKERS) and not any(k in url for k in AUTHWALL_URL_MARKERS)


async def main():
    print("🔐 Opening browser for LinkedIn login...")
    print("   Please log in to LinkedIn in the browser window.\n")

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=False, args=LAUNCH_ARGS)
        context = await browser.new_context(viewport={"width": 1280, "height": 900}, locale="en-US")
        await context.add_init_script(STEALTH_SCRIPT)
        page = await context.new_page()
        await page.goto("https://www.linkedin.com/login")

        print("⏳ Waiting for login...")
        logged_in = False
        for i in range(MAX_WAIT_SECONDS // 2):
            await asyncio.sleep(2)
            if is_logged_in_url(page.url):
                print(f"\n✅ Login detected! (URL: {page.url[:60]})")
                logged_in = True
                break
            if i % 15 == 0 and i > 0:
                print(f"   Still waiting... ({i * 2}s elapsed)")

        if not logged_in:
            print("❌ Timed out waiting for login; nothing saved")
            await browser.close()
            return

        # Let LinkedIn finish setting session cookies
        await asyncio.sleep(3)
        cookies = [c for c in (sanitize_cookie(c) for c in await context.cookies()) if c]
        with open(COOKIES_FILE, "w", encoding="utf-8") as f:
            json.dump(cookies, f, indent=2)

        has_li_at = any(c["name"] == "li_at" for c in cookies)
        print(f"📁 Saved {COOKIES_FILE} ({len(cookies)} cookies)")
        print(f"   li_at cookie: {'✅ Found' if has_li_at else '❌ Not found'}")
        await browser.close()


if __name__ == "__main__":
    asyncio.run(main())
