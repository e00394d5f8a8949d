#!/usr/bin/env python3
"""
LinkedIn Prospect Saver - CLI

Extract a LinkedIn profile (name, role, company, email, connection status and
the current company's brand page) and optionally upsert it into Airtable.

Usage:
    python scraper.py <LINKEDIN_URL> [OPTIONS]
    python scraper.py --set airtableApiKey=pat... --set airtableBaseId=app...

Example:
    python scraper.py https://www.linkedin.com/in/johndoe/ --save
    python scraper.py https://www.linkedin.com/in/johndoe/ --use-cdp --cdp-url http://localhost:9222
    python scraper.py https://www.linkedin.com/company/acme/
"""

import argparse
import asyncio
import json
import sys

from linkedin_prospect_pkg.commands import CommandDispatcher
from linkedin_prospect_pkg.models import Command, CommandKind, ExtractRequest
from linkedin_prospect_pkg.urls import is_company_url
from linkedin_prospect_pkg.response import build_response
from linkedin_prospect_pkg.scraper_logging import init_logging
from linkedin_prospect_pkg.settings_store import KNOWN_KEYS, SettingsStore


def parse_settings(pairs: list[str]) -> dict:
    """`["airtableBaseId=app123"]` -> `{"airtableBaseId": "app123"}`."""
    values = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or key not in KNOWN_KEYS:
            raise ValueError(f"Invalid setting '{pair}'. Known keys: {', '.join(KNOWN_KEYS)}")
        values[key] = value
    return values


async def run(args: argparse.Namespace, store: SettingsStore) -> dict:
    dispatcher = CommandDispatcher(store=store)
    options = ExtractRequest(
        url=args.url,
        debug=args.debug,
        headless=args.headless,
        max_wait=args.max_wait,
        use_cdp=args.use_cdp,
        cdp_url=args.cdp_url,
        proxy=args.proxy,
        cookies_path=args.cookies,
        include_email=not args.no_email,
        include_brand=not args.no_brand,
    )

    kind = CommandKind.EXTRACT_BRAND if is_company_url(args.url) else CommandKind.EXTRACT_PROFILE
    extracted = await dispatcher.dispatch(Command(action=kind, url=args.url, options=options))
    if not extracted.success or not args.save or kind is CommandKind.EXTRACT_BRAND:
        return build_response(extracted)

    print(f"\n💾 {extracted.message} Saving to Airtable...")
    saved = await dispatcher.dispatch(
        Command(action=CommandKind.SAVE_TO_AIRTABLE, data=extracted.profile, brand_data=extracted.brand)
    )
    response = build_response(saved)
    response["debug"] = extracted.debug
    return response


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="LinkedIn Prospect Saver - Extract LinkedIn profiles and save them to Airtable",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s https://www.linkedin.com/in/johndoe/
  %(prog)s https://www.linkedin.com/in/johndoe/ --save
  %(prog)s https://www.linkedin.com/in/johndoe/ --use-cdp --cdp-url http://localhost:9222
  %(prog)s --set airtableApiKey=patXXXX --set airtableBaseId=appXXXX --set airtableTableName=Profiles
        """
    )

    parser.add_argument(
        "url",
        nargs="?",
        help="LinkedIn profile URL (https://www.linkedin.com/in/username/) or company page URL"
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Upsert the extracted profile (and brand) into Airtable"
    )
    parser.add_argument(
        "--no-email",
        action="store_true",
        help="Skip opening the Contact info overlay"
    )
    parser.add_argument(
        "--no-brand",
        action="store_true",
        help="Skip visiting the current company's page"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Save a screenshot and HTML snapshot of the profile page to /tmp"
    )
    parser.add_argument(
        "--headless",
        type=lambda x: x.lower() in ("true", "1", "yes"),
        default=True,
        help="Run browser in headless mode (default: true)"
    )
    parser.add_argument(
        "--max-wait",
        type=int,
        default=25000,
        help="Maximum wait time in milliseconds for page loads (default: 25000)"
    )
    parser.add_argument(
        "--use-cdp",
        action="store_true",
        help="Attach to a running Chrome over CDP to reuse its LinkedIn login"
    )
    parser.add_argument(
        "--cdp-url",
        default="http://127.0.0.1:9222",
        help="CDP endpoint URL (default: http://127.0.0.1:9222)"
    )
    parser.add_argument(
        "--proxy",
        help="Proxy URL to use for requests (e.g., http://proxy.example.com:8080)"
    )
    parser.add_argument(
        "--cookies",
        help="Path to cookies.json file. If not specified, uses default location"
    )
    parser.add_argument(
        "--settings",
        help="Path to the settings JSON file holding Airtable credentials"
    )
    parser.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help=f"Store a setting and exit. Keys: {', '.join(KNOWN_KEYS)}"
    )
    parser.add_argument(
        "--output",
        "-o",
        help="Output file path (JSON format). If not specified, prints to stdout"
    )

    args = parser.parse_args()
    init_logging()
    store = SettingsStore(args.settings)

    if args.set:
        try:
            store.set(parse_settings(args.set))
        except ValueError as e:
            print(f"❌ Error: {e}")
            sys.exit(2)
        print(f"✅ Settings saved to {store.path}")
        if not args.url:
            sys.exit(0)

    if not args.url:
        parser.error("a LinkedIn URL is required unless only --set is given")

    if not args.url.startswith("http"):
        args.url = f"https://{args.url}"

    if "linkedin.com" not in args.url:
        print("❌ Error: URL must be a LinkedIn profile or company URL")
        sys.exit(1)

    try:
        result = asyncio.run(run(args, store))
    except KeyboardInterrupt:
        print("\n⚠️ Interrupted by user")
        sys.exit(130)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(result, f, indent=2)
        print(f"\n📁 Results saved to: {args.output}")
    else:
        print("\n📊 Results:")
        print(json.dumps(result, indent=2))

    if not result.get("success"):
        print(f"\n❌ {result.get('error')}")
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
