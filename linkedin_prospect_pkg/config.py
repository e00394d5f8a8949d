import os
import random


COOKIES_FILE = os.environ.get("LINKEDIN_COOKIES_PATH", "cookies.json")
SLOW_MO_MS = int(os.environ.get("SCRAPER_SLOW_MO_MS", "0"))
BLOCK_IMAGES = os.environ.get("SCRAPER_BLOCK_IMAGES", "true").lower() != "false"
USE_CDP = os.environ.get("SCRAPER_USE_CDP", "false").lower() in ["1", "true", "yes"]
CDP_URL = os.environ.get("SCRAPER_CDP_URL", "http://127.0.0.1:9222")
LOG_LEVEL = os.environ.get("PROSPECT_LOG_LEVEL", "INFO")

# Extraction timing (milliseconds unless noted)
PAGE_READY_TIMEOUT_MS = int(os.environ.get("PROSPECT_PAGE_READY_TIMEOUT_MS", "10000"))
EMAIL_REVEAL_TIMEOUT_MS = int(os.environ.get("PROSPECT_EMAIL_TIMEOUT_MS", "5000"))
BRAND_PAGE_TIMEOUT_MS = int(os.environ.get("PROSPECT_BRAND_TIMEOUT_MS", "10000"))
EXTRACT_MAX_ATTEMPTS = int(os.environ.get("PROSPECT_EXTRACT_ATTEMPTS", "3"))
EXTRACT_RETRY_DELAY_MS = int(os.environ.get("PROSPECT_EXTRACT_RETRY_DELAY_MS", "1000"))

# Settings store and Airtable
SETTINGS_FILE = os.environ.get("PROSPECT_SETTINGS_PATH", "settings.json")
AIRTABLE_API_URL = os.environ.get("AIRTABLE_API_URL", "https://api.airtable.com/v0")
AIRTABLE_TIMEOUT_SECONDS = float(os.environ.get("AIRTABLE_TIMEOUT_SECONDS", "30"))

DEFAULT_TABLE_NAME = "Profiles"
DEFAULT_BRAND_TABLE_NAME = "Brands"

# Airtable column names keyed by ProfileRecord attribute. An empty column
# name drops the field from outbound payloads.
PROSPECT_FIELDS = {
    "name": "Name",
    "role": "Role",
    "company": "Company",
    "linkedin_url": "LinkedIn URL",
    "email": "Email",
    "connection_request_sent": "LI Connection Request?",
    "connected": "Connected?",
}
PROSPECT_KEY_FIELD = PROSPECT_FIELDS["linkedin_url"]
PROSPECT_BRAND_LINK_FIELD = "Brand"

BRAND_FIELDS = {
    "brand_name": "Brand Name",
    "brand_website": "Brand Website",
    "location": "Location",
}
BRAND_KEY_FIELD = BRAND_FIELDS["brand_name"]
# Only written when a brand row is first created
BRAND_CREATE_DEFAULTS = {"Temperature": "Cold"}


def user_agents():
    """Return a curated pool of desktop Chrome user agents."""
    return [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    ]


def random_user_agent():
    return random.choice(user_agents())
