import logging
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

from .dom import clean_text, first_match
from .models import BrandRecord, ProfileRecord, RelationshipFlags
from . import selectors

logger = logging.getLogger(__name__)


PENDING = "pending"
MESSAGE = "message"
CONNECT = "connect"

# Checked in this order; the first affordance present decides the flags
AFFORDANCE_FLAGS = [
    (PENDING, RelationshipFlags(request_sent=True, connected=False)),
    (MESSAGE, RelationshipFlags(request_sent=True, connected=True)),
    (CONNECT, RelationshipFlags(request_sent=False, connected=False)),
]


def _profile_buttons(doc: BeautifulSoup) -> List:
    scope = doc.select_one('main, [data-view-name*="profile"]')
    return (scope or doc).select("button")


def _button_labels(button) -> Tuple[str, str]:
    text = clean_text(button.get_text()).lower()
    aria = (button.get("aria-label") or "").lower()
    return text, aria


def _is_pending(text: str, aria: str) -> bool:
    return "pending" in aria or "pending" in text


def _is_message(text: str, aria: str) -> bool:
    return "message" in text or "message" in aria


def _is_connect(text: str, aria: str) -> bool:
    return "invite" in aria or "connect" in aria or "connect" in text


_AFFORDANCE_TESTS = {PENDING: _is_pending, MESSAGE: _is_message, CONNECT: _is_connect}


def detect_affordance(doc: BeautifulSoup) -> Optional[str]:
    """Return which relationship button the profile header shows, if any."""
    labels = [_button_labels(b) for b in _profile_buttons(doc)]
    for kind, _ in AFFORDANCE_FLAGS:
        test = _AFFORDANCE_TESTS[kind]
        if any(test(text, aria) for text, aria in labels):
            return kind
    return None


def extract_connection_status(doc: BeautifulSoup) -> RelationshipFlags:
    try:
        kind = detect_affordance(doc)
    except Exception as e:
        logger.error("Error extracting connection status: %s", e)
        return RelationshipFlags()

    for affordance, flags in AFFORDANCE_FLAGS:
        if affordance == kind:
            logger.info("Connection status from %s button: %s", kind, flags.model_dump())
            return flags.model_copy()

    logger.warning("Could not determine connection status - no indicators found")
    return RelationshipFlags()


def extract_profile(doc: BeautifulSoup, url: str = "") -> ProfileRecord:
    """Build a ProfileRecord from a page snapshot.

    Never raises: a failing step leaves its fields at their defaults and the
    partially filled record is returned for manual correction.
    """
    record = ProfileRecord(linkedin_url=url or "")
    try:
        record.name = first_match(selectors.NAME_MATCHERS, doc, record)
        record.role = first_match(selectors.ROLE_MATCHERS, doc, record)
        record.company = first_match(selectors.COMPANY_MATCHERS, doc, record)

        position = selectors.find_current_position(doc, record.linkedin_url)
        if position and position.company_url:
            record.company_linkedin_url = position.company_url

        record.apply_flags(extract_connection_status(doc))
    except Exception as e:
        logger.error("Error extracting profile data: %s", e)

    logger.info(
        "Extracted profile name=%r role=%r company=%r company_url=%r connected=%s request_sent=%s",
        record.name or None,
        record.role or None,
        record.company or None,
        record.company_linkedin_url,
        record.connected,
        record.connection_request_sent,
    )
    return record


def extract_brand(doc: BeautifulSoup, url: str = "") -> BrandRecord:
    """Company page fields; location is always the literal "LinkedIn"."""
    brand = BrandRecord()
    try:
        brand.brand_name = first_match(selectors.BRAND_NAME_MATCHERS, doc, url)
        brand.brand_website = first_match(selectors.BRAND_WEBSITE_MATCHERS, doc, url)
    except Exception as e:
        logger.error("Error extracting brand data: %s", e)
    logger.info("Extracted brand %s", brand.model_dump())
    return brand
