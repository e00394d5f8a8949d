"""Ordered matcher chains for every profile and company field.

Each matcher takes the parsed document (plus the record found so far, where a
candidate has to be compared with already extracted values) and returns a
string or None. `dom.first_match` walks a chain until one succeeds, so the
order of the lists at the bottom of this module is the priority order.
"""
import re
from typing import NamedTuple, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from .dom import (
    class_names,
    clean_text,
    closest,
    contains_any,
    in_overlay,
    is_screen_reader_only,
    looks_like_date,
    own_text,
    visible_text,
)
from .models import ProfileRecord


NAME_REJECT = ["notification", "contact info", "activity", "experience", "message", "connections"]
HEADLINE_REJECT = ["contact info", "connections", "followers"]
TOP_CARD_REJECT = ["connection", "follower", "contact"]
ROLE_SPAN_REJECT = ["Present", "·", "Full-time", "Part-time"]

PROFILE_SCOPE = '[data-view-name*="profile"]'
TOP_CARD_SELECTORS = ['[data-view-name*="profile-top-card"]', "main section"]
NAME_CARD_SELECTORS = ['[data-view-name*="profile-top-card"]', ".pv-top-card"]
COMPANY_LINK_SELECTOR = 'a[href*="/company/"]'
COMPANY_ARIA_RE = re.compile(r"(?:Current company|Company):\s*([^.]+)", re.I)
SITE_URL_RE = re.compile(r"^https?://(?:www\.)?[a-zA-Z0-9-]+\.[a-zA-Z]{2,}")

# Headline separators in priority order
HEADLINE_SEPARATORS = [" at ", ",", "|"]


class CurrentPosition(NamedTuple):
    role: str
    company: str
    company_url: str


# ---------------------------------------------------------------- name

def _valid_name(text: str) -> bool:
    return 2 < len(text) < 100 and not contains_any(text, NAME_REJECT)


def name_from_top_card(doc: BeautifulSoup, known: Optional[ProfileRecord] = None) -> Optional[str]:
    for card_sel in NAME_CARD_SELECTORS:
        for heading in doc.select(f"{card_sel} h1"):
            if in_overlay(heading):
                continue
            text = visible_text(heading)
            if _valid_name(text):
                return text
    return None


def name_from_headings(doc: BeautifulSoup, known: Optional[ProfileRecord] = None) -> Optional[str]:
    """First h1/h2 that sits in the profile body and reads like a person."""
    for heading in doc.select("h1, h2"):
        if in_overlay(heading):
            continue
        in_profile = (
            closest(heading, PROFILE_SCOPE) is not None
            or closest(heading, "main") is not None
            or (
                closest(heading, "nav") is None
                and closest(heading, "header") is None
                and closest(heading, "aside") is None
            )
        )
        if not in_profile:
            continue
        text = visible_text(heading)
        if _valid_name(text):
            return text
    return None


# ---------------------------------------------------------- experience

def find_experience_section(doc: BeautifulSoup) -> Optional[Tag]:
    """Locate the Experience card.

    1. `data-view-name` marker used by the current layout
    2. `#experience` anchor, climbing to its section
    3. A section whose h2 reads exactly "Experience"
    """
    section = doc.select_one('[data-view-name="profile-card-experience"]')
    if section is not None:
        return section

    anchor = doc.find(id="experience")
    if anchor is not None:
        section = closest(anchor, "section")
        if section is not None:
            return section

    for heading in doc.select("h2"):
        if clean_text(heading.get_text()) == "Experience":
            section = closest(heading, "section")
            if section is not None:
                return section
    return None


def _role_company_from_paragraphs(link: Tag) -> tuple:
    role, company = "", ""
    paragraphs = link.select("p")
    if len(paragraphs) >= 2:
        role_text = clean_text(paragraphs[0].get_text())
        if 2 < len(role_text) < 100 and not looks_like_date(role_text):
            role = role_text
        company_text = clean_text(paragraphs[1].get_text())
        if company_text:
            company = company_text.split("·")[0].strip()
    return role, company


def _role_company_from_spans(link: Tag, role: str, company: str) -> tuple:
    candidates = [el for el in link.select("span, div") if not is_screen_reader_only(el)]
    for span in candidates:
        if role and company:
            break

        display = clean_text(span.get_text())
        has_hidden_child = any("visually-hidden" in class_names(c) for c in span.select("span"))
        if has_hidden_child:
            aria_hidden = span.select_one('[aria-hidden="true"]')
            if aria_hidden is not None:
                display = clean_text(aria_hidden.get_text())

        if (
            not role
            and 2 < len(display) < 100
            and not looks_like_date(display)
            and not any(marker in display for marker in ROLE_SPAN_REJECT)
        ):
            bold = "bold" in class_names(span) or closest(span, '[class*="bold"]') is not None
            if bold:
                role = display

        if (
            not company
            and 1 < len(display) < 100
            and not looks_like_date(display)
            and "Present" not in display
        ):
            potential = display.split("·")[0].strip()
            if potential and potential != role:
                company = potential
    return role, company


def find_current_position(doc: BeautifulSoup, base_url: str = "") -> Optional[CurrentPosition]:
    """Parse the experience entry marked "Present".

    Company links are walked in document order; the first whose surrounding
    container (up to five ancestors) mentions "Present" is the current job.
    """
    section = find_experience_section(doc)
    if section is None:
        return None

    fallback = None
    for link in section.select(COMPANY_LINK_SELECTOR):
        container = link.parent
        for _ in range(5):
            if container is None:
                break
            if "Present" in container.get_text():
                href = urljoin(base_url, link.get("href") or "") if base_url else (link.get("href") or "")
                company_url = href if "linkedin.com/company" in href else ""
                role, company = _role_company_from_paragraphs(link)
                if not role or not company:
                    role, company = _role_company_from_spans(link, role, company)
                position = CurrentPosition(role, company, company_url)
                if role and company:
                    return position
                if fallback is None or (not fallback.role and not fallback.company):
                    fallback = position
                break
            container = container.parent
    return fallback


def role_from_experience(doc: BeautifulSoup, known: Optional[ProfileRecord] = None) -> Optional[str]:
    position = find_current_position(doc, known.linkedin_url if known else "")
    return position.role if position else None


def company_from_experience(doc: BeautifulSoup, known: Optional[ProfileRecord] = None) -> Optional[str]:
    position = find_current_position(doc, known.linkedin_url if known else "")
    return position.company if position else None


# ------------------------------------------------------------ top card

def find_top_card(doc: BeautifulSoup) -> Optional[Tag]:
    for sel in TOP_CARD_SELECTORS:
        section = doc.select_one(sel)
        if section is not None:
            return section
    return None


def _headline_texts(doc: BeautifulSoup):
    card = find_top_card(doc)
    if card is None:
        return []
    return [visible_text(div) for div in card.select("div.text-body-medium")]


def split_headline_role(text: str) -> str:
    for sep in HEADLINE_SEPARATORS:
        if sep in text:
            return text.split(sep)[0].strip()
    return text.strip()


def split_headline_company(text: str, role: str = "") -> str:
    company = ""
    if " at " in text:
        parts = text.split(" at ")
        if len(parts) > 1 and parts[1]:
            company = parts[1].split("|")[0].split(",")[0].strip()
    elif "," in text:
        parts = text.split(",")
        second = parts[1].strip() if len(parts) > 1 else ""
        if second and not re.search(r"\d{4}", second) and len(second) < 50 and second != role:
            company = second.split("|")[0].strip()
    if company and len(company) > 1 and company != role:
        return company
    return ""


def company_from_top_card(doc: BeautifulSoup, known: Optional[ProfileRecord] = None) -> Optional[str]:
    """Short label sitting inside a company button or link in the header."""
    card = find_top_card(doc)
    if card is None:
        return None
    name = known.name if known else ""
    role = known.role if known else ""

    for el in card.select("span, div"):
        if "visually-hidden" in class_names(el) or el.get("aria-hidden") == "true":
            continue
        text = own_text(el)
        if not text:
            aria_hidden = el.select_one('[aria-hidden="true"]')
            if aria_hidden is not None and el.select_one(".visually-hidden") is not None:
                text = clean_text(aria_hidden.get_text())
        if (
            not text
            or len(text) >= 50
            or looks_like_date(text)
            or contains_any(text, TOP_CARD_REJECT)
            or "·" in text
            or "|" in text
            or text == name
            or text == role
        ):
            continue
        parent = closest(el, 'button, a, li, div[class*="company"]')
        if parent is None:
            continue
        label = (parent.get("aria-label") or "").lower()
        if (
            "company" in parent.get_text().lower()
            or "company" in class_names(parent).lower()
            or "company" in label
        ):
            return text
    return None


def company_from_aria_label(doc: BeautifulSoup, known: Optional[ProfileRecord] = None) -> Optional[str]:
    card = find_top_card(doc)
    if card is None:
        return None
    for button in card.select('button[aria-label*="company"], button[aria-label*="Company"]'):
        match = COMPANY_ARIA_RE.search(button.get("aria-label") or "")
        if match and match.group(1):
            return match.group(1).strip().split(".")[0].split(",")[0].strip()
    return None


def role_from_headline(doc: BeautifulSoup, known: Optional[ProfileRecord] = None) -> Optional[str]:
    for text in _headline_texts(doc):
        if 5 < len(text) < 300 and not contains_any(text, HEADLINE_REJECT):
            role = split_headline_role(text)
            if len(role) > 2:
                return role
    return None


def role_from_paragraphs(doc: BeautifulSoup, known: Optional[ProfileRecord] = None) -> Optional[str]:
    card = find_top_card(doc)
    if card is None:
        return None
    for p in card.select("p"):
        text = clean_text(p.get_text())
        if (
            10 < len(text) < 300
            and not text.startswith("·")
            and not contains_any(text, ["contact info", "connections"])
        ):
            return text
    return None


def company_from_headline(doc: BeautifulSoup, known: Optional[ProfileRecord] = None) -> Optional[str]:
    role = known.role if known else ""
    for text in _headline_texts(doc):
        if 5 < len(text) < 300:
            company = split_headline_company(text, role)
            if company:
                return company
    return None


# --------------------------------------------------------------- brand

def brand_name_from_heading(doc: BeautifulSoup, base_url: str = "") -> Optional[str]:
    for heading in doc.select("h1"):
        text = clean_text(heading.get_text())
        if 0 < len(text) < 100:
            return text
    return None


def _external_href(link: Tag, base_url: str) -> str:
    href = (link.get("href") or "").strip()
    if base_url:
        href = urljoin(base_url, href)
    if not href.startswith(("http://", "https://")) or "linkedin.com" in href:
        return ""
    return href


def brand_website_from_links(doc: BeautifulSoup, base_url: str = "") -> Optional[str]:
    for link in doc.select("a[href]"):
        href = _external_href(link, base_url)
        if not href:
            continue
        if "website" in link.get_text().lower() or SITE_URL_RE.match(href):
            return href
    return None


def brand_website_from_about(doc: BeautifulSoup, base_url: str = "") -> Optional[str]:
    about = doc.select_one('[class*="about"]')
    if about is None:
        return None
    for link in about.select("a[href]"):
        href = _external_href(link, base_url)
        if href:
            return href
    return None


NAME_MATCHERS = [name_from_top_card, name_from_headings]
ROLE_MATCHERS = [role_from_experience, role_from_headline, role_from_paragraphs]
COMPANY_MATCHERS = [
    company_from_experience,
    company_from_top_card,
    company_from_aria_label,
    company_from_headline,
]
BRAND_NAME_MATCHERS = [brand_name_from_heading]
BRAND_WEBSITE_MATCHERS = [brand_website_from_links, brand_website_from_about]
