"""Helpers for working on a parsed snapshot of the page DOM.

Matchers run against BeautifulSoup trees built from `page.content()` so they
stay pure and can be exercised with plain HTML strings.
"""
import logging
import re
from typing import Callable, Iterable, Optional

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)


OVERLAY_SELECTORS = [
    '[role="dialog"]',
    '[aria-modal="true"]',
    ".artdeco-modal",
    "[data-test-modal]",
]

YEAR_RE = re.compile(r"\d{4}")
MONTH_RE = re.compile(r"(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)", re.I)


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def clean_text(s: Optional[str]) -> str:
    if not s:
        return ""
    return " ".join(s.split()).strip()


def class_names(el: Tag) -> str:
    classes = el.get("class") or []
    if isinstance(classes, str):
        return classes
    return " ".join(classes)


def closest(el: Tag, selector: str) -> Optional[Tag]:
    """Nearest ancestor (or the element itself) matching `selector`."""
    try:
        return el.css.closest(selector)
    except Exception:
        return None


def in_overlay(el: Tag) -> bool:
    return any(closest(el, sel) is not None for sel in OVERLAY_SELECTORS)


def is_screen_reader_only(el: Tag) -> bool:
    classes = class_names(el)
    return (
        "visually-hidden" in classes
        or "accessibility-text" in classes
        or el.get("aria-hidden") == "true"
    )


def visible_text(el: Tag) -> str:
    """Text as the user sees it, dropping screen-reader duplicates.

    LinkedIn renders many labels twice: once in an `aria-hidden` span for
    sighted users and once in a `.visually-hidden` span. When both exist only
    the aria-hidden copy is used.
    """
    aria_hidden = el.select_one('[aria-hidden="true"]')
    if aria_hidden is not None and el.select_one(".visually-hidden") is not None:
        return clean_text(aria_hidden.get_text())
    return clean_text(el.get_text())


def own_text(el: Tag) -> str:
    """Concatenated direct text nodes, ignoring text of child elements."""
    parts = [str(c) for c in el.children if isinstance(c, str)]
    return clean_text("".join(parts))


def looks_like_date(text: str) -> bool:
    return bool(YEAR_RE.search(text) or MONTH_RE.search(text))


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    low = text.lower()
    return any(k in low for k in keywords)


def first_match(matchers: Iterable[Callable[..., Optional[str]]], *args, **kwargs) -> str:
    """Run matchers in order and return the first non-empty result.

    A matcher that raises is logged and skipped so one broken heuristic never
    hides the ones behind it.
    """
    for matcher in matchers:
        try:
            value = matcher(*args, **kwargs)
        except Exception as e:
            logger.debug("Matcher %s failed: %s", getattr(matcher, "__name__", matcher), e)
            continue
        if value:
            logger.debug("Matched via %s: %r", getattr(matcher, "__name__", matcher), value)
            return value
    return ""
