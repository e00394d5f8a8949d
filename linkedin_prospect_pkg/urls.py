from typing import Optional
from urllib.parse import urlsplit, urlunsplit


def canonical_profile_url(url: Optional[str]) -> str:
    """Natural key for a profile or company page.

    Drops the query string, the fragment (tracking params like
    miniProfileUrn) and any trailing slash, so `/in/jane-doe/?trk=x` and
    `/in/jane-doe` map to the same row.
    """
    if not url:
        return ""
    parts = urlsplit(url.strip())
    return urlunsplit((parts.scheme, parts.netloc, parts.path.rstrip("/"), "", ""))


def is_profile_url(url: Optional[str]) -> bool:
    return bool(url) and "linkedin.com/in/" in url


def is_company_url(url: Optional[str]) -> bool:
    return bool(url) and "linkedin.com/company" in url
