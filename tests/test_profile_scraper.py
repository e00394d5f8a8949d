import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from linkedin_prospect_pkg import profile_scraper
from linkedin_prospect_pkg.airtable import save_to_airtable
from linkedin_prospect_pkg.models import BrandRecord, ExtractRequest, ProfileRecord
from linkedin_prospect_pkg.profile_scraper import extract_brand_from_url, extract_profile_with_retry
from linkedin_prospect_pkg.urls import canonical_profile_url, is_company_url, is_profile_url

PROFILE_URL = "https://www.linkedin.com/in/jane-doe/?miniProfileUrn=urn%3Ali%3Afs#experience"


class SnapshotPage:
    """Returns one HTML snapshot per `content()` call, repeating the last."""

    def __init__(self, snapshots, url=PROFILE_URL):
        self.snapshots = list(snapshots)
        self.url = url
        self.content_calls = 0

    async def content(self):
        index = min(self.content_calls, len(self.snapshots) - 1)
        self.content_calls += 1
        item = self.snapshots[index]
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def no_waits(monkeypatch):
    async def ready(page, timeout_ms=0):
        return True

    emails = {"value": "", "calls": 0}

    async def email(page, timeout_ms=0, debug=None):
        emails["calls"] += 1
        return emails["value"]

    monkeypatch.setattr(profile_scraper, "wait_for_profile_ready", ready)
    monkeypatch.setattr(profile_scraper, "extract_email", email)
    return emails


LOADING_HTML = "<html><body><main><section data-view-name='profile-top-card'><h1>Jane Doe</h1></section></main></body></html>"


@pytest.mark.parametrize("url, expected", [
    (PROFILE_URL, "https://www.linkedin.com/in/jane-doe"),
    ("https://www.linkedin.com/in/jane-doe/", "https://www.linkedin.com/in/jane-doe"),
    ("https://www.linkedin.com/in/jane-doe", "https://www.linkedin.com/in/jane-doe"),
    ("  https://www.linkedin.com/in/jane-doe?trk=abc  ", "https://www.linkedin.com/in/jane-doe"),
    ("", ""),
])
def test_canonical_profile_url(url, expected):
    assert canonical_profile_url(url) == expected


def test_url_kinds():
    assert is_profile_url(PROFILE_URL)
    assert not is_profile_url("https://www.linkedin.com/company/acme/")
    assert not is_profile_url(None)
    assert is_company_url("https://www.linkedin.com/company/acme/")
    assert not is_company_url("https://www.linkedin.com/feed/")


@pytest.mark.asyncio
async def test_retry_until_complete(no_waits, profile_html):
    page = SnapshotPage([LOADING_HTML, profile_html])
    debug = []

    record = await extract_profile_with_retry(page, max_attempts=3, retry_delay_ms=0, debug=debug)

    assert page.content_calls == 2
    assert record.name == "Jane Doe"
    assert record.role == "Staff Engineer"
    assert record.linkedin_url == "https://www.linkedin.com/in/jane-doe"
    assert "PROFILE_OK_2" in debug
    assert no_waits["calls"] == 1


@pytest.mark.asyncio
async def test_all_attempts_partial_returns_last_record(no_waits):
    page = SnapshotPage([LOADING_HTML])
    debug = []

    record = await extract_profile_with_retry(page, max_attempts=3, retry_delay_ms=0, debug=debug)

    assert page.content_calls == 3
    assert record.name == "Jane Doe"
    assert record.role == ""
    assert record.company == ""
    assert debug == ["PROFILE_PARTIAL"]


@pytest.mark.asyncio
async def test_snapshot_failure_yields_empty_record(no_waits):
    page = SnapshotPage([RuntimeError("Target closed")])

    record = await extract_profile_with_retry(page, max_attempts=2, retry_delay_ms=0, include_email=False)

    assert record.name == ""
    assert record.linkedin_url == "https://www.linkedin.com/in/jane-doe"
    assert no_waits["calls"] == 0


@pytest.mark.asyncio
async def test_email_is_attached_to_record(no_waits, profile_html):
    no_waits["value"] = "jane@acme.example"
    page = SnapshotPage([profile_html])

    record = await extract_profile_with_retry(page, retry_delay_ms=0)

    assert record.email == "jane@acme.example"
    assert no_waits["calls"] == 1


AUTHWALL_URL = "https://www.linkedin.com/authwall?trk=qf&sessionRedirect=https%3A%2F%2Fwww.linkedin.com%2Fin%2F"


def _top_card(name, headline):
    return (
        "<html><body><main><section data-view-name='profile-top-card'>"
        f"<h1>{name}</h1><div class='text-body-medium'>{headline}</div>"
        "</section></main></body></html>"
    )


@pytest.mark.asyncio
async def test_redirected_page_is_keyed_by_requested_url(no_waits):
    page = SnapshotPage([_top_card("Ann Lee", "Chief of Staff at Hooli")], url=AUTHWALL_URL)

    record = await extract_profile_with_retry(
        page, retry_delay_ms=0, include_email=False, requested_url="https://www.linkedin.com/in/ann-lee/?trk=x"
    )

    assert record.name == "Ann Lee"
    assert record.linkedin_url == "https://www.linkedin.com/in/ann-lee"


@pytest.mark.asyncio
async def test_redirected_profiles_save_as_separate_rows(no_waits, credentials, fake_airtable):
    records = []
    for name, slug in [("Ann Lee", "ann-lee"), ("Bob Ray", "bob-ray")]:
        page = SnapshotPage([_top_card(name, "Founder at Pied Piper")], url=AUTHWALL_URL)
        records.append(await extract_profile_with_retry(
            page, retry_delay_ms=0, include_email=False, requested_url=f"https://www.linkedin.com/in/{slug}/"
        ))

    for record in records:
        await save_to_airtable(record, credentials=credentials, transport=fake_airtable.transport())

    rows = fake_airtable.rows("Profiles")
    assert [r["fields"]["Name"] for r in rows] == ["Ann Lee", "Bob Ray"]
    assert fake_airtable.count("PATCH") == 0


@pytest.mark.asyncio
async def test_profile_page_url_wins_over_requested_url(no_waits, profile_html):
    page = SnapshotPage([profile_html], url="https://www.linkedin.com/in/jane-doe/")

    record = await extract_profile_with_retry(
        page, retry_delay_ms=0, include_email=False, requested_url="https://www.linkedin.com/in/ACoAAB123/"
    )

    assert record.linkedin_url == "https://www.linkedin.com/in/jane-doe"


class BrandPage:
    def __init__(self, html, goto_error=None, url="https://www.linkedin.com/company/acme/"):
        self.html = html
        self.goto_error = goto_error
        self.url = url

    async def goto(self, url, timeout=None, wait_until=None):
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_timeout(self, ms):
        return None

    async def content(self):
        return self.html


class FakeSession:
    def __init__(self, page=None, new_page_error=None):
        self.page = page
        self.new_page_error = new_page_error
        self.closed = []
        self.debug = []
        self.cookies_loaded = True

    async def new_page(self):
        if self.new_page_error is not None:
            raise self.new_page_error
        return self.page

    async def close_page(self, page):
        self.closed.append(page)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None


@pytest.mark.asyncio
async def test_brand_tab_is_closed_after_success(brand_html):
    session = FakeSession(BrandPage(brand_html))
    debug = []

    brand = await extract_brand_from_url(session, "https://www.linkedin.com/company/acme/", debug=debug)

    assert brand.brand_name == "Acme Corp"
    assert brand.brand_website == "https://acme.example.com/?utm_source=linkedin"
    assert debug == ["BRAND_OK"]
    assert session.closed == [session.page]


@pytest.mark.asyncio
async def test_brand_load_timeout_still_extracts(brand_html):
    session = FakeSession(BrandPage(brand_html, goto_error=PlaywrightTimeoutError("Timeout 10000ms exceeded")))
    debug = []

    brand = await extract_brand_from_url(session, "https://www.linkedin.com/company/acme/", debug=debug)

    assert brand.brand_name == "Acme Corp"
    assert debug == ["BRAND_LOAD_TIMEOUT", "BRAND_OK"]
    assert session.closed == [session.page]


@pytest.mark.asyncio
async def test_brand_navigation_error_returns_none_and_closes_tab():
    session = FakeSession(BrandPage("", goto_error=RuntimeError("net::ERR_ABORTED")))
    debug = []

    brand = await extract_brand_from_url(session, "https://www.linkedin.com/company/acme/", debug=debug)

    assert brand is None
    assert debug == ["BRAND_ERROR"]
    assert session.closed == [session.page]


@pytest.mark.asyncio
async def test_brand_without_tab_closes_nothing():
    session = FakeSession(new_page_error=RuntimeError("browser has been closed"))

    assert await extract_brand_from_url(session, "https://www.linkedin.com/company/acme/") is None
    assert session.closed == []


@pytest.mark.asyncio
async def test_brand_empty_page_is_tagged():
    session = FakeSession(BrandPage("<html><body></body></html>"))
    debug = []

    brand = await extract_brand_from_url(session, "https://www.linkedin.com/company/acme/", debug=debug)

    assert brand.brand_name == ""
    assert debug == ["BRAND_EMPTY"]


@pytest.mark.asyncio
async def test_scrape_profile_rejects_non_profile_url():
    result = await profile_scraper.scrape_profile(ExtractRequest(url="https://www.linkedin.com/feed/"))
    assert result.error == "Please navigate to a LinkedIn profile page"
    assert result.profile.name == ""


@pytest.mark.asyncio
async def test_scrape_brand_rejects_non_company_url():
    result = await profile_scraper.scrape_brand(ExtractRequest(url=PROFILE_URL))
    assert result.error == "Please provide a LinkedIn company page URL"
    assert result.brand is None


@pytest.fixture
def fake_flow(monkeypatch):
    session = FakeSession(page=object())
    session.debug = ["CDP_MODE"]
    calls = {"brand_urls": [], "requested_urls": []}

    async def goto(page, url, timeout_ms=0, tries=2):
        return True, ""

    async def login(page):
        return False, ["LOGGED_IN"]

    async def scroll(page):
        return None

    async def extract(page, include_email=True, debug=None, requested_url=""):
        calls["requested_urls"].append(requested_url)
        debug.append("PROFILE_OK_1")
        return ProfileRecord(
            name="Jane Doe",
            role="Staff Engineer",
            company="Acme Corp",
            linkedin_url="https://www.linkedin.com/in/jane-doe/",
            company_linkedin_url="https://www.linkedin.com/company/1234/",
        )

    async def brand(session, url, timeout_ms=0, debug=None):
        calls["brand_urls"].append(url)
        return BrandRecord(brand_name="Acme Corp")

    monkeypatch.setattr(profile_scraper, "_session_for", lambda req: session)
    monkeypatch.setattr(profile_scraper, "goto_with_retry", goto)
    monkeypatch.setattr(profile_scraper, "check_login_status", login)
    monkeypatch.setattr(profile_scraper, "warm_up_scroll", scroll)
    monkeypatch.setattr(profile_scraper, "extract_profile_with_retry", extract)
    monkeypatch.setattr(profile_scraper, "extract_brand_from_url", brand)
    return calls


@pytest.mark.asyncio
async def test_scrape_profile_runs_brand_pass(fake_flow):
    result = await profile_scraper.scrape_profile(ExtractRequest(url=PROFILE_URL))

    assert result.error is None
    assert result.cookies_loaded is True
    assert result.guest_mode is False
    assert result.profile.name == "Jane Doe"
    assert result.brand.brand_name == "Acme Corp"
    assert fake_flow["brand_urls"] == ["https://www.linkedin.com/company/1234/"]
    assert fake_flow["requested_urls"] == [PROFILE_URL]
    assert result.debug_msgs == ["CDP_MODE", "LOGGED_IN", "PROFILE_OK_1"]


@pytest.mark.asyncio
async def test_scrape_profile_can_skip_brand(fake_flow):
    result = await profile_scraper.scrape_profile(ExtractRequest(url=PROFILE_URL, include_brand=False))

    assert result.brand is None
    assert fake_flow["brand_urls"] == []
