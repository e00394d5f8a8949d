import pytest

from linkedin_prospect_pkg.dom import parse_document
from linkedin_prospect_pkg.extraction import (
    detect_affordance,
    extract_brand,
    extract_connection_status,
    extract_profile,
)


def test_extract_profile_from_experience_card(profile_html):
    record = extract_profile(parse_document(profile_html), "https://www.linkedin.com/in/jane-doe/")

    assert record.name == "Jane Doe"
    assert record.role == "Staff Engineer"
    assert record.company == "Acme Corp"
    assert record.linkedin_url == "https://www.linkedin.com/in/jane-doe/"
    assert record.company_linkedin_url == "https://www.linkedin.com/company/1234/"
    assert record.email == ""
    assert record.connection_request_sent is True
    assert record.connected is True


def test_extract_profile_falls_back_to_headline(headline_only_html):
    record = extract_profile(parse_document(headline_only_html))

    assert record.name == "John Smith"
    assert record.role == "Head of Growth"
    assert record.company == "Globex"
    assert record.company_linkedin_url is None
    assert (record.connection_request_sent, record.connected) == (False, False)


@pytest.mark.parametrize("html", [
    "",
    "<html><body></body></html>",
    "<html><body><div><p>Nothing recognisable here at all</p></div></body></html>",
    "<html><body><nav><h2>Home</h2></nav><aside><h2>People also viewed</h2></aside></body></html>",
])
def test_unrecognised_document_yields_empty_record(html):
    record = extract_profile(parse_document(html))

    assert record.name == ""
    assert record.role == ""
    assert record.company == ""
    assert record.linkedin_url == ""
    assert record.email == ""
    assert record.connection_request_sent is False
    assert record.connected is False
    assert record.company_linkedin_url is None


def test_extract_profile_never_raises(monkeypatch, profile_html):
    from linkedin_prospect_pkg import extraction

    def boom(doc):
        raise RuntimeError("markup changed")

    monkeypatch.setattr(extraction, "extract_connection_status", boom)
    record = extraction.extract_profile(parse_document(profile_html))

    # Fields found before the failure are kept
    assert record.name == "Jane Doe"
    assert record.connected is False


def _page_with_buttons(*buttons: str) -> str:
    return "<html><body><main><h1>Ann Lee</h1>%s</main></body></html>" % "".join(buttons)


@pytest.mark.parametrize("buttons, expected", [
    (['<button aria-label="Pending, click to withdraw invitation sent to Ann Lee">Pending</button>'], (True, False)),
    (['<button aria-label="Message Ann Lee">Message</button>'], (True, True)),
    (['<button aria-label="Invite Ann Lee to connect">Connect</button>'], (False, False)),
    (['<button>Connect</button>'], (False, False)),
])
def test_relationship_flags_single_affordance(buttons, expected):
    flags = extract_connection_status(parse_document(_page_with_buttons(*buttons)))
    assert (flags.request_sent, flags.connected) == expected


def test_pending_outranks_message():
    doc = parse_document(_page_with_buttons(
        '<button aria-label="Message Ann Lee">Message</button>',
        '<button>Pending</button>',
    ))
    assert detect_affordance(doc) == "pending"
    flags = extract_connection_status(doc)
    assert (flags.request_sent, flags.connected) == (True, False)


def test_no_affordance_defaults_to_not_connected(caplog):
    doc = parse_document(_page_with_buttons("<button>Follow</button>"))

    flags = extract_connection_status(doc)

    assert detect_affordance(doc) is None
    assert (flags.request_sent, flags.connected) == (False, False)
    assert "Could not determine connection status" in caplog.text


def test_buttons_outside_profile_are_ignored_when_main_exists():
    html = (
        "<html><body><header><button>Messaging</button><button>Message</button></header>"
        "<main><h1>Ann Lee</h1><button>Connect</button></main></body></html>"
    )
    assert detect_affordance(parse_document(html)) == "connect"


def test_extract_brand(brand_html):
    brand = extract_brand(parse_document(brand_html), "https://www.linkedin.com/company/acme/")

    assert brand.brand_name == "Acme Corp"
    assert brand.brand_website == "https://acme.example.com/?utm_source=linkedin"
    assert brand.location == "LinkedIn"


def test_extract_brand_uses_about_section_links():
    html = (
        "<html><body><h1>Initech</h1>"
        "<a href='https://www.linkedin.com/company/initech/'>Home</a>"
        "<section class='org-about-module'><a href='http://10.0.0.1/home'>Home page</a></section>"
        "</body></html>"
    )
    brand = extract_brand(parse_document(html))

    assert brand.brand_name == "Initech"
    assert brand.brand_website == "http://10.0.0.1/home"


def test_extract_brand_empty_page():
    brand = extract_brand(parse_document("<html><body></body></html>"))
    assert brand.brand_name == ""
    assert brand.brand_website == ""
    assert brand.location == "LinkedIn"
