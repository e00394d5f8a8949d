from __future__ import annotations

import json
import re
import sys
from pathlib import Path

import httpx
import pytest


def pytest_configure():
    # Make root-level modules (app, scraper) and the package importable
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


FORMULA_RE = re.compile(r'^\{(?P<field>[^}]*)\} = "(?P<value>(?:[^"\\]|\\.)*)"$')


class FakeAirtable:
    """In-memory Airtable base served through httpx.MockTransport.

    Supports the three calls the client makes: filtered GET, POST and PATCH.
    Every request is recorded in `calls` as (method, table, record_id).
    """

    def __init__(self, base_id: str = "appTEST"):
        self.base_id = base_id
        self.tables: dict[str, list[dict]] = {}
        self.calls: list[tuple] = []
        self.formulas: list[str] = []
        self.failures: dict[tuple, tuple] = {}
        self._next_id = 1

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def fail(self, method: str, table: str, status: int, body: dict | None = None) -> None:
        self.failures[(method, table)] = (status, body or {})

    def count(self, method: str, table: str | None = None) -> int:
        return sum(1 for m, t, _ in self.calls if m == method and (table is None or t == table))

    def rows(self, table: str) -> list[dict]:
        return self.tables.setdefault(table, [])

    def seed(self, table: str, fields: dict) -> dict:
        record = self._new_record(fields)
        self.rows(table).append(record)
        return record

    def _new_record(self, fields: dict) -> dict:
        record = {"id": f"rec{self._next_id:04d}", "createdTime": "2026-01-01T00:00:00.000Z", "fields": dict(fields)}
        self._next_id += 1
        return record

    def handle(self, request: httpx.Request) -> httpx.Response:
        parts = request.url.path.split("/")
        base, table = parts[2], parts[3]
        record_id = parts[4] if len(parts) > 4 else None
        self.calls.append((request.method, table, record_id))

        if (request.method, table) in self.failures:
            status, body = self.failures[(request.method, table)]
            return httpx.Response(status, json=body)
        if base != self.base_id:
            return httpx.Response(404, json={"error": "NOT_FOUND"})

        rows = self.rows(table)
        if request.method == "GET":
            formula = request.url.params.get("filterByFormula", "")
            self.formulas.append(formula)
            match = FORMULA_RE.match(formula)
            if not match:
                return httpx.Response(422, json={"error": {"type": "INVALID_FILTER_BY_FORMULA", "message": "bad formula"}})
            value = re.sub(r"\\(.)", r"\1", match.group("value"))
            found = [r for r in rows if r["fields"].get(match.group("field")) == value]
            return httpx.Response(200, json={"records": found})

        body = json.loads(request.content)
        if request.method == "POST":
            record = self._new_record(body["fields"])
            rows.append(record)
            return httpx.Response(200, json=record)

        if request.method == "PATCH":
            for record in rows:
                if record["id"] == record_id:
                    record["fields"].update(body["fields"])
                    return httpx.Response(200, json=record)
            return httpx.Response(404, json={"error": {"type": "MODEL_ID_NOT_FOUND", "message": "Record not found"}})

        return httpx.Response(405)


@pytest.fixture
def fake_airtable():
    return FakeAirtable()


@pytest.fixture
def credentials():
    from linkedin_prospect_pkg.models import AirtableCredentials

    return AirtableCredentials(api_key="patTEST123456", base_id="appTEST", table_name="Profiles")


PROFILE_HTML = """
<html><body>
<header><nav><h2>Notifications</h2></nav></header>
<main>
  <section data-view-name="profile-top-card" class="artdeco-card">
    <h1><span aria-hidden="true">Jane Doe</span><span class="visually-hidden">Jane Doe</span></h1>
    <div class="text-body-medium">Senior Engineer at Acme | Building things</div>
    <ul><li>
      <button aria-label="Current company: Acme. Click to skip to experience card"><span>Acme</span></button>
    </li></ul>
    <a href="/in/jane-doe/overlay/contact-info/">Contact info</a>
    <span>500+ connections</span>
    <button aria-label="Message Jane Doe">Message</button>
    <button aria-label="More actions">More</button>
  </section>
  <section data-view-name="profile-card-experience">
    <h2>Experience</h2>
    <ul>
      <li><div>
        <a href="https://www.linkedin.com/company/1234/"><p>Staff Engineer</p><p>Acme Corp · Full-time</p></a>
        <span>Jan 2020 - Present · 4 yrs</span>
      </div></li>
      <li><div>
        <a href="https://www.linkedin.com/company/9999/"><p>Engineer</p><p>OldCo</p></a>
        <span>2015 - 2019</span>
      </div></li>
    </ul>
  </section>
</main>
</body></html>
"""

HEADLINE_ONLY_HTML = """
<html><body><main>
  <section data-view-name="profile-top-card">
    <h1>John Smith</h1>
    <div class="text-body-medium">Head of Growth at Globex, ex-Initech</div>
    <span>312 connections</span>
    <button aria-label="Invite John Smith to connect"><span>Connect</span></button>
  </section>
</main></body></html>
"""

BRAND_HTML = """
<html><body><main>
  <h1>Acme Corp</h1>
  <a href="/company/acme/people/">People</a>
  <a href="https://www.linkedin.com/company/acme/jobs/">Jobs</a>
  <a href="https://acme.example.com/?utm_source=linkedin">Visit website</a>
</main></body></html>
"""


@pytest.fixture
def profile_html():
    return PROFILE_HTML


@pytest.fixture
def headline_only_html():
    return HEADLINE_ONLY_HTML


@pytest.fixture
def brand_html():
    return BRAND_HTML
