"""Save LinkedIn prospects and their companies to Airtable.

Modules are split by concern: DOM matchers and extraction work on parsed
page snapshots, the browser modules drive Playwright, and `airtable` does the
search-then-write upserts.
"""
