"""Exceptions raised by the Airtable upsert layer.

Extraction never raises (it degrades to empty fields), so everything here
belongs to the save path.
"""
from typing import Optional


class ProspectSaverError(Exception):
    """Base class for all errors surfaced to the operator."""
    pass


class ConfigurationError(ProspectSaverError):
    """Airtable credentials are missing. Fixed by editing the settings."""

    def __init__(self, missing: Optional[list] = None):
        self.missing = missing or []
        message = (
            "Airtable is not configured. Please go to Settings and add your "
            "API key, Base ID, and Table name."
        )
        if self.missing:
            message += f" (missing: {', '.join(self.missing)})"
        super().__init__(message)


class AirtableError(ProspectSaverError):
    """Non-success response from the Airtable API."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: str = ""):
        super().__init__(f"Airtable API error: {message}")
        self.status_code = status_code
        self.url = url


class NotFoundError(AirtableError):
    """404 from Airtable, almost always a wrong base id or table name."""

    def __init__(self, base_id: str, table_name: str, url: str):
        message = (
            "404 Not Found. Please check:\n"
            f"1. Base ID is correct (currently: {base_id})\n"
            f'2. Table name is correct and matches exactly (currently: "{table_name}")\n'
            "3. API token has access to this base\n"
            f"Full URL: {url}"
        )
        super().__init__(message, status_code=404, url=url)
        self.base_id = base_id
        self.table_name = table_name


class NetworkError(ProspectSaverError):
    """Transport failure or timeout talking to Airtable."""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url
