"""Search-then-write upserts against the Airtable REST API.

A prospect row is keyed by its LinkedIn URL and a brand row by its name. Every
save searches first so re-saving the same profile updates the existing row
instead of creating a duplicate.
"""
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from .config import (
    AIRTABLE_API_URL,
    AIRTABLE_TIMEOUT_SECONDS,
    BRAND_CREATE_DEFAULTS,
    BRAND_FIELDS,
    BRAND_KEY_FIELD,
    PROSPECT_BRAND_LINK_FIELD,
    PROSPECT_FIELDS,
    PROSPECT_KEY_FIELD,
)
from .errors import AirtableError, ConfigurationError, NetworkError, NotFoundError, ProspectSaverError
from .models import AirtableCredentials, BrandRecord, ProfileRecord, RemoteRecord
from .settings_store import SettingsStore, mask_secret
from .urls import canonical_profile_url

logger = logging.getLogger(__name__)


def formula_equals(field: str, value: str) -> str:
    """`{Field} = "value"` with backslashes and quotes escaped."""
    escaped = (value or "").replace("\\", "\\\\").replace('"', '\\"')
    return '{%s} = "%s"' % (field, escaped)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    if isinstance(error, str) and error:
        return error
    return f"HTTP {response.status_code}: {response.reason_phrase}"


class AirtableClient:
    """Thin async wrapper over the three Airtable calls we need."""

    def __init__(
        self,
        credentials: AirtableCredentials,
        api_url: str = AIRTABLE_API_URL,
        timeout: float = AIRTABLE_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credentials = credentials
        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            headers={"Authorization": f"Bearer {credentials.api_key}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "AirtableClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def table_path(self, table: str, record_id: Optional[str] = None) -> str:
        path = f"/{self.credentials.base_id}/{quote(table, safe='')}"
        if record_id:
            path += f"/{record_id}"
        return path

    async def _request(self, method: str, table: str, record_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
        path = self.table_path(table, record_id)
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request to Airtable timed out: {e}", path) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Network error talking to Airtable: {e}", path) from e

        if response.is_success:
            return response.json()

        url = str(response.request.url)
        logger.error("Airtable %s %s failed with %d: %s", method, url, response.status_code, response.text[:300])
        if response.status_code == 404:
            raise NotFoundError(self.credentials.base_id, table, url)
        raise AirtableError(_error_message(response), response.status_code, url)

    async def find_first(self, table: str, field: str, value: str) -> Optional[RemoteRecord]:
        """First row whose `field` equals `value` exactly, or None."""
        formula = formula_equals(field, value)
        logger.debug("Searching %s with %s", table, formula)
        data = await self._request("GET", table, params={"filterByFormula": formula})
        records = data.get("records") or []
        if len(records) > 1:
            logger.warning("%d rows in %s match %s; using the first", len(records), table, formula)
        return RemoteRecord.model_validate(records[0]) if records else None

    async def create(self, table: str, fields: Dict[str, Any]) -> RemoteRecord:
        data = await self._request("POST", table, json={"fields": fields})
        return RemoteRecord.model_validate(data)

    async def update(self, table: str, record_id: str, fields: Dict[str, Any]) -> RemoteRecord:
        data = await self._request("PATCH", table, record_id, json={"fields": fields})
        return RemoteRecord.model_validate(data)


def prospect_fields(record: ProfileRecord, field_map: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Map a ProfileRecord onto Airtable column names."""
    field_map = PROSPECT_FIELDS if field_map is None else field_map
    values = {
        "name": record.name,
        "role": record.role,
        "company": record.company,
        "linkedin_url": record.linkedin_url,
        "email": record.email or "",
        "connection_request_sent": record.connection_request_sent,
        "connected": record.connected,
    }
    return {column: values[attr] for attr, column in field_map.items() if column and attr in values}


def brand_fields(brand: BrandRecord) -> Dict[str, Any]:
    values = {
        "brand_name": brand.brand_name,
        "brand_website": brand.brand_website,
        "location": brand.location,
    }
    return {column: values[attr] for attr, column in BRAND_FIELDS.items() if column}


async def save_brand(client: AirtableClient, brand: BrandRecord) -> str:
    """Upsert a brand row by name and return its record id.

    First-creation defaults (the Temperature marker) are never sent on update
    so a value set by hand in Airtable survives re-saves.
    """
    table = client.credentials.brand_table_name
    existing = await client.find_first(table, BRAND_KEY_FIELD, brand.brand_name)
    fields = brand_fields(brand)
    if existing:
        logger.info("Updating existing brand %s", existing.id)
        saved = await client.update(table, existing.id, fields)
    else:
        fields.update(BRAND_CREATE_DEFAULTS)
        logger.info("Creating new brand %r", brand.brand_name)
        saved = await client.create(table, fields)
    return saved.id


async def save_to_airtable(
    record: ProfileRecord,
    brand: Optional[BrandRecord] = None,
    credentials: Optional[AirtableCredentials] = None,
    store: Optional[SettingsStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RemoteRecord:
    """Upsert a prospect (and its brand, when given) and return the saved row.

    Credentials are read from the settings store on every call unless passed
    in. Missing credentials fail before any request is made. A brand failure
    is logged and the prospect is saved without the link. The LinkedIn URL
    is canonicalised before the search so edited or tracked URLs match the
    existing row.
    """
    creds = credentials if credentials is not None else (store or SettingsStore()).load_credentials()
    missing = creds.missing()
    if missing:
        raise ConfigurationError(missing)
    key = canonical_profile_url(record.linkedin_url)
    if not key:
        raise ProspectSaverError("Profile has no LinkedIn URL, so it cannot be matched against existing rows.")
    if key != record.linkedin_url:
        record = record.model_copy(update={"linkedin_url": key})

    logger.info(
        "Airtable config base=%s table=%s api_key_length=%d api_key_prefix=%s",
        creds.base_id,
        creds.table_name,
        len(creds.api_key),
        mask_secret(creds.api_key),
    )

    async with AirtableClient(creds, transport=transport) as client:
        brand_id = None
        if brand is not None and brand.brand_name.strip():
            try:
                brand_id = await save_brand(client, brand)
                logger.info("Brand record id: %s", brand_id)
            except Exception as e:
                logger.error("Failed to save brand, continuing with prospect: %s", e)

        existing = await client.find_first(creds.table_name, PROSPECT_KEY_FIELD, record.linkedin_url)
        fields = prospect_fields(record)
        if brand_id:
            # Linked record fields take a list of record ids
            fields[PROSPECT_BRAND_LINK_FIELD] = [brand_id]

        if existing:
            saved = await client.update(creds.table_name, existing.id, fields)
        else:
            saved = await client.create(creds.table_name, fields)

    logger.info("Successfully %s prospect %s", "updated" if existing else "created", saved.id)
    return saved
