import json
import logging
import os
from typing import Dict, Iterable, Optional

from .config import SETTINGS_FILE, DEFAULT_TABLE_NAME, DEFAULT_BRAND_TABLE_NAME
from .models import AirtableCredentials

logger = logging.getLogger(__name__)


API_KEY = "airtableApiKey"
BASE_ID = "airtableBaseId"
TABLE_NAME = "airtableTableName"
BRAND_TABLE_NAME = "airtableBrandTableName"

KNOWN_KEYS = [API_KEY, BASE_ID, TABLE_NAME, BRAND_TABLE_NAME]

DEFAULTS = {
    TABLE_NAME: DEFAULT_TABLE_NAME,
    BRAND_TABLE_NAME: DEFAULT_BRAND_TABLE_NAME,
}

# Environment variables consulted when a key was never stored
ENV_FALLBACKS = {
    API_KEY: "AIRTABLE_API_KEY",
    BASE_ID: "AIRTABLE_BASE_ID",
    TABLE_NAME: "AIRTABLE_TABLE_NAME",
    BRAND_TABLE_NAME: "AIRTABLE_BRAND_TABLE_NAME",
}


class SettingsStore:
    """Small persisted key-value map backed by a JSON file.

    Every `get` re-reads the file so changes made between two saves (from the
    API, the CLI or by hand) are always picked up. There is no locking.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or SETTINGS_FILE

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Settings file %s unreadable, using defaults: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, keys: Optional[Iterable[str]] = None) -> Dict[str, str]:
        stored = self._read()
        values = {}
        for key in keys or KNOWN_KEYS:
            value = stored.get(key)
            if not value and key in ENV_FALLBACKS:
                value = os.environ.get(ENV_FALLBACKS[key])
            if not value:
                value = DEFAULTS.get(key, "")
            values[key] = value
        return values

    def set(self, values: Dict[str, str]) -> bool:
        stored = self._read()
        stored.update({k: ("" if v is None else str(v)) for k, v in values.items()})
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(stored, f, indent=2)
        logger.info("Saved settings: %s", ", ".join(sorted(values)))
        return True

    def load_credentials(self) -> AirtableCredentials:
        items = self.get(KNOWN_KEYS)
        return AirtableCredentials(
            api_key=items[API_KEY],
            base_id=items[BASE_ID],
            table_name=items[TABLE_NAME],
            brand_table_name=items[BRAND_TABLE_NAME] or DEFAULT_BRAND_TABLE_NAME,
        )


def mask_secret(value: str) -> str:
    """Show only the token prefix, e.g. `patAbCd...`."""
    if not value:
        return ""
    return value[:7] + "..."
