from typing import Dict, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from linkedin_prospect_pkg.commands import CommandDispatcher
from linkedin_prospect_pkg.models import BrandRecord, Command, CommandKind, ExtractRequest, ProfileRecord
from linkedin_prospect_pkg.response import build_response
from linkedin_prospect_pkg.scraper_logging import init_logging
from linkedin_prospect_pkg.settings_store import API_KEY, KNOWN_KEYS, SettingsStore, mask_secret

init_logging()

app = FastAPI(title="LinkedIn Prospect Saver")


class SaveRequest(BaseModel):
    model_config = {"populate_by_name": True}

    data: ProfileRecord
    brand_data: Optional[BrandRecord] = Field(None, alias="brandData")


def get_store() -> SettingsStore:
    return SettingsStore()


def get_dispatcher(store: SettingsStore = Depends(get_store)) -> CommandDispatcher:
    return CommandDispatcher(store=store)


@app.post("/commands")
async def run_command(command: Command, dispatcher: CommandDispatcher = Depends(get_dispatcher)):
    return build_response(await dispatcher.dispatch(command))


@app.post("/extract/profile")
async def extract_profile(data: ExtractRequest, dispatcher: CommandDispatcher = Depends(get_dispatcher)):
    command = Command(action=CommandKind.EXTRACT_PROFILE, url=data.url, options=data)
    return build_response(await dispatcher.dispatch(command))


@app.post("/extract/brand")
async def extract_brand(data: ExtractRequest, dispatcher: CommandDispatcher = Depends(get_dispatcher)):
    command = Command(action=CommandKind.EXTRACT_BRAND, url=data.url, options=data)
    return build_response(await dispatcher.dispatch(command))


@app.post("/airtable/save")
async def save(data: SaveRequest, dispatcher: CommandDispatcher = Depends(get_dispatcher)):
    command = Command(action=CommandKind.SAVE_TO_AIRTABLE, data=data.data, brand_data=data.brand_data)
    return build_response(await dispatcher.dispatch(command))


@app.get("/settings")
def read_settings(store: SettingsStore = Depends(get_store)):
    values = store.get(KNOWN_KEYS)
    values[API_KEY] = mask_secret(values[API_KEY])
    return values


@app.put("/settings")
def update_settings(values: Dict[str, str], store: SettingsStore = Depends(get_store)):
    unknown = [k for k in values if k not in KNOWN_KEYS]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown settings: {', '.join(unknown)}")
    # A masked key echoed back from GET /settings is not a new key
    if API_KEY in values and values[API_KEY] == mask_secret(store.get([API_KEY])[API_KEY]):
        values = {k: v for k, v in values.items() if k != API_KEY}
    if values:
        store.set(values)
    return {"saved": True}


@app.get("/health")
def health():
    return {"status": "ok"}
