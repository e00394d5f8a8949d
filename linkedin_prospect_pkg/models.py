from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    # Accept both python names and the camelCase keys used by the side panel
    model_config = ConfigDict(populate_by_name=True)


class RelationshipFlags(BaseModel):
    request_sent: bool = False
    connected: bool = False


class ProfileRecord(_CamelModel):
    """Best-effort snapshot of a LinkedIn profile.

    Any string field may be empty when the page did not expose it. The record
    is never persisted locally; callers may edit it before saving.
    """
    name: str = ""
    role: str = ""
    company: str = ""
    linkedin_url: str = Field("", alias="linkedinUrl")
    email: str = ""
    connection_request_sent: bool = Field(False, alias="connectionRequestSent")
    connected: bool = False
    company_linkedin_url: Optional[str] = Field(None, alias="companyLinkedInUrl")

    def is_complete(self) -> bool:
        """A usable record has a name plus a role or a company."""
        return bool(self.name and (self.role or self.company))

    def apply_flags(self, flags: RelationshipFlags) -> None:
        self.connection_request_sent = flags.request_sent
        self.connected = flags.connected


class BrandRecord(_CamelModel):
    """Company page data linked to a prospect."""
    brand_name: str = Field("", alias="brandName")
    brand_website: str = Field("", alias="brandWebsite")
    location: str = "LinkedIn"


class AirtableCredentials(_CamelModel):
    api_key: str = Field("", alias="apiKey")
    base_id: str = Field("", alias="baseId")
    table_name: str = Field("", alias="tableName")
    brand_table_name: str = Field("Brands", alias="brandTableName")

    def missing(self) -> List[str]:
        """Names of the required fields that are empty."""
        required = {"apiKey": self.api_key, "baseId": self.base_id, "tableName": self.table_name}
        return [k for k, v in required.items() if not (v or "").strip()]


class RemoteRecord(BaseModel):
    """A row as returned by the Airtable REST API."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    fields: Dict[str, Any] = Field(default_factory=dict)
    created_time: Optional[str] = Field(None, alias="createdTime")


class ExtractRequest(BaseModel):
    """Request payload for profile and brand extraction."""
    url: str
    headless: Optional[bool] = None
    max_wait: int = 25000
    proxy: Optional[str] = None
    use_cdp: bool = False
    cdp_url: Optional[str] = None
    cookies_path: Optional[str] = None
    debug: bool = False
    include_email: bool = True
    include_brand: bool = True


class CommandKind(str, Enum):
    EXTRACT_PROFILE = "extractProfileData"
    EXTRACT_BRAND = "extractBrandData"
    SAVE_TO_AIRTABLE = "saveToAirtable"


class Command(_CamelModel):
    """A side-panel action routed through the command dispatcher."""
    action: CommandKind
    url: Optional[str] = None
    data: Optional[ProfileRecord] = None
    brand_data: Optional[BrandRecord] = Field(None, alias="brandData")
    options: Optional[ExtractRequest] = None


class ScrapeResult(BaseModel):
    """Internal result of one profile scrape, before it becomes a response."""
    url: str
    profile: ProfileRecord
    brand: Optional[BrandRecord] = None
    cookies_loaded: bool = False
    guest_mode: bool = False
    debug_msgs: List[str] = Field(default_factory=list)
    debug_files: Optional[dict] = None
    error: Optional[str] = None


class CommandResult(BaseModel):
    """Typed reply for every command; `error` is set when `success` is False."""
    action: CommandKind
    success: bool
    message: str = ""
    profile: Optional[ProfileRecord] = None
    brand: Optional[BrandRecord] = None
    record: Optional[RemoteRecord] = None
    error: Optional[str] = None
    debug: str = ""
    debug_files: Optional[dict] = None
