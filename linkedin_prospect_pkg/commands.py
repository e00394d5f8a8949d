"""Command dispatcher for side-panel actions.

Each `CommandKind` has exactly one handler. Handlers return a `CommandResult`;
errors are turned into a failed result here so callers (HTTP API, CLI) never
have to catch exceptions themselves.
"""
import logging
from typing import Awaitable, Callable, Dict, Optional

from .airtable import save_to_airtable
from .errors import ProspectSaverError
from .models import (
    BrandRecord,
    Command,
    CommandKind,
    CommandResult,
    ExtractRequest,
    ProfileRecord,
    ScrapeResult,
)
from .profile_scraper import scrape_brand, scrape_profile
from .settings_store import SettingsStore

logger = logging.getLogger(__name__)


Handler = Callable[[Command], Awaitable[CommandResult]]


def profile_status(profile: ProfileRecord, brand: Optional[BrandRecord]) -> str:
    """Operator-facing summary of how much was extracted."""
    if profile.is_complete():
        if brand is not None:
            return "Profile and brand data extracted! Review and save."
        return "Profile data extracted! You can edit and save."
    if profile.name:
        return "Partial data extracted. Please check and edit as needed."
    return "Could not extract data. The page may still be loading."


def _extract_request(command: Command) -> ExtractRequest:
    if command.options is not None:
        req = command.options.model_copy()
        if command.url:
            req.url = command.url
        return req
    return ExtractRequest(url=command.url or "")


class CommandDispatcher:
    def __init__(
        self,
        store: Optional[SettingsStore] = None,
        profile_scraper: Callable[[ExtractRequest], Awaitable[ScrapeResult]] = scrape_profile,
        brand_scraper: Callable[[ExtractRequest], Awaitable[ScrapeResult]] = scrape_brand,
        saver: Callable[..., Awaitable] = save_to_airtable,
    ):
        self.store = store or SettingsStore()
        self._profile_scraper = profile_scraper
        self._brand_scraper = brand_scraper
        self._saver = saver
        self._handlers: Dict[CommandKind, Handler] = {
            CommandKind.EXTRACT_PROFILE: self.handle_extract_profile,
            CommandKind.EXTRACT_BRAND: self.handle_extract_brand,
            CommandKind.SAVE_TO_AIRTABLE: self.handle_save,
        }

    async def dispatch(self, command: Command) -> CommandResult:
        handler = self._handlers[command.action]
        logger.info("Dispatching %s", command.action.value)
        try:
            return await handler(command)
        except ProspectSaverError as e:
            logger.error("%s failed: %s", command.action.value, e)
            return CommandResult(action=command.action, success=False, error=str(e))
        except Exception as e:
            logger.exception("%s failed unexpectedly", command.action.value)
            return CommandResult(action=command.action, success=False, error=str(e) or type(e).__name__)

    async def handle_extract_profile(self, command: Command) -> CommandResult:
        result = await self._profile_scraper(_extract_request(command))
        debug = " | ".join(result.debug_msgs)
        if result.error:
            return CommandResult(action=command.action, success=False, error=result.error, profile=result.profile, debug=debug)
        return CommandResult(
            action=command.action,
            success=True,
            message=profile_status(result.profile, result.brand),
            profile=result.profile,
            brand=result.brand,
            debug=debug,
            debug_files=result.debug_files,
        )

    async def handle_extract_brand(self, command: Command) -> CommandResult:
        result = await self._brand_scraper(_extract_request(command))
        debug = " | ".join(result.debug_msgs)
        if result.error or result.brand is None:
            return CommandResult(
                action=command.action,
                success=False,
                error=result.error or "Could not extract brand data",
                debug=debug,
            )
        return CommandResult(
            action=command.action,
            success=True,
            message="Brand data extracted!",
            brand=result.brand,
            debug=debug,
        )

    async def handle_save(self, command: Command) -> CommandResult:
        if command.data is None:
            return CommandResult(action=command.action, success=False, error="No profile data to save")
        saved = await self._saver(command.data, command.brand_data, store=self.store)
        return CommandResult(
            action=command.action,
            success=True,
            message="Saved successfully!",
            profile=command.data,
            brand=command.brand_data,
            record=saved,
        )
