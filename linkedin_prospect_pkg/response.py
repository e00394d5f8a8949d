from typing import Any, Dict

from .models import CommandResult


def build_response(result: CommandResult) -> Dict[str, Any]:
    """Compose the public JSON reply for a command.

    Records use the camelCase keys the side panel form binds to
    (`linkedinUrl`, `connectionRequestSent`, `brandName`, ...). Empty parts
    are left out rather than sent as nulls.
    """
    if not result.success:
        return build_error(result)

    resp: Dict[str, Any] = {
        "success": True,
        "action": result.action.value,
        "message": result.message,
    }
    if result.profile is not None:
        resp["data"] = result.profile.model_dump(by_alias=True)
    if result.brand is not None:
        resp["brandData"] = result.brand.model_dump(by_alias=True)
    if result.record is not None:
        resp["result"] = result.record.model_dump(by_alias=True, exclude_none=True)
    if result.debug:
        resp["debug"] = result.debug
    if result.debug_files:
        resp["debug_files"] = result.debug_files
    return resp


def build_error(result: CommandResult) -> Dict[str, Any]:
    """Failed command: `success` is False and `error` is the readable message.

    A partial profile is still included so the operator can fix it by hand.
    """
    resp: Dict[str, Any] = {
        "success": False,
        "action": result.action.value,
        "error": result.error or "Unknown error",
    }
    if result.profile is not None:
        resp["data"] = result.profile.model_dump(by_alias=True)
    if result.debug:
        resp["debug"] = result.debug
    return resp
