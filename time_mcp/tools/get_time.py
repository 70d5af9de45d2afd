import json
from datetime import datetime
from typing import Any, Callable, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..config import DEFAULT_TIMEZONE
from ..jsonrpc import ErrorCode, rsp_error, rsp_result

DEF = {
    "name": "get_time",
    "description": "Get the current time",
    "inputSchema": {
        "type": "object",
        "properties": {
            "timezone": {
                "type": "string",
                "description": f"IANA timezone (optional, defaults to {DEFAULT_TIMEZONE})"
            }
        }
    }
}

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_zone(name: Any) -> Optional[ZoneInfo]:
    if not isinstance(name, str) or not name.strip():
        return None
    # "America" (directorio) o nombres demasiado largos fallan con OSError
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return None


def IMPL(_id: Any, args: Dict[str, Any], now: Callable[..., datetime] = datetime.now) -> Dict[str, Any]:
    if not isinstance(args, dict):
        return rsp_error(_id, ErrorCode.INVALID_PARAMS, "Invalid arguments")
    tz_name = args.get("timezone")
    if tz_name is None:
        tz_name = DEFAULT_TIMEZONE
    zone = _resolve_zone(tz_name)
    if zone is None:
        return rsp_error(_id, ErrorCode.INVALID_PARAMS, f"Invalid timezone: {tz_name}")

    payload = {"time": now(zone).strftime(TIME_FORMAT), "timezone": tz_name}
    return rsp_result(_id, {
        "content": [{"type": "text", "text": json.dumps(payload, ensure_ascii=False, indent=4)}]
    })
