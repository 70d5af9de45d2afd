from __future__ import annotations

import json
import re
from datetime import datetime

import pytest

from time_mcp.config import DEFAULT_TIMEZONE
from time_mcp.tools import TOOL_IMPL, TOOLS
from time_mcp.tools.get_time import DEF, IMPL


def _fixed_now(tz):
    return datetime(2024, 1, 2, 3, 4, 5, tzinfo=tz)


def _payload(rsp):
    content = rsp["result"]["content"]
    assert content[0]["type"] == "text"
    return json.loads(content[0]["text"])


def test_registry_exposes_get_time() -> None:
    assert TOOLS == [DEF]
    assert TOOL_IMPL["get_time"] is IMPL
    assert DEF["inputSchema"]["properties"]["timezone"]["type"] == "string"


def test_default_timezone() -> None:
    rsp = IMPL(1, {})
    assert rsp["id"] == 1
    payload = _payload(rsp)
    assert payload["timezone"] == DEFAULT_TIMEZONE
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", payload["time"])


def test_explicit_timezone_and_pretty_text() -> None:
    rsp = IMPL("req-1", {"timezone": "UTC"}, now=_fixed_now)
    text = rsp["result"]["content"][0]["text"]
    assert text == json.dumps({"time": "2024-01-02 03:04:05", "timezone": "UTC"}, indent=4)


def test_null_timezone_falls_back_to_default() -> None:
    assert _payload(IMPL(1, {"timezone": None}))["timezone"] == DEFAULT_TIMEZONE


@pytest.mark.parametrize("tz", ["Mars/Olympus_Mons", "America", "a" * 5000, "", "   ", 42, ["UTC"]])
def test_invalid_timezone_is_invalid_params(tz) -> None:
    rsp = IMPL(3, {"timezone": tz})
    assert rsp["id"] == 3
    assert rsp["error"]["code"] == "InvalidParams"
    assert rsp["error"]["message"] == f"Invalid timezone: {tz}"


def test_non_mapping_arguments() -> None:
    rsp = IMPL(4, ["UTC"])
    assert rsp["error"]["code"] == "InvalidParams"
    assert rsp["error"]["message"] == "Invalid arguments"
