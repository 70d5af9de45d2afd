from __future__ import annotations

import io
import json
from typing import Any, Dict, List, Optional, Tuple

import pytest

from time_mcp.lifecycle import RunFlag
from time_mcp.protocol import Dispatcher
from time_mcp.tools import TOOLS, TOOL_IMPL
from time_mcp.transcript import Transcript
from time_mcp.transport_stdio import run_stdio_loop

INIT = {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "0.2.0"}}


def make_dispatcher(tools=None, tool_impl=None) -> Dispatcher:
    return Dispatcher(
        TOOLS if tools is None else tools,
        TOOL_IMPL if tool_impl is None else tool_impl,
        server_name="time-server",
        server_version="0.8.0",
    )


def run_lines(
    lines: List[Any], dispatcher: Optional[Dispatcher] = None, flag: Optional[RunFlag] = None
) -> Tuple[List[Dict[str, Any]], str, str]:
    """Ejecuta el bucle sobre ``lines`` (dicts o texto crudo) y devuelve (respuestas, stdout, transcripción)."""
    raw = "".join((json.dumps(line) if isinstance(line, dict) else line) + "\n" for line in lines)
    stdin = io.BytesIO(raw.encode("utf-8"))
    stdout = io.StringIO()
    log = io.StringIO()
    run_stdio_loop(
        dispatcher or make_dispatcher(),
        flag or RunFlag(),
        Transcript(path="<memory>", stream=log),
        stdin=stdin,
        stdout=stdout,
    )
    out = stdout.getvalue()
    return [json.loads(line) for line in out.splitlines()], out, log.getvalue()


@pytest.fixture
def dispatcher() -> Dispatcher:
    return make_dispatcher()


@pytest.fixture
def ready(dispatcher: Dispatcher) -> Dispatcher:
    rsp = dispatcher.handle_request(INIT)
    assert rsp is not None and "result" in rsp
    return dispatcher
