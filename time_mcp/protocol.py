import copy
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .jsonrpc import ErrorCode, rsp_error, rsp_result
from .tools import ToolHandler
from .transcript import log_json


@dataclass
class ServerState:
    initialized: bool = False
    protocol_version: Optional[str] = None

    def mark_initialized(self, protocol_version: str) -> None:
        if self.initialized:
            raise RuntimeError("server already initialized")
        self.protocol_version = protocol_version
        self.initialized = True


# Métodos que no producen respuesta
SILENT_METHODS = frozenset({"notifications/initialized", "notifications/cancelled"})

EMPTY_LISTS = {
    "resources/list": "resources",
    "prompts/list": "prompts",
    "resources/templates/list": "resourceTemplates",
}


class Dispatcher:
    """
    Enruta peticiones ya validadas (``jsonrpc`` y ``method`` correctos) a su
    manejador. El registro de herramientas se fija al construir y no cambia.

    ``handle_request`` devuelve la respuesta a enviar, o ``None`` para las
    notificaciones silenciosas.
    """

    def __init__(self, tools: Sequence[dict], tool_impl: Mapping[str, ToolHandler],
                 server_name: str, server_version: str,
                 state: Optional[ServerState] = None):
        self._tools = tuple(copy.deepcopy(list(tools)))
        self._tool_impl = MappingProxyType(dict(tool_impl))
        self.server_info = {"name": server_name, "version": server_version}
        self.state = state if state is not None else ServerState()

    @property
    def tools(self) -> List[dict]:
        return copy.deepcopy(list(self._tools))

    def handle_request(self, req: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        _id = req.get("id")
        method = req["method"].lower()
        params = req.get("params")
        if not isinstance(params, dict):
            params = {}

        # Las notificaciones nunca llevan respuesta, ni siquiera antes del handshake
        if method in SILENT_METHODS:
            log_json("debug", msg="Notificación recibida", method=method)
            return None

        # Puerta del handshake
        if not self.state.initialized and method != "initialize":
            return rsp_error(_id, ErrorCode.SERVER_NOT_INITIALIZED, "Server not initialized")

        if method == "ping":
            return rsp_result(_id, {})

        if method in EMPTY_LISTS:
            return rsp_result(_id, {EMPTY_LISTS[method]: []})

        if method == "tools/list":
            return rsp_result(_id, {"tools": self.tools})

        if method == "initialize":
            return self._initialize(_id, params)

        if method == "tools/call":
            return self._call_tool(_id, params)

        return rsp_error(_id, ErrorCode.METHOD_NOT_FOUND, f"Unknown method: {method}")

    # -------- Handshake ----------
    def _initialize(self, _id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        if self.state.initialized:
            return rsp_error(_id, ErrorCode.INVALID_REQUEST, "Server already initialized")
        version = params.get("protocolVersion")
        if not isinstance(version, str) or not version:
            return rsp_error(_id, ErrorCode.INVALID_PARAMS, "Missing protocolVersion")

        self.state.mark_initialized(version)
        log_json("info", msg="Handshake completado", protocolVersion=version)
        return rsp_result(_id, {
            "protocolVersion": version,
            "serverInfo": dict(self.server_info),
            "capabilities": {"tools": {}, "prompts": {}, "resources": {}},
        })

    # -------- Invocación de herramientas ----------
    def _call_tool(self, _id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            return rsp_error(_id, ErrorCode.INVALID_REQUEST, "Missing tool name")
        impl = self._tool_impl.get(name)
        if impl is None:
            return rsp_error(_id, ErrorCode.METHOD_NOT_FOUND, f"Unknown tool: {name}")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        return impl(_id, arguments)
