from enum import Enum
from typing import Any, Dict, Optional

from .config import JSONRPC_VERSION


class ErrorCode(str, Enum):
    """Códigos simbólicos de error; viajan tal cual en ``error.code``."""

    PARSE_ERROR = "ParseError"
    INVALID_REQUEST = "InvalidRequest"
    INVALID_PARAMS = "InvalidParams"
    METHOD_NOT_FOUND = "MethodNotFound"
    SERVER_NOT_INITIALIZED = "ServerNotInitialized"
    INTERNAL_ERROR = "InternalError"


# Equivalencia con los códigos numéricos de JSON-RPC 2.0 para anfitriones que
# los necesiten. ServerNotInitialized cae en el rango reservado al servidor.
JSONRPC_NUMERIC_CODES: Dict[ErrorCode, int] = {
    ErrorCode.PARSE_ERROR: -32700,
    ErrorCode.INVALID_REQUEST: -32600,
    ErrorCode.METHOD_NOT_FOUND: -32601,
    ErrorCode.INVALID_PARAMS: -32602,
    ErrorCode.INTERNAL_ERROR: -32603,
    ErrorCode.SERVER_NOT_INITIALIZED: -32002,
}


def rsp_result(_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": _id, "result": result}


def rsp_error(_id: Any, code: ErrorCode, message: str, data: Optional[Any] = None) -> Dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": _id,
        "error": {"code": ErrorCode(code).value, "message": message, "data": data},
    }
