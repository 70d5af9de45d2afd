from typing import Any, Callable, Dict, List
from .get_time import DEF as GET_TIME_DEF, IMPL as GET_TIME_IMPL

# Handler: (id, arguments) -> respuesta o error JSON-RPC ya construido
ToolHandler = Callable[[Any, Dict[str, Any]], Dict[str, Any]]

TOOLS: List[dict] = [GET_TIME_DEF]

TOOL_IMPL: Dict[str, ToolHandler] = {
    "get_time": GET_TIME_IMPL,
}
