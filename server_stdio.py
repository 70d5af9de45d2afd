import sys
from typing import Optional

from time_mcp.config import LOG_FILE, SERVER_NAME, SERVER_VERSION
from time_mcp.lifecycle import RunFlag, install_signal_handlers, restore_signal_handlers
from time_mcp.protocol import Dispatcher
from time_mcp.tools import TOOLS, TOOL_IMPL
from time_mcp.transcript import Transcript
from time_mcp.transport_stdio import run_stdio_loop


def build_dispatcher() -> Dispatcher:
    return Dispatcher(TOOLS, TOOL_IMPL, server_name=SERVER_NAME, server_version=SERVER_VERSION)


def main(log_file: Optional[str] = None) -> None:
    # stdin se lee en bytes; la salida siempre en UTF-8, sin importar la configuración regional
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")

    flag = RunFlag()
    previous = install_signal_handlers(flag)
    try:
        with Transcript(log_file or LOG_FILE) as transcript:
            run_stdio_loop(build_dispatcher(), flag, transcript)
    finally:
        restore_signal_handlers(previous)


if __name__ == "__main__":
    main()
