import os
from dotenv import load_dotenv

load_dotenv()

SERVER_NAME = "time-server"
SERVER_VERSION = "0.8.0"

JSONRPC_VERSION = "2.0"
# Versión MCP que ofrece el host; el servidor repite la que negocie el cliente.
MCP_VERSION = "0.2.0"

LOG_FILE = os.getenv("MCP_LOG_FILE", "log.txt")
LOG_LEVEL = os.getenv("MCP_LOG_LEVEL", "INFO").upper()  # DEBUG|INFO|WARN|ERROR

DEFAULT_TIMEZONE = os.getenv("TIME_MCP_DEFAULT_TIMEZONE", "Asia/Shanghai")
