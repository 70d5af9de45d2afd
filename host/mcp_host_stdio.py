import json, subprocess, sys, os, time, shutil, shlex, platform
from typing import List, Dict, Any, Optional
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel

from time_mcp.config import JSONRPC_VERSION as JSONRPC, MCP_VERSION

console = Console(stderr=True)

DEFAULT_SERVER = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "server_stdio.py"))


class MCPProcess:
    def __init__(self, popen: subprocess.Popen):
        self.proc = popen
        self.seq = 0

    def next_id(self) -> int:
        self.seq += 1
        return self.seq

    def send(self, obj: Dict[str, Any]) -> None:
        line = json.dumps(obj, ensure_ascii=False) + "\n"
        assert self.proc.stdin is not None
        self.proc.stdin.write(line)
        self.proc.stdin.flush()

    def send_raw(self, line: str) -> None:
        assert self.proc.stdin is not None
        self.proc.stdin.write(line.rstrip("\n") + "\n")
        self.proc.stdin.flush()

    def recv(self, timeout: float = 10.0) -> Optional[Dict[str, Any]]:
        assert self.proc.stdout is not None
        t0 = time.time()
        while time.time() - t0 < timeout:
            line = self.proc.stdout.readline()
            if not line:
                if self.proc.poll() is not None:
                    return None
                time.sleep(0.01)
                continue
            line = line.strip()
            if not line:
                continue
            try:
                return json.loads(line)
            except json.JSONDecodeError:
                # Ignora líneas no-JSON extraviadas
                continue
        return None

    def request(self, method: str, params: Optional[Dict[str, Any]] = None, timeout: float = 10.0) -> Dict[str, Any]:
        req: Dict[str, Any] = {"jsonrpc": JSONRPC, "id": self.next_id(), "method": method}
        if params is not None:
            req["params"] = params
        self.send(req)
        rsp = self.recv(timeout)
        if rsp is None:
            raise RuntimeError(f"{method} timed out")
        return rsp

    def notify(self, method: str, params: Optional[Dict[str, Any]] = None) -> None:
        msg: Dict[str, Any] = {"jsonrpc": JSONRPC, "method": method}
        if params is not None:
            msg["params"] = params
        self.send(msg)

    def close(self, timeout: float = 5.0) -> Optional[int]:
        # EOF en stdin: el servidor sale por sí solo
        try:
            if self.proc.stdin and not self.proc.stdin.closed:
                self.proc.stdin.close()
        except OSError:
            pass
        try:
            return self.proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            self.proc.terminate()
            return self.proc.wait(timeout=timeout)


def initialize(server: MCPProcess, protocol_version: str = MCP_VERSION) -> Dict[str, Any]:
    rsp = server.request("initialize", {
        "protocolVersion": protocol_version,
        "capabilities": {},
        "clientInfo": {"name": "time-mcp-host", "version": "0.1.0"}
    })
    if "result" not in rsp:
        raise RuntimeError(f"initialize failed: {json.dumps(rsp, ensure_ascii=False)}")
    server.notify("notifications/initialized")
    return rsp["result"]


def tools_list(server: MCPProcess) -> List[Dict[str, Any]]:
    rsp = server.request("tools/list", {})
    if "result" in rsp:
        return rsp["result"].get("tools", [])
    raise RuntimeError(f"tools/list failed: {json.dumps(rsp, ensure_ascii=False)}")


def tools_call(server: MCPProcess, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    rsp = server.request("tools/call", {"name": name, "arguments": arguments})
    if "result" in rsp:
        return rsp["result"]
    if "error" in rsp:
        raise RuntimeError(f"tools/call {name} error: {json.dumps(rsp['error'], ensure_ascii=False)}")
    raise RuntimeError(f"tools/call {name} unexpected response: {json.dumps(rsp, ensure_ascii=False)}")


def _flatten_args(nested: List[List[str]]) -> List[str]:
    # Convierte [[-y], [@pkg], [path con espacios]] -> [-y, @pkg, path...]
    flat: List[str] = []
    for group in nested:
        if len(group) == 1 and (" " in group[0] or "\t" in group[0]):
            flat.extend(shlex.split(group[0], posix=False))
        else:
            flat.extend(group)
    return flat


def _resolve_executable(cmd: str) -> Optional[str]:
    p = shutil.which(cmd)
    if p:
        return p
    # En Windows, npx/npm suelen ser .cmd
    if platform.system().lower().startswith("win"):
        p = shutil.which(cmd + ".cmd")
        if p:
            return p
    return None


def launch(cmd: List[str], env: Optional[Dict[str, str]] = None) -> MCPProcess:
    exe = _resolve_executable(cmd[0]) or (cmd[0] if os.path.isfile(cmd[0]) else None)
    if exe is None:
        raise FileNotFoundError(f"No se encontró ejecutable para '{cmd[0]}' en PATH")
    popen = subprocess.Popen(
        [exe] + cmd[1:],
        stdin=subprocess.PIPE, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
        text=True, encoding="utf-8", bufsize=1, env=env
    )
    return MCPProcess(popen)


def pretty(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2)


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    import argparse
    ap = argparse.ArgumentParser(description="Host MCP mínimo (stdio)")
    ap.add_argument("--cmd", default=sys.executable, help="Comando del servidor (por defecto, este intérprete)")
    ap.add_argument("--arg", nargs="+", action="append", default=[], help="Argumento(s) del servidor (repetible)")
    ap.add_argument("--call", help="Nombre de herramienta a invocar (opcional)")
    ap.add_argument("--args", help="JSON con argumentos de la herramienta (opcional)", default="{}")
    ap.add_argument("--env", action="append", default=[], help="Variables env KEY=VALUE para el proceso hijo")
    ap.add_argument("--protocol-version", default=MCP_VERSION, help="Versión MCP a negociar")
    args = ap.parse_args(argv)

    env = os.environ.copy()
    for pair in args.env:
        if "=" in pair:
            k, v = pair.split("=", 1)
            env[k] = v

    flat_args = _flatten_args(args.arg)
    if not flat_args and args.cmd == sys.executable:
        flat_args = [DEFAULT_SERVER]

    full_cmd = [args.cmd] + flat_args
    console.print(f"[dim][host] launching: {' '.join(full_cmd)}[/]")
    server = launch(full_cmd, env)

    try:
        init_info = initialize(server, args.protocol_version)
        console.print(Panel.fit(pretty(init_info), title="initialize ✓"))
        tool_defs = tools_list(server)
        console.print(Panel.fit(pretty([t["name"] for t in tool_defs]), title="tools/list ✓"))

        if args.call:
            call_args = json.loads(args.args)
            try:
                result = tools_call(server, args.call, call_args)
                console.print(Panel.fit(pretty(result), title=f"{args.call} ✓"))
            except RuntimeError as e:
                console.print(Panel.fit(str(e), title=f"{args.call} ✗"))
    finally:
        server.close()


if __name__ == "__main__":
    main()
