import sys, json, traceback
from typing import IO, Any, Dict, Optional, TextIO, Tuple, Union

from .config import JSONRPC_VERSION
from .jsonrpc import ErrorCode, rsp_error
from .lifecycle import RunFlag
from .protocol import Dispatcher
from .transcript import Transcript, log_json


def encode(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


class ResponseWriter:
    """Escribe una respuesta por línea en stdout y en la transcripción, vaciando cada vez."""

    def __init__(self, stdout: TextIO, transcript: Transcript):
        self.stdout = stdout
        self.transcript = transcript

    def send(self, obj: Dict[str, Any]) -> None:
        line = encode(obj)
        self.transcript.write(line)
        self.stdout.write(line + "\n")
        self.stdout.flush()


def validate_envelope(line: str) -> Tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
    """
    Devuelve ``(peticion, None)`` si el sobre es válido o ``(None, error)``
    con el error listo para enviar.
    """
    try:
        msg = json.loads(line)
    except json.JSONDecodeError:
        return None, rsp_error(None, ErrorCode.PARSE_ERROR, "Invalid JSON")
    if not isinstance(msg, dict):
        return None, rsp_error(None, ErrorCode.INVALID_REQUEST, "Invalid request")
    _id = msg.get("id")
    if msg.get("jsonrpc") != JSONRPC_VERSION:
        return None, rsp_error(_id, ErrorCode.INVALID_REQUEST, "Invalid JSON-RPC version")
    if not isinstance(msg.get("method"), str):
        return None, rsp_error(_id, ErrorCode.INVALID_REQUEST, "Missing method")
    return msg, None


def _process_line(line: str, dispatcher: Dispatcher) -> Optional[Dict[str, Any]]:
    req, err = validate_envelope(line)
    if err is not None:
        log_json("warn", where="transport_stdio", msg="Sobre JSON-RPC rechazado",
                 code=err["error"]["code"], sample=line[:200])
        return err

    log_json("request", method=req["method"], id=req.get("id"), has_params=("params" in req))
    return dispatcher.handle_request(req)


def decode_line(raw: Union[bytes, str]) -> Tuple[str, bool]:
    """
    Decodifica una línea leída de stdin. Devuelve ``(texto, ok)``; si los bytes
    no son UTF-8 válido, el texto lleva caracteres de reemplazo y ``ok`` es False.
    """
    if isinstance(raw, str):
        return raw, True
    try:
        return raw.decode("utf-8"), True
    except UnicodeDecodeError:
        return raw.decode("utf-8", errors="replace"), False


def run_stdio_loop(dispatcher: Dispatcher, flag: RunFlag, transcript: Transcript,
                   stdin: Optional[IO] = None, stdout: Optional[TextIO] = None) -> None:
    # bytes crudos: cada línea se decodifica por separado y un error no arrastra a las siguientes
    stdin = stdin if stdin is not None else sys.stdin.buffer
    writer = ResponseWriter(stdout if stdout is not None else sys.stdout, transcript)

    log_json("startup", msg="Servidor MCP stdio iniciado", server=dispatcher.server_info)
    # La bandera se consulta una vez por vuelta, antes de la siguiente lectura bloqueante
    while flag.running:
        try:
            raw = stdin.readline()
            if raw is None:
                # sin datos pero sin fin de flujo: reintentar
                continue
            if not raw:
                break

            line, ok = decode_line(raw)
            transcript.write(line)
            if not ok:
                log_json("warn", where="transport_stdio", msg="Línea no UTF-8", sample=line[:200])
                writer.send(rsp_error(None, ErrorCode.PARSE_ERROR, "Invalid JSON"))
                continue

            response = _process_line(line, dispatcher)
            if response is not None:
                writer.send(response)
        except BrokenPipeError:
            log_json("error", where="transport_stdio", msg="stdout cerrado por el anfitrión")
            break
        except Exception as e:
            log_json("error", where="run_stdio_loop", traceback=traceback.format_exc())
            writer.send(rsp_error(None, ErrorCode.INTERNAL_ERROR, str(e) or e.__class__.__name__))
    log_json("shutdown", msg="Servidor MCP stdio detenido", running=flag.running)
