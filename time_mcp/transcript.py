import sys, json, os
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

from .config import LOG_FILE, LOG_LEVEL

# -------- Diagnóstico (stderr, una línea JSON por evento) ----------
_LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "WARNING": 30, "ERROR": 40}
_EVENT_LEVEL = {
    "debug": 10,
    "request": 10,
    "response": 10,
    "info": 20,
    "startup": 20,
    "shutdown": 20,
    "warn": 30,
    "error": 40,
}


def now_ts() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_json(event: str, **fields: Any) -> None:
    if _EVENT_LEVEL.get(event, 20) < _LEVELS.get(LOG_LEVEL, 20):
        return
    rec = {"ts": now_ts(), "event": event}
    rec.update(fields)
    # stdout lleva el protocolo: el diagnóstico va siempre a stderr
    sys.stderr.write(json.dumps(rec, ensure_ascii=False, default=str) + "\n")
    sys.stderr.flush()


# -------- Transcripción (archivo de solo-anexado) ----------
class Transcript:
    """
    Registro en texto plano de cada línea recibida y cada respuesta enviada.

    Se abre una sola vez en modo ``a`` y cada escritura se vacía al disco de
    inmediato, así la transcripción sobrevive a una terminación abrupta.
    """

    def __init__(self, path: str = LOG_FILE, stream: Optional[TextIO] = None):
        self.path = path
        if stream is None:
            d = os.path.dirname(path)
            if d:
                os.makedirs(d, exist_ok=True)
            stream = open(path, "a", encoding="utf-8")
        self._f: Optional[TextIO] = stream

    @property
    def closed(self) -> bool:
        return self._f is None

    def write(self, text: str) -> None:
        if self._f is None:
            return
        self._f.write(text if text.endswith("\n") else text + "\n")
        self._f.flush()

    def close(self) -> None:
        if self._f is not None:
            self._f.close()
            self._f = None

    def __enter__(self) -> "Transcript":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
