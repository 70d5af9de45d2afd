import signal
from typing import Any, Dict, Iterable, Optional


class RunFlag:
    """Única celda compartida entre el bucle y los manejadores de señales."""

    def __init__(self) -> None:
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._running = False


def _default_signals() -> Iterable[int]:
    # SIGTERM/SIGINT; en Windows puede faltar alguno
    return [s for s in (getattr(signal, "SIGTERM", None), getattr(signal, "SIGINT", None)) if s is not None]


def install_signal_handlers(flag: RunFlag, signals: Optional[Iterable[int]] = None) -> Dict[int, Any]:
    """
    Registra un closure que solo apaga ``flag``. Devuelve los manejadores
    previos (señal -> handler) para poder restaurarlos con ``restore_signal_handlers``.
    """
    def _on_signal(signum, frame):
        flag.stop()

    previous: Dict[int, Any] = {}
    for sig in (signals if signals is not None else _default_signals()):
        previous[sig] = signal.signal(sig, _on_signal)
    return previous


def restore_signal_handlers(previous: Dict[int, Any]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
