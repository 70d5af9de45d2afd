from __future__ import annotations

import os
import signal
import sys

import pytest

from time_mcp.lifecycle import RunFlag, install_signal_handlers, restore_signal_handlers

posix_only = pytest.mark.skipif(sys.platform.startswith("win"), reason="requiere señales POSIX")


def test_run_flag_starts_running_and_stops_once() -> None:
    flag = RunFlag()
    assert flag.running is True
    flag.stop()
    flag.stop()
    assert flag.running is False


@posix_only
def test_signal_only_flips_the_flag() -> None:
    flag = RunFlag()
    previous = install_signal_handlers(flag, [signal.SIGUSR1])
    try:
        os.kill(os.getpid(), signal.SIGUSR1)
        assert flag.running is False
    finally:
        restore_signal_handlers(previous)
    assert signal.getsignal(signal.SIGUSR1) == previous[signal.SIGUSR1]


def test_default_signals_are_restored() -> None:
    before = signal.getsignal(signal.SIGINT)
    previous = install_signal_handlers(RunFlag())
    assert signal.SIGINT in previous
    assert signal.getsignal(signal.SIGINT) is not before
    restore_signal_handlers(previous)
    assert signal.getsignal(signal.SIGINT) == before
