"""Run a child process that owns the terminal until it exits."""

import signal
import subprocess
import threading
from typing import Mapping, Optional, Sequence

# Forwarded to the child if delivered to the launcher alone.
# SIGINT is not listed: Ctrl-C already reaches the whole foreground group.
_FORWARDED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP") if hasattr(signal, name)
)


def run_foreground(command: Sequence[str], env: Optional[Mapping[str, str]] = None) -> int:
    """
    Start command, wait for it, and return its exit status.

    While the child runs, the launcher ignores SIGINT and relays SIGTERM/SIGHUP
    to it, so the child decides how (and whether) to stop. The previous
    handlers are restored afterwards.

    Raises:
        OSError: If the command cannot be started
    """
    process = subprocess.Popen(list(command), env=None if env is None else dict(env))

    # Handlers can only be installed from the main thread
    if threading.current_thread() is not threading.main_thread():
        return process.wait()

    def relay(signum, frame):
        process.send_signal(signum)

    previous = {signal.SIGINT: signal.signal(signal.SIGINT, signal.SIG_IGN)}
    try:
        for signum in _FORWARDED_SIGNALS:
            previous[signum] = signal.signal(signum, relay)
        return process.wait()
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
