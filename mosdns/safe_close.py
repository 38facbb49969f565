"""Coordinated shutdown of a service and the workers attached to it."""

from __future__ import annotations

import threading
from typing import Callable, Optional

DoneFunc = Callable[[], None]
AttachedFunc = Callable[[DoneFunc, threading.Event], object]


class SafeClose:
    """Lets wait_closed return only after every attached worker has finished.

    Workers are started with attach and watch the close signal (a
    threading.Event). Any worker or third party may call send_close_signal,
    optionally with the exception that caused the shutdown.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._close_signal = threading.Event()
        self._close_err: Optional[BaseException] = None
        self._pending = 0

    @property
    def close_signal(self) -> threading.Event:
        """The event that is set once a close signal has been sent."""
        return self._close_signal

    def is_closing(self) -> bool:
        """Report whether a close signal has been sent."""
        return self._close_signal.is_set()

    def wait_closed(self) -> None:
        """Block until closed and all attached workers are done.

        Re-raises the exception given to the first send_close_signal, if any.
        """
        self._close_signal.wait()
        with self._cond:
            self._cond.wait_for(lambda: self._pending == 0)
            err = self._close_err
        if err is not None:
            raise err

    def send_close_signal(self, err: Optional[BaseException] = None) -> None:
        """Send the close signal. Only the first call has any effect."""
        with self._cond:
            if not self._close_signal.is_set():
                self._close_err = err
                self._close_signal.set()

    def attach(self, f: AttachedFunc) -> None:
        """Run f(done, close_signal) in a new thread and track it.

        f must call done when it has finished. If a close signal has already
        been sent, f is not run.
        """
        with self._cond:
            if self._close_signal.is_set():
                return
            self._pending += 1

        finished = False

        def done() -> None:
            nonlocal finished
            with self._cond:
                if finished:
                    return
                finished = True
                self._pending -= 1
                self._cond.notify_all()

        threading.Thread(target=f, args=(done, self._close_signal), daemon=True).start()