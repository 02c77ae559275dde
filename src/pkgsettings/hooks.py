"""Host lifecycle signals that should flush settings to disk.

Nothing subscribes implicitly: applications call :func:`flush_on_teardown`
for the repositories or settings they own, and either emit the events from
their own shutdown path or call :func:`install_exit_hook` once.
"""
from __future__ import annotations

import atexit
import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

logger = logging.getLogger("pkgsettings.hooks")

BEFORE_HOST_TEARDOWN = "before_host_teardown"
HOST_QUITTING = "host_quitting"

_handlers: defaultdict[str, list[Callable[..., Any]]] = defaultdict(list)
_exit_hook_installed = False


class Saveable(Protocol):
    def save(self) -> None: ...


S = TypeVar("S", bound=Saveable)


def on(event: str, callback: Callable[..., Any]) -> None:
    _handlers[event].append(callback)


def off(event: str, callback: Callable[..., Any]) -> None:
    try:
        _handlers[event].remove(callback)
    except ValueError:
        pass


def emit(event: str, *args: Any, **kwargs: Any) -> None:
    callbacks = list(_handlers.get(event, []))
    logger.debug("%s: notifying %d handler(s)", event, len(callbacks))
    for callback in callbacks:
        callback(*args, **kwargs)


def flush_on_teardown(target: S) -> S:
    """Save *target* when the host is about to reload or exit."""
    on(BEFORE_HOST_TEARDOWN, target.save)
    on(HOST_QUITTING, target.save)
    return target


def _on_exit() -> None:
    emit(HOST_QUITTING)


def install_exit_hook() -> None:
    """Emit :data:`HOST_QUITTING` when the interpreter exits."""
    global _exit_hook_installed
    if _exit_hook_installed:
        return
    atexit.register(_on_exit)
    _exit_hook_installed = True


__all__ = [
    "BEFORE_HOST_TEARDOWN",
    "HOST_QUITTING",
    "on",
    "off",
    "emit",
    "flush_on_teardown",
    "install_exit_hook",
]
