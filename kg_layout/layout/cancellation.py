"""Cooperative cancellation for long-running layout computations.

A caller that gives up on a layout (timeout, client disconnect) sets the
token; engines poll it at fixed checkpoints and raise LayoutCancelledError,
so abandoned work stops instead of running to completion unseen.

The token is backed by threading.Event because the synchronous engine path
usually runs in an executor thread while the timeout fires on the event loop.
"""

import threading
from typing import Optional


class LayoutCancelledError(Exception):
    """Raised inside an engine when its cancellation token is set."""

    def __init__(self, engine: str, step: Optional[int] = None):
        self.engine = engine
        self.step = step
        where = f" at step {step}" if step is not None else ""
        super().__init__(f"Layout '{engine}' cancelled{where}")


class LayoutTimeoutError(Exception):
    """Raised to the caller when a layout exceeds its wall-clock budget."""

    def __init__(self, layout_name: str, timeout: float, recommendation: str = "grid"):
        self.layout_name = layout_name
        self.timeout = timeout
        self.recommendation = recommendation
        super().__init__(
            f"Layout '{layout_name}' exceeded {timeout:g}s; "
            f"retry with a simpler layout such as '{recommendation}'"
        )


class CancellationToken:
    """Thread-safe cancellation flag shared between caller and engine."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, engine: str, step: Optional[int] = None) -> None:
        """Raise LayoutCancelledError if cancel() has been called."""
        if self._event.is_set():
            raise LayoutCancelledError(engine, step)


def check_cancelled(
    token: Optional[CancellationToken], engine: str, step: Optional[int] = None
) -> None:
    """Poll an optional token; a missing token never cancels."""
    if token is not None:
        token.raise_if_cancelled(engine, step)


__all__ = [
    "CancellationToken",
    "LayoutCancelledError",
    "LayoutTimeoutError",
    "check_cancelled",
]
