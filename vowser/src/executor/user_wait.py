"""Single-slot suspension point for steps gated on user confirmation."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class UserWaitRegistry:
    """Holds at most one pending confirmation future.

    ``arm`` registers the slot, ``confirm`` resolves it from anywhere on the
    loop, and ``cancel`` releases it. The slot is always cleared when
    :meth:`wait` returns or raises.
    """

    def __init__(self) -> None:
        self._future: Optional[asyncio.Future] = None
        self.message: Optional[str] = None

    @property
    def is_waiting(self) -> bool:
        return self._future is not None and not self._future.done()

    def arm(self, message: str) -> asyncio.Future:
        if self.is_waiting:
            self._future.cancel()
        self._future = asyncio.get_running_loop().create_future()
        self.message = message
        return self._future

    def confirm(self) -> bool:
        """Resume the pending wait. Returns ``False`` when nothing is waiting."""
        if not self.is_waiting:
            return False
        self._future.set_result(True)
        return True

    def cancel(self) -> None:
        if self._future is not None and not self._future.done():
            self._future.cancel()
        self._clear()

    def _clear(self) -> None:
        self._future = None
        self.message = None

    async def wait(self, timeout: Optional[float]) -> bool:
        """Wait for confirmation. ``True`` if confirmed, ``False`` on timeout."""
        future = self._future
        if future is None:
            raise RuntimeError("wait() called before arm()")
        try:
            await asyncio.wait_for(future, timeout)
            return True
        except asyncio.TimeoutError:
            return False
        finally:
            if not future.done():
                future.cancel()
            if self._future is future:
                self._clear()


__all__ = ["UserWaitRegistry"]
