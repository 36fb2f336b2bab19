"""Browser-control collaborator interface."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from vowser.src.utils.models import SelectOption


class BrowserActionError(RuntimeError):
    """Raised when the browser cannot perform a requested action.

    ``action`` names the operation (``navigate``, ``click`` ...) and ``target``
    the selector or URL it was aimed at, when known.
    """

    def __init__(self, message: str, *, action: Optional[str] = None, target: Optional[str] = None) -> None:
        super().__init__(message)
        self.action = action
        self.target = target


class BrowserControl(ABC):
    """Automation-capable browser session.

    Calls against one session must not interleave; the path executor's
    single-flight guarantee is what serialises them.
    """

    async def start(self) -> None:
        """Acquire the underlying browser resources."""

    async def close(self) -> None:
        """Release the underlying browser resources."""

    @abstractmethod
    async def navigate(self, url: str) -> None:
        ...

    @abstractmethod
    async def click(self, selector: str, *, timeout_ms: Optional[float] = None) -> None:
        ...

    @abstractmethod
    async def type(self, selector: str, value: str) -> None:
        ...

    @abstractmethod
    async def wait_for_selector(self, selector: str, *, timeout_ms: Optional[float] = None) -> None:
        ...

    @abstractmethod
    async def wait_for_network_idle(self) -> None:
        ...

    @abstractmethod
    async def evaluate(self, script: str, arg: Any = None) -> Any:
        ...

    async def get_select_options(self, selector: str) -> List[SelectOption]:
        raise BrowserActionError("select is not supported by this browser", action="read_options", target=selector)

    async def select_option(self, selector: str, value: str) -> None:
        raise BrowserActionError("select is not supported by this browser", action="select", target=selector)

    async def __aenter__(self) -> "BrowserControl":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


__all__ = ["BrowserActionError", "BrowserControl"]
