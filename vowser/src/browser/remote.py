"""Client for a browser host started with :mod:`vowser.src.browser.host`."""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import requests

from vowser.src.browser.base import BrowserActionError, BrowserControl
from vowser.src.utils.config import CONFIG, BrowserConfig
from vowser.src.utils.models import SelectOption


class RemoteBrowser(BrowserControl):
    """Thin wrapper around the browser host's ``/execute`` endpoint.

    Transport failures (``requests.RequestException``) propagate unchanged so
    the exception taxonomy can classify them; a host-side action failure is
    raised as :class:`BrowserActionError`.
    """

    def __init__(self, config: BrowserConfig | None = None, *, session: requests.Session | None = None) -> None:
        self.config = config or CONFIG.browser
        self._session = session

    def _post(self, action: str, params: Dict[str, Any]) -> Dict[str, Any]:
        poster = self._session.post if self._session is not None else requests.post
        response = poster(
            f"{self.config.host_url}/execute",
            json={"action": action, "params": params},
            timeout=self.config.request_timeout,
        )
        target = params.get("selector") or params.get("url")
        response.raise_for_status()
        data = response.json() if response.content else {}
        if not isinstance(data, dict):
            raise BrowserActionError(f"unexpected response for {action}: {data!r}", action=action, target=target)
        if not data.get("success", False):
            raise BrowserActionError(data.get("message") or f"{action} failed", action=action, target=target)
        return data

    async def _call(self, action: str, **params: Any) -> Dict[str, Any]:
        return await asyncio.to_thread(self._post, action, params)

    async def close(self) -> None:
        if self._session is not None:
            self._session.close()

    async def navigate(self, url: str) -> None:
        await self._call("navigate", url=url)

    async def click(self, selector: str, *, timeout_ms: Optional[float] = None) -> None:
        await self._call("click", selector=selector, timeout_ms=timeout_ms)

    async def type(self, selector: str, value: str) -> None:
        await self._call("type", selector=selector, value=value)

    async def wait_for_selector(self, selector: str, *, timeout_ms: Optional[float] = None) -> None:
        await self._call("wait_for_selector", selector=selector, timeout_ms=timeout_ms)

    async def wait_for_network_idle(self) -> None:
        await self._call("wait_for_network_idle")

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        data = await self._call("evaluate", script=script, arg=arg)
        return data.get("result")

    async def get_select_options(self, selector: str) -> List[SelectOption]:
        data = await self._call("get_select_options", selector=selector)
        return [SelectOption.model_validate(item) for item in data.get("options", [])]

    async def select_option(self, selector: str, value: str) -> None:
        await self._call("select_option", selector=selector, value=value)


__all__ = ["RemoteBrowser"]
