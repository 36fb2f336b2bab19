"""WebSocket transport for contribution messages."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Optional

import websockets
import websockets.exceptions

from vowser.src.contribution.models import ContributionMessage
from vowser.src.errors.taxonomy import ErrorKind, VowserError
from vowser.src.utils.config import CONFIG, ContributionConfig

logger = logging.getLogger(__name__)


class WebSocketContributionSender:
    """Async ``send(message)`` backed by one lazily opened WebSocket.

    A failed send drops the connection so the recorder's next retry opens a
    fresh one.
    """

    def __init__(
        self,
        config: ContributionConfig | None = None,
        *,
        connect: Callable[[str], Any] | None = None,
    ) -> None:
        self.config = config or CONFIG.contribution
        self._connect = connect or websockets.connect
        self._websocket: Optional[Any] = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._websocket is not None

    async def _ensure_connection(self) -> Any:
        if self._websocket is None:
            self._websocket = await self._connect(self.config.ws_url)
            logger.info("[ContributionTransport] Connected to %s", self.config.ws_url)
        return self._websocket

    async def send(self, message: ContributionMessage) -> bool:
        payload = json.dumps(message.to_wire(), ensure_ascii=False)
        async with self._lock:
            try:
                websocket = await self._ensure_connection()
                await websocket.send(payload)
            except (websockets.exceptions.WebSocketException, OSError) as exc:
                logger.warning("[ContributionTransport] Send failed: %s", exc)
                await self._drop()
                raise VowserError.of(ErrorKind.SOCKET_DISCONNECTED, str(exc), cause=exc) from exc
        logger.debug(
            "[ContributionTransport] Sent %d steps for session %s", len(message.steps), message.session_id
        )
        return True

    async def _drop(self) -> None:
        websocket, self._websocket = self._websocket, None
        if websocket is None:
            return
        try:
            await websocket.close()
        except (websockets.exceptions.WebSocketException, OSError) as exc:
            logger.debug("[ContributionTransport] Close after failure raised: %s", exc)

    async def close(self) -> None:
        async with self._lock:
            await self._drop()


__all__ = ["WebSocketContributionSender"]
