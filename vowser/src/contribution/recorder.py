"""Contribution recording: session lifecycle, typing debounce and batched sends."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Set

from vowser.src.contribution.constants import (
    BATCH_SIZE,
    DEFAULT_TASK_NAME,
    MAX_RETRIES,
    MAX_TITLE_LENGTH,
    RETRY_DELAYS_SECONDS,
    SESSION_TIMEOUT_SECONDS,
    TYPING_DEBOUNCE_SECONDS,
)
from vowser.src.contribution.models import (
    ContributionDataValidator,
    ContributionMessage,
    ContributionSession,
    ContributionStatus,
    ContributionStep,
)
from vowser.src.errors.taxonomy import ErrorKind, VowserError

logger = logging.getLogger(__name__)

# a sender may return False (or raise) to signal a failed transmission
Sender = Callable[[ContributionMessage], Awaitable[Optional[bool]]]
UiLog = Callable[[int, str, Optional[str], Optional[str]], None]


class ContributionRecorder:
    """Turns a stream of observed steps into batched contribution messages.

    Status moves ``INACTIVE -> RECORDING -> SENDING -> COMPLETED | ERROR``;
    :meth:`reset_session` returns to ``INACTIVE`` from anywhere. Must be used
    from a running event loop because the debounce and session timeout are
    loop timers.

    Buffered steps are only dropped after the transport accepted them. When
    every retry fails the buffer stays intact for :meth:`retry_transmission`.
    """

    def __init__(
        self,
        send: Sender,
        *,
        on_ui_log: UiLog | None = None,
        on_status_change: Callable[[ContributionStatus], None] | None = None,
        batch_size: int = BATCH_SIZE,
        debounce_seconds: float = TYPING_DEBOUNCE_SECONDS,
        session_timeout: float = SESSION_TIMEOUT_SECONDS,
        retry_delays: Sequence[float] = RETRY_DELAYS_SECONDS,
        max_retries: int = MAX_RETRIES,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._send = send
        self._on_ui_log = on_ui_log
        self._on_status_change = on_status_change
        self.batch_size = batch_size
        self.debounce_seconds = debounce_seconds
        self.session_timeout = session_timeout
        self.retry_delays = tuple(retry_delays) or (0.0,)
        self.max_retries = max_retries
        self._sleep = sleep

        self._session: Optional[ContributionSession] = None
        self._buffer: List[ContributionStep] = []
        self._status = ContributionStatus.INACTIVE
        self._pending_typing: Optional[ContributionStep] = None
        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self._timeout_handle: Optional[asyncio.TimerHandle] = None
        self._send_lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # accessors
    @property
    def status(self) -> ContributionStatus:
        return self._status

    @property
    def session(self) -> Optional[ContributionSession]:
        return self._session

    @property
    def session_id(self) -> Optional[str]:
        return self._session.session_id if self._session else None

    @property
    def current_task(self) -> str:
        return self._session.task if self._session else ""

    @property
    def step_count(self) -> int:
        return len(self._session.steps) if self._session else 0

    @property
    def pending_steps(self) -> List[ContributionStep]:
        return list(self._buffer)

    @property
    def is_session_active(self) -> bool:
        return self._session is not None and self._session.is_active

    # ------------------------------------------------------------------
    # lifecycle
    def start_session(self, task: str = DEFAULT_TASK_NAME) -> bool:
        if self.is_session_active:
            logger.warning(
                "[Contribution] Session already active - sessionId: %s, task: %s",
                self._session.session_id, self._session.task,
            )
            return False

        if self._status is ContributionStatus.ERROR and self._buffer:
            logger.warning(
                "[Contribution] %d unsent steps from sessionId: %s - retry or reset before starting",
                len(self._buffer), self._session.session_id if self._session else "none",
            )
            return False

        sanitized = ContributionDataValidator.sanitize_string(task, MAX_TITLE_LENGTH)
        if not sanitized.strip():
            logger.error("[Contribution] Invalid task provided for contribution session")
            return False

        self._cancel_timers()
        self._pending_typing = None
        self._session = ContributionSession(task=sanitized)
        self._buffer.clear()
        self._set_status(ContributionStatus.RECORDING)
        self._timeout_handle = asyncio.get_running_loop().call_later(self.session_timeout, self._on_timeout)
        logger.info(
            "[Contribution] Session started - sessionId: %s, task: %r, timeout: %.0fs",
            self._session.session_id, sanitized, self.session_timeout,
        )
        return True

    def record_step(self, step: ContributionStep) -> bool:
        """Validate and record one observed step. Returns ``False`` if discarded."""
        if not self.is_session_active:
            logger.warning("[Contribution] No active contribution session to record step")
            return False

        sanitized = ContributionDataValidator.sanitize_step(step)
        if sanitized is None:
            logger.warning("[Contribution] Invalid contribution step discarded: %s on %s", step.action, step.url)
            return False

        if sanitized.action == "type":
            self._record_typing(sanitized)
        else:
            self._flush_pending_typing()
            self._append(sanitized)
        return True

    async def end_session(self) -> ContributionStatus:
        """Flush, mark inactive and send what is still buffered as the final message."""
        session = self._session
        if session is None:
            logger.warning("[Contribution] No active session to end")
            return self._status
        if not session.is_active:
            logger.warning("[Contribution] Session already ended - sessionId: %s", session.session_id)
            return self._status

        self._flush_pending_typing()
        self._cancel_timers()
        session.is_active = False
        logger.info(
            "[Contribution] Ending session - sessionId: %s, totalSteps: %d, bufferSize: %d",
            session.session_id, len(session.steps), len(self._buffer),
        )
        return await self._complete(session)

    def reset_session(self) -> None:
        previous = self._session
        self._cancel_timers()
        self._pending_typing = None
        self._session = None
        self._buffer.clear()
        self._set_status(ContributionStatus.INACTIVE)
        logger.info(
            "[Contribution] Session reset - previousSessionId: %s, previousSteps: %d",
            previous.session_id if previous else "none",
            len(previous.steps) if previous else 0,
        )

    async def retry_transmission(self) -> bool:
        """Re-send a preserved buffer, e.g. after the session ended in ``ERROR``."""
        session = self._session
        if session is None or not self._buffer:
            return False
        if session.is_active:
            try:
                await self._send_buffer(session, is_partial=True, is_complete=False)
            except VowserError:
                return False
            return True
        return await self._complete(session) is ContributionStatus.COMPLETED

    async def drain(self) -> None:
        """Wait for background sends (partial batches, timeout completion)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # recording internals
    def _record_typing(self, step: ContributionStep) -> None:
        self._cancel_debounce()
        if step.is_enter_key:
            self._flush_pending_typing()
            self._append(step)
            return
        self._pending_typing = step
        self._debounce_handle = asyncio.get_running_loop().call_later(
            self.debounce_seconds, self._flush_pending_typing
        )
        logger.debug("[Contribution] Typing step debounced: %s", step.attribute("text") or step.title)

    def _flush_pending_typing(self) -> None:
        self._cancel_debounce()
        pending, self._pending_typing = self._pending_typing, None
        if pending is not None:
            self._append(pending)

    def _append(self, step: ContributionStep) -> None:
        session = self._session
        if session is None:
            return
        session.steps.append(step)
        self._buffer.append(step)
        number = len(session.steps)
        if self._on_ui_log is not None:
            self._on_ui_log(number, step.action, step.element_name, step.url)
        logger.info(
            "[Contribution] Step %d: [%s] %s - %s",
            number, step.action, step.selector or "N/A", step.attribute("text") or step.title,
        )
        if len(self._buffer) >= self.batch_size:
            self._spawn(self._send_partial(session))

    def _on_timeout(self) -> None:
        self._timeout_handle = None
        session = self._session
        if session is None or not session.is_active:
            return
        logger.info("[Contribution] Session timeout reached, auto-ending session")
        self._flush_pending_typing()
        session.is_active = False
        self._spawn(self._complete(session))

    # ------------------------------------------------------------------
    # transmission internals
    async def _complete(self, session: ContributionSession) -> ContributionStatus:
        self._set_status(ContributionStatus.SENDING)
        try:
            await self._send_buffer(session, is_partial=False, is_complete=True)
        except VowserError as exc:
            if self._session is session:
                self._set_status(ContributionStatus.ERROR)
            logger.error(
                "[Contribution] Failed to complete session - sessionId: %s, error: %s, unsent: %d",
                session.session_id, exc, len(self._buffer),
            )
            return self._status
        if self._session is session:
            self._set_status(ContributionStatus.COMPLETED)
            logger.info("[Contribution] Session completed - sessionId: %s", session.session_id)
        return self._status

    async def _send_partial(self, session: ContributionSession) -> None:
        try:
            await self._send_buffer(session, is_partial=True, is_complete=False)
        except VowserError as exc:
            logger.warning("[Contribution] Partial send failed, %d steps kept: %s", len(self._buffer), exc)

    async def _send_buffer(self, session: ContributionSession, *, is_partial: bool, is_complete: bool) -> None:
        async with self._send_lock:
            if self._session is not session:
                return
            if not self._buffer and not (is_complete and session.steps):
                return
            batch = list(self._buffer)
            message = ContributionMessage(
                session_id=session.session_id,
                task=session.task,
                steps=batch,
                is_partial=is_partial,
                is_complete=is_complete,
                total_steps=len(session.steps),
            )
            await self._transmit(message)
            if self._session is session:
                del self._buffer[: len(batch)]
            logger.info(
                "[Contribution] Sent %d steps (partial: %s, complete: %s)",
                len(batch), is_partial, is_complete,
            )

    async def _transmit(self, message: ContributionMessage) -> None:
        for attempt in range(self.max_retries + 1):
            try:
                accepted = await self._send(message)
                if accepted is False:
                    raise VowserError.of(ErrorKind.TRANSMISSION_FAILED, "transport rejected the message")
                return
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if attempt >= self.max_retries:
                    logger.error(
                        "[Contribution] Failed to send contribution steps after %d attempts: %s",
                        attempt + 1, exc,
                    )
                    raise VowserError.of(ErrorKind.TRANSMISSION_FAILED, str(exc), cause=exc) from exc
                delay = self.retry_delays[min(attempt, len(self.retry_delays) - 1)]
                logger.warning(
                    "[Contribution] Failed to send contribution steps (attempt %d/%d): %s. Retrying in %.1fs",
                    attempt + 1, self.max_retries, exc, delay,
                )
                await self._sleep(delay)

    # ------------------------------------------------------------------
    def _spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _cancel_debounce(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

    def _cancel_timers(self) -> None:
        self._cancel_debounce()
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def _set_status(self, status: ContributionStatus) -> None:
        if status is self._status:
            return
        self._status = status
        if self._on_status_change is not None:
            self._on_status_change(status)


__all__ = ["ContributionRecorder", "Sender"]
