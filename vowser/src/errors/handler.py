"""Exception handling and recovery decisions.

The handler never renders anything. It classifies a failure, looks up the
recovery policy, retries the caller's recovery action when the policy allows
it, and otherwise publishes a :class:`DialogState` for the UI layer to render.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Tuple, Union

from vowser.src.errors.recovery import RecoveryPolicy, compute_backoff, get_policy
from vowser.src.errors.taxonomy import ErrorCategory, ErrorKind, ErrorRecord, classify

logger = logging.getLogger(__name__)

RecoveryAction = Callable[[], Union[Awaitable[Any], Any]]


class DialogKind(str, Enum):
    HIDDEN = "hidden"
    NETWORK_ERROR = "network_error"
    BROWSER_ERROR = "browser_error"
    CONTRIBUTION_ERROR = "contribution_error"
    BROWSER_RESTART = "browser_restart"
    GENERIC_ERROR = "generic_error"


@dataclass(frozen=True)
class DialogAction:
    key: str
    label: str
    callback: Callable[[], Any]

    def __call__(self) -> Any:
        return self.callback()


@dataclass(frozen=True)
class DialogState:
    kind: DialogKind
    title: str = ""
    message: str = ""
    error_code: Optional[str] = None
    retry_count: int = 0
    actions: Tuple[DialogAction, ...] = ()

    @property
    def visible(self) -> bool:
        return self.kind is not DialogKind.HIDDEN

    def action(self, key: str) -> Optional[DialogAction]:
        for item in self.actions:
            if item.key == key:
                return item
        return None


HIDDEN_DIALOG = DialogState(DialogKind.HIDDEN)


@dataclass(frozen=True)
class RecoveryOutcome:
    record: ErrorRecord
    policy: RecoveryPolicy
    recovered: bool = False
    attempts: int = 0
    dialog: DialogState = HIDDEN_DIALOG
    # set when recovery keeps running in the background
    task: Optional[asyncio.Task] = None


@dataclass
class _RecoveryJob:
    id: str
    error_code: str
    started_at: float = field(default_factory=time.time)


async def _run_action(action: RecoveryAction) -> Any:
    result = action()
    if inspect.isawaitable(result):
        return await result
    return result


class ExceptionHandler:
    """Classifies failures and decides between silent retry and a user dialog.

    Policies with unbounded retries never block :meth:`handle`; their retry
    loop runs as a tracked task exposed on :attr:`RecoveryOutcome.task`.
    """

    def __init__(
        self,
        *,
        development_mode: bool = False,
        on_dialog: Callable[[DialogState], None] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.development_mode = development_mode
        self._on_dialog = on_dialog
        self._sleep = sleep
        self._dialog_state: DialogState = HIDDEN_DIALOG
        self._active: Dict[str, _RecoveryJob] = {}
        self._launched: Set[asyncio.Task] = set()
        self._recoveries: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    @property
    def dialog_state(self) -> DialogState:
        return self._dialog_state

    @property
    def active_recoveries(self) -> Dict[str, str]:
        return {job_id: job.error_code for job_id, job in self._active.items()}

    def hide_dialog(self) -> None:
        self._publish(HIDDEN_DIALOG)

    async def cancel_recoveries(self) -> None:
        """Stop every background recovery started by :meth:`handle`."""
        pending = list(self._recoveries)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def handle(
        self,
        error: BaseException,
        context: str = "",
        recovery_action: RecoveryAction | None = None,
    ) -> RecoveryOutcome:
        record = classify(error, context)
        self._log(record, context)
        policy = get_policy(record)

        if policy.auto_recover and record.is_retryable and recovery_action is not None:
            if policy.unbounded:
                task = asyncio.ensure_future(self._auto_recover(record, policy, recovery_action))
                self._recoveries.add(task)
                task.add_done_callback(self._recoveries.discard)
                logger.info("[ExceptionHandler] %s recovering in background", record.error_code)
                return RecoveryOutcome(record, policy, task=task)
            recovered, attempts = await self._auto_recover(record, policy, recovery_action)
            if recovered:
                return RecoveryOutcome(record, policy, recovered=True, attempts=attempts)
            if not policy.show_user_dialog:
                logger.error("[ExceptionHandler] %s not recovered after %d attempts", record.error_code, attempts)
                return RecoveryOutcome(record, policy, attempts=attempts)
            dialog = self._show_dialog(record, recovery_action, retry_count=attempts)
            return RecoveryOutcome(record, policy, attempts=attempts, dialog=dialog)

        dialog = self._show_dialog(record, recovery_action)
        return RecoveryOutcome(record, policy, dialog=dialog)

    # ------------------------------------------------------------------
    async def _auto_recover(
        self,
        record: ErrorRecord,
        policy: RecoveryPolicy,
        recovery_action: RecoveryAction,
    ) -> Tuple[bool, int]:
        job_id = f"{record.error_code}_{int(time.time() * 1000)}"
        self._active[job_id] = _RecoveryJob(job_id, record.error_code)
        attempt = 0
        try:
            while attempt <= policy.max_retries:
                if attempt > 0:
                    delay = compute_backoff(attempt - 1, policy)
                    logger.info(
                        "[Recovery] Retrying %s after %.2fs (attempt %d/%d)",
                        record.error_code, delay, attempt, policy.max_retries,
                    )
                    await self._sleep(delay)
                try:
                    await _run_action(recovery_action)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    attempt += 1
                    logger.warning(
                        "[Recovery] Auto recovery attempt %d failed for %s: %s",
                        attempt, record.error_code, exc,
                    )
                    continue
                logger.info("[Recovery] Auto recovery succeeded for %s after %d attempts", record.error_code, attempt)
                return True, attempt + 1
            return False, attempt
        finally:
            self._active.pop(job_id, None)

    def _show_dialog(
        self,
        record: ErrorRecord,
        recovery_action: RecoveryAction | None,
        *,
        retry_count: int = 0,
    ) -> DialogState:
        retry = self._retry_callback(recovery_action)
        dismiss = self.hide_dialog

        if record.kind is ErrorKind.CONNECTION_FAILED:
            state = DialogState(
                DialogKind.NETWORK_ERROR,
                title="네트워크 오류",
                message=record.user_message,
                error_code=record.error_code,
                actions=self._actions(("retry", "다시 시도", retry), ("cancel", "닫기", dismiss)),
            )
        elif record.kind is ErrorKind.BROWSER_CRASH:
            state = DialogState(
                DialogKind.BROWSER_RESTART,
                title="브라우저 재시작",
                message=record.user_message,
                error_code=record.error_code,
                actions=self._actions(("restart", "재시작", retry), ("cancel", "닫기", dismiss)),
            )
        elif record.category is ErrorCategory.BROWSER:
            state = DialogState(
                DialogKind.BROWSER_ERROR,
                title="브라우저 오류",
                message=record.user_message,
                error_code=record.error_code,
                retry_count=retry_count,
                actions=self._actions(
                    ("retry", "다시 시도", retry),
                    ("alternative", "다른 방법", dismiss),
                    ("cancel", "취소", dismiss),
                ),
            )
        elif record.kind is ErrorKind.TRANSMISSION_FAILED:
            state = DialogState(
                DialogKind.CONTRIBUTION_ERROR,
                title="기여 데이터 전송 실패",
                message=record.user_message,
                error_code=record.error_code,
                actions=self._actions(
                    ("retry", "다시 시도", retry),
                    ("later", "나중에", dismiss),
                    ("give_up", "포기", dismiss),
                ),
            )
        else:
            state = DialogState(
                DialogKind.GENERIC_ERROR,
                title="오류",
                message=record.user_message,
                error_code=record.error_code,
                actions=self._actions(("confirm", "확인", dismiss)),
            )

        self._publish(state)
        return state

    @staticmethod
    def _actions(*specs: Tuple[str, str, Optional[Callable[[], Any]]]) -> Tuple[DialogAction, ...]:
        return tuple(DialogAction(key, label, callback) for key, label, callback in specs if callback is not None)

    def _retry_callback(self, recovery_action: RecoveryAction | None) -> Optional[Callable[[], Any]]:
        if recovery_action is None:
            return None

        def _retry() -> Optional[asyncio.Task]:
            self.hide_dialog()
            return self._launch(recovery_action)

        return _retry

    def _launch(self, recovery_action: RecoveryAction) -> Optional[asyncio.Task]:
        result = recovery_action()
        if not inspect.isawaitable(result):
            return None
        task = asyncio.ensure_future(result)
        self._launched.add(task)
        task.add_done_callback(self._launched.discard)
        return task

    def _publish(self, state: DialogState) -> None:
        self._dialog_state = state
        if self._on_dialog is not None:
            self._on_dialog(state)

    def _log(self, record: ErrorRecord, context: str) -> None:
        context_info = f" [Context: {context}]" if context else ""
        level = logging.WARNING
        if record.category in (ErrorCategory.BROWSER, ErrorCategory.SYSTEM):
            level = logging.ERROR
        logger.log(
            level,
            "[ExceptionHandler] %s exception%s: %s",
            record.category.value.capitalize(),
            context_info,
            record.message,
            exc_info=record.cause,
        )
        if self.development_mode:
            logger.debug(
                "[ExceptionHandler] Exception details - ErrorCode: %s, Retryable: %s",
                record.error_code,
                record.is_retryable,
            )


__all__ = [
    "DialogKind",
    "DialogAction",
    "DialogState",
    "HIDDEN_DIALOG",
    "RecoveryOutcome",
    "ExceptionHandler",
]
