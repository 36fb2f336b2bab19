"""Sequential replay of a navigation path against one browser session."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

from vowser.src.browser.base import BrowserControl
from vowser.src.errors.taxonomy import classify
from vowser.src.executor.selectors import requires_navigation
from vowser.src.executor.strategies import STRATEGIES, StepContext
from vowser.src.executor.user_wait import UserWaitRegistry
from vowser.src.utils.config import CONFIG, ExecutorConfig
from vowser.src.utils.models import ExecutionResult, NavigationPath, PathStep, SelectOption, UserProfile

logger = logging.getLogger(__name__)

BUSY_MESSAGE = "another path is executing"


@dataclass
class ExecutionState:
    current_path: Optional[NavigationPath] = None
    current_step_index: int = 0
    is_executing: bool = False
    user_context: Optional[UserProfile] = None
    log_sink: Optional[Callable[[str], None]] = None


class PathExecutor:
    """Replays :class:`NavigationPath` steps in order.

    Only one path runs at a time; a second ``execute`` while busy returns a
    failed result immediately instead of queueing. Steps already applied to
    the browser are never rolled back.
    """

    def __init__(
        self,
        browser: BrowserControl,
        *,
        config: ExecutorConfig | None = None,
        step_delay: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.browser = browser
        self.config = config or CONFIG.executor
        self.step_delay = self.config.step_delay if step_delay is None else step_delay
        self._sleep = sleep
        self._state = ExecutionState()
        self._waits = UserWaitRegistry()

    @property
    def state(self) -> ExecutionState:
        return self._state

    @property
    def is_executing(self) -> bool:
        return self._state.is_executing

    @property
    def is_waiting_for_user(self) -> bool:
        return self._waits.is_waiting

    def confirm_user_wait(self) -> bool:
        """Resume a suspended wait step. ``False`` if nothing is waiting."""
        confirmed = self._waits.confirm()
        if confirmed:
            logger.info("[PathExecutor] User wait confirmed")
        return confirmed

    async def execute(
        self,
        path: NavigationPath,
        user_context: UserProfile | None = None,
        on_step_complete: Callable[[int, int, str], None] | None = None,
        on_log: Callable[[str], None] | None = None,
        on_wait_for_user: Callable[[str], Any] | None = None,
        get_user_input: Callable[[PathStep], Any] | None = None,
        get_user_select: Callable[[PathStep, List[SelectOption]], Any] | None = None,
    ) -> ExecutionResult:
        total = len(path.steps)
        if self._state.is_executing:
            logger.warning("[PathExecutor] Rejected %r: %s", path.task_intent, BUSY_MESSAGE)
            return ExecutionResult(success=False, steps_completed=0, total_steps=total, error=BUSY_MESSAGE)

        self._state = ExecutionState(
            current_path=path,
            is_executing=True,
            user_context=user_context,
            log_sink=on_log,
        )
        ctx = StepContext(
            browser=self.browser,
            config=self.config,
            waits=self._waits,
            user_context=user_context,
            on_log=on_log,
            on_wait_for_user=on_wait_for_user,
            get_user_input=get_user_input,
            get_user_select=get_user_select,
        )
        logger.info(
            "[PathExecutor] Executing path%s: %s (%d steps)",
            " with auto-fill" if user_context is not None else "",
            path.task_intent,
            total,
        )

        try:
            previous_url: Optional[str] = None
            for index, step in enumerate(path.steps):
                self._state.current_step_index = index
                logger.info("[PathExecutor] Step %d/%d starting: %s", index + 1, total, step.description)
                try:
                    await self._run_step(index, step, previous_url, ctx)
                except asyncio.CancelledError:
                    logger.warning("[PathExecutor] Path execution cancelled at step %d", index + 1)
                    raise
                except Exception as exc:
                    record = classify(exc, "path execution")
                    logger.error(
                        "[PathExecutor] Step %d/%d failed: %s", index + 1, total, exc, exc_info=exc,
                    )
                    return ExecutionResult(
                        success=False,
                        steps_completed=index,
                        total_steps=total,
                        failed_at=index,
                        error=str(exc),
                        error_code=record.error_code,
                    )

                if step.url:
                    previous_url = step.url
                await self._sleep(self.step_delay)
                if on_step_complete is not None:
                    on_step_complete(index + 1, total, step.description)

            logger.info("[PathExecutor] Path execution completed successfully: %s", path.task_intent)
            return ExecutionResult(success=True, steps_completed=total, total_steps=total)
        finally:
            self._waits.cancel()
            self._state = ExecutionState()

    async def _run_step(self, index: int, step: PathStep, previous_url: Optional[str], ctx: StepContext) -> None:
        if step.action != "navigate" and step.url and requires_navigation(index, step.url, previous_url):
            logger.debug("[PathExecutor] Step requires navigation to: %s", step.url)
            await self.browser.navigate(step.url)
            await self.browser.wait_for_network_idle()

        strategy = STRATEGIES.get(step.action)
        if strategy is None:
            ctx.log(f"Unknown action type, skipping: {step.action}", logging.WARNING)
            return
        await strategy(step, ctx)


__all__ = ["BUSY_MESSAGE", "ExecutionState", "PathExecutor"]
