"""Per-action step strategies driven by the path executor."""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from vowser.src.browser.base import BrowserControl
from vowser.src.errors.taxonomy import ErrorKind, VowserError
from vowser.src.executor.autofill import resolve_auto_fill
from vowser.src.executor.selectors import convert_selector, extract_absolute_urls, extract_href_targets
from vowser.src.executor.user_wait import UserWaitRegistry
from vowser.src.utils.config import ExecutorConfig
from vowser.src.utils.models import PathStep, SelectOption, UserProfile

logger = logging.getLogger(__name__)

DEFAULT_WAIT_MESSAGE = "작업을 완료한 후 계속하세요"


class SelectCancelledError(RuntimeError):
    """The user dismissed the option picker for a select step."""


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass
class StepContext:
    """Everything a strategy may touch while running one step."""

    browser: BrowserControl
    config: ExecutorConfig
    waits: UserWaitRegistry
    user_context: Optional[UserProfile] = None
    on_log: Optional[Callable[[str], None]] = None
    on_wait_for_user: Optional[Callable[[str], Any]] = None
    get_user_input: Optional[Callable[[PathStep], Any]] = None
    get_user_select: Optional[Callable[[PathStep, List[SelectOption]], Any]] = None

    def log(self, message: str, level: int = logging.INFO) -> None:
        logger.log(level, "[PathExecutor] %s", message)
        if self.on_log is not None:
            self.on_log(message)


StepStrategy = Callable[[PathStep, StepContext], Awaitable[None]]


async def navigate_step(step: PathStep, ctx: StepContext) -> None:
    await ctx.browser.navigate(step.url)
    logger.debug("[PathExecutor] Navigate succeeded to: %s", step.url)


async def _click_with_selectors(step: PathStep, ctx: StepContext) -> bool:
    last_index = len(step.selectors) - 1
    for index, selector in enumerate(step.selectors):
        timeout_ms = ctx.config.fast_selector_timeout_ms if index < last_index else None
        converted = convert_selector(selector)
        try:
            await ctx.browser.click(converted, timeout_ms=timeout_ms)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug("[PathExecutor] Click failed with selector[%d]: %s (%s)", index, selector, exc)
            continue
        ctx.log(f"Click succeeded with selector[{index}]: {converted}")
        return True
    return False


async def _click_by_href(step: PathStep, ctx: StepContext) -> bool:
    for target in extract_href_targets(step.selectors):
        try:
            await ctx.browser.click(target)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug("[PathExecutor] URL-based click failed for %s: %s", target, exc)
            continue
        ctx.log(f"Click succeeded using URL-based fallback: {target}")
        return True
    return False


async def _navigate_from_selectors(step: PathStep, ctx: StepContext) -> bool:
    urls = extract_absolute_urls(step.selectors)
    if not urls:
        return False
    target = urls[0]
    try:
        await ctx.browser.navigate(target)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        logger.error("[PathExecutor] Direct navigation to %s failed: %s", target, exc)
        return False
    ctx.log(f"Navigated directly to extracted URL: {target}")
    return True


async def click_step(step: PathStep, ctx: StepContext) -> None:
    """Selectors in order, then href-derived selectors, then direct navigation."""
    if not await _click_with_selectors(step, ctx):
        logger.warning("[PathExecutor] All selectors failed, trying URL-based fallback")
        if not await _click_by_href(step, ctx):
            logger.warning("[PathExecutor] URL-based click failed, navigating directly to target")
            if not await _navigate_from_selectors(step, ctx):
                raise VowserError.of(
                    ErrorKind.ELEMENT_NOT_FOUND,
                    f"Failed to click element: no selector matched "
                    f"(tried {len(step.selectors)} selectors + URL fallback)",
                    selector=step.selectors[0] if step.selectors else "",
                )
    await ctx.browser.wait_for_network_idle()


async def _resolve_input_value(step: PathStep, ctx: StepContext) -> Optional[str]:
    if ctx.user_context is not None and step.is_input:
        value = resolve_auto_fill(step, ctx.user_context)
        if value is not None:
            ctx.log(f"자동 입력: {step.description}")
            return value
        logger.info("[PathExecutor] Auto-fill found nothing for: %s", step.description)
    if ctx.get_user_input is None:
        return None
    value = await maybe_await(ctx.get_user_input(step))
    return value or None


async def input_step(step: PathStep, ctx: StepContext) -> None:
    value = await _resolve_input_value(step, ctx)
    if not value:
        ctx.log(f"Skipping input step without a value: {step.description}", logging.WARNING)
        return

    last_error: Optional[BaseException] = None
    for index, selector in enumerate(step.selectors):
        try:
            await ctx.browser.type(selector, value)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug("[PathExecutor] Input failed with selector[%d]: %s (%s)", index, selector, exc)
            last_error = exc
            continue
        ctx.log(f"입력 완료: {step.description} (selector[{index}])")
        if step.should_wait:
            await ctx.browser.wait_for_network_idle()
        return

    raise VowserError.of(
        ErrorKind.ELEMENT_NOT_FOUND,
        f"Failed to input text: no selector matched (tried {len(step.selectors)} selectors)",
        cause=last_error,
        selector=step.selectors[0] if step.selectors else "",
    )


def _watch(awaitable: Any, pending: asyncio.Future) -> Optional[asyncio.Future]:
    if not inspect.isawaitable(awaitable):
        return None
    task = asyncio.ensure_future(awaitable)
    # resolves only the wait it was started for
    task.add_done_callback(lambda _: pending.done() or pending.set_result(True))
    return task


async def wait_step(step: PathStep, ctx: StepContext) -> None:
    """Suspend until the user confirms, the callback finishes, or the timeout hits."""
    message = step.wait_message or DEFAULT_WAIT_MESSAGE
    ctx.log(f"사용자 작업 대기 중: {message}")
    pending = ctx.waits.arm(message)

    if ctx.on_wait_for_user is None:
        timeout = ctx.config.unattended_wait_timeout
        watcher = None
    else:
        timeout = ctx.config.wait_timeout
        try:
            watcher = _watch(ctx.on_wait_for_user(message), pending)
        except BaseException:
            ctx.waits.cancel()
            raise

    try:
        confirmed = await ctx.waits.wait(timeout)
    finally:
        if watcher is not None and not watcher.done():
            watcher.cancel()

    if watcher is not None and watcher.done() and not watcher.cancelled() and watcher.exception() is not None:
        raise watcher.exception()
    if confirmed:
        ctx.log("사용자 확인 완료")
    else:
        ctx.log(f"Wait timed out after {timeout:.0f}s, continuing", logging.WARNING)


async def _choose_option(step: PathStep, options: List[SelectOption], ctx: StepContext) -> SelectOption:
    if step.is_input and ctx.get_user_select is not None:
        chosen = await maybe_await(ctx.get_user_select(step, options))
        if not chosen or not str(chosen).strip():
            raise SelectCancelledError("User cancelled select input")
        return next((option for option in options if option.value == chosen), options[0])

    hint = (step.input_placeholder or "").strip()
    if hint:
        for option in options:
            if option.label.strip() == hint or option.value.strip() == hint:
                return option
    return next((option for option in options if option.is_selected), options[0])


async def select_step(step: PathStep, ctx: StepContext) -> None:
    if not step.selectors:
        raise VowserError.of(ErrorKind.ELEMENT_NOT_FOUND, f"Select step has no selectors: {step.description}")

    last_error: Optional[BaseException] = None
    for selector in step.selectors:
        try:
            options = await ctx.browser.get_select_options(selector)
            if not options:
                logger.warning("[PathExecutor] No options found for selector: %s", selector)
                continue
            chosen = await _choose_option(step, options, ctx)
            await ctx.browser.select_option(selector, chosen.value)
        except (asyncio.CancelledError, SelectCancelledError):
            raise
        except Exception as exc:
            logger.error("[PathExecutor] Failed to select option for selector %s: %s", selector, exc)
            last_error = exc
            continue
        if step.should_wait:
            await ctx.browser.wait_for_network_idle()
        ctx.log(f"선택 완료: {chosen.label or chosen.value}")
        return

    if last_error is not None:
        raise last_error
    raise VowserError.of(
        ErrorKind.ELEMENT_NOT_FOUND,
        f"No selectable options found for: {step.description}",
        selector=step.selectors[0],
    )


STRATEGIES: Dict[str, StepStrategy] = {
    "navigate": navigate_step,
    "click": click_step,
    "input": input_step,
    "type": input_step,
    "wait": wait_step,
    "select": select_step,
}


__all__ = [
    "DEFAULT_WAIT_MESSAGE",
    "SelectCancelledError",
    "StepContext",
    "StepStrategy",
    "maybe_await",
    "navigate_step",
    "click_step",
    "input_step",
    "wait_step",
    "select_step",
    "STRATEGIES",
]
