"""Path replay: auto-fill, selector heuristics, step strategies and the executor."""
from vowser.src.executor.autofill import resolve_auto_fill
from vowser.src.executor.path_executor import BUSY_MESSAGE, ExecutionState, PathExecutor
from vowser.src.executor.selectors import (
    base_url,
    convert_selector,
    extract_absolute_urls,
    extract_href_targets,
    is_bare_root,
    requires_navigation,
)
from vowser.src.executor.strategies import STRATEGIES, StepContext
from vowser.src.executor.user_wait import UserWaitRegistry

__all__ = [
    "resolve_auto_fill",
    "BUSY_MESSAGE",
    "ExecutionState",
    "PathExecutor",
    "base_url",
    "convert_selector",
    "extract_absolute_urls",
    "extract_href_targets",
    "is_bare_root",
    "requires_navigation",
    "STRATEGIES",
    "StepContext",
    "UserWaitRegistry",
]
