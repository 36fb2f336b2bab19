"""Utility exports for Vowser."""
from vowser.src.utils.config import CONFIG, ApiConfig, AppConfig, BrowserConfig, ContributionConfig, ExecutorConfig
from vowser.src.utils.logs import SensitiveDataFilter, configure_logging, filter_sensitive
from vowser.src.utils.models import (
    SELECTOR_SENTINEL,
    ExecutionResult,
    NavigationPath,
    PathStep,
    SelectOption,
    UserProfile,
)

__all__ = [
    "CONFIG",
    "ApiConfig",
    "AppConfig",
    "BrowserConfig",
    "ContributionConfig",
    "ExecutorConfig",
    "SensitiveDataFilter",
    "configure_logging",
    "filter_sensitive",
    "SELECTOR_SENTINEL",
    "ExecutionResult",
    "NavigationPath",
    "PathStep",
    "SelectOption",
    "UserProfile",
]
