"""Configuration helpers for Vowser services."""
from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class ApiConfig:
    """Connection details for the path search/save backend."""

    base_url: str = os.getenv("VOWSER_API_URL", "http://localhost:8080")
    request_timeout: float = _env_float("VOWSER_API_TIMEOUT", 30.0)


@dataclass(slots=True)
class BrowserConfig:
    """Settings for the Playwright browser and its HTTP host."""

    host_url: str = os.getenv("VOWSER_BROWSER_HOST_URL", "http://localhost:8001")
    request_timeout: float = _env_float("VOWSER_BROWSER_TIMEOUT", 45.0)
    headless: bool = _env_bool("VOWSER_HEADLESS", False)
    default_timeout_ms: float = 30000.0
    network_idle_timeout_ms: float = 10000.0


@dataclass(slots=True)
class ExecutorConfig:
    """Timing knobs for path replay."""

    step_delay: float = _env_float("VOWSER_STEP_DELAY", 0.5)
    wait_timeout: float = _env_float("VOWSER_WAIT_TIMEOUT", 300.0)
    unattended_wait_timeout: float = _env_float("VOWSER_UNATTENDED_WAIT_TIMEOUT", 10.0)
    fast_selector_timeout_ms: float = 2000.0


@dataclass(slots=True)
class ContributionConfig:
    """Contribution transport settings."""

    ws_url: str = os.getenv("VOWSER_CONTRIBUTION_WS_URL", "ws://localhost:8080/ws")


@dataclass(slots=True)
class AppConfig:
    """Aggregated configuration."""

    api: ApiConfig = field(default_factory=ApiConfig)
    browser: BrowserConfig = field(default_factory=BrowserConfig)
    executor: ExecutorConfig = field(default_factory=ExecutorConfig)
    contribution: ContributionConfig = field(default_factory=ContributionConfig)
    log_level: str = os.getenv("VOWSER_LOG_LEVEL", "INFO")


CONFIG = AppConfig()
