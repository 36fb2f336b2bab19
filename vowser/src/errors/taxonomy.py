"""Error taxonomy: typed error kinds, immutable records and classification."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

import requests

from vowser.src.browser.base import BrowserActionError


class ErrorCategory(str, Enum):
    NETWORK = "network"
    BROWSER = "browser"
    CONTRIBUTION = "contribution"
    SYSTEM = "system"


class ErrorKind(str, Enum):
    CONNECTION_FAILED = "connection_failed"
    SOCKET_DISCONNECTED = "socket_disconnected"
    REQUEST_TIMEOUT = "request_timeout"
    SERVER_ERROR = "server_error"

    CONTROL_CHANNEL_LOST = "control_channel_lost"
    ELEMENT_NOT_FOUND = "element_not_found"
    PAGE_LOAD_TIMEOUT = "page_load_timeout"
    BROWSER_CRASH = "browser_crash"

    TRANSMISSION_FAILED = "transmission_failed"
    INVALID_DATA = "invalid_data"
    SESSION_EXPIRED = "session_expired"

    OUT_OF_MEMORY = "out_of_memory"
    FILESYSTEM_ERROR = "filesystem_error"


@dataclass(frozen=True, slots=True)
class _KindSpec:
    category: ErrorCategory
    error_code: str
    message: str
    user_message: str
    retryable: bool


# message/error_code templates are formatted with the record payload
_SPECS: Mapping[ErrorKind, _KindSpec] = MappingProxyType(
    {
        ErrorKind.CONNECTION_FAILED: _KindSpec(
            ErrorCategory.NETWORK, "NETWORK_CONNECTION_FAILED",
            "Network connection failed", "인터넷 연결을 확인해주세요", True,
        ),
        ErrorKind.SOCKET_DISCONNECTED: _KindSpec(
            ErrorCategory.NETWORK, "WEBSOCKET_DISCONNECTED",
            "WebSocket connection lost", "서버와 연결이 끊어졌습니다. 자동으로 재연결합니다.", True,
        ),
        ErrorKind.REQUEST_TIMEOUT: _KindSpec(
            ErrorCategory.NETWORK, "NETWORK_TIMEOUT",
            "Network request timeout", "요청 시간이 초과되었습니다", True,
        ),
        ErrorKind.SERVER_ERROR: _KindSpec(
            ErrorCategory.NETWORK, "SERVER_ERROR_{status_code}",
            "Server error: {status_code}", "서버에 일시적인 문제가 발생했습니다", True,
        ),
        ErrorKind.CONTROL_CHANNEL_LOST: _KindSpec(
            ErrorCategory.BROWSER, "PLAYWRIGHT_CONNECTION_LOST",
            "Playwright connection lost", "브라우저와 연결이 끊어졌습니다", True,
        ),
        ErrorKind.ELEMENT_NOT_FOUND: _KindSpec(
            ErrorCategory.BROWSER, "ELEMENT_NOT_FOUND",
            "Element not found: {selector}", "페이지에서 요소를 찾을 수 없습니다", True,
        ),
        ErrorKind.PAGE_LOAD_TIMEOUT: _KindSpec(
            ErrorCategory.BROWSER, "PAGE_LOAD_TIMEOUT",
            "Page load timeout: {url}", "페이지 로딩 시간이 초과되었습니다", True,
        ),
        ErrorKind.BROWSER_CRASH: _KindSpec(
            ErrorCategory.BROWSER, "BROWSER_CRASH",
            "Browser process crashed", "브라우저에 문제가 발생했습니다", False,
        ),
        ErrorKind.TRANSMISSION_FAILED: _KindSpec(
            ErrorCategory.CONTRIBUTION, "CONTRIBUTION_TRANSMISSION_FAILED",
            "Contribution data transmission failed", "기여 데이터 전송에 실패했습니다", True,
        ),
        ErrorKind.INVALID_DATA: _KindSpec(
            ErrorCategory.CONTRIBUTION, "INVALID_CONTRIBUTION_DATA",
            "Invalid contribution data: {reason}", "기여 데이터가 올바르지 않습니다", False,
        ),
        ErrorKind.SESSION_EXPIRED: _KindSpec(
            ErrorCategory.CONTRIBUTION, "CONTRIBUTION_SESSION_EXPIRED",
            "Contribution session expired", "기여 세션이 만료되었습니다", False,
        ),
        ErrorKind.OUT_OF_MEMORY: _KindSpec(
            ErrorCategory.SYSTEM, "OUT_OF_MEMORY",
            "Out of memory", "메모리가 부족합니다. 자동으로 정리합니다.", False,
        ),
        ErrorKind.FILESYSTEM_ERROR: _KindSpec(
            ErrorCategory.SYSTEM, "FILE_SYSTEM_ERROR",
            "File system error: {operation}", "파일 시스템 오류가 발생했습니다", False,
        ),
    }
)

_PAYLOAD_DEFAULTS = {"status_code": 0, "selector": "", "url": "", "reason": "", "operation": "unknown"}


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """Classified failure. Build through :func:`build_record` or :func:`classify`."""

    kind: ErrorKind
    category: ErrorCategory
    error_code: str
    message: str
    user_message: str
    is_retryable: bool
    payload: Mapping[str, Any] = field(default_factory=dict)
    cause: Optional[BaseException] = field(default=None, compare=False)


def build_record(kind: ErrorKind, *, cause: BaseException | None = None, **payload: Any) -> ErrorRecord:
    spec = _SPECS[kind]
    values = {**_PAYLOAD_DEFAULTS, **payload}
    return ErrorRecord(
        kind=kind,
        category=spec.category,
        error_code=spec.error_code.format(**values),
        message=spec.message.format(**values),
        user_message=spec.user_message,
        is_retryable=spec.retryable,
        payload=MappingProxyType(dict(payload)),
        cause=cause,
    )


class VowserError(Exception):
    """Exception carrying a classified :class:`ErrorRecord`."""

    def __init__(self, record: ErrorRecord, detail: str | None = None) -> None:
        super().__init__(detail or record.message)
        self.record = record
        if record.cause is not None:
            self.__cause__ = record.cause

    @property
    def kind(self) -> ErrorKind:
        return self.record.kind

    @property
    def error_code(self) -> str:
        return self.record.error_code

    @classmethod
    def of(
        cls,
        kind: ErrorKind,
        detail: str | None = None,
        *,
        cause: BaseException | None = None,
        **payload: Any,
    ) -> "VowserError":
        return cls(build_record(kind, cause=cause, **payload), detail)


def _message_of(error: BaseException) -> str:
    return str(error).lower()


def _browser_record(error: BrowserActionError) -> ErrorRecord:
    message = _message_of(error)
    if error.action == "start" or "closed" in message or "connection" in message:
        return build_record(ErrorKind.CONTROL_CHANNEL_LOST, cause=error)
    if error.action == "navigate":
        if "timeout" in message:
            return build_record(ErrorKind.PAGE_LOAD_TIMEOUT, cause=error, url=error.target or "")
        return build_record(ErrorKind.CONNECTION_FAILED, cause=error)
    return build_record(ErrorKind.ELEMENT_NOT_FOUND, cause=error, selector=error.target or "")


def classify(error: BaseException, context: str = "") -> ErrorRecord:
    """Map any failure to an :class:`ErrorRecord`.

    Order: typed ``VowserError`` and browser failures first, then well-known
    exception types, then message sniffing, then the caller's context.
    Anything left over becomes a generic system record so it still reaches
    the user.
    """

    if isinstance(error, VowserError):
        return error.record
    if isinstance(error, BrowserActionError):
        return _browser_record(error)

    if isinstance(error, requests.HTTPError) and error.response is not None:
        return build_record(ErrorKind.SERVER_ERROR, cause=error, status_code=error.response.status_code)
    if isinstance(error, MemoryError):
        return build_record(ErrorKind.OUT_OF_MEMORY, cause=error)
    if isinstance(error, (TimeoutError, asyncio.TimeoutError, requests.Timeout)):
        return build_record(ErrorKind.REQUEST_TIMEOUT, cause=error)
    if isinstance(error, (ConnectionError, requests.ConnectionError)):
        return build_record(ErrorKind.CONNECTION_FAILED, cause=error)

    message = _message_of(error)
    if "connection" in message:
        return build_record(ErrorKind.CONNECTION_FAILED, cause=error)
    if "timeout" in message:
        return build_record(ErrorKind.REQUEST_TIMEOUT, cause=error)
    if "playwright" in message:
        return build_record(ErrorKind.CONTROL_CHANNEL_LOST, cause=error)
    if "memory" in message or "heap" in message or "outofmemory" in type(error).__name__.lower():
        return build_record(ErrorKind.OUT_OF_MEMORY, cause=error)

    if "contribution" in (context or "").lower():
        return build_record(ErrorKind.TRANSMISSION_FAILED, cause=error)

    return build_record(ErrorKind.FILESYSTEM_ERROR, cause=error, operation="unknown")


__all__ = [
    "ErrorCategory",
    "ErrorKind",
    "ErrorRecord",
    "VowserError",
    "build_record",
    "classify",
]
