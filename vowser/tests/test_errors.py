import asyncio
import dataclasses

import pytest
import requests

from vowser.src.browser.base import BrowserActionError
from vowser.src.errors.handler import DialogKind, ExceptionHandler
from vowser.src.errors.recovery import (
    DEFAULT_POLICY,
    MAX_BACKOFF_SECONDS,
    compute_backoff,
    get_policy,
)
from vowser.src.errors.taxonomy import ErrorCategory, ErrorKind, VowserError, build_record, classify


class TestClassify:
    def test_typed_error_keeps_its_record(self):
        error = VowserError.of(ErrorKind.ELEMENT_NOT_FOUND, selector="#btn")

        record = classify(error, "contribution")

        assert record is error.record
        assert record.error_code == "ELEMENT_NOT_FOUND"
        assert record.message == "Element not found: #btn"
        assert str(error) == "Element not found: #btn"

    def test_http_error_carries_status_code(self):
        response = requests.Response()
        response.status_code = 503

        record = classify(requests.HTTPError("boom", response=response))

        assert record.kind is ErrorKind.SERVER_ERROR
        assert record.error_code == "SERVER_ERROR_503"
        assert record.message == "Server error: 503"
        assert record.is_retryable

    @pytest.mark.parametrize(
        "error, context, kind",
        [
            (requests.Timeout("read timed out"), "", ErrorKind.REQUEST_TIMEOUT),
            (asyncio.TimeoutError(), "", ErrorKind.REQUEST_TIMEOUT),
            (ConnectionRefusedError("refused"), "", ErrorKind.CONNECTION_FAILED),
            (MemoryError(), "", ErrorKind.OUT_OF_MEMORY),
            (RuntimeError("Connection reset, then timeout"), "", ErrorKind.CONNECTION_FAILED),
            (RuntimeError("Timeout 30000ms exceeded"), "", ErrorKind.REQUEST_TIMEOUT),
            (RuntimeError("playwright target closed"), "", ErrorKind.CONTROL_CHANNEL_LOST),
            (RuntimeError("JavaScript heap exhausted"), "", ErrorKind.OUT_OF_MEMORY),
            (RuntimeError("send rejected"), "Contribution upload", ErrorKind.TRANSMISSION_FAILED),
        ],
    )
    def test_classification_order(self, error, context, kind):
        assert classify(error, context).kind is kind

    @pytest.mark.parametrize(
        "error, kind, payload",
        [
            (
                BrowserActionError("click on #buy failed: Timeout 2000ms exceeded", action="click", target="#buy"),
                ErrorKind.ELEMENT_NOT_FOUND,
                {"selector": "#buy"},
            ),
            (
                BrowserActionError(
                    "navigate to https://a.com failed: Timeout 30000ms", action="navigate", target="https://a.com"
                ),
                ErrorKind.PAGE_LOAD_TIMEOUT,
                {"url": "https://a.com"},
            ),
            (
                BrowserActionError("navigate to https://a.com failed: net::ERR_NAME_NOT_RESOLVED", action="navigate"),
                ErrorKind.CONNECTION_FAILED,
                {},
            ),
            (
                BrowserActionError("click on #a failed: Target page has been closed", action="click"),
                ErrorKind.CONTROL_CHANNEL_LOST,
                {},
            ),
            (BrowserActionError("browser is not started", action="start"), ErrorKind.CONTROL_CHANNEL_LOST, {}),
        ],
    )
    def test_browser_failures_map_to_browser_kinds(self, error, kind, payload):
        record = classify(error, "contribution")

        assert record.kind is kind
        assert record.cause is error
        for key, value in payload.items():
            assert record.payload[key] == value

    def test_unknown_error_becomes_generic_system_record(self):
        error = ValueError("weird")

        record = classify(error)

        assert record.kind is ErrorKind.FILESYSTEM_ERROR
        assert record.category is ErrorCategory.SYSTEM
        assert record.message == "File system error: unknown"
        assert record.cause is error
        assert not record.is_retryable

    def test_records_are_immutable(self):
        record = build_record(ErrorKind.PAGE_LOAD_TIMEOUT, url="https://a.com")

        assert record.message == "Page load timeout: https://a.com"
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.error_code = "OTHER"
        with pytest.raises(TypeError):
            record.payload["url"] = "https://b.com"


class TestRecoveryPolicy:
    def test_policy_table(self):
        assert get_policy(ErrorKind.CONNECTION_FAILED).max_retries == 0
        assert not get_policy(ErrorKind.CONNECTION_FAILED).auto_recover
        assert get_policy(ErrorKind.ELEMENT_NOT_FOUND).show_user_dialog
        assert get_policy(ErrorKind.OUT_OF_MEMORY).max_retries == 1
        assert get_policy(build_record(ErrorKind.REQUEST_TIMEOUT)) is DEFAULT_POLICY

    def test_backoff_grows_and_caps(self):
        policy = get_policy(ErrorKind.ELEMENT_NOT_FOUND)

        assert [compute_backoff(n, policy) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]
        assert compute_backoff(50, policy) == MAX_BACKOFF_SECONDS
        assert compute_backoff(5000, policy) == MAX_BACKOFF_SECONDS
        assert compute_backoff(7, get_policy(ErrorKind.SOCKET_DISCONNECTED)) == 0.0


class FlakyAction:
    def __init__(self, failures):
        self.failures = failures
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("still broken")
        return "ok"


def _handler(dialogs=None):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    handler = ExceptionHandler(on_dialog=None if dialogs is None else dialogs.append, sleep=fake_sleep)
    return handler, delays


class TestExceptionHandler:
    def test_auto_recovery_succeeds_with_backoff(self):
        handler, delays = _handler()
        action = FlakyAction(failures=2)
        error = VowserError.of(ErrorKind.ELEMENT_NOT_FOUND, selector="#a")

        outcome = asyncio.run(handler.handle(error, "click", action))

        assert outcome.recovered
        assert outcome.attempts == 3
        assert action.calls == 3
        assert delays == [1.0, 2.0]
        assert not outcome.dialog.visible
        assert handler.active_recoveries == {}

    def test_exhausted_browser_recovery_shows_dialog(self):
        dialogs = []
        handler, delays = _handler(dialogs)
        action = FlakyAction(failures=100)

        outcome = asyncio.run(
            handler.handle(VowserError.of(ErrorKind.ELEMENT_NOT_FOUND), "click", action)
        )

        assert not outcome.recovered
        assert action.calls == 4
        assert delays == [1.0, 2.0, 4.0]
        assert outcome.dialog.kind is DialogKind.BROWSER_ERROR
        assert outcome.dialog.retry_count == 4
        assert [a.key for a in outcome.dialog.actions] == ["retry", "alternative", "cancel"]
        assert dialogs == [outcome.dialog]
        assert handler.dialog_state is outcome.dialog

    def test_connection_failure_goes_straight_to_dialog(self):
        handler, delays = _handler()
        action = FlakyAction(failures=0)

        outcome = asyncio.run(handler.handle(ConnectionRefusedError("refused"), "search", action))

        assert action.calls == 0
        assert delays == []
        assert outcome.dialog.kind is DialogKind.NETWORK_ERROR
        assert outcome.dialog.message == "인터넷 연결을 확인해주세요"
        assert [a.key for a in outcome.dialog.actions] == ["retry", "cancel"]

    def test_dialog_without_recovery_action_has_no_retry(self):
        handler, _ = _handler()

        outcome = asyncio.run(handler.handle(ConnectionRefusedError("refused")))

        assert outcome.dialog.action("retry") is None
        assert outcome.dialog.action("cancel") is not None

    def test_unclassified_error_shows_generic_dialog_and_hides(self):
        dialogs = []
        handler, _ = _handler(dialogs)

        outcome = asyncio.run(handler.handle(ValueError("weird")))

        assert outcome.dialog.kind is DialogKind.GENERIC_ERROR
        assert outcome.dialog.error_code == "FILE_SYSTEM_ERROR"
        outcome.dialog.action("confirm")()
        assert not handler.dialog_state.visible
        assert [d.kind for d in dialogs] == [DialogKind.GENERIC_ERROR, DialogKind.HIDDEN]

    def test_crash_and_contribution_dialog_shapes(self):
        handler, _ = _handler()

        crash = asyncio.run(handler.handle(VowserError.of(ErrorKind.BROWSER_CRASH), "", FlakyAction(0)))
        upload = asyncio.run(
            handler.handle(VowserError.of(ErrorKind.TRANSMISSION_FAILED), "contribution", FlakyAction(0))
        )

        assert crash.dialog.kind is DialogKind.BROWSER_RESTART
        assert [a.key for a in crash.dialog.actions] == ["restart", "cancel"]
        assert upload.dialog.kind is DialogKind.CONTRIBUTION_ERROR
        assert [a.key for a in upload.dialog.actions] == ["retry", "later", "give_up"]

    def test_retry_action_hides_dialog_and_relaunches(self):
        handler, _ = _handler()
        action = FlakyAction(failures=0)

        async def scenario():
            outcome = await handler.handle(ConnectionRefusedError("refused"), "", action)
            task = outcome.dialog.action("retry")()
            assert not handler.dialog_state.visible
            return await task

        assert asyncio.run(scenario()) == "ok"
        assert action.calls == 1

    def test_non_retryable_error_is_never_auto_recovered(self):
        handler, delays = _handler()
        action = FlakyAction(failures=0)

        outcome = asyncio.run(handler.handle(MemoryError(), "", action))

        assert not outcome.recovered
        assert action.calls == 0
        assert delays == []
        assert outcome.dialog.kind is DialogKind.GENERIC_ERROR

    def test_socket_reconnect_runs_in_background_without_delay(self):
        handler, delays = _handler()
        action = FlakyAction(failures=3)

        async def scenario():
            outcome = await handler.handle(VowserError.of(ErrorKind.SOCKET_DISCONNECTED), "contribution", action)
            assert not outcome.recovered
            assert outcome.task is not None
            return outcome, await outcome.task

        outcome, (recovered, attempts) = asyncio.run(scenario())

        assert recovered
        assert attempts == 4
        assert delays == [0.0, 0.0, 0.0]
        assert not outcome.dialog.visible
        assert handler.active_recoveries == {}

    def test_endless_reconnect_does_not_block_handle(self):
        action = FlakyAction(failures=10**9)

        async def yielding_sleep(_seconds):
            await asyncio.sleep(0)

        handler = ExceptionHandler(sleep=yielding_sleep)

        async def scenario():
            outcome = await handler.handle(VowserError.of(ErrorKind.SOCKET_DISCONNECTED), "contribution", action)
            for _ in range(20):
                await asyncio.sleep(0)
            assert not outcome.task.done()
            assert list(handler.active_recoveries.values()) == ["WEBSOCKET_DISCONNECTED"]
            await handler.cancel_recoveries()
            return outcome

        outcome = asyncio.run(scenario())

        assert outcome.task.cancelled()
        assert action.calls > 1
        assert handler.active_recoveries == {}

    def test_only_socket_policy_is_unbounded(self):
        assert get_policy(ErrorKind.SOCKET_DISCONNECTED).unbounded
        assert not get_policy(ErrorKind.ELEMENT_NOT_FOUND).unbounded
