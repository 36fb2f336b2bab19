import asyncio

import pytest
import requests
from starlette.testclient import TestClient

from vowser.src.browser.base import BrowserActionError, BrowserControl
from vowser.src.browser.host import create_app
from vowser.src.browser.remote import RemoteBrowser
from vowser.src.errors.taxonomy import ErrorKind, classify
from vowser.src.utils.config import BrowserConfig
from vowser.src.utils.models import SelectOption


class RecordingBrowser(BrowserControl):
    def __init__(self):
        self.calls = []
        self.started = False
        self.closed = False

    async def start(self):
        self.started = True

    async def close(self):
        self.closed = True

    async def navigate(self, url):
        self.calls.append(("navigate", url))

    async def click(self, selector, *, timeout_ms=None):
        if selector == "#missing":
            raise BrowserActionError("click on #missing failed: timeout")
        self.calls.append(("click", selector, timeout_ms))

    async def type(self, selector, value):
        self.calls.append(("type", selector, value))

    async def wait_for_selector(self, selector, *, timeout_ms=None):
        self.calls.append(("wait_for_selector", selector))

    async def wait_for_network_idle(self):
        self.calls.append(("idle",))

    async def evaluate(self, script, arg=None):
        return {"script": script, "arg": arg}

    async def get_select_options(self, selector):
        return [SelectOption(value="1", label="하나", is_selected=True)]


def test_host_lifecycle_and_dispatch():
    browser = RecordingBrowser()

    with TestClient(create_app(browser)) as client:
        assert browser.started
        assert client.get("/health").json() == {"status": "ok"}

        response = client.post("/execute", json={"action": "navigate", "params": {"url": "https://a.com"}})
        assert response.status_code == 200
        assert response.json()["success"] is True

        response = client.post("/execute", json={"action": "click", "params": {"selector": "#go", "timeout_ms": 2000}})
        assert response.json()["success"] is True

        response = client.post("/execute", json={"action": "evaluate", "params": {"script": "1 + 1", "arg": 3}})
        assert response.json()["result"] == {"script": "1 + 1", "arg": 3}

        response = client.post("/execute", json={"action": "get_select_options", "params": {"selector": "#s"}})
        assert response.json()["options"] == [{"value": "1", "label": "하나", "isSelected": True}]

    assert browser.closed
    assert browser.calls == [("navigate", "https://a.com"), ("click", "#go", 2000)]


def test_host_rejects_bad_requests():
    with TestClient(create_app(RecordingBrowser())) as client:
        unknown = client.post("/execute", json={"action": "scroll", "params": {}})
        assert unknown.status_code == 400
        assert unknown.json()["detail"] == "Action 'scroll' not supported."

        assert client.post("/execute", json={"action": "click", "params": {}}).status_code == 400
        assert client.post("/execute", json={"action": "navigate", "params": {}}).status_code == 400


def test_host_reports_action_failure_in_body():
    with TestClient(create_app(RecordingBrowser())) as client:
        response = client.post("/execute", json={"action": "click", "params": {"selector": "#missing"}})

    assert response.status_code == 200
    assert response.json() == {"success": False, "message": "click on #missing failed: timeout"}


def test_unsupported_select_raises_on_base_browser():
    with TestClient(create_app(RecordingBrowser())) as client:
        response = client.post(
            "/execute", json={"action": "select_option", "params": {"selector": "#s", "value": "1"}}
        )

    assert response.json()["success"] is False


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.content = b"{}" if payload is not None else b""

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class TestRemoteBrowser:
    def _browser(self, monkeypatch, *responses):
        posted = []
        queue = list(responses)

        def fake_post(url, json=None, timeout=None):
            posted.append((url, json, timeout))
            return queue.pop(0)

        monkeypatch.setattr(requests, "post", fake_post)
        return RemoteBrowser(BrowserConfig(host_url="http://host:9000", request_timeout=5.0)), posted

    def test_posts_action_and_params(self, monkeypatch):
        browser, posted = self._browser(monkeypatch, FakeResponse({"success": True}))

        asyncio.run(browser.click("#go", timeout_ms=2000))

        assert posted == [
            ("http://host:9000/execute", {"action": "click", "params": {"selector": "#go", "timeout_ms": 2000}}, 5.0)
        ]

    def test_parses_results(self, monkeypatch):
        browser, _ = self._browser(
            monkeypatch,
            FakeResponse({"success": True, "result": 42}),
            FakeResponse({"success": True, "options": [{"value": "a", "label": "A", "isSelected": False}]}),
        )

        assert asyncio.run(browser.evaluate("1")) == 42
        options = asyncio.run(browser.get_select_options("#s"))
        assert options == [SelectOption(value="a", label="A")]

    def test_action_failure_raises(self, monkeypatch):
        browser, _ = self._browser(monkeypatch, FakeResponse({"success": False, "message": "no element"}))

        with pytest.raises(BrowserActionError, match="no element") as info:
            asyncio.run(browser.navigate("https://a.com"))

        assert info.value.action == "navigate"
        assert info.value.target == "https://a.com"
        assert classify(info.value).kind is ErrorKind.CONNECTION_FAILED

    def test_failed_click_classifies_as_missing_element(self, monkeypatch):
        browser, _ = self._browser(
            monkeypatch, FakeResponse({"success": False, "message": "click on #x failed: Timeout 2000ms exceeded"})
        )

        with pytest.raises(BrowserActionError) as info:
            asyncio.run(browser.click("#x"))

        record = classify(info.value)
        assert record.kind is ErrorKind.ELEMENT_NOT_FOUND
        assert record.message == "Element not found: #x"

    def test_http_error_propagates(self, monkeypatch):
        browser, _ = self._browser(monkeypatch, FakeResponse({"detail": "bad"}, status_code=400))

        with pytest.raises(requests.HTTPError):
            asyncio.run(browser.click("#x"))
