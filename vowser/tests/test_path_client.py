import pytest
import requests

from vowser.src.api.path_client import PATHS_ENDPOINT, SEARCH_ENDPOINT, PathApiClient
from vowser.src.contribution.models import ContributionStep
from vowser.src.errors.taxonomy import ErrorKind, VowserError
from vowser.src.utils.config import ApiConfig
from vowser.src.utils.models import NavigationPath, PathStep

BASE = "http://api.test:8080"

SEARCH_BODY = {
    "type": "search_path_result",
    "status": "success",
    "data": {
        "query": "뉴스",
        "totalMatched": 1,
        "matchedPaths": [
            {
                "taskIntent": "뉴스 보기",
                "domain": "naver.com",
                "relevanceScore": 0.92,
                "weight": 3,
                "steps": [
                    {
                        "order": 1,
                        "url": "https://www.naver.com",
                        "action": "click",
                        "selectors": ["#news"],
                        "description": "뉴스 클릭",
                        "textLabels": ["뉴스"],
                        "isInput": False,
                        "shouldWait": None,
                    }
                ],
            }
        ],
        "performance": {"searchTime": 12},
    },
}

SAVE_BODY = {
    "type": "path_save_result",
    "status": "success",
    "data": {"result": {"sessionId": "s-1", "taskIntent": "뉴스", "domain": "naver.com", "stepsSaved": 1}},
}


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=""):
        self._payload = payload
        self.status_code = status_code
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON")
        return self._payload


@pytest.fixture
def client():
    return PathApiClient(ApiConfig(base_url=BASE + "/", request_timeout=3.0))


def _patch(monkeypatch, method, response):
    calls = []

    def fake(url, **kwargs):
        calls.append((url, kwargs))
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(requests, method, fake)
    return calls


def test_search_paths_parses_matches(monkeypatch, client):
    calls = _patch(monkeypatch, "get", FakeResponse(SEARCH_BODY))

    result = client.search_paths("뉴스", limit=2, domain="naver.com")

    url, kwargs = calls[0]
    assert url == BASE + SEARCH_ENDPOINT
    assert kwargs["params"] == {"query": "뉴스", "limit": 2, "domain": "naver.com"}
    assert kwargs["timeout"] == 3.0
    path = result.data.matched_paths[0]
    assert result.data.total_matched == 1
    assert result.data.performance.search_time == 12
    assert path.relevance_score == pytest.approx(0.92)
    assert path.steps[0].text_labels == ["뉴스"]
    assert path.steps[0].should_wait is False


def test_best_match_returns_first_or_none(monkeypatch, client):
    calls = _patch(monkeypatch, "get", FakeResponse(SEARCH_BODY))
    assert client.best_match("뉴스").task_intent == "뉴스 보기"
    assert calls[0][1]["params"] == {"query": "뉴스", "limit": 1}

    empty = {**SEARCH_BODY, "data": {"query": "x", "totalMatched": 0, "matchedPaths": None}}
    _patch(monkeypatch, "get", FakeResponse(empty))
    assert client.best_match("x") is None


def test_save_path_posts_converted_steps(monkeypatch, client):
    calls = _patch(monkeypatch, "post", FakeResponse(SAVE_BODY))
    step = ContributionStep(
        url="https://www.naver.com",
        title="네이버",
        action="click",
        html_attributes={"id": "news", "text": "뉴스"},
    )

    result = client.save_path("s-1", "뉴스", "naver.com", [step])

    url, kwargs = calls[0]
    assert url == BASE + PATHS_ENDPOINT
    body = kwargs["json"]
    assert body["sessionId"] == "s-1"
    assert body["taskIntent"] == "뉴스"
    assert body["steps"][0]["selectors"][0] == "#news"
    assert body["steps"][0]["isInput"] is False
    assert result.succeeded
    assert result.steps_saved == 1


def test_submit_path_generates_session_id(monkeypatch, client):
    calls = _patch(monkeypatch, "post", FakeResponse(SAVE_BODY))
    path = NavigationPath(
        task_intent="검색",
        domain="naver.com",
        steps=[PathStep(action="click", url="https://www.naver.com", selectors=["#a"], description="클릭")],
    )

    client.submit_path(path)

    body = calls[0][1]["json"]
    assert body["sessionId"]
    assert body["steps"][0]["domain"] == "naver.com"


def test_non_2xx_becomes_server_error(monkeypatch, client):
    _patch(monkeypatch, "get", FakeResponse({"error": "boom"}, status_code=503, text="boom"))

    with pytest.raises(VowserError) as info:
        client.search_paths("뉴스")

    assert info.value.kind is ErrorKind.SERVER_ERROR
    assert info.value.error_code == "SERVER_ERROR_503"


def test_transport_failure_is_classified(monkeypatch, client):
    _patch(monkeypatch, "get", requests.ConnectionError("refused"))

    with pytest.raises(VowserError) as info:
        client.search_paths("뉴스")

    assert info.value.error_code == "NETWORK_CONNECTION_FAILED"


def test_rejected_save_and_bad_body(monkeypatch, client):
    rejected = {"type": "path_save_result", "status": "error", "error": {"message": "duplicate path"}}
    _patch(monkeypatch, "post", FakeResponse(rejected))
    path = NavigationPath(task_intent="검색", domain="naver.com")

    with pytest.raises(VowserError) as info:
        client.submit_path(path, session_id="s-2")
    assert info.value.kind is ErrorKind.INVALID_DATA
    assert "duplicate path" in str(info.value)

    _patch(monkeypatch, "post", FakeResponse(None))
    with pytest.raises(VowserError) as info:
        client.submit_path(path, session_id="s-2")
    assert info.value.error_code == "INVALID_CONTRIBUTION_DATA"


def test_saved_path_round_trips_through_search(monkeypatch, client):
    stored = {}

    def fake_post(url, json=None, timeout=None):
        stored.update(json)
        return FakeResponse(SAVE_BODY)

    def fake_get(url, params=None, timeout=None):
        matched = {"taskIntent": stored["taskIntent"], "domain": stored["domain"], "steps": stored["steps"]}
        body = {"status": "success", "data": {"query": params["query"], "totalMatched": 1, "matchedPaths": [matched]}}
        return FakeResponse(body)

    monkeypatch.setattr(requests, "post", fake_post)
    monkeypatch.setattr(requests, "get", fake_get)
    original = NavigationPath(
        task_intent="회원가입",
        domain="a.com",
        steps=[
            PathStep(action="navigate", url="https://a.com/"),
            PathStep(action="click", url="https://a.com/", selectors=["#join", "a:has-text('가입')"]),
            PathStep(action="input", url="https://a.com/join", selectors=["#name"], is_input=True),
            PathStep(action="wait", url="https://a.com/join", wait_message="인증 후 계속"),
        ],
    )

    client.submit_path(original)
    fetched = client.best_match("회원가입")

    assert [s.action for s in fetched.steps] == [s.action for s in original.steps]
    assert [s.selectors for s in fetched.steps] == [s.selectors for s in original.steps]
    assert fetched.steps[2].is_input
    assert fetched.steps[3].wait_message == "인증 후 계속"
