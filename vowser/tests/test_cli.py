import pytest

from vowser import cli
from vowser.src.api.models import PathSearchResponse
from vowser.src.errors.taxonomy import ErrorKind, VowserError


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)


def _response(paths):
    return PathSearchResponse.model_validate(
        {"status": "success", "data": {"query": "뉴스", "totalMatched": len(paths), "matchedPaths": paths}}
    )


def test_unknown_command_returns_2(capsys):
    assert cli.main(["bogus"]) == 2
    assert "Unknown command: bogus" in capsys.readouterr().err


def test_help_returns_0():
    assert cli.main([]) == 0


def test_search_prints_matches(monkeypatch, capsys):
    path = {
        "taskIntent": "뉴스 보기",
        "domain": "naver.com",
        "relevanceScore": 0.5,
        "steps": [{"order": 1, "action": "click", "url": "https://www.naver.com", "description": "뉴스 클릭"}],
    }
    monkeypatch.setattr(cli.PathApiClient, "search_paths", lambda self, query, limit=3, domain=None: _response([path]))

    assert cli.main(["search", "뉴스"]) == 0
    out = capsys.readouterr().out
    assert "뉴스 보기 [naver.com]" in out
    assert "뉴스 클릭" in out


def test_search_failure_returns_1(monkeypatch, capsys):
    def fail(self, query, limit=3, domain=None):
        raise VowserError.of(ErrorKind.SERVER_ERROR, status_code=500)

    monkeypatch.setattr(cli.PathApiClient, "search_paths", fail)

    assert cli.main(["search", "뉴스"]) == 1
    assert "SERVER_ERROR_500" in capsys.readouterr().err


def test_keyboard_interrupt_returns_130(monkeypatch):
    def interrupted(argv):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "run_search", interrupted)

    assert cli.main(["search", "뉴스"]) == 130
