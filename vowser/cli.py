"""Console entry point for Vowser."""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Sequence

# config defaults read the environment at import time
from dotenv import load_dotenv
load_dotenv(Path.cwd() / ".env")

from vowser.src.api.path_client import PathApiClient  # noqa: E402
from vowser.src.browser.remote import RemoteBrowser  # noqa: E402
from vowser.src.errors.taxonomy import VowserError  # noqa: E402
from vowser.src.executor.path_executor import PathExecutor  # noqa: E402
from vowser.src.utils.config import CONFIG  # noqa: E402
from vowser.src.utils.logs import configure_logging  # noqa: E402
from vowser.src.utils.models import NavigationPath, PathStep, SelectOption, UserProfile  # noqa: E402


def _build_main_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vowser", description="Replay and search recorded browser paths")
    parser.add_argument("command", choices=("search", "replay", "host"))
    return parser


def _print_paths(paths: List[NavigationPath]) -> None:
    for rank, path in enumerate(paths, start=1):
        print(f"{rank}. {path.task_intent} [{path.domain}] score={path.relevance_score:.2f} weight={path.weight}")
        for step in path.steps:
            print(f"     {step.order:>2} {step.action:<8} {step.description}")


def run_search(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="vowser search")
    parser.add_argument("query")
    parser.add_argument("--limit", type=int, default=3)
    parser.add_argument("--domain")
    parsed = parser.parse_args(list(argv))

    try:
        response = PathApiClient().search_paths(parsed.query, limit=parsed.limit, domain=parsed.domain)
    except VowserError as exc:
        print(f"검색 실패: {exc.record.user_message} ({exc.error_code})", file=sys.stderr)
        return 1
    paths = response.data.matched_paths
    if not paths:
        print("일치하는 경로가 없습니다.")
        return 1
    _print_paths(paths)
    return 0


async def _ask_input(step: PathStep) -> str:
    prompt = step.input_placeholder or step.description
    return (await asyncio.to_thread(input, f"{prompt}: ")).strip()


async def _ask_select(step: PathStep, options: List[SelectOption]) -> str:
    for index, option in enumerate(options, start=1):
        print(f"  {index}. {option.label or option.value}")
    answer = (await asyncio.to_thread(input, f"{step.description} (번호): ")).strip()
    if answer.isdigit() and 1 <= int(answer) <= len(options):
        return options[int(answer) - 1].value
    return ""


async def _wait_for_enter(message: str) -> None:
    await asyncio.to_thread(input, f"{message} [Enter] ")


def _print_progress(index: int, total: int, description: str) -> None:
    print(f"[{index}/{total}] {description}")


async def _replay(path: NavigationPath, profile: UserProfile | None = None) -> int:
    browser = RemoteBrowser()
    executor = PathExecutor(browser)
    try:
        result = await executor.execute(
            path,
            user_context=profile,
            on_step_complete=_print_progress,
            on_log=print,
            on_wait_for_user=_wait_for_enter,
            get_user_input=_ask_input,
            get_user_select=_ask_select,
        )
    finally:
        await browser.close()
    if result.success:
        print(f"완료: {result.steps_completed}/{result.total_steps} 단계")
        return 0
    print(
        f"실패: 단계 {(result.failed_at or 0) + 1}/{result.total_steps} - {result.error} ({result.error_code})",
        file=sys.stderr,
    )
    return 1


def run_replay(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="vowser replay")
    parser.add_argument("query")
    parser.add_argument("--domain")
    parser.add_argument("--profile", type=Path, help="JSON member profile used for auto-fill")
    parsed = parser.parse_args(list(argv))

    profile = None
    if parsed.profile is not None:
        profile = UserProfile.model_validate_json(parsed.profile.read_text(encoding="utf-8"))

    try:
        path = PathApiClient().best_match(parsed.query, domain=parsed.domain)
    except VowserError as exc:
        print(f"검색 실패: {exc.record.user_message} ({exc.error_code})", file=sys.stderr)
        return 1
    if path is None:
        print("일치하는 경로가 없습니다.")
        return 1
    _print_paths([path])
    return asyncio.run(_replay(path, profile))


def run_host(argv: Sequence[str]) -> int:
    from vowser.src.browser.host import serve

    parser = argparse.ArgumentParser(prog="vowser host")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8001)
    parsed = parser.parse_args(list(argv))
    serve(parsed.host, parsed.port)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging(CONFIG.log_level)

    args = list(sys.argv[1:] if argv is None else argv)
    try:
        if not args or args[0] in {"-h", "--help", "help"}:
            _build_main_parser().print_help()
            return 0
        if args[0] == "search":
            return run_search(args[1:])
        if args[0] == "replay":
            return run_replay(args[1:])
        if args[0] == "host":
            return run_host(args[1:])

        _build_main_parser().print_help()
        print(f"Unknown command: {args[0]}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\n중단되었습니다.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
