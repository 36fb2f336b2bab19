"""Conversion of recorded contribution steps into the ``POST /paths`` step shape."""
from __future__ import annotations

from typing import Dict, List, Optional

from vowser.src.api.models import PathStepSubmission
from vowser.src.contribution.models import ContributionStep
from vowser.src.utils.models import SELECTOR_SENTINEL, NavigationPath, PathStep

MAX_TEXT_LABELS = 5
# typed values at most this long may be stored as hints
MAX_SAFE_TYPED_LENGTH = 20
MAX_SELECTOR_TEXT_LENGTH = 100

_ACTION_MAP = {
    "type": "input",
    "input": "input",
    "wait": "wait",
    "click": "click",
    "navigate": "navigate",
    "new_tab": "new_tab",
    "select": "select",
}

_INPUT_TYPE_LABELS = {
    "email": "이메일",
    "password": "비밀번호",
    "search": "검색어",
    "id": "아이디",
}


def _esc(value: str) -> str:
    return value.replace("'", "\\'")


def _css_ident(value: str) -> str:
    out = []
    for index, ch in enumerate(value):
        valid = ch.isalnum() or ch in "-_"
        if not valid or (index == 0 and ch.isdigit()):
            out.append("\\")
        out.append(ch)
    return "".join(out)


def _attrs(step: ContributionStep) -> Dict[str, str]:
    return step.html_attributes or {}


def map_action_type(action: str) -> str:
    return _ACTION_MAP.get(action.lower(), "click")


def detect_input_type(step: ContributionStep) -> str:
    attrs = _attrs(step)
    if not attrs:
        return "text"
    kind = (attrs.get("type") or "").lower()
    name = (attrs.get("name") or "").lower()
    placeholder = (attrs.get("placeholder") or "").lower()
    aria_label = (attrs.get("aria-label") or "").lower()

    if kind == "password":
        return "password"
    if kind == "email" or "email" in name:
        return "email"
    if "password" in name or "pwd" in name:
        return "password"
    if "id" in name or "username" in name:
        return "id"
    if "검색" in placeholder or "search" in placeholder or "검색" in aria_label or "search" in aria_label:
        return "search"
    return "text"


def generate_selectors(step: ContributionStep) -> List[str]:
    """Candidate selectors, most stable first.

    Attribute-anchored selectors lead; text and class selectors follow; the
    recorded structural selector is only kept for non-click steps and always
    last.
    """
    attrs = _attrs(step)
    action = step.action.lower()
    input_type = detect_input_type(step)
    tag = (attrs.get("tag") or "").lower()
    selectors: List[str] = []

    if (attrs.get("id") or "").strip():
        selectors.append(f"#{_css_ident(attrs['id'])}")
    if (attrs.get("href") or "").strip():
        selectors.append(f"a[href='{_esc(attrs['href'])}']")
    for key in ("name", "data-testid", "data-nclicks", "aria-label"):
        if (attrs.get(key) or "").strip():
            selectors.append(f"[{key}='{_esc(attrs[key])}']")

    if tag == "input":
        if (attrs.get("placeholder") or "").strip():
            selectors.append(f"input[placeholder='{_esc(attrs['placeholder'])}']")
        value = (attrs.get("value") or "").strip()
        if 0 < len(value) <= MAX_SAFE_TYPED_LENGTH and input_type in ("search", "text"):
            selectors.append(f"input[value='{_esc(value)}']")
        if (attrs.get("type") or "").strip():
            selectors.append(f"input[type='{_esc(attrs['type'])}']")
    elif tag == "button":
        selectors.append("button")
        if (attrs.get("type") or "").strip():
            selectors.append(f"button[type='{_esc(attrs['type'])}']")

    text = (attrs.get("text") or "").strip()[:MAX_SELECTOR_TEXT_LENGTH]
    if text and action == "click":
        safe = _esc(text)
        selectors.extend([
            f"a:has-text('{safe}')",
            f"button:has-text('{safe}')",
            f"[role='button']:has-text('{safe}')",
            f"*:has-text('{safe}')",
        ])

    classes = (attrs.get("class") or "").split()
    if classes:
        joined = ".".join(_css_ident(name) for name in classes)
        selectors.append(f".{joined}")
        selectors.append(f"[class~='{_esc(classes[0])}']")
        if text and action == "click":
            if tag == "a":
                selectors.append(f"a.{joined}:has-text('{_esc(text)}')")
            elif tag == "button":
                selectors.append(f"button.{joined}:has-text('{_esc(text)}')")

    if action != "click" and (step.selector or "").strip():
        selectors.append(step.selector)

    unique = list(dict.fromkeys(s for s in selectors if s.strip()))
    return unique or [step.selector or SELECTOR_SENTINEL]


def extract_text_labels(step: ContributionStep) -> List[str]:
    """Up to five hint strings; typed text only when it is a short search term."""
    attrs = _attrs(step)
    labels: List[str] = []
    raw_text = (attrs.get("text") or "").strip()
    if step.action.lower() == "type":
        allow_text = detect_input_type(step) == "search" and 0 < len(raw_text) <= MAX_SAFE_TYPED_LENGTH
    else:
        allow_text = True
    if allow_text and raw_text:
        labels.append(raw_text)
    for key in ("aria-label", "placeholder", "alt", "title"):
        value = (attrs.get(key) or "").strip()
        if value:
            labels.append(value)
    if step.title.strip():
        labels.append(step.title.strip())
    return list(dict.fromkeys(labels))[:MAX_TEXT_LABELS]


def generate_description(step: ContributionStep) -> str:
    attrs = _attrs(step)
    action = step.action.lower()
    text = (attrs.get("text") or attrs.get("aria-label") or step.title).strip()

    if action == "click":
        tag = (attrs.get("tag") or "").lower()
        if tag in ("input", "textarea"):
            return "입력창 클릭"
        if (attrs.get("type") or "").lower() == "search":
            return "검색창 클릭"
        return f"{text} 클릭" if text else "요소 클릭"
    if action in ("type", "input"):
        return f"{_INPUT_TYPE_LABELS.get(detect_input_type(step), '텍스트')} 입력"
    if action == "navigate":
        return "페이지 이동"
    if action == "new_tab":
        return "새 탭 열기"
    return f"{step.action} 실행"


def _input_placeholder(step: ContributionStep, input_type: str) -> Optional[str]:
    attrs = _attrs(step)
    typed = (attrs.get("text") or "").strip()
    if typed and len(typed) <= MAX_SAFE_TYPED_LENGTH and input_type in ("search", "text"):
        return typed
    return attrs.get("placeholder") or attrs.get("aria-label")


def contribution_to_submission(step: ContributionStep, domain: str) -> PathStepSubmission:
    action = map_action_type(step.action)
    is_input = action == "input"
    input_type = detect_input_type(step) if is_input else None
    return PathStepSubmission(
        url=step.url,
        domain=domain,
        action=action,
        selectors=generate_selectors(step),
        description=generate_description(step),
        text_labels=extract_text_labels(step),
        is_input=is_input,
        should_wait=False,
        input_type=input_type,
        input_placeholder=_input_placeholder(step, input_type) if is_input else None,
        wait_message=None,
    )


def path_step_to_submission(step: PathStep, domain: str) -> PathStepSubmission:
    return PathStepSubmission(
        url=step.url,
        domain=domain,
        action=step.action,
        selectors=list(step.selectors),
        description=step.description,
        text_labels=list(step.text_labels),
        is_input=step.is_input,
        should_wait=step.should_wait,
        input_type=step.input_type,
        input_placeholder=step.input_placeholder,
        wait_message=step.wait_message,
    )


def path_to_submissions(path: NavigationPath) -> List[PathStepSubmission]:
    return [path_step_to_submission(step, path.domain) for step in path.steps]


__all__ = [
    "map_action_type",
    "detect_input_type",
    "generate_selectors",
    "extract_text_labels",
    "generate_description",
    "contribution_to_submission",
    "path_step_to_submission",
    "path_to_submissions",
]
