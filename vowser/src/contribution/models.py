"""Contribution session types and input sanitising."""
from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from vowser.src.contribution.constants import (
    ALLOWED_URL_PREFIXES,
    DANGEROUS_PATTERNS,
    MAX_ACTION_NAME_LENGTH,
    MAX_ATTRIBUTE_VALUE_LENGTH,
    MAX_ATTRIBUTES_COUNT,
    MAX_SELECTOR_LENGTH,
    MAX_STRING_LENGTH,
    MAX_TITLE_LENGTH,
    MAX_URL_LENGTH,
    MESSAGE_TYPE,
)
from vowser.src.utils.models import WireModel


def _now_ms() -> int:
    return int(time.time() * 1000)


class ContributionStep(WireModel):
    """One observed interaction as reported by the page instrumentation."""

    url: str
    title: str
    action: str
    selector: Optional[str] = None
    html_attributes: Optional[Dict[str, str]] = None
    timestamp: int = Field(default_factory=_now_ms)

    def attribute(self, name: str) -> Optional[str]:
        if not self.html_attributes:
            return None
        return self.html_attributes.get(name)

    @property
    def is_enter_key(self) -> bool:
        return (
            (self.attribute("key") or "").lower() == "enter"
            or self.attribute("keyCode") == "13"
            or self.attribute("which") == "13"
            or (self.attribute("code") or "").lower() == "enter"
        )

    @property
    def element_name(self) -> Optional[str]:
        """Human label for UI logs: text, value, placeholder, then the selector tail."""
        for key in ("text", "value", "placeholder"):
            value = self.attribute(key)
            if value is not None:
                return value
        if self.selector is None:
            return None
        return re.sub(r"[^\w가-힣]", "", self.selector.split(".")[-1])


@dataclass(slots=True)
class ContributionSession:
    task: str
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    steps: List[ContributionStep] = field(default_factory=list)
    start_time: int = field(default_factory=_now_ms)
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "task": self.task,
            "steps": [step.to_wire() for step in self.steps],
            "startTime": self.start_time,
            "isActive": self.is_active,
        }


class ContributionMessage(WireModel):
    type: str = MESSAGE_TYPE
    session_id: str
    task: str
    steps: List[ContributionStep] = Field(default_factory=list)
    is_partial: bool = False
    is_complete: bool = False
    total_steps: int = 0


class ContributionStatus(str, Enum):
    INACTIVE = "inactive"
    RECORDING = "recording"
    SENDING = "sending"
    COMPLETED = "completed"
    ERROR = "error"


_WHITESPACE_RE = re.compile(r"\s+")
_DANGEROUS_RE = re.compile("|".join(re.escape(p) for p in DANGEROUS_PATTERNS), re.IGNORECASE)


class ContributionDataValidator:
    """Strips script-ish fragments and bounds field sizes.

    Not an HTML sanitizer: it only keeps obviously hostile page text out of
    recorded hints.
    """

    @staticmethod
    def sanitize_string(value: Optional[str], max_length: int = MAX_STRING_LENGTH) -> str:
        if value is None:
            return ""
        sanitized = _WHITESPACE_RE.sub(" ", value.strip()[:max_length])
        return _DANGEROUS_RE.sub("", sanitized)

    @classmethod
    def validate_url(cls, url: str) -> Optional[str]:
        sanitized = cls.sanitize_string(url, MAX_URL_LENGTH)
        if not sanitized.strip() or not sanitized.startswith(ALLOWED_URL_PREFIXES):
            return None
        return sanitized

    @classmethod
    def sanitize_step(cls, step: ContributionStep) -> Optional[ContributionStep]:
        url = cls.validate_url(step.url)
        if url is None:
            return None
        title = cls.sanitize_string(step.title, MAX_TITLE_LENGTH)
        action = cls.sanitize_string(step.action, MAX_ACTION_NAME_LENGTH)
        if not action.strip() or not title.strip():
            return None

        selector = None
        if step.selector is not None:
            selector = cls.sanitize_string(step.selector, MAX_SELECTOR_LENGTH)

        attributes = None
        if step.html_attributes is not None:
            attributes = {}
            for key, value in list(step.html_attributes.items())[: MAX_ATTRIBUTES_COUNT]:
                cleaned = cls.sanitize_string(value, MAX_ATTRIBUTE_VALUE_LENGTH)
                if cleaned.strip():
                    attributes[key] = cleaned

        return step.model_copy(
            update={
                "url": url,
                "title": title,
                "action": action,
                "selector": selector,
                "html_attributes": attributes,
            }
        )


__all__ = [
    "ContributionStep",
    "ContributionSession",
    "ContributionMessage",
    "ContributionStatus",
    "ContributionDataValidator",
]
