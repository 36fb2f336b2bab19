"""Shared data models for Vowser components."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


SELECTOR_SENTINEL = "body"
STEP_ACTIONS = ("navigate", "click", "input", "wait", "select")


class WireModel(BaseModel):
    """camelCase on the wire, snake_case (or camelCase) accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class PathStep(WireModel):
    """Single action inside a replayable path."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    order: int = 0
    url: str = ""
    action: str
    selectors: List[str] = Field(default_factory=list, validate_default=True)
    description: str = ""
    text_labels: List[str] = Field(default_factory=list)
    is_input: bool = False
    should_wait: bool = False
    input_type: Optional[str] = None
    input_placeholder: Optional[str] = None
    wait_message: Optional[str] = None

    @field_validator("text_labels", "selectors", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value

    @field_validator("is_input", "should_wait", mode="before")
    @classmethod
    def _none_as_false(cls, value):
        return False if value is None else value

    @field_validator("selectors")
    @classmethod
    def _ensure_selectors(cls, value: List[str], info: ValidationInfo) -> List[str]:
        if not value and info.data.get("action") in ("click", "input"):
            return [SELECTOR_SENTINEL]
        return value


class NavigationPath(WireModel):
    """Ordered step sequence, either server-matched or freshly recorded."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    task_intent: Optional[str] = None
    domain: str = ""
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)
    weight: int = 0
    steps: List[PathStep] = Field(default_factory=list)


class UserProfile(WireModel):
    """Member profile used for auto-filling input steps."""

    id: Optional[int] = None
    email: str = ""
    name: str = ""
    phone_number: Optional[str] = None
    birthdate: Optional[str] = None
    naver_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SelectOption(WireModel):
    value: str
    label: str = ""
    is_selected: bool = False


class ExecutionResult(BaseModel):
    """Outcome of a single path replay."""

    success: bool
    steps_completed: int
    total_steps: int
    failed_at: Optional[int] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


__all__ = [
    "SELECTOR_SENTINEL",
    "STEP_ACTIONS",
    "WireModel",
    "PathStep",
    "NavigationPath",
    "UserProfile",
    "SelectOption",
    "ExecutionResult",
]
