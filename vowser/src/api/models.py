"""Request/response models for the path save/search REST API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator

from vowser.src.utils.models import NavigationPath, WireModel


class PathStepSubmission(WireModel):
    url: str
    domain: str
    action: str
    selectors: List[str]
    description: str
    text_labels: List[str] = Field(default_factory=list)
    is_input: bool = False
    should_wait: bool = False
    input_type: Optional[str] = None
    input_placeholder: Optional[str] = None
    wait_message: Optional[str] = None


class PathSubmission(WireModel):
    session_id: str
    task_intent: str
    domain: str
    steps: List[PathStepSubmission]


class PathSaveDetails(WireModel):
    session_id: Optional[str] = None
    task_intent: Optional[str] = None
    domain: Optional[str] = None
    steps_saved: Optional[int] = 0


class PathSaveResult(WireModel):
    result: Optional[PathSaveDetails] = None


class PathSaveError(WireModel):
    message: Optional[str] = None
    code: Optional[str] = None


class PathSaveResponse(WireModel):
    type: str = "path_save_result"
    status: str
    data: Optional[PathSaveResult] = None
    error: Optional[PathSaveError] = None

    @property
    def succeeded(self) -> bool:
        return self.status.lower() == "success"

    @property
    def steps_saved(self) -> int:
        if self.data is None or self.data.result is None:
            return 0
        return self.data.result.steps_saved or 0


class PerformanceMetrics(WireModel):
    search_time: Optional[int] = 0


class PathSearchResult(WireModel):
    query: str
    total_matched: Optional[int] = 0
    matched_paths: List[NavigationPath] = Field(default_factory=list)
    performance: PerformanceMetrics = Field(default_factory=PerformanceMetrics)

    @field_validator("matched_paths", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value


class PathSearchResponse(WireModel):
    type: str = "search_path_result"
    status: str
    data: PathSearchResult


__all__ = [
    "PathStepSubmission",
    "PathSubmission",
    "PathSaveDetails",
    "PathSaveResult",
    "PathSaveError",
    "PathSaveResponse",
    "PerformanceMetrics",
    "PathSearchResult",
    "PathSearchResponse",
]
