"""Path save/search REST API."""
from vowser.src.api.conversions import (
    contribution_to_submission,
    detect_input_type,
    extract_text_labels,
    generate_description,
    generate_selectors,
    map_action_type,
    path_to_submissions,
)
from vowser.src.api.models import PathSaveResponse, PathSearchResponse, PathStepSubmission, PathSubmission
from vowser.src.api.path_client import PathApiClient

__all__ = [
    "contribution_to_submission",
    "detect_input_type",
    "extract_text_labels",
    "generate_description",
    "generate_selectors",
    "map_action_type",
    "path_to_submissions",
    "PathSaveResponse",
    "PathSearchResponse",
    "PathStepSubmission",
    "PathSubmission",
    "PathApiClient",
]
