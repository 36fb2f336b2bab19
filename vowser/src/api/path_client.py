"""REST client for saving and searching navigation paths."""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

import requests

from vowser.src.api.conversions import contribution_to_submission, path_to_submissions
from vowser.src.api.models import PathSaveResponse, PathSearchResponse, PathSubmission
from vowser.src.contribution.models import ContributionStep
from vowser.src.errors.taxonomy import ErrorKind, VowserError, classify
from vowser.src.utils.config import CONFIG, ApiConfig
from vowser.src.utils.models import NavigationPath

logger = logging.getLogger(__name__)

PATHS_ENDPOINT = "/api/v1/paths"
SEARCH_ENDPOINT = "/api/v1/paths/search"


class PathApiClient:
    """Thin wrapper around the path backend.

    Every failure surfaces as :class:`VowserError`: non-2xx responses as a
    server error carrying the status code, transport failures classified by
    the exception taxonomy.
    """

    def __init__(self, config: ApiConfig | None = None, *, session: requests.Session | None = None) -> None:
        self.config = config or CONFIG.api
        self._http = session or requests

    def _url(self, endpoint: str) -> str:
        return f"{self.config.base_url.rstrip('/')}{endpoint}"

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = getattr(self._http, method)(self._url(endpoint), timeout=self.config.request_timeout, **kwargs)
        except requests.RequestException as exc:
            raise VowserError(classify(exc, f"{method.upper()} {endpoint}"), str(exc)) from exc

        if not 200 <= response.status_code < 300:
            logger.error("[PathApi] %s %s failed: %s - %s", method.upper(), endpoint, response.status_code, response.text)
            raise VowserError.of(
                ErrorKind.SERVER_ERROR,
                f"{method.upper()} {endpoint} failed: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise VowserError.of(ErrorKind.INVALID_DATA, cause=exc, reason="response is not JSON") from exc
        if not isinstance(data, dict):
            raise VowserError.of(ErrorKind.INVALID_DATA, reason="response is not a JSON object")
        return data

    def _post_submission(self, submission: PathSubmission) -> PathSaveResponse:
        data = self._request("post", PATHS_ENDPOINT, json=submission.to_wire())
        result = PathSaveResponse.model_validate(data)
        if not result.succeeded:
            message = (result.error.message if result.error else None) or "Unknown server error"
            logger.error("[PathApi] Failed to save path: %s", message)
            raise VowserError.of(ErrorKind.INVALID_DATA, message, reason=message)
        logger.info("[PathApi] Path saved successfully: %d steps", result.steps_saved)
        return result

    def save_path(
        self,
        session_id: str,
        task_intent: str,
        domain: str,
        steps: Sequence[ContributionStep],
    ) -> PathSaveResponse:
        """Convert recorded contribution steps and ``POST`` them as a new path."""
        submission = PathSubmission(
            session_id=session_id,
            task_intent=task_intent,
            domain=domain,
            steps=[contribution_to_submission(step, domain) for step in steps],
        )
        return self._post_submission(submission)

    def submit_path(self, path: NavigationPath, session_id: Optional[str] = None) -> PathSaveResponse:
        """``POST`` an already structured path."""
        submission = PathSubmission(
            session_id=session_id or str(uuid.uuid4()),
            task_intent=path.task_intent or "",
            domain=path.domain,
            steps=path_to_submissions(path),
        )
        return self._post_submission(submission)

    def search_paths(self, query: str, limit: int = 3, domain: Optional[str] = None) -> PathSearchResponse:
        params: Dict[str, Any] = {"query": query, "limit": limit}
        if domain:
            params["domain"] = domain
        data = self._request("get", SEARCH_ENDPOINT, params=params)
        result = PathSearchResponse.model_validate(data)
        logger.info(
            "[PathApi] Found %s paths in %sms",
            result.data.total_matched, result.data.performance.search_time,
        )
        return result

    def best_match(self, query: str, domain: Optional[str] = None) -> Optional[NavigationPath]:
        paths: List[NavigationPath] = self.search_paths(query, limit=1, domain=domain).data.matched_paths
        return paths[0] if paths else None


__all__ = ["PathApiClient", "PATHS_ENDPOINT", "SEARCH_ENDPOINT"]
