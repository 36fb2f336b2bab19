"""Contribution-mode constants."""
from __future__ import annotations

DEFAULT_TASK_NAME = "기여모드 작업"
MESSAGE_TYPE = "save_contribution_path"

SESSION_TIMEOUT_SECONDS = 30 * 60
# transmission retry schedule; attempts beyond the list reuse the last delay
RETRY_DELAYS_SECONDS = (1.0, 2.0, 5.0)
MAX_RETRIES = 3

BATCH_SIZE = 5
TYPING_DEBOUNCE_SECONDS = 1.5

MAX_URL_LENGTH = 2048
MAX_TITLE_LENGTH = 200
MAX_SELECTOR_LENGTH = 500
MAX_ATTRIBUTE_VALUE_LENGTH = 1000
MAX_ATTRIBUTES_COUNT = 20
MAX_ACTION_NAME_LENGTH = 50
MAX_STRING_LENGTH = 1000

ALLOWED_URL_PREFIXES = ("http://", "https://", "file://", "about:")
DANGEROUS_PATTERNS = (
    "<script",
    "</script>",
    "javascript:",
    "vbscript:",
    "onload=",
    "onerror=",
    "alert(",
    "eval(",
    "document.cookie",
    "innerHTML",
    "outerHTML",
)
