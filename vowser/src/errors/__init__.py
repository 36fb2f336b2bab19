"""Error taxonomy and recovery helpers."""
from vowser.src.errors.handler import (
    HIDDEN_DIALOG,
    DialogAction,
    DialogKind,
    DialogState,
    ExceptionHandler,
    RecoveryOutcome,
)
from vowser.src.errors.recovery import DEFAULT_POLICY, RecoveryPolicy, compute_backoff, get_policy
from vowser.src.errors.taxonomy import (
    ErrorCategory,
    ErrorKind,
    ErrorRecord,
    VowserError,
    build_record,
    classify,
)

__all__ = [
    "HIDDEN_DIALOG",
    "DialogAction",
    "DialogKind",
    "DialogState",
    "ExceptionHandler",
    "RecoveryOutcome",
    "DEFAULT_POLICY",
    "RecoveryPolicy",
    "compute_backoff",
    "get_policy",
    "ErrorCategory",
    "ErrorKind",
    "ErrorRecord",
    "VowserError",
    "build_record",
    "classify",
]
