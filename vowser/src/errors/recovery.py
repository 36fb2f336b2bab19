"""Static recovery policies keyed by error kind."""
from __future__ import annotations

import sys
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from vowser.src.errors.taxonomy import ErrorKind, ErrorRecord

MAX_BACKOFF_SECONDS = 30.0
UNBOUNDED_RETRIES = sys.maxsize


@dataclass(frozen=True, slots=True)
class RecoveryPolicy:
    max_retries: int = 3
    retry_delay_base: float = 1.0
    backoff_multiplier: float = 2.0
    show_user_dialog: bool = False
    auto_recover: bool = True

    @property
    def unbounded(self) -> bool:
        return self.max_retries >= UNBOUNDED_RETRIES


DEFAULT_POLICY = RecoveryPolicy()

_POLICIES: Mapping[ErrorKind, RecoveryPolicy] = MappingProxyType(
    {
        ErrorKind.CONNECTION_FAILED: RecoveryPolicy(max_retries=0, show_user_dialog=True, auto_recover=False),
        # reconnect immediately, forever
        ErrorKind.SOCKET_DISCONNECTED: RecoveryPolicy(
            max_retries=UNBOUNDED_RETRIES, retry_delay_base=0.0, show_user_dialog=False, auto_recover=True
        ),
        ErrorKind.ELEMENT_NOT_FOUND: RecoveryPolicy(
            max_retries=3, retry_delay_base=1.0, backoff_multiplier=2.0, show_user_dialog=True, auto_recover=True
        ),
        ErrorKind.BROWSER_CRASH: RecoveryPolicy(max_retries=0, show_user_dialog=True, auto_recover=False),
        ErrorKind.TRANSMISSION_FAILED: RecoveryPolicy(max_retries=0, show_user_dialog=True, auto_recover=False),
        ErrorKind.OUT_OF_MEMORY: RecoveryPolicy(
            max_retries=1, retry_delay_base=2.0, show_user_dialog=False, auto_recover=True
        ),
    }
)


def get_policy(record: ErrorRecord | ErrorKind) -> RecoveryPolicy:
    kind = record.kind if isinstance(record, ErrorRecord) else record
    return _POLICIES.get(kind, DEFAULT_POLICY)


def compute_backoff(attempt: int, policy: RecoveryPolicy) -> float:
    """Delay in seconds before retry number ``attempt + 1`` (zero based)."""
    if policy.retry_delay_base <= 0:
        return 0.0
    try:
        delay = policy.retry_delay_base * (policy.backoff_multiplier ** attempt)
    except OverflowError:
        return MAX_BACKOFF_SECONDS
    return min(delay, MAX_BACKOFF_SECONDS)


__all__ = ["RecoveryPolicy", "DEFAULT_POLICY", "MAX_BACKOFF_SECONDS", "UNBOUNDED_RETRIES", "get_policy", "compute_backoff"]
