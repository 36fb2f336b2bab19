"""Contribution-mode recording and transport."""
from vowser.src.contribution.models import (
    ContributionDataValidator,
    ContributionMessage,
    ContributionSession,
    ContributionStatus,
    ContributionStep,
)
from vowser.src.contribution.recorder import ContributionRecorder
from vowser.src.contribution.transport import WebSocketContributionSender

__all__ = [
    "ContributionDataValidator",
    "ContributionMessage",
    "ContributionSession",
    "ContributionStatus",
    "ContributionStep",
    "ContributionRecorder",
    "WebSocketContributionSender",
]
