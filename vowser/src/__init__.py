"""Vowser package root exposing the replay, recording and recovery entry points."""

from vowser.src.api.path_client import PathApiClient
from vowser.src.contribution.recorder import ContributionRecorder
from vowser.src.errors.handler import ExceptionHandler
from vowser.src.executor.path_executor import PathExecutor

__all__ = [
    "PathApiClient",
    "ContributionRecorder",
    "ExceptionHandler",
    "PathExecutor",
]
