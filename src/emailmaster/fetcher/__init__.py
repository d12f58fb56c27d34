"""Incremental Gmail fetch into the local cache."""

from .orchestrator import (
    FetchOrchestrator,
    FetchResult,
    MailProvider,
    build_query,
    merge_new_first,
    sort_newest_first,
)

__all__ = [
    "FetchOrchestrator",
    "FetchResult",
    "MailProvider",
    "build_query",
    "merge_new_first",
    "sort_newest_first",
]
