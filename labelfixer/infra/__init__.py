"""
Infrastructure layer for labelfixer.

Contains abstractions for external systems:
- GitHubClient: GitHub API access (issues, timelines, labels)
- GitHubLabelSink: Label mutations bound to one repository
- SnapshotStore: JSON snapshot of issues and timelines

These provide clean interfaces that can be mocked for testing.
"""

from .github_client import GitHubClient, GitHubLabelSink, RateLimitStatus
from .snapshot_store import SnapshotStore

__all__ = [
    'GitHubClient',
    'GitHubLabelSink',
    'RateLimitStatus',
    'SnapshotStore',
]
