"""
Snapshot service for labelfixer.

Builds the issue snapshot a run works on: closed issues plus their label
timelines, fetched with bounded concurrency and saved as one file. A fetch
failure aborts the whole build so no partial label history is saved.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List

from ..domain.event import Issue, parse_timeline
from ..exit_codes import FetchError
from ..infra.github_client import GitHubClient
from ..infra.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class SnapshotService:
    """
    Service for loading or fetching the issue snapshot.

    Example:
        service = SnapshotService(client, SnapshotStore(path), "owner", "repo")
        issues = service.load_or_fetch()            # cached if present
        issues = service.load_or_fetch(refresh=True)  # always fetch
    """

    def __init__(
        self,
        client: GitHubClient,
        store: SnapshotStore,
        owner: str,
        repo: str,
        max_workers: int = 10
    ):
        """
        Initialize SnapshotService.

        Args:
            client: GitHub client used for fetching
            store: Snapshot persistence
            owner: Repository owner
            repo: Repository name
            max_workers: Concurrent timeline fetches
        """
        self.client = client
        self.store = store
        self.owner = owner
        self.repo = repo
        self.max_workers = max_workers

    def load_or_fetch(self, refresh: bool = False) -> List[Issue]:
        """
        Return the snapshot, fetching and saving it when missing.

        Args:
            refresh: Fetch even if a snapshot exists

        Raises:
            FetchError: If fetching fails or the snapshot is unreadable
        """
        if not refresh:
            issues = self.store.load()
            if issues is not None:
                logger.info(f"Loaded {len(issues)} issues from {self.store.path}")
                return issues
            logger.info(f"No snapshot at {self.store.path}, fetching from GitHub")

        issues = self.fetch()
        self.store.save(issues)
        return issues

    def fetch(self) -> List[Issue]:
        """
        Fetch closed issues and their timelines.

        Issues come back in source order regardless of which timeline
        request finishes first.

        Raises:
            FetchError: On the first failed page or timeline
        """
        raw_issues = list(self.client.iter_closed_issues(self.owner, self.repo))
        logger.info(f"Loaded {len(raw_issues)} closed issues from {self.owner}/{self.repo}")

        for raw in raw_issues:
            if not isinstance(raw, dict) or not isinstance(raw.get('number'), int):
                raise FetchError(f"Malformed issue in {self.owner}/{self.repo} listing: {raw!r:.80}")

        timelines: Dict[int, List[Dict[str, Any]]] = {}

        def fetch_one(number: int) -> List[Dict[str, Any]]:
            logger.debug(f"Loading timeline for issue #{number}")
            return self.client.get_timeline(self.owner, self.repo, number)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(fetch_one, raw['number']): raw['number'] for raw in raw_issues}

            for future in as_completed(futures):
                number = futures[future]
                try:
                    timelines[number] = future.result()
                except FetchError:
                    for pending in futures:
                        pending.cancel()
                    raise

        return [
            Issue(
                number=raw['number'],
                title=raw.get('title') or "",
                timeline=parse_timeline(timelines[raw['number']]),
            )
            for raw in raw_issues
        ]
