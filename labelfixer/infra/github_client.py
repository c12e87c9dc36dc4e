"""
GitHub API client infrastructure for labelfixer.

Provides a clean abstraction over the GitHub REST API:
- Token authentication from config or environment
- Lazy pagination following the Link header
- Rate limit tracking and exponential backoff
- Idempotent label add/remove
"""

import os
import time
import logging
from dataclasses import dataclass
from typing import Any, Dict, Generator, List, Optional
from urllib.parse import quote

import requests

from ..exit_codes import FetchError, MutationError

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"

# Maximum page size GitHub allows for list endpoints
PAGE_SIZE = 100


@dataclass
class RateLimitStatus:
    """GitHub API rate limit status."""
    remaining: int
    limit: int
    reset_time: int  # Unix timestamp
    used: int

    @property
    def minutes_until_reset(self) -> int:
        """Minutes until rate limit resets."""
        now = int(time.time())
        return max(0, (self.reset_time - now) // 60)

    @property
    def is_low(self) -> bool:
        """Check if rate limit is getting low (< 100 remaining)."""
        return self.remaining < 100


class GitHubClient:
    """
    GitHub API client with rate limiting.

    Example:
        client = GitHubClient()
        for issue in client.iter_closed_issues("owner", "repo"):
            timeline = client.get_timeline("owner", "repo", issue["number"])
    """

    def __init__(
        self,
        token: Optional[str] = None,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize GitHubClient.

        Args:
            token: GitHub token (defaults to LABELFIXER_GITHUB_TOKEN or GITHUB_TOKEN env var)
            max_retries: Maximum retry attempts for rate-limited or failed requests
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay between retries
            timeout: HTTP request timeout in seconds
            session: requests session (creates one if None)
        """
        self.token = token or os.environ.get('LABELFIXER_GITHUB_TOKEN') or os.environ.get('GITHUB_TOKEN')
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.timeout = timeout
        self._rate_limit_status: Optional[RateLimitStatus] = None

        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/vnd.github+json',
            'User-Agent': 'labelfixer',
            'X-GitHub-Api-Version': '2022-11-28',
        })
        if self.token:
            self.session.headers['Authorization'] = f'token {self.token}'

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'GitHubClient':
        """Create a client from the ``github`` config section."""
        github = config.get('github') or {}
        rate_limit = github.get('rate_limit') or {}
        return cls(
            token=str(github['token']) if github.get('token') else None,
            max_retries=rate_limit.get('max_retries', 3),
            max_delay=rate_limit.get('max_delay_seconds', 60),
        )

    @property
    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        """Rate limit status from the last API response."""
        return self._rate_limit_status

    def _update_rate_limit_from_headers(self, headers) -> None:
        """Update rate limit status from response headers."""
        try:
            remaining = int(headers.get('X-RateLimit-Remaining', -1))
            limit = int(headers.get('X-RateLimit-Limit', -1))
            reset_time = int(headers.get('X-RateLimit-Reset', 0))
            used = int(headers.get('X-RateLimit-Used', 0))
        except (ValueError, TypeError):
            return

        if remaining >= 0 and limit >= 0:
            self._rate_limit_status = RateLimitStatus(
                remaining=remaining,
                limit=limit,
                reset_time=reset_time,
                used=used
            )

            if self._rate_limit_status.is_low:
                logger.warning(
                    f"GitHub API rate limit low: {remaining}/{limit} remaining, "
                    f"resets in {self._rate_limit_status.minutes_until_reset} minutes"
                )

    @staticmethod
    def _is_rate_limited(response: requests.Response) -> bool:
        if response.status_code == 429:
            return True
        return response.status_code == 403 and response.headers.get('X-RateLimit-Remaining') == '0'

    def _backoff_delay(self, response: Optional[requests.Response], attempt: int) -> float:
        if response is not None:
            reset_time = response.headers.get('X-RateLimit-Reset')
            if reset_time:
                try:
                    wait_time = int(reset_time) - int(time.time())
                except ValueError:
                    wait_time = 0
                if 0 < wait_time < self.max_delay:
                    return wait_time
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Send a request, retrying on rate limits and network errors.

        Returns the last response once retries are exhausted.

        Raises:
            requests.RequestException: If every attempt failed at the network level
        """
        if not url.startswith('http'):
            url = f"{GITHUB_API_BASE}/{url.lstrip('/')}"

        for attempt in range(self.max_retries):
            last_attempt = attempt == self.max_retries - 1
            try:
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.RequestException as e:
                logger.warning(f"GitHub API request failed: {e}")
                if last_attempt:
                    raise
                time.sleep(self._backoff_delay(None, attempt))
                continue

            self._update_rate_limit_from_headers(response.headers)

            if self._is_rate_limited(response) and not last_attempt:
                delay = self._backoff_delay(response, attempt)
                logger.info(f"Rate limited, waiting {delay}s (attempt {attempt + 1})")
                time.sleep(delay)
                continue

            return response

        # max_retries >= 1, so the loop always returns or raises
        raise requests.RequestException(f"No response for {method} {url}")

    def _paginate(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Generator[Dict[str, Any], None, None]:
        """
        Lazily yield items from a paginated list endpoint.

        Raises:
            FetchError: If any page fails or is not a JSON list
        """
        url: Optional[str] = endpoint
        params = {'per_page': PAGE_SIZE, **(params or {})}
        page = 1

        while url:
            try:
                response = self._request('GET', url, params=params)
            except requests.RequestException as e:
                raise FetchError(f"GitHub request failed for {endpoint} (page {page}): {e}") from e

            if response.status_code != 200:
                raise FetchError(f"GitHub API error {response.status_code} for {endpoint} (page {page})")

            try:
                data = response.json()
            except ValueError as e:
                raise FetchError(f"GitHub API returned invalid JSON for {endpoint} (page {page})") from e
            if not isinstance(data, list):
                raise FetchError(f"Expected a list from {endpoint} (page {page}), got {type(data).__name__}")

            logger.debug(f"Fetched page {page} of {endpoint}: {len(data)} items")
            yield from data

            # The next link already carries the query string
            url = (response.links or {}).get('next', {}).get('url')
            params = None
            page += 1

    def iter_closed_issues(self, owner: str, repo: str) -> Generator[Dict[str, Any], None, None]:
        """
        Yield closed issues of a repository, page by page.

        Pull requests (which the issues endpoint also returns) are skipped.
        """
        endpoint = f"repos/{owner}/{repo}/issues"
        for item in self._paginate(endpoint, {'state': 'closed'}):
            if 'pull_request' in item:
                continue
            yield item

    def get_timeline(self, owner: str, repo: str, number: int) -> List[Dict[str, Any]]:
        """
        Get the full timeline of an issue in source order.

        Raises:
            FetchError: If any timeline page cannot be fetched
        """
        return list(self._paginate(f"repos/{owner}/{repo}/issues/{number}/timeline"))

    def add_label(self, owner: str, repo: str, number: int, label: str) -> None:
        """
        Add a label to an issue. Adding a label already present succeeds.

        Raises:
            MutationError: If GitHub rejects the request
        """
        endpoint = f"repos/{owner}/{repo}/issues/{number}/labels"
        try:
            response = self._request('POST', endpoint, json={'labels': [label]})
        except requests.RequestException as e:
            raise MutationError(f"Adding '{label}' failed: {e}", number, label) from e

        if response.status_code not in (200, 201):
            raise MutationError(f"Adding '{label}' failed with HTTP {response.status_code}", number, label)

    def remove_label(self, owner: str, repo: str, number: int, label: str) -> None:
        """
        Remove a label from an issue. Removing an absent label succeeds.

        Raises:
            MutationError: If GitHub rejects the request
        """
        endpoint = f"repos/{owner}/{repo}/issues/{number}/labels/{quote(label, safe='')}"
        try:
            response = self._request('DELETE', endpoint)
        except requests.RequestException as e:
            raise MutationError(f"Removing '{label}' failed: {e}", number, label) from e

        if response.status_code == 404:
            logger.debug(f"Label '{label}' already absent from #{number}")
            return
        if response.status_code not in (200, 204):
            raise MutationError(f"Removing '{label}' failed with HTTP {response.status_code}", number, label)


class GitHubLabelSink:
    """Label mutation sink bound to one repository."""

    def __init__(self, client: GitHubClient, owner: str, repo: str):
        self.client = client
        self.owner = owner
        self.repo = repo

    def add_label(self, issue_number: int, label: str) -> None:
        self.client.add_label(self.owner, self.repo, issue_number, label)

    def remove_label(self, issue_number: int, label: str) -> None:
        self.client.remove_label(self.owner, self.repo, issue_number, label)
