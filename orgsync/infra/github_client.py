"""
GitHub organization listing for orgsync.

The only remote question a sync run asks is which repositories an
organization has, and whether they are archived. The authenticated `gh`
CLI answers it when present; otherwise the REST API is paged through with
requests, backing off on rate limits and transient network errors.
"""

import subprocess
import json
import os
import time
import logging
from typing import Any, Dict, List, Optional

import requests

from ..domain.repository import RemoteRepo
from ..exit_codes import APIError

logger = logging.getLogger(__name__)

PER_PAGE = 100


class GitHubClient:
    """
    Lists organization repositories on GitHub or GitHub Enterprise.

    Example:
        client = GitHubClient(token=os.environ.get("GITHUB_TOKEN"))
        names = {repo.name for repo in client.list_org_repos("my-org")}
    """

    def __init__(
        self,
        token: Optional[str] = None,
        host: str = "github.com",
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0
    ):
        """
        Initialize GitHubClient.

        Args:
            token: API token for the requests fallback (defaults to
                ORGSYNC_GITHUB_TOKEN, then GITHUB_TOKEN)
            host: GitHub host name
            max_retries: Attempts per page before giving up
            base_delay: First backoff delay in seconds, doubled per attempt
            max_delay: Upper bound for any single wait
        """
        self.token = token or os.environ.get('ORGSYNC_GITHUB_TOKEN') or os.environ.get('GITHUB_TOKEN')
        self.host = host
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._use_gh_cli = self._check_gh_cli()

    @property
    def api_url(self) -> str:
        if self.host == "github.com":
            return "https://api.github.com"
        return f"https://{self.host}/api/v3"

    def _backoff(self, attempt: int) -> float:
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    def _check_gh_cli(self) -> bool:
        """True if `gh` is installed and logged in to this host."""
        try:
            status = subprocess.run(
                ['gh', 'auth', 'status', '--hostname', self.host],
                capture_output=True,
                text=True,
                timeout=10
            )
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return False
        return status.returncode == 0

    def _list_with_gh(self, endpoint: str) -> Optional[List[Dict[str, Any]]]:
        """All pages of endpoint via `gh api`, or None to fall back."""
        try:
            completed = subprocess.run(
                ['gh', 'api', '--hostname', self.host, '--paginate', '--slurp', endpoint],
                capture_output=True,
                text=True,
                timeout=120
            )
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            logger.debug(f"gh api {endpoint} did not run: {e}")
            return None

        if completed.returncode != 0 or not completed.stdout:
            logger.debug(f"gh api {endpoint} failed: {completed.stderr.strip()}")
            return None

        try:
            pages = json.loads(completed.stdout)
        except json.JSONDecodeError as e:
            logger.debug(f"gh api {endpoint} returned invalid JSON: {e}")
            return None
        return [item for page in pages for item in page]

    def _rate_limit_wait(self, response: requests.Response, attempt: int) -> Optional[float]:
        """Seconds to wait before retrying, or None if not rate limited."""
        if response.status_code != 403 or response.headers.get('X-RateLimit-Remaining') != '0':
            return None
        reset_at = response.headers.get('X-RateLimit-Reset')
        if reset_at:
            until_reset = int(reset_at) - int(time.time())
            if 0 < until_reset < self.max_delay:
                return until_reset
        return self._backoff(attempt)

    def _get(self, url: str) -> requests.Response:
        headers = {
            'Accept': 'application/vnd.github+json',
            'User-Agent': 'orgsync',
        }
        if self.token:
            headers['Authorization'] = f'token {self.token}'

        last_error = "no attempts made"
        for attempt in range(self.max_retries):
            try:
                response = requests.get(url, headers=headers, timeout=30)
            except requests.RequestException as e:
                logger.warning(f"GitHub API request failed: {e}")
                last_error = str(e)
                wait = self._backoff(attempt)
            else:
                wait = self._rate_limit_wait(response, attempt)
                if wait is None:
                    return response
                last_error = "rate limited"
                logger.info(f"Rate limited by GitHub, retrying in {wait}s")

            if attempt < self.max_retries - 1:
                time.sleep(wait)

        raise APIError(f"GitHub API request to {url} failed: {last_error}")

    def _list_with_requests(self, endpoint: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        page = 1
        while True:
            url = f"{self.api_url}/{endpoint}?per_page={PER_PAGE}&page={page}"
            response = self._get(url)
            if response.status_code != 200:
                raise APIError(f"GitHub API error {response.status_code} for {endpoint}")

            batch = response.json()
            if not isinstance(batch, list):
                raise APIError(f"Unexpected GitHub API response for {endpoint}")
            items.extend(batch)
            if len(batch) < PER_PAGE:
                return items
            page += 1

    def list_org_repos(self, org: str) -> List[RemoteRepo]:
        """
        List all repositories of an organization.

        Args:
            org: Organization login

        Returns:
            List of RemoteRepo (name and archived flag)

        Raises:
            APIError: If the listing cannot be fetched
        """
        endpoint = f"orgs/{org}/repos"
        data = self._list_with_gh(endpoint) if self._use_gh_cli else None
        if data is None:
            data = self._list_with_requests(endpoint)

        return [
            RemoteRepo(name=item.get('name', ''), archived=bool(item.get('archived', False)))
            for item in data
        ]
