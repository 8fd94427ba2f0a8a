"""
GitHub contributor statistics client.

Reads per-author additions/deletions from the GitHub REST endpoint
GET /repos/{owner}/{repo}/stats/contributors. The endpoint returns one entry
per author with a list of weekly buckets:

    {"author": {"login": "alice", "type": "User"},
     "total": 42,
     "weeks": [{"w": 1700956800, "a": 120, "d": 8, "c": 3}, ...]}

GitHub computes these statistics lazily. The first request for a repository
returns 202 Accepted with an empty body; the client sleeps and retries with
exponential back-off until the data is ready or the retry budget runs out.

Uses only Python stdlib (urllib.request).
"""
import json
import logging
import re
import time
import urllib.error
import urllib.request
from datetime import datetime, timedelta, timezone
from typing import Optional

from contrib_tiers.config import DEFAULT_CONFIG, TiersConfig
from contrib_tiers.ingestion.contribution_source import ContributionRecord, FetchError

logger = logging.getLogger(__name__)

_OWNER_REPO = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def parse_repo_identifier(value: str) -> Optional[str]:
    """Normalise a repository identifier to 'owner/repo'.

    Accepts a bare 'owner/repo' or a GitHub URL. Handles http/https, trailing
    slashes, and .git suffixes. Returns None if the value is neither.

    Examples:
        >>> parse_repo_identifier("https://github.com/OWASP/owasp-mastg.git")
        'OWASP/owasp-mastg'
        >>> parse_repo_identifier("OWASP/owasp-mastg")
        'OWASP/owasp-mastg'
        >>> parse_repo_identifier("https://gitlab.com/foo/bar")
    """
    if not value:
        return None
    value = value.strip().rstrip("/")
    if value.endswith(".git"):
        value = value[:-4]
    match = re.match(r"^https?://github\.com/([^/]+/[^/]+)$", value, re.IGNORECASE)
    if match:
        return match.group(1)
    if _OWNER_REPO.match(value):
        return value
    return None


class GitHubContributionSource:
    """ContributionSource backed by the GitHub contributor statistics API.

    Args:
        repo:       'owner/repo' or a GitHub URL.
        token:      Optional GitHub PAT. Without one the API allows 60 req/hr.
        since_days: Activity window. None = all-time.
        config:     TiersConfig. Uses the github_* / stats_* / exclude_* fields.
        now:        Reference time for the window. Defaults to the current UTC time.

    Raises:
        ValueError: if repo is not a recognisable GitHub repository.
    """

    def __init__(
        self,
        repo: str,
        token: Optional[str] = None,
        since_days: Optional[int] = None,
        config: TiersConfig = DEFAULT_CONFIG,
        now: Optional[datetime] = None,
    ) -> None:
        github_path = parse_repo_identifier(repo)
        if github_path is None:
            raise ValueError(f"Not a GitHub repository: {repo!r}")
        if since_days is not None and since_days < 0:
            raise ValueError(f"since_days must be >= 0, got {since_days}")
        self.repo = github_path
        self.token = token
        self.since_days = since_days
        self.config = config
        self._now = now

    @property
    def name(self) -> str:
        return self.repo

    def _window_start(self) -> Optional[int]:
        """Unix timestamp of the earliest week start that counts, or None."""
        if self.since_days is None:
            return None
        now = self._now or datetime.now(tz=timezone.utc)
        return int((now - timedelta(days=self.since_days)).timestamp())

    def _request(self, path: str) -> Optional[list]:
        """GET a GitHub API path, waiting out 202 responses.

        Returns the decoded JSON body, or None for 204 No Content.
        Every other failure raises FetchError.
        """
        url = f"{self.config.github_api_base}{path}"
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self.config.github_api_version,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        backoff = self.config.stats_backoff_sec
        for attempt in range(self.config.stats_max_retries + 1):
            try:
                req = urllib.request.Request(url, headers=headers)
                with urllib.request.urlopen(req, timeout=self.config.request_timeout_sec) as resp:
                    status = resp.status
                    body = resp.read()
            except urllib.error.HTTPError as exc:
                if exc.code in (401, 403):
                    raise FetchError(
                        self.repo, f"rate limited or unauthorized (HTTP {exc.code})"
                    ) from exc
                if exc.code == 404:
                    raise FetchError(self.repo, "repository not found (HTTP 404)") from exc
                raise FetchError(self.repo, f"HTTP {exc.code}: {exc.reason}") from exc
            except urllib.error.URLError as exc:
                raise FetchError(self.repo, f"network error: {exc.reason}") from exc
            except OSError as exc:
                raise FetchError(self.repo, f"network error: {exc}") from exc

            if status == 204:
                return None
            if status == 202:
                if attempt < self.config.stats_max_retries:
                    wait = backoff * (2 ** attempt)
                    logger.warning(
                        "Statistics for %s are being computed (202) — sleeping %.1fs "
                        "before retry %d/%d",
                        self.repo, wait, attempt + 1, self.config.stats_max_retries,
                    )
                    time.sleep(wait)
                    continue
                break

            try:
                return json.loads(body)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise FetchError(self.repo, f"undecodable response body ({exc})") from exc

        raise FetchError(
            self.repo,
            f"statistics still being computed after {self.config.stats_max_retries} retries",
        )

    def _is_excluded(self, author: dict) -> bool:
        login = author.get("login", "")
        if self.config.exclude_bots and author.get("type") == "Bot":
            logger.debug("Skipping bot account %s in %s", login, self.repo)
            return True
        excluded = {a.casefold() for a in self.config.exclude_authors}
        if login.casefold() in excluded:
            logger.debug("Skipping excluded author %s in %s", login, self.repo)
            return True
        return False

    def fetch_contributions(self) -> list[ContributionRecord]:
        """Return one ContributionRecord per author visible to the caller's credentials.

        Raises:
            FetchError: the API was unreachable, refused the request, or
                returned a payload that is not a list of contributor entries.
        """
        data = self._request(f"/repos/{self.repo}/stats/contributors")
        if data is None:
            logger.info("Repository %s has no commits", self.repo)
            return []
        if not isinstance(data, list):
            raise FetchError(self.repo, f"unexpected response type {type(data).__name__}")

        window_start = self._window_start()
        records: list[ContributionRecord] = []
        commits = 0

        for entry in data:
            if not isinstance(entry, dict) or not isinstance(entry.get("weeks"), list):
                raise FetchError(self.repo, f"malformed contributor entry: {entry!r}")

            author = entry.get("author")
            if not author:
                # Deleted accounts come back as null authors.
                logger.debug("Skipping contributor entry with no author in %s", self.repo)
                continue
            if not isinstance(author, dict) or not author.get("login"):
                raise FetchError(self.repo, f"malformed author: {author!r}")
            if self._is_excluded(author):
                continue

            additions = 0
            deletions = 0
            try:
                for week in entry["weeks"]:
                    week_start = int(week["w"])
                    if window_start is not None and week_start < window_start:
                        continue
                    additions += int(week.get("a", 0))
                    deletions += int(week.get("d", 0))
                    commits += int(week.get("c", 0))
            except (KeyError, TypeError, ValueError) as exc:
                raise FetchError(
                    self.repo, f"malformed weekly data for {author['login']}"
                ) from exc

            records.append(
                ContributionRecord(
                    author=author["login"],
                    additions=additions,
                    deletions=deletions,
                )
            )

        if commits > 0 and not any(r.additions for r in records):
            # GitHub reports a=d=0 for every week on repositories with 10,000+ commits.
            logger.warning(
                "%s: %d commits but no line counts; GitHub omits additions for "
                "repositories with 10,000 or more commits, so the report will be empty",
                self.repo, commits,
            )

        logger.info("Fetched %d contributor records from %s", len(records), self.repo)
        return records
