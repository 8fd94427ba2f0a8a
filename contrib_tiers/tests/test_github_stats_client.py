"""
Unit tests for contrib_tiers.ingestion.github_stats_client.

All tests are fully offline — urllib.request.urlopen is replaced by the
fake_github fixture. Tests cover repo identifier parsing, request headers,
202 retry behaviour, error translation to FetchError, window filtering and
author exclusion.
"""
import urllib.error
from datetime import datetime, timedelta, timezone

import pytest

from contrib_tiers.config import TiersConfig
from contrib_tiers.ingestion.contribution_source import (
    ContributionRecord,
    ContributionSource,
    FetchError,
)
from contrib_tiers.ingestion.github_stats_client import (
    GitHubContributionSource,
    parse_repo_identifier,
)

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


def week(days_ago: int) -> int:
    return int((NOW - timedelta(days=days_ago)).timestamp())


def entry(login, weeks, account_type="User"):
    """One /stats/contributors entry. weeks = [(week_start_ts, additions, deletions), ...]."""
    return {
        "author": {"login": login, "type": account_type},
        "total": len(weeks),
        "weeks": [{"w": w, "a": a, "d": d, "c": 1} for w, a, d in weeks],
    }


# ---------------------------------------------------------------------------
# parse_repo_identifier
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [
        ("OWASP/owasp-mastg", "OWASP/owasp-mastg"),
        ("https://github.com/OWASP/owasp-mastg", "OWASP/owasp-mastg"),
        ("http://github.com/OWASP/owasp-mastg/", "OWASP/owasp-mastg"),
        ("https://github.com/OWASP/owasp-mastg.git", "OWASP/owasp-mastg"),
        ("  OWASP/owasp-mastg  ", "OWASP/owasp-mastg"),
    ],
)
def test_parse_repo_identifier_valid(value, expected):
    assert parse_repo_identifier(value) == expected


@pytest.mark.parametrize(
    "value",
    [
        "",
        None,
        "OWASP",
        "https://gitlab.com/OWASP/owasp-mastg",
        "https://github.com/OWASP",
        "https://github.com/OWASP/owasp-mastg/tree/master",
        "a/b/c",
    ],
)
def test_parse_repo_identifier_invalid(value):
    assert parse_repo_identifier(value) is None


def test_invalid_repo_raises_value_error():
    with pytest.raises(ValueError, match="Not a GitHub repository"):
        GitHubContributionSource("https://example.com/foo/bar")


def test_negative_window_rejected():
    with pytest.raises(ValueError, match="since_days"):
        GitHubContributionSource("a/b", since_days=-1)


def test_satisfies_contribution_source_protocol():
    assert isinstance(GitHubContributionSource("a/b"), ContributionSource)


# ---------------------------------------------------------------------------
# Successful fetches
# ---------------------------------------------------------------------------


def test_fetch_sums_weeks_per_author(fake_github):
    fake_github.add_json([
        entry("alice", [(week(400), 100, 5), (week(10), 20, 1)]),
        entry("bob", [(week(3), 7, 2)]),
    ])
    records = GitHubContributionSource("org/repo", now=NOW).fetch_contributions()
    assert records == [
        ContributionRecord("alice", 120, 6),
        ContributionRecord("bob", 7, 2),
    ]


def test_request_url_and_headers(fake_github):
    fake_github.add_json([])
    GitHubContributionSource("org/repo", token="tkn").fetch_contributions()

    req = fake_github.requests[0]
    assert req.full_url == "https://api.github.com/repos/org/repo/stats/contributors"
    assert req.get_header("Authorization") == "Bearer tkn"
    assert req.get_header("Accept") == "application/vnd.github+json"


def test_no_token_sends_no_authorization(fake_github):
    fake_github.add_json([])
    GitHubContributionSource("org/repo").fetch_contributions()
    assert fake_github.requests[0].get_header("Authorization") is None


def test_custom_api_base(fake_github):
    fake_github.add_json([])
    cfg = TiersConfig(github_api_base="https://ghe.example.com/api/v3")
    GitHubContributionSource("org/repo", config=cfg).fetch_contributions()
    assert fake_github.requests[0].full_url.startswith("https://ghe.example.com/api/v3/repos/")


def test_empty_repository_204_returns_empty(fake_github):
    fake_github.add_status(204)
    assert GitHubContributionSource("org/repo").fetch_contributions() == []


def test_window_filters_old_weeks(fake_github):
    fake_github.add_json([
        entry("alice", [(week(60), 1000, 50), (week(5), 30, 3)]),
        entry("old-timer", [(week(200), 900, 0)]),
    ])
    records = GitHubContributionSource(
        "org/repo", since_days=30, now=NOW
    ).fetch_contributions()
    by_author = {r.author: r for r in records}
    assert by_author["alice"] == ContributionRecord("alice", 30, 3)
    assert by_author["old-timer"].additions == 0


def test_window_start_is_inclusive(fake_github):
    fake_github.add_json([entry("edge", [(week(30), 11, 0)])])
    records = GitHubContributionSource(
        "org/repo", since_days=30, now=NOW
    ).fetch_contributions()
    assert records[0].additions == 11


def test_all_time_when_no_window(fake_github):
    fake_github.add_json([entry("alice", [(0, 5, 0), (week(1), 5, 0)])])
    records = GitHubContributionSource("org/repo", now=NOW).fetch_contributions()
    assert records[0].additions == 10


def test_null_author_skipped(fake_github):
    fake_github.add_json([
        {"author": None, "total": 1, "weeks": [{"w": 0, "a": 99, "d": 0, "c": 1}]},
        entry("alice", [(0, 1, 0)]),
    ])
    records = GitHubContributionSource("org/repo").fetch_contributions()
    assert [r.author for r in records] == ["alice"]


def test_bots_excluded_by_default(fake_github):
    fake_github.add_json([
        entry("dependabot[bot]", [(0, 5000, 0)], account_type="Bot"),
        entry("alice", [(0, 1, 0)]),
    ])
    records = GitHubContributionSource("org/repo").fetch_contributions()
    assert [r.author for r in records] == ["alice"]


def test_bots_kept_when_configured(fake_github):
    fake_github.add_json([entry("dependabot[bot]", [(0, 5, 0)], account_type="Bot")])
    cfg = TiersConfig(exclude_bots=False)
    records = GitHubContributionSource("org/repo", config=cfg).fetch_contributions()
    assert [r.author for r in records] == ["dependabot[bot]"]


def test_excluded_authors_case_insensitive(fake_github):
    fake_github.add_json([entry("Alice", [(0, 5, 0)]), entry("bob", [(0, 5, 0)])])
    cfg = TiersConfig(exclude_authors=("alice",))
    records = GitHubContributionSource("org/repo", config=cfg).fetch_contributions()
    assert [r.author for r in records] == ["bob"]


# ---------------------------------------------------------------------------
# 202 Accepted — statistics still being computed
# ---------------------------------------------------------------------------


def test_202_then_success(fake_github):
    fake_github.add_status(202).add_status(202).add_json([entry("alice", [(0, 3, 0)])])
    cfg = TiersConfig(stats_backoff_sec=1.0)
    records = GitHubContributionSource("org/repo", config=cfg).fetch_contributions()
    assert records == [ContributionRecord("alice", 3, 0)]
    assert fake_github.sleeps == [1.0, 2.0]
    assert len(fake_github.requests) == 3


def test_202_exhausts_retries(fake_github):
    cfg = TiersConfig(stats_max_retries=2, stats_backoff_sec=0.5)
    for _ in range(3):
        fake_github.add_status(202)
    with pytest.raises(FetchError, match="still being computed"):
        GitHubContributionSource("org/repo", config=cfg).fetch_contributions()
    assert fake_github.sleeps == [0.5, 1.0]
    assert len(fake_github.requests) == 3


# ---------------------------------------------------------------------------
# Failures → FetchError
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "code, message",
    [(401, "unauthorized"), (403, "unauthorized"), (404, "not found"), (500, "HTTP 500")],
)
def test_http_errors_raise_fetch_error(fake_github, code, message):
    fake_github.add_http_error(code)
    with pytest.raises(FetchError, match=message) as excinfo:
        GitHubContributionSource("org/repo").fetch_contributions()
    assert excinfo.value.source == "org/repo"
    assert isinstance(excinfo.value.__cause__, urllib.error.HTTPError)


def test_network_error_raises_fetch_error(fake_github):
    fake_github.add_error(urllib.error.URLError("connection refused"))
    with pytest.raises(FetchError, match="network error"):
        GitHubContributionSource("org/repo").fetch_contributions()


def test_timeout_raises_fetch_error(fake_github):
    fake_github.add_error(TimeoutError("timed out"))
    with pytest.raises(FetchError, match="network error"):
        GitHubContributionSource("org/repo").fetch_contributions()


def test_invalid_json_raises_fetch_error(fake_github):
    fake_github.add_status(200, b"<html>not json</html>")
    with pytest.raises(FetchError, match="undecodable"):
        GitHubContributionSource("org/repo").fetch_contributions()


def test_non_list_payload_raises_fetch_error(fake_github):
    fake_github.add_json({"message": "weird"})
    with pytest.raises(FetchError, match="unexpected response type"):
        GitHubContributionSource("org/repo").fetch_contributions()


@pytest.mark.parametrize(
    "payload",
    [
        ["not-a-dict"],
        [{"author": {"login": "a"}}],
        [{"author": {"login": "a"}, "weeks": [{"a": 1}]}],
        [{"author": {"login": "a"}, "weeks": [{"w": 0, "a": "lots"}]}],
        [{"author": {"type": "User"}, "weeks": []}],
    ],
)
def test_malformed_entries_raise_fetch_error(fake_github, payload):
    fake_github.add_json(payload)
    with pytest.raises(FetchError):
        GitHubContributionSource("org/repo").fetch_contributions()


# ---------------------------------------------------------------------------
# Large repositories without line counts
# ---------------------------------------------------------------------------


def test_commits_without_line_counts_warns(fake_github, caplog):
    fake_github.add_json([
        {"author": {"login": "alice", "type": "User"},
         "weeks": [{"w": 0, "a": 0, "d": 0, "c": 40}]},
        {"author": {"login": "bob", "type": "User"},
         "weeks": [{"w": 0, "a": 0, "d": 0, "c": 2}]},
    ])
    with caplog.at_level("WARNING", logger="contrib_tiers.ingestion.github_stats_client"):
        records = GitHubContributionSource("big/repo").fetch_contributions()
    assert all(r.additions == 0 for r in records)
    assert "42 commits but no line counts" in caplog.text


def test_no_warning_when_line_counts_present(fake_github, caplog):
    fake_github.add_json([
        {"author": {"login": "alice", "type": "User"},
         "weeks": [{"w": 0, "a": 3, "d": 0, "c": 1}, {"w": 1, "a": 0, "d": 0, "c": 5}]},
    ])
    with caplog.at_level("WARNING", logger="contrib_tiers.ingestion.github_stats_client"):
        GitHubContributionSource("org/repo").fetch_contributions()
    assert "no line counts" not in caplog.text
