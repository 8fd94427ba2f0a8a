"""
contrib_tiers/tests/conftest.py — Shared pytest fixtures.

Fixtures:
    example_records  — The canonical (A,120), (B,45), (C,9) record set.
    small_thresholds — core>=100, frequent>=10, occasional>=0.
    fake_github      — Replaces urllib.request.urlopen with a scripted queue
                       of responses; records every request made.
    github_token     — GitHub PAT from GITHUB_TOKEN env var (or None).
"""

import json
import os
import urllib.error
import urllib.request

import pytest

from contrib_tiers.ingestion.contribution_source import ContributionRecord
from contrib_tiers.metrics.tiers import TierThresholds


# ── Pytest configuration hooks ────────────────────────────────────────────────

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests that call the real GitHub API (deselected by default, "
        "pass --run-integration or -m integration to enable)",
    )


def pytest_addoption(parser):
    """Add --run-integration CLI flag to enable integration tests."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests that call the real GitHub API.",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is passed or -m integration is used."""
    markexpr = config.getoption("-m", default="")
    if "integration" in markexpr:
        return

    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(
        reason="Integration test -- pass --run-integration or -m integration to run"
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ── Data fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture
def example_records() -> list[ContributionRecord]:
    return [
        ContributionRecord("A", 120, 4),
        ContributionRecord("B", 45, 10),
        ContributionRecord("C", 9, 0),
    ]


@pytest.fixture
def small_thresholds() -> TierThresholds:
    return TierThresholds([(100, "core"), (10, "frequent"), (0, "occasional")])


# ── Fake HTTP layer ───────────────────────────────────────────────────────────

class FakeResponse:
    """Minimal stand-in for the object urlopen() returns."""

    def __init__(self, status: int = 200, body: bytes = b"") -> None:
        self.status = status
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


class FakeGitHub:
    """Scripted urlopen replacement.

    Queue responses with add_json(), add_status() or add_error(); each call
    to urlopen pops the next one. Requests are kept in self.requests, back-off
    waits in self.sleeps.
    """

    def __init__(self) -> None:
        self._queue: list = []
        self.requests: list[urllib.request.Request] = []
        self.sleeps: list[float] = []

    def add_json(self, payload, status: int = 200) -> "FakeGitHub":
        self._queue.append(FakeResponse(status, json.dumps(payload).encode("utf-8")))
        return self

    def add_status(self, status: int, body: bytes = b"") -> "FakeGitHub":
        self._queue.append(FakeResponse(status, body))
        return self

    def add_error(self, exc: Exception) -> "FakeGitHub":
        self._queue.append(exc)
        return self

    def add_http_error(self, code: int, reason: str = "error") -> "FakeGitHub":
        return self.add_error(
            urllib.error.HTTPError("https://api.github.com", code, reason, None, None)
        )

    def __call__(self, req, timeout=None):
        self.requests.append(req)
        if not self._queue:
            raise AssertionError(f"Unexpected request: {req.full_url}")
        item = self._queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def fake_github(monkeypatch) -> FakeGitHub:
    fake = FakeGitHub()
    monkeypatch.setattr(urllib.request, "urlopen", fake)
    monkeypatch.setattr("contrib_tiers.ingestion.github_stats_client.time.sleep", fake.sleeps.append)
    return fake


@pytest.fixture(scope="session")
def github_token():
    """GitHub PAT from environment, or None if not set."""
    return os.environ.get("GITHUB_TOKEN")
