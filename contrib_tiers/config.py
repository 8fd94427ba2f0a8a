"""
contrib_tiers/config.py — All tunable parameters for the contributor report.

No tier threshold should ever be hardcoded in a metric module. Every tier
boundary, concentration cut-off and API setting lives here so that a
recalibration is a single-file diff.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TiersConfig:
    """
    Immutable configuration for the contributor tier pipeline.

    Override by constructing a new TiersConfig with the desired values.
    """

    # ── Tier thresholds ───────────────────────────────────────────────────────
    tier_thresholds: tuple[tuple[int, str], ...] = (
        (2000, "core"),
        (500, "frequent"),
        (50, "occasional"),
        (0, "minor"),
    )
    # (min_additions, tier_name) pairs. Evaluated highest-threshold-first.
    # The lowest entry must be 0 so that every contributor lands in a tier.

    # ── Repository / window ──────────────────────────────────────────────────
    default_repo: str = "ComposableSecurity/SCSVS"
    # Used when neither --repo nor GITHUB_REPOSITORY is given.

    default_since_days: int | None = None
    # None = all-time. Otherwise only weeks starting inside the window count.

    # ── Exclusions ────────────────────────────────────────────────────────────
    exclude_bots: bool = True
    # Skip authors whose GitHub account type is 'Bot' (dependabot etc.).

    exclude_authors: tuple[str, ...] = ()
    # Logins skipped regardless of volume. Compared case-insensitively.

    # ── Concentration summary ────────────────────────────────────────────────
    pony_factor_threshold: float = 0.50
    # Single author share of additions that sets pony_factor = 1.

    hhi_moderate: float = 1500.0
    hhi_concentrated: float = 2500.0
    hhi_critical: float = 5000.0
    # HHI tier boundaries: <1500 healthy, <2500 moderate, <5000 concentrated,
    # otherwise critical. HHI = 10,000 means one author wrote every line.

    # ── GitHub API ────────────────────────────────────────────────────────────
    github_api_base: str = "https://api.github.com"
    github_api_version: str = "2022-11-28"
    request_timeout_sec: float = 30.0

    stats_max_retries: int = 5
    # GitHub answers 202 while it computes contributor statistics in the
    # background. Retry this many times before giving up.

    stats_backoff_sec: float = 2.0
    # First wait after a 202; doubled on every further retry.

    # ── Output ────────────────────────────────────────────────────────────────
    default_format: str = "text"
    # One of: text, markdown, json, csv.


# Singleton default — import this everywhere instead of constructing anew.
DEFAULT_CONFIG = TiersConfig()
