"""
contrib_tiers/cli.py — Command-line interface for the contributor tier report.

Provides a single entry point that:
  1. Loads GITHUB_TOKEN from a .env file automatically
  2. Fetches per-author contribution statistics from GitHub (or a JSON dump)
  3. Classifies contributors into tiers
  4. Prints or saves the listing (text, Markdown, JSON or CSV)

Usage:
    contrib-tiers                                  # default repo, text listing
    contrib-tiers --repo OWASP/owasp-mastg --format markdown
    contrib-tiers --since-days 365 --format json --output contributors.json
    contrib-tiers --from-json records.json         # offline replay
    python -m contrib_tiers ...

Exit status: 0 on success (an empty listing included), 1 when contribution
data could not be fetched, 2 on invalid arguments or configuration.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from contrib_tiers.config import DEFAULT_CONFIG, TiersConfig
from contrib_tiers.ingestion.contribution_source import FetchError


# ── .env loader (stdlib only — no python-dotenv required) ────────────────────

def _load_dotenv(env_file: str | None = None) -> dict[str, str]:
    """Load key=value pairs from a .env file into the environment.

    Reads a dotenv-style file, strips comments and blank lines, and injects
    any KEY=VALUE pairs into os.environ (existing values are NOT overwritten).
    Returns the dict of values that were newly loaded.

    Args:
        env_file: Explicit path. If None, searches for .env starting from the
                  current working directory up to the filesystem root.
    """
    if env_file is None:
        start = Path.cwd()
        for directory in [start, *start.parents]:
            candidate = directory / ".env"
            if candidate.is_file():
                env_file = str(candidate)
                break

    if not env_file or not Path(env_file).is_file():
        return {}

    loaded: dict[str, str] = {}
    with open(env_file, encoding="utf-8") as fh:
        for raw_line in fh:
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            if key.startswith("export "):
                key = key[len("export "):].strip()
            value = value.strip()
            # Strip surrounding quotes if present
            if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
                value = value[1:-1]
            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


# ── Logging setup ─────────────────────────────────────────────────────────────

def _setup_logging(level: str = "INFO") -> None:
    """Configure root logger. Logs go to stderr; the report goes to stdout."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    fmt = "%(asctime)s  %(levelname)-8s  %(name)s — %(message)s"
    datefmt = "%H:%M:%S"
    logging.basicConfig(level=numeric, format=fmt, datefmt=datefmt, stream=sys.stderr)


logger = logging.getLogger("contrib_tiers.cli")


# ── Argument helpers ──────────────────────────────────────────────────────────

def _parse_tier(value: str) -> tuple[int, str]:
    """argparse type for --tier NAME=MIN."""
    name, sep, minimum = value.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=MIN, got {value!r}")
    try:
        return int(minimum), name.strip()
    except ValueError:
        raise argparse.ArgumentTypeError(f"tier minimum must be an integer, got {minimum!r}")


def _resolve_repos(args: argparse.Namespace, config: TiersConfig) -> list[str]:
    if args.repo:
        return list(args.repo)
    env_repo = os.environ.get("GITHUB_REPOSITORY")
    if env_repo:
        return [env_repo]
    return [config.default_repo]


def _build_sources(args: argparse.Namespace, config: TiersConfig) -> list:
    from contrib_tiers.ingestion.contribution_source import StaticContributionSource
    from contrib_tiers.ingestion.github_stats_client import GitHubContributionSource

    if args.from_json:
        return [StaticContributionSource.from_json(path) for path in args.from_json]

    token = args.token or os.environ.get("GITHUB_TOKEN")
    if not token:
        logger.warning(
            "GITHUB_TOKEN not set. Unauthenticated GitHub rate limit is 60 req/hr. "
            "Set it in .env or pass --token."
        )

    return [
        GitHubContributionSource(repo, token=token, since_days=args.since_days, config=config)
        for repo in _resolve_repos(args, config)
    ]


# ── Main command ──────────────────────────────────────────────────────────────

def cmd_report(args: argparse.Namespace) -> int:
    """Fetch → classify → render."""
    _load_dotenv(args.env_file)
    _setup_logging(args.log_level)

    from contrib_tiers.aggregator import build_report, fetch_all
    from contrib_tiers.ingestion.contribution_source import dump_records
    from contrib_tiers.metrics.tiers import TierThresholds
    from contrib_tiers.reports.contributor_report import render_report, write_report

    config = DEFAULT_CONFIG
    if args.tier:
        config = replace(config, tier_thresholds=tuple(args.tier))
    if args.exclude:
        config = replace(config, exclude_authors=config.exclude_authors + tuple(args.exclude))
    if args.include_bots:
        config = replace(config, exclude_bots=False)

    try:
        thresholds = TierThresholds.from_config(config)
        sources = _build_sources(args, config)
    except FetchError as exc:
        logger.error("Fetch failed — %s", exc)
        return 1
    except ValueError as exc:
        logger.error("Invalid configuration — %s", exc)
        return 2

    logger.info("Tier thresholds: %r", thresholds)

    try:
        fetched = fetch_all(sources)
    except FetchError as exc:
        logger.error("Fetch failed — %s", exc)
        return 1

    if args.dump_json:
        try:
            dump_records(fetched.records, args.dump_json)
        except OSError as exc:
            logger.error("Cannot write %s — %s", args.dump_json, exc)
            return 1

    report = build_report(fetched, thresholds, sort_by=args.sort, config=config)
    content = render_report(report, args.format, include_table=args.markdown_table)

    if args.output:
        try:
            write_report(content, args.output)
        except OSError as exc:
            logger.error("Cannot write %s — %s", args.output, exc)
            return 1
    else:
        sys.stdout.write(content)
    return 0


# ── Parser ────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contrib-tiers",
        description="Group repository contributors into tiers by lines added.",
    )
    parser.add_argument(
        "--repo",
        action="append",
        default=None,
        metavar="OWNER/REPO",
        help=(
            "GitHub repository (owner/repo or URL). Repeat to merge several repos. "
            f"Default: $GITHUB_REPOSITORY, else {DEFAULT_CONFIG.default_repo}"
        ),
    )
    parser.add_argument(
        "--since-days",
        type=int,
        default=DEFAULT_CONFIG.default_since_days,
        metavar="N",
        help="Only count weeks starting in the last N days (default: all-time)",
    )
    parser.add_argument(
        "--format",
        default=DEFAULT_CONFIG.default_format,
        choices=["text", "markdown", "json", "csv"],
        help="Output format (default: %(default)s)",
    )
    parser.add_argument(
        "--markdown-table",
        action="store_true",
        help="Append a per-author additions table to Markdown output",
    )
    parser.add_argument(
        "--sort",
        default="additions",
        choices=["additions", "name"],
        help="Order authors within a tier (default: %(default)s)",
    )
    parser.add_argument(
        "--tier",
        action="append",
        type=_parse_tier,
        default=None,
        metavar="NAME=MIN",
        help="Override tier thresholds, e.g. --tier core=1000 --tier other=0",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="LOGIN",
        help="Exclude an author login (repeatable)",
    )
    parser.add_argument(
        "--include-bots",
        action="store_true",
        help="Keep bot accounts in the listing",
    )
    parser.add_argument(
        "--from-json",
        action="append",
        default=None,
        metavar="PATH",
        help="Read contribution records from a JSON dump instead of GitHub",
    )
    parser.add_argument(
        "--dump-json",
        default=None,
        metavar="PATH",
        help="Save the fetched contribution records for later --from-json replay",
    )
    parser.add_argument(
        "--output",
        default=None,
        metavar="PATH",
        help="Write the report to PATH instead of stdout",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        metavar="PATH",
        help="Path to .env file (default: auto-detect .env from the working directory)",
    )
    parser.add_argument(
        "--token",
        default=None,
        metavar="GITHUB_TOKEN",
        help="GitHub personal access token (overrides .env and environment)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: %(default)s)",
    )
    parser.set_defaults(func=cmd_report)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.since_days is not None and args.since_days < 0:
        parser.error("--since-days must be >= 0")
    if args.since_days is not None and args.from_json:
        parser.error("--since-days cannot be applied to --from-json dumps")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
