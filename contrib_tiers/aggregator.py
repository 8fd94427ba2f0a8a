"""
contrib_tiers/aggregator.py — Contributor Aggregator.

Fetches contribution records from one or more sources in sequence, classifies
every author into a tier and attaches a concentration summary.

    sources ──fetch──▶ ContributionRecord[] ──classify──▶ TierReport
                                                  └──concentration──┘

Single-threaded, run-to-completion. A FetchError from any source aborts the
run; nothing is retried here and nothing is written anywhere.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from contrib_tiers.config import DEFAULT_CONFIG, TiersConfig
from contrib_tiers.ingestion.contribution_source import ContributionRecord, ContributionSource
from contrib_tiers.metrics.concentration import compute_concentration
from contrib_tiers.metrics.tiers import TierReport, TierThresholds, classify_contributors

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Records gathered from every source, in source order."""

    records: list[ContributionRecord] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)


def _source_name(source: ContributionSource) -> str:
    return getattr(source, "name", type(source).__name__)


def fetch_all(sources: Iterable[ContributionSource]) -> FetchResult:
    """Call fetch_contributions() on each source in turn.

    Raises:
        FetchError: propagated unchanged from the first failing source.
    """
    result = FetchResult()
    for source in sources:
        name = _source_name(source)
        logger.info("Fetching contributions from %s", name)
        records = source.fetch_contributions()
        result.records.extend(records)
        result.sources.append(name)
    return result


def run_aggregation(
    sources: Union[ContributionSource, Iterable[ContributionSource]],
    thresholds: Optional[TierThresholds] = None,
    sort_by: str = "additions",
    config: TiersConfig = DEFAULT_CONFIG,
) -> TierReport:
    """
    Produce the grouped contributor listing for one or more sources.

    Args:
        sources:    A ContributionSource or an iterable of them. Records from
                    several sources are summed per author.
        thresholds: TierThresholds. Defaults to config.tier_thresholds.
        sort_by:    'additions' or 'name' (see classify_contributors).
        config:     TiersConfig.

    Returns:
        TierReport with tiers, contributors, concentration and source names.

    Raises:
        FetchError: if any source is unreachable or returns malformed data.
    """
    if isinstance(sources, ContributionSource):
        sources = [sources]
    if thresholds is None:
        thresholds = TierThresholds.from_config(config)

    fetched = fetch_all(sources)
    return build_report(fetched, thresholds, sort_by=sort_by, config=config)


def drop_excluded(
    records: Iterable[ContributionRecord],
    excluded: Iterable[str],
) -> list[ContributionRecord]:
    """Remove records whose author is in excluded. Compared case-insensitively."""
    names = {e.casefold() for e in excluded}
    return [r for r in records if r.author.casefold() not in names]


def build_report(
    fetched: FetchResult,
    thresholds: TierThresholds,
    sort_by: str = "additions",
    config: TiersConfig = DEFAULT_CONFIG,
) -> TierReport:
    """Classify already-fetched records and attach the concentration summary.

    config.exclude_authors is applied here as well as in the GitHub client,
    so replayed dumps honour it too.
    """
    records = drop_excluded(fetched.records, config.exclude_authors)
    if len(records) != len(fetched.records):
        logger.info("Excluded %d record(s) by author", len(fetched.records) - len(records))

    report = classify_contributors(records, thresholds, sort_by=sort_by)
    report.sources = list(fetched.sources)
    report.concentration = compute_concentration(report.contributors, config)

    logger.info(
        "Classified %d contributors from %d source(s): %s",
        len(report.contributors),
        len(report.sources),
        ", ".join(f"{t}={len(a)}" for t, a in report.tiers.items()) or "none",
    )
    return report
