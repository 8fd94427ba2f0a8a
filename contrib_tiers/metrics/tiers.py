"""
contrib_tiers/metrics/tiers.py — Contributor aggregation and tier classification.

Sums additions per author across every ContributionRecord, then buckets the
authors into named tiers using an ordered list of (min_additions, tier_name)
pairs evaluated highest-threshold-first.

Boundary semantics:
    A threshold is a minimum and is inclusive. With thresholds
    core >= 100, frequent >= 50, occasional >= 0, an author with exactly
    50 additions lands in 'frequent', never 'occasional'.

Ordering:
    Tiers appear in descending threshold order; tiers with no members are
    omitted. Within a tier authors are ordered by total additions (descending)
    or by name, and every remaining tie is broken lexicographically on the
    author identifier, so the output is fully deterministic.

Exclusions:
    Authors whose summed additions are zero never appear in the report.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from contrib_tiers.config import DEFAULT_CONFIG, TiersConfig
from contrib_tiers.ingestion.contribution_source import ContributionRecord
from contrib_tiers.metrics.concentration import ConcentrationSummary

logger = logging.getLogger(__name__)

SORT_KEYS = ("additions", "name")


@dataclass
class ContributorRecord:
    """
    Per-author totals after aggregation.

    Fields:
        author:     Author identifier (GitHub login).
        additions:  Total lines added in the window, summed over all sources.
        deletions:  Total lines removed in the window.
        tier:       Tier name, or None until classify_contributors() assigns it.
    """
    author: str
    additions: int
    deletions: int
    tier: Optional[str] = None


@dataclass
class TierReport:
    """
    Result of a classification run.

    Fields:
        tiers:          Ordered mapping tier name → ordered author identifiers.
                        Empty when there were no contributors.
        contributors:   Every classified ContributorRecord, in report order.
        concentration:  Optional concentration summary, attached by the aggregator.
        sources:        Names of the sources the records came from.
    """
    tiers: dict[str, list[str]]
    contributors: list[ContributorRecord] = field(default_factory=list)
    concentration: Optional[ConcentrationSummary] = None
    sources: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.tiers


class TierThresholds:
    """Validated, ordered tier thresholds.

    Args:
        pairs: Iterable of (min_additions, tier_name). Any order; stored
               highest-threshold-first.

    Raises:
        ValueError: on an empty list, a negative or non-integer minimum,
            a duplicate minimum or name, or when no tier starts at 0.
    """

    def __init__(self, pairs: Iterable[tuple[int, str]]) -> None:
        pairs = [(m, n) for m, n in pairs]
        if not pairs:
            raise ValueError("At least one tier threshold is required")

        for minimum, name in pairs:
            if isinstance(minimum, bool) or not isinstance(minimum, int):
                raise ValueError(f"Threshold for tier {name!r} must be an int, got {minimum!r}")
            if minimum < 0:
                raise ValueError(f"Threshold for tier {name!r} must be >= 0, got {minimum}")
            if not name:
                raise ValueError("Tier names must be non-empty")

        minimums = [m for m, _ in pairs]
        names = [n for _, n in pairs]
        if len(set(minimums)) != len(minimums):
            raise ValueError(f"Duplicate tier thresholds: {sorted(minimums)}")
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate tier names: {names}")
        if 0 not in minimums:
            raise ValueError("The lowest tier threshold must be 0")

        self._pairs: tuple[tuple[int, str], ...] = tuple(
            sorted(pairs, key=lambda p: p[0], reverse=True)
        )

    @classmethod
    def from_config(cls, config: TiersConfig = DEFAULT_CONFIG) -> "TierThresholds":
        return cls(config.tier_thresholds)

    @property
    def pairs(self) -> tuple[tuple[int, str], ...]:
        return self._pairs

    @property
    def names(self) -> list[str]:
        return [name for _, name in self._pairs]

    def tier_for(self, additions: int) -> str:
        """Name of the highest tier whose minimum is <= additions."""
        for minimum, name in self._pairs:
            if additions >= minimum:
                return name
        # Unreachable for additions >= 0: the last pair has minimum 0.
        raise ValueError(f"No tier accepts {additions} additions")

    def __repr__(self) -> str:
        body = ", ".join(f"{n}>={m}" for m, n in self._pairs)
        return f"TierThresholds({body})"


def aggregate_contributions(records: Iterable[ContributionRecord]) -> list[ContributorRecord]:
    """
    Sum additions and deletions per unique author.

    GitHub logins are case-insensitive, so 'Alice' and 'alice' are one author;
    the first spelling seen is kept for display. Authors whose total additions
    are zero are dropped. The returned list is ordered by author identifier;
    tier is left unset.
    """
    totals: dict[str, ContributorRecord] = {}
    for record in records:
        key = record.author.casefold()
        entry = totals.get(key)
        if entry is None:
            entry = totals[key] = ContributorRecord(record.author, 0, 0)
        entry.additions += record.additions
        entry.deletions += record.deletions

    merged = list(totals.values())
    dropped = [c.author for c in merged if c.additions <= 0]
    if dropped:
        logger.debug("Excluding %d authors with no additions: %s", len(dropped), sorted(dropped))

    return sorted((c for c in merged if c.additions > 0), key=lambda c: c.author)


def _sort_key(sort_by: str):
    if sort_by == "additions":
        return lambda c: (-c.additions, c.author)
    if sort_by == "name":
        return lambda c: (c.author.casefold(), c.author)
    raise ValueError(f"sort_by must be one of {SORT_KEYS}, got {sort_by!r}")


def classify_contributors(
    records: Iterable[ContributionRecord],
    thresholds: Optional[TierThresholds] = None,
    sort_by: str = "additions",
) -> TierReport:
    """
    Aggregate records per author and assign every author to exactly one tier.

    Args:
        records:    ContributionRecords from one or more sources.
        thresholds: TierThresholds. Defaults to DEFAULT_CONFIG.tier_thresholds.
        sort_by:    'additions' (descending volume) or 'name'. Ties always
                    fall back to the author identifier.

    Returns:
        TierReport. An empty record set, or one where nobody added a line,
        yields an empty mapping rather than an error.

    Example:
        >>> t = TierThresholds([(100, "core"), (10, "frequent"), (0, "occasional")])
        >>> recs = [ContributionRecord("A", 120, 0), ContributionRecord("B", 45, 0),
        ...         ContributionRecord("C", 9, 0)]
        >>> classify_contributors(recs, t).tiers
        {'core': ['A'], 'frequent': ['B'], 'occasional': ['C']}
    """
    if thresholds is None:
        thresholds = TierThresholds.from_config()
    key = _sort_key(sort_by)

    contributors = aggregate_contributions(records)
    buckets: dict[str, list[ContributorRecord]] = {name: [] for name in thresholds.names}
    for contributor in contributors:
        contributor.tier = thresholds.tier_for(contributor.additions)
        buckets[contributor.tier].append(contributor)

    tiers: dict[str, list[str]] = {}
    ordered: list[ContributorRecord] = []
    for name in thresholds.names:
        members = sorted(buckets[name], key=key)
        if not members:
            continue
        tiers[name] = [c.author for c in members]
        ordered.extend(members)

    logger.debug(
        "Classified %d contributors into %d tiers: %s",
        len(ordered),
        len(tiers),
        {name: len(authors) for name, authors in tiers.items()},
    )
    return TierReport(tiers=tiers, contributors=ordered)
