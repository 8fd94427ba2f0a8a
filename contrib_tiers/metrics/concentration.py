"""
contrib_tiers/metrics/concentration.py — Pony factor / HHI / Shannon entropy
over authored lines.

Shows how much of the guide was written by a handful of people. If one author
accounts for most of the additions, the document's upkeep depends on them.

Three complementary metrics, all computed on addition shares:
    1. Binary Pony Factor: 1 if any author holds >= pony_factor_threshold of additions.
    2. HHI (Herfindahl-Hirschman Index): sum(share_i^2) × 10,000, range 0–10,000.
    3. Shannon Entropy: -sum(p_i × ln(p_i)). Maximised for a uniform split.

Risk tiers (configurable via TiersConfig):
    HHI < 1,500            → 'healthy'
    1,500 <= HHI < 2,500   → 'moderate'
    2,500 <= HHI < 5,000   → 'concentrated'
    HHI >= 5,000           → 'critical'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from contrib_tiers.config import DEFAULT_CONFIG, TiersConfig

if TYPE_CHECKING:
    from contrib_tiers.metrics.tiers import ContributorRecord

logger = logging.getLogger(__name__)


@dataclass
class ConcentrationSummary:
    """
    Concentration of authored lines across all contributors.

    Fields:
        total_authors:      Number of contributors with additions > 0.
        total_additions:    Sum of additions across all contributors.
        top_author:         Author with the most additions (ties → identifier order).
        top_author_share:   top_author's fraction of all additions (0.0–1.0).
        pony_factor:        1 if top_author_share >= threshold, else 0.
        hhi:                Herfindahl-Hirschman Index (0–10,000).
        shannon_entropy:    Entropy of the addition share distribution.
        risk_tier:          'healthy' | 'moderate' | 'concentrated' | 'critical'
    """
    total_authors: int
    total_additions: int
    top_author: str
    top_author_share: float
    pony_factor: int
    hhi: float
    shannon_entropy: float
    risk_tier: str


def _risk_tier(hhi: float, config: TiersConfig) -> str:
    if hhi < config.hhi_moderate:
        return "healthy"
    if hhi < config.hhi_concentrated:
        return "moderate"
    if hhi < config.hhi_critical:
        return "concentrated"
    return "critical"


def compute_concentration(
    contributors: Sequence["ContributorRecord"],
    config: TiersConfig = DEFAULT_CONFIG,
) -> Optional[ConcentrationSummary]:
    """
    Summarise addition concentration for a set of aggregated contributors.

    Args:
        contributors: Aggregated ContributorRecords (additions already summed).
        config:       TiersConfig. Uses pony_factor_threshold and the hhi_* bounds.

    Returns:
        ConcentrationSummary, or None when nobody added a line.
    """
    active = [c for c in contributors if c.additions > 0]
    if not active:
        return None

    active = sorted(active, key=lambda c: (-c.additions, c.author))
    additions = np.array([c.additions for c in active], dtype=float)
    total = float(additions.sum())
    shares = additions / total

    top_share = float(shares[0])
    hhi = float(np.sum(shares ** 2) * 10_000)
    entropy = float(-np.sum(shares * np.log(shares)))

    summary = ConcentrationSummary(
        total_authors=len(active),
        total_additions=int(total),
        top_author=active[0].author,
        top_author_share=round(top_share, 3),
        pony_factor=1 if top_share >= config.pony_factor_threshold else 0,
        hhi=round(hhi, 1),
        shannon_entropy=round(abs(entropy), 3),
        risk_tier=_risk_tier(hhi, config),
    )
    logger.debug(
        "Concentration: %d authors, HHI %.1f (%s), top %s at %.1f%%",
        summary.total_authors,
        summary.hhi,
        summary.risk_tier,
        summary.top_author,
        summary.top_author_share * 100,
    )
    return summary
