"""
contrib_tiers/reports/contributor_report.py — Render a TierReport.

Formats:
    text      Plain listing, one heading per tier. Default for terminals.
    markdown  README-ready '## Contributors' section, one '###' per tier.
    json      Machine-readable {tier: [authors]} plus per-author details.
    csv       One row per contributor (author, additions, deletions, tier).
"""

import json
import logging
from dataclasses import asdict

import pandas as pd

from contrib_tiers.metrics.tiers import TierReport

logger = logging.getLogger(__name__)

FORMATS = ("text", "markdown", "json", "csv")
CSV_COLUMNS = ["author", "additions", "deletions", "tier"]


def _tier_title(name: str) -> str:
    return name.replace("_", " ").replace("-", " ").title()


def render_text(report: TierReport) -> str:
    if report.is_empty():
        return "No contributors found.\n"

    by_author = {c.author: c for c in report.contributors}
    lines: list[str] = []
    for tier, authors in report.tiers.items():
        lines.append(f"{tier} ({len(authors)})")
        for author in authors:
            lines.append(f"  {author:<30} {by_author[author].additions:>10,} additions")
        lines.append("")

    conc = report.concentration
    if conc is not None:
        lines.append(
            f"{conc.total_authors} contributors, {conc.total_additions:,} lines added; "
            f"HHI {conc.hhi:.0f} ({conc.risk_tier}), "
            f"top author {conc.top_author} at {conc.top_author_share:.1%}"
        )
    return "\n".join(lines).rstrip("\n") + "\n"


def render_markdown(report: TierReport, include_table: bool = False) -> str:
    """
    Render the README section.

    Structure:
        ## Contributors

        ### Core

        alice, bob

        ### Frequent
        ...

        (optional) | Author | Tier | Additions | Deletions | table
    """
    lines: list[str] = ["## Contributors", ""]

    if report.is_empty():
        lines += ["_No contributors found._", ""]
        return "\n".join(lines)

    for tier, authors in report.tiers.items():
        lines += [f"### {_tier_title(tier)}", "", ", ".join(authors), ""]

    if include_table:
        lines += [
            "| Author | Tier | Additions | Deletions |",
            "|--------|------|-----------|-----------|",
        ]
        for c in report.contributors:
            lines.append(f"| {c.author} | {c.tier} | {c.additions:,} | {c.deletions:,} |")
        lines.append("")

    return "\n".join(lines)


def render_json(report: TierReport) -> str:
    payload = {
        "tiers": report.tiers,
        "contributors": [asdict(c) for c in report.contributors],
        "concentration": asdict(report.concentration) if report.concentration else None,
        "sources": report.sources,
    }
    return json.dumps(payload, indent=2) + "\n"


def render_csv(report: TierReport) -> str:
    df = pd.DataFrame([asdict(c) for c in report.contributors], columns=CSV_COLUMNS)
    return df.to_csv(index=False)


def render_report(report: TierReport, fmt: str = "text", include_table: bool = False) -> str:
    """Dispatch to the renderer for fmt.

    Raises:
        ValueError: for an unknown format.
    """
    if fmt == "text":
        return render_text(report)
    if fmt == "markdown":
        return render_markdown(report, include_table=include_table)
    if fmt == "json":
        return render_json(report)
    if fmt == "csv":
        return render_csv(report)
    raise ValueError(f"Unknown format {fmt!r}; expected one of {FORMATS}")


def write_report(content: str, output_path: str) -> str:
    """Write rendered output to output_path and return the path."""
    with open(output_path, "w", encoding="utf-8") as fh:
        fh.write(content)
    logger.info("Report saved to %s", output_path)
    return output_path
