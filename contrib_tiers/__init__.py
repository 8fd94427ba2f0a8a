"""
contrib_tiers — Contributor tier report for the smart-contract security guide.

Fetches per-author contribution statistics from GitHub, sums lines added per
author and groups the authors into named tiers for the README and release
notes.

Modules:
- contrib_tiers.ingestion   — ContributionSource interface + GitHub client
- contrib_tiers.metrics     — tier classification + concentration summary
- contrib_tiers.aggregator  — fetch → classify → summarise
- contrib_tiers.reports     — text / Markdown / JSON / CSV rendering
- contrib_tiers.cli         — `contrib-tiers` command
"""

__version__ = "0.1.0"
