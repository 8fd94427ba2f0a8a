"""
contrib_tiers.reports — Rendering of the contributor tier listing.

Modules:
    contributor_report — text, Markdown, JSON and CSV output.
"""
