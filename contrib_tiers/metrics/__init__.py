"""
contrib_tiers.metrics — Contributor metrics.

Modules:
    tiers          — Per-author aggregation + threshold tier classification.
    concentration  — Pony factor + HHI + Shannon entropy over additions.

All thresholds live in contrib_tiers.config.TiersConfig.
"""
