"""
contrib_tiers.ingestion — Where contribution records come from.

Modules:
    contribution_source  — ContributionRecord, FetchError, the ContributionSource
                           protocol and the in-memory/JSON StaticContributionSource.
    github_stats_client  — GitHubContributionSource over /stats/contributors.
"""
