"""
Contribution sources — the boundary between the tier pipeline and wherever
per-author line counts come from.

Every source returns a flat list of ContributionRecord. The aggregator never
talks to GitHub directly; it only sees a ContributionSource, so tests and
offline documentation builds can substitute a StaticContributionSource.
"""
import json
import logging
from dataclasses import asdict, dataclass
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """The contribution-data source was unreachable or returned malformed data."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


@dataclass(frozen=True)
class ContributionRecord:
    """One author's aggregate lines added/removed within the queried window."""

    author: str
    additions: int
    deletions: int


@runtime_checkable
class ContributionSource(Protocol):
    """Anything that can hand back per-author contribution records."""

    def fetch_contributions(self) -> list[ContributionRecord]:
        ...


class StaticContributionSource:
    """In-memory source. Used as a test double and for replaying dumps."""

    def __init__(self, records: list[ContributionRecord], name: str = "static") -> None:
        self._records = list(records)
        self.name = name

    def fetch_contributions(self) -> list[ContributionRecord]:
        return list(self._records)

    @classmethod
    def from_json(cls, path: str) -> "StaticContributionSource":
        """Load records previously written by dump_records().

        The file must hold a JSON list of objects with keys author, additions,
        deletions. Anything else raises FetchError.
        """
        try:
            with open(path, encoding="utf-8") as fh:
                payload = json.load(fh)
        except OSError as exc:
            raise FetchError(path, f"cannot read record file ({exc})") from exc
        except json.JSONDecodeError as exc:
            raise FetchError(path, f"invalid JSON ({exc})") from exc

        if not isinstance(payload, list):
            raise FetchError(path, "expected a JSON list of contribution records")

        records: list[ContributionRecord] = []
        for i, entry in enumerate(payload):
            try:
                records.append(
                    ContributionRecord(
                        author=str(entry["author"]),
                        additions=int(entry["additions"]),
                        deletions=int(entry["deletions"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise FetchError(path, f"malformed record at index {i}: {entry!r}") from exc

        logger.info("Loaded %d contribution records from %s", len(records), path)
        return cls(records, name=path)


def dump_records(records: list[ContributionRecord], path: str) -> None:
    """Write records as a JSON list so a run can be replayed offline."""
    with open(path, "w", encoding="utf-8") as fh:
        json.dump([asdict(r) for r in records], fh, indent=2)
    logger.info("Saved %d contribution records to %s", len(records), path)
