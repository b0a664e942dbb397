"""
Error taxonomy for the analysis pipeline.

Fatal conditions (a table that cannot be loaded, a price that cannot be parsed)
are exceptions and abort the report. Rows dropped by a join are expected in the
Inside Airbnb snapshots, so they are reported through ``JoinGapWarning`` and
counted in a ``JoinGapLog`` instead.
"""

import logging
import warnings
from typing import Dict, Iterable, List

logger = logging.getLogger(__name__)


class LoadError(Exception):
    """A required input file or table is missing, unreadable or malformed."""


class MalformedPriceError(ValueError):
    """One or more price fields do not reduce to a non-negative number."""

    def __init__(self, message: str, listing_ids: Iterable[str] = ()):
        super().__init__(message)
        self.listing_ids = list(listing_ids)


class JoinGapWarning(UserWarning):
    """A join dropped rows that had no partner on the other side."""


class JoinGapLog:
    """
    Collects the rows dropped by each join so the report can show them.

    Every record keeps the join name, the number of dropped rows and a few of
    the unmatched keys. The log is passed explicitly to the functions that join
    tables; nothing is recorded globally.
    """

    def __init__(self, max_sample: int = 5):
        self.max_sample = max_sample
        self.records: List[Dict] = []

    def record(self, join: str, dropped: int, keys: Iterable[str] = ()) -> None:
        if dropped <= 0:
            return
        sample = sorted({str(k) for k in keys})[: self.max_sample]
        self.records.append({"join": join, "dropped": int(dropped), "sample_keys": sample})

    def total(self, join: str = None) -> int:
        return sum(r["dropped"] for r in self.records if join is None or r["join"] == join)

    def to_dict(self) -> Dict[str, Dict]:
        summary: Dict[str, Dict] = {}
        for r in self.records:
            entry = summary.setdefault(r["join"], {"dropped": 0, "sample_keys": []})
            entry["dropped"] += r["dropped"]
            entry["sample_keys"] = sorted(set(entry["sample_keys"]) | set(r["sample_keys"]))[: self.max_sample]
        return summary

    def __len__(self) -> int:
        return len(self.records)


def report_join_gap(join: str, dropped: int, keys: Iterable[str] = (), gap_log: JoinGapLog = None) -> None:
    """Logs, warns about and optionally records rows dropped by a join."""
    if dropped <= 0:
        return
    keys = list(keys)
    message = f"{join}: dropped {dropped:,} row(s) without a match ({len(set(keys)):,} distinct key(s))"
    logger.warning(message)
    warnings.warn(message, JoinGapWarning, stacklevel=3)
    if gap_log is not None:
        gap_log.record(join, dropped, keys)
