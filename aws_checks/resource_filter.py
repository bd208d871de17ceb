"""
Age and size filters over resource listings.

A listing is any iterable of dicts as returned by boto3 (S3 objects,
EBS snapshots, ...). Records whose filtered field is missing or malformed
are skipped and recorded in ``RecordFilter.errors``; the rest of the
listing is still processed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from .constants import BYTES_PER_MB

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

ID_FIELDS = ("Key", "SnapshotId", "InstanceId", "VolumeId", "Id", "id")


@dataclass
class FilterError:
    record_id: str
    field: str
    reason: str


def megabytes(value: float) -> int:
    """Convert mebibytes to bytes."""
    return int(value * BYTES_PER_MB)


def cutoff_from_days(days: float, now: Optional[datetime] = None) -> datetime:
    """Return the instant ``days`` days before ``now`` (UTC)."""
    now = now or datetime.now(timezone.utc)
    return _as_utc(now) - timedelta(days=days)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _record_id(record: Record) -> str:
    for key in ID_FIELDS:
        if key in record:
            return str(record[key])
    return "<unknown>"


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, str):
        return _as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    raise TypeError(f"expected a timestamp, got {type(value).__name__}")


def _to_number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"negative value {value}")
    return value


class RecordFilter:
    """Lazy field-level filters that skip and report bad records."""

    def __init__(self) -> None:
        self.errors: List[FilterError] = []

    def _report(self, record: Record, field_name: str, reason: str) -> None:
        error = FilterError(_record_id(record), field_name, reason)
        logger.warning(
            f"Skipping record {error.record_id}: field '{field_name}' {reason}"
        )
        self.errors.append(error)

    def _values(
        self, records: Iterable[Record], field_name: str, convert
    ) -> Iterator[tuple]:
        for record in records:
            if field_name not in record or record[field_name] is None:
                self._report(record, field_name, "is missing")
                continue
            try:
                value = convert(record[field_name])
            except (TypeError, ValueError) as e:
                self._report(record, field_name, f"is malformed ({e})")
                continue
            yield value, record

    def older_than(
        self, records: Iterable[Record], cutoff: datetime, field_name: str
    ) -> Iterator[Record]:
        """Yield records whose timestamp is strictly before ``cutoff``."""
        cutoff = _as_utc(cutoff)
        for value, record in self._values(records, field_name, _to_datetime):
            if value < cutoff:
                yield record

    def larger_than(
        self, records: Iterable[Record], threshold: float, field_name: str
    ) -> Iterator[Record]:
        """Yield records whose numeric field is strictly above ``threshold``."""
        for value, record in self._values(records, field_name, _to_number):
            if value > threshold:
                yield record

    def sort_desc(self, records: Iterable[Record], field_name: str) -> List[Record]:
        """Sort by a numeric field, largest first, keeping input order on ties."""
        keyed = list(self._values(records, field_name, _to_number))
        return [record for _, record in sorted(keyed, key=lambda p: p[0], reverse=True)]


def older_than(
    records: Iterable[Record], cutoff: datetime, field_name: str
) -> Iterator[Record]:
    return RecordFilter().older_than(records, cutoff, field_name)


def larger_than(
    records: Iterable[Record], threshold: float, field_name: str
) -> Iterator[Record]:
    return RecordFilter().larger_than(records, threshold, field_name)


def sort_desc(records: Sequence[Record], field_name: str) -> List[Record]:
    return RecordFilter().sort_desc(records, field_name)
