"""
Gap tracking for requests against portal ids that have no registered scraper.

Each unknown id gets one JSON record under ``gap:<portalId>`` in the shared store:

    {"count": 3, "firstRequested": "...", "lastRequested": "..."}

record_miss() is a read-increment-write against the store and is NOT atomic:
two concurrent misses for the same id can both read count=N and both write N+1.
That under-count is accepted; the gap only has to become visible.

A stored record that cannot be parsed, or whose fields have the wrong types, is
treated as absent and overwritten with a fresh count=1 record. Corruption is only
reported in aggregate, as ``malformed_count`` from list_gaps().
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from portalscrape.store import KeyValueStore

logger = logging.getLogger(__name__)

GAP_PREFIX = "gap:"


class GapRecord(BaseModel):
    model_config = ConfigDict(strict=True, alias_generator=to_camel, populate_by_name=True)

    count: int = Field(ge=1)
    first_requested: datetime
    last_requested: datetime


class GapEntry(GapRecord):
    portal_id: str


@dataclass
class GapReport:
    gaps: list[GapEntry] = field(default_factory=list)
    malformed_count: int = 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GapTracker:
    def __init__(self, store: KeyValueStore, now: Callable[[], datetime] = _utcnow):
        self._store = store
        self._now = now

    def _load(self, key: str) -> GapRecord | None:
        raw = self._store.get(key)
        if raw is None:
            return None
        try:
            return GapRecord.model_validate_json(raw)
        except ValidationError:
            logger.warning("Malformed gap record at %s, resetting", key)
            return None

    def record_miss(self, portal_id: str) -> GapRecord:
        """Count one more request for ``portal_id`` and persist the updated record."""
        key = f"{GAP_PREFIX}{portal_id}"
        now = self._now()
        existing = self._load(key)
        if existing is None:
            record = GapRecord(count=1, first_requested=now, last_requested=now)
        else:
            record = GapRecord(
                count=existing.count + 1,
                first_requested=existing.first_requested,
                last_requested=now,
            )
        self._store.put(key, record.model_dump_json(by_alias=True))
        return record

    def list_gaps(self) -> GapReport:
        """Every well-formed gap record, most requested first, plus a malformed tally."""
        report = GapReport()
        for key in self._store.list_keys(GAP_PREFIX):
            raw = self._store.get(key)
            if raw is None:
                # Deleted between list and read; the store is only eventually consistent.
                continue
            try:
                record = GapRecord.model_validate_json(raw)
            except ValidationError:
                report.malformed_count += 1
                continue
            report.gaps.append(GapEntry(portal_id=key[len(GAP_PREFIX):], **record.model_dump()))
        report.gaps.sort(key=lambda entry: entry.count, reverse=True)
        return report
