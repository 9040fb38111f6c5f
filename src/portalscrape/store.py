"""
Shared key-value store.

KeyValueStore: typing.Protocol for the get/put/list-by-prefix contract used for
credentials, the admission token and gap records.
SqlKeyValueStore: SQLAlchemy-backed implementation over the ``kv_entries`` table.

Every database failure is re-raised as StoreUnavailableError so callers can tell
"store is down" apart from "key is absent".
"""
import logging
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from portalscrape.db.models import KVEntry
from portalscrape.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    def put(self, key: str, value: str) -> None:
        ...

    def list_keys(self, prefix: str) -> list[str]:
        """Return every key starting with ``prefix``, sorted."""
        ...


class SqlKeyValueStore:
    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get(self, key: str) -> str | None:
        try:
            with self._session_factory() as db:
                entry = db.get(KVEntry, key)
                return entry.value if entry is not None else None
        except SQLAlchemyError as exc:
            logger.error("Key-value read failed for %r: %s", key, exc)
            raise StoreUnavailableError(f"store read failed: {exc}") from exc

    def put(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc)
        try:
            with self._session_factory() as db:
                entry = db.get(KVEntry, key)
                if entry is None:
                    db.add(KVEntry(key=key, value=value, updated_at=now))
                else:
                    entry.value = value
                    entry.updated_at = now
                db.commit()
        except SQLAlchemyError as exc:
            logger.error("Key-value write failed for %r: %s", key, exc)
            raise StoreUnavailableError(f"store write failed: {exc}") from exc

    def list_keys(self, prefix: str) -> list[str]:
        # Escape LIKE wildcards so a prefix such as "gap:" matches literally.
        pattern = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
        try:
            with self._session_factory() as db:
                rows = db.execute(
                    select(KVEntry.key)
                    .where(KVEntry.key.like(pattern, escape="\\"))
                    .order_by(KVEntry.key)
                ).scalars()
                return list(rows)
        except SQLAlchemyError as exc:
            logger.error("Key-value listing failed for prefix %r: %s", prefix, exc)
            raise StoreUnavailableError(f"store listing failed: {exc}") from exc
