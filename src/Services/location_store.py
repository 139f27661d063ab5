# src/Services/location_store.py
"""
Location Store
==============
Append-only persistence of location samples with recency and history reads.

Rules:
- Recency / selection (latest, latest_all) uses sample_id, never timestamp.
- Display ordering (latest_all, history) uses timestamp, newest first.
- append() is serialized by a process-wide lock held across insert + commit,
  so sample_ids are unique and strictly increasing in commit order.
- Each read runs as one SQL statement in its own session: it never observes
  a partially written sample.
- Every SQLAlchemy failure is rolled back and raised as StoreUnavailable.

The store is built around an explicit session factory (the store handle),
created once at startup and injected by the caller.
"""

import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.Core.config import settings
from src.Core.exceptions import InvalidArgument, StoreUnavailable
from src.Core.log_ws import log_event
from src.Repositories import location as location_repo
from src.Schemas.location import LocationSample_create
from src.Services.location_serialization import (
    serialize_location_row,
    serialize_many,
    to_utc,
)


TimeBound = Union[datetime, str, None]


def parse_limit(limit: Any, max_limit: int) -> int:
    """
    Validate a history limit.

    Accepts ints and integer strings. Non-positive or non-numeric values raise
    InvalidArgument; values above max_limit are clamped.
    """
    if isinstance(limit, bool):
        raise InvalidArgument("limit must be a positive integer")

    if isinstance(limit, str):
        try:
            limit = int(limit.strip())
        except ValueError:
            raise InvalidArgument(f"limit must be a positive integer, got {limit!r}") from None

    if not isinstance(limit, int):
        raise InvalidArgument(f"limit must be a positive integer, got {limit!r}")

    if limit <= 0:
        raise InvalidArgument(f"limit must be a positive integer, got {limit}")

    return min(limit, max_limit)


def parse_time_bound(value: TimeBound, name: str) -> Optional[datetime]:
    """
    Normalize a history bound to an aware UTC datetime.

    Accepts datetimes and ISO-8601 strings ('Z' suffix and space separator
    allowed). Naive values are taken as UTC. Empty strings mean no bound.
    """
    if value is None:
        return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidArgument(f"'{name}' is not a valid ISO-8601 timestamp: {value!r}") from None

    if not isinstance(value, datetime):
        raise InvalidArgument(f"'{name}' must be a timestamp, got {value!r}")

    return to_utc(value)


class LocationStore:
    """
    Durable append and recency/history retrieval of location samples.

    Attributes:
        session_factory: sessionmaker bound to the store of record
        max_history_limit: clamp applied to history limits
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        max_history_limit: int = settings.HISTORY_MAX_LIMIT,
    ):
        self.session_factory = session_factory
        self.max_history_limit = max_history_limit
        self._append_lock = threading.Lock()

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        """
        Open a session and translate database errors into StoreUnavailable.
        """
        db = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            log_event(f"[STORE] ❌ {operation} failed: {e}", "error")
            raise StoreUnavailable(f"Location store unavailable during {operation}") from e
        finally:
            db.close()

    # ==========================================================
    # WRITE
    # ==========================================================
    def append(self, sample: LocationSample_create) -> int:
        """
        Persist a sample and return its new sample_id.

        The timestamp defaults to the current UTC time when absent and is
        always stored in UTC.

        Raises:
            StoreUnavailable: the write could not be persisted
        """
        timestamp = sample.timestamp or datetime.now(timezone.utc)
        sample = sample.model_copy(update={"timestamp": to_utc(timestamp)})

        with self._append_lock:
            with self._session("append") as db:
                row = location_repo.create_location_sample(db, sample)
                return row.id

    def delete_all_for(self, device_id: str) -> int:
        """
        Remove every sample of a device. Idempotent; returns the count.
        """
        with self._session("delete_all_for") as db:
            deleted = location_repo.delete_locations_by_device(db, device_id)

        log_event(f"[STORE] Purged {deleted} samples of device '{device_id}'")
        return deleted

    # ==========================================================
    # READ
    # ==========================================================
    def latest(self, device_id: str) -> dict[str, Any] | None:
        """
        Sample with the highest sample_id of the device, with 'device_name'.

        Returns None when the device has no samples.
        """
        with self._session("latest") as db:
            result = location_repo.get_latest_location_by_device(db, device_id)

        if result is None:
            return None

        row, device_name = result
        return serialize_location_row(row, device_name=device_name, include_device=True)

    def latest_all(self) -> list[dict[str, Any]]:
        """
        One latest sample per device, with 'device_name' and 'phone_number',
        ordered by timestamp descending then device_id.
        """
        with self._session("latest_all") as db:
            rows = location_repo.get_latest_locations_all_devices(db)

        return [
            serialize_location_row(
                row,
                device_name=device_name,
                phone_number=phone_number,
                include_device=True,
                include_phone=True,
            )
            for row, device_name, phone_number in rows
        ]

    def history(
        self,
        device_id: str,
        limit: Any = settings.HISTORY_DEFAULT_LIMIT,
        start: TimeBound = None,
        end: TimeBound = None,
    ) -> list[dict[str, Any]]:
        """
        Samples of a device with start <= timestamp <= end, newest first,
        truncated to `limit`.

        Raises:
            InvalidArgument: malformed limit or bounds
        """
        limit = parse_limit(limit, self.max_history_limit)
        start_time = parse_time_bound(start, "from")
        end_time = parse_time_bound(end, "to")

        if start_time is not None and end_time is not None and start_time > end_time:
            return []

        with self._session("history") as db:
            rows = location_repo.get_location_history(
                db, device_id, limit, start_time=start_time, end_time=end_time
            )

        return serialize_many(rows)
