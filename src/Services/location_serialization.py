# src/Services/location_serialization.py

from datetime import datetime, timezone
from typing import Any, Optional
from src.Schemas.location import LocationSample_create, LocationSample_get
from src.Models.location import LocationSample


def to_utc(ts: datetime) -> datetime:
    """Naive datetimes (SQLite drops tzinfo) are taken as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def format_timestamp(ts: Optional[datetime]) -> Optional[str]:
    """UTC ISO-8601 with 'Z' suffix."""
    if ts is None:
        return None
    return to_utc(ts).isoformat().replace('+00:00', 'Z')


def _finish(data: dict[str, Any]) -> dict[str, Any]:
    data["timestamp"] = format_timestamp(data.get("timestamp"))
    return data


def serialize_location_row(
    row: LocationSample | None,
    device_name: Optional[str] = None,
    phone_number: Optional[str] = None,
    include_device: bool = False,
    include_phone: bool = False,
) -> dict[str, Any] | None:
    """
    Convert a LocationSample row into a JSON-serializable dict.

    - Uses the Pydantic schema for field selection.
    - include_device adds 'device_name' (latest queries).
    - include_phone adds 'phone_number' (latest-per-device query).
    """
    if row is None:
        return None

    data = LocationSample_get.model_validate(row).model_dump()
    if include_device:
        data["device_name"] = device_name
    if include_phone:
        data["phone_number"] = phone_number
    return _finish(data)


def serialize_many(rows: list[LocationSample]) -> list[dict[str, Any]]:
    return [serialized for row in rows if (serialized := serialize_location_row(row)) is not None]


def serialize_accepted_sample(sample: LocationSample_create, sample_id: int) -> dict[str, Any]:
    """
    Payload broadcast for a freshly accepted sample.

    Built from the exact values handed to the store plus the assigned id, so
    observers see the same fields a later query would return.
    """
    data = LocationSample_get.model_validate(
        {**sample.model_dump(), "sample_id": sample_id}
    ).model_dump()
    return _finish(data)
