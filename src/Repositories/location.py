# src/Repositories/location.py

from sqlalchemy import func, and_
from sqlalchemy.orm import Session
from src.Models.device import Device
from src.Models.location import LocationSample
from src.Schemas.location import LocationSample_create
from datetime import datetime
from typing import Optional


"""
create_location_sample to append a new sample row.
The database assigns the id (sample_id); the caller serializes calls.
"""
def create_location_sample(DB: Session, sample: LocationSample_create) -> LocationSample:
    new_sample = LocationSample(**sample.model_dump())
    DB.add(new_sample)
    DB.commit()
    DB.refresh(new_sample)
    return new_sample


# ==========================================================
# ✅ Latest sample of one device (max id, joined with name)
# ==========================================================
def get_latest_location_by_device(
    DB: Session,
    device_id: str
) -> tuple[LocationSample, str] | None:
    """
    Return (sample, device_name) for the sample with the highest id of the
    device, or None when the device has no samples.

    Recency is decided by id, never by timestamp.
    """
    row = (
        DB.query(LocationSample, Device.name)
        .join(Device, LocationSample.device_id == Device.device_id)
        .filter(LocationSample.device_id == device_id)
        .order_by(LocationSample.id.desc())
        .first()
    )
    if row is None:
        return None
    return row[0], row[1]


# ==========================================================
# ✅ Latest sample of every device
# ==========================================================
def get_latest_locations_all_devices(
    DB: Session
) -> list[tuple[LocationSample, str, Optional[str]]]:
    """
    One (sample, device_name, phone_number) per device that has samples.

    Selection uses MAX(id) per device; the result is displayed newest
    timestamp first, ties broken by device_id so repeated queries are stable.
    """
    subq = (
        DB.query(
            LocationSample.device_id,
            func.max(LocationSample.id).label('max_id')
        )
        .group_by(LocationSample.device_id)
        .subquery()
    )

    rows = (
        DB.query(LocationSample, Device.name, Device.phone_number)
        .join(subq, and_(
            LocationSample.device_id == subq.c.device_id,
            LocationSample.id == subq.c.max_id
        ))
        .join(Device, LocationSample.device_id == Device.device_id)
        .order_by(LocationSample.timestamp.desc(), LocationSample.device_id.asc())
        .all()
    )
    return [(row[0], row[1], row[2]) for row in rows]


# ==========================================================
# ✅ History of one device, optionally bounded in time
# ==========================================================
def get_location_history(
    DB: Session,
    device_id: str,
    limit: int,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None
) -> list[LocationSample]:
    """
    Samples of a device with start_time <= timestamp <= end_time (either bound
    optional), newest timestamp first, at most `limit` rows.
    """
    query = DB.query(LocationSample).filter(LocationSample.device_id == device_id)

    if start_time is not None:
        query = query.filter(LocationSample.timestamp >= start_time)
    if end_time is not None:
        query = query.filter(LocationSample.timestamp <= end_time)

    return (
        query
        .order_by(LocationSample.timestamp.desc(), LocationSample.id.desc())
        .limit(limit)
        .all()
    )


"""
delete_locations_by_device removes every sample of a device.
Returns the number of deleted rows (0 is not an error).
"""
def delete_locations_by_device(DB: Session, device_id: str) -> int:
    deleted = (
        DB.query(LocationSample)
        .filter(LocationSample.device_id == device_id)
        .delete(synchronize_session=False)
    )
    DB.commit()
    return deleted
