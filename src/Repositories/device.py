# src/Repositories/device.py

"""
Device Repository Module

Database access functions for the Device model.

Responsibilities:
- Registration, listing and removal of devices
- Existence checks used by location ingestion

Usage:
    from src.Repositories import device as device_repo

    with SessionLocal() as db:
        if device_repo.device_exists(db, "gps-1"):
            ...

Design Pattern:
    Repository Pattern: plain functions taking an explicit Session. They do
    not catch database errors; the service layer decides how to surface them.
"""

from sqlalchemy.orm import Session
from src.Models.device import Device
from typing import List, Optional


# ==========================================================
# 📌 BASIC CRUD OPERATIONS
# ==========================================================

def get_all_devices(db: Session) -> List[Device]:
    """
    Get all devices, most recently registered first.

    created_at has one-second resolution on SQLite, so the surrogate id
    breaks ties between devices registered in the same second.
    """
    return (
        db.query(Device)
        .order_by(Device.created_at.desc(), Device.id.desc())
        .all()
    )


def get_device_by_id(db: Session, device_id: str) -> Optional[Device]:
    """
    Get a specific device by its device_id.

    Returns:
        Device object or None if not found
    """
    return db.query(Device).filter(Device.device_id == device_id).first()


def create_device(
    db: Session,
    device_id: str,
    name: str,
    phone_number: Optional[str] = None
) -> Device:
    """
    Create a new device.

    Raises:
        IntegrityError: If device_id already exists (duplicate)
    """
    new_device = Device(device_id=device_id, name=name, phone_number=phone_number)
    db.add(new_device)
    db.commit()
    db.refresh(new_device)
    return new_device


def delete_device(db: Session, device_id: str) -> bool:
    """
    Delete a device record (hard delete).

    ⚠️ Location samples are NOT touched here. Callers purge them first
    (see DeviceRegistry.delete).

    Returns:
        True if deleted, False if not found
    """
    deleted = (
        db.query(Device)
        .filter(Device.device_id == device_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted > 0


# ==========================================================
# 📌 DEVICE VALIDATION & EXISTENCE CHECKS
# ==========================================================

def device_exists(db: Session, device_id: str) -> bool:
    """
    Check if a device exists in the database.

    Example:
        if not device_exists(db, "gps-1"):
            raise UnknownDevice("gps-1")
    """
    return (
        db.query(Device.id)
        .filter(Device.device_id == device_id)
        .first()
    ) is not None
