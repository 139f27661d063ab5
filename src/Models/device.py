# src/Models/device.py

"""
Device Model - Tracking Device Registry

This module defines the SQLAlchemy model for registered tracking devices.

The devices table is the authoritative registry of all devices allowed to
send location pings. Rows are created once per physical device, never
mutated, and removed only by explicit deletion (which first purges the
device's location samples).

Database Table: devices
Primary Key: id (Integer, surrogate, reported as vehicle_id)
Unique: device_id

Usage:
    from src.Models.device import Device

    device = Device(device_id="gps-1", name="Delivery Van", phone_number="+15550100")
    db.add(device)
    db.commit()
"""

from sqlalchemy.orm import declared_attr
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from src.DB.base_class import Base


class Device(Base):
    """
    SQLAlchemy model representing a registered tracking device.

    Schema:
    - id (PK): Surrogate key assigned at registration
    - device_id: Opaque unique identifier sent by the device (e.g. "gps-1")
    - name: Display name shown next to the device's location
    - phone_number: Optional contact number
    - created_at: Registration timestamp
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """Fixed table name for the device registry"""
        return "devices"

    # ============================================================
    # Keys
    # ============================================================
    id = Column(Integer, primary_key=True, autoincrement=True)

    device_id = Column(
        String(100),
        unique=True,
        nullable=False,
        doc="Opaque identifier of the tracking device (immutable)"
    )

    # ============================================================
    # Device Metadata
    # ============================================================
    name = Column(
        String(200),
        nullable=False,
        doc="Human-readable device name for display in dashboards"
    )

    phone_number = Column(
        String(50),
        nullable=True,
        doc="Optional contact number of the device holder"
    )

    # ============================================================
    # Timestamps
    # ============================================================
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Timestamp when device was registered in the system"
    )

    def __repr__(self) -> str:
        return f"<Device(id={self.id}, device_id={self.device_id!r}, name={self.name!r})>"
