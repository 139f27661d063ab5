# src/Models/location.py
from sqlalchemy.orm import declared_attr
from sqlalchemy import (
    Column, BigInteger, Integer, String, Float, DateTime, Index
)
from src.DB.base_class import Base


class LocationSample(Base):
    """
    SQLAlchemy model for one location ping.

    The primary key doubles as the sample_id: it is assigned by the database,
    never reused (AUTOINCREMENT on SQLite, a sequence on PostgreSQL) and is
    the only recency order used to pick the latest sample of a device.
    Rows are append-only.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "locations"

    # BIGINT is not a rowid alias on SQLite, so fall back to INTEGER there
    id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True
    )

    # No FK constraint: the device is checked at acceptance time only
    device_id = Column(
        String(100),
        nullable=False,
        doc="Identifier of the device that sent the ping"
    )

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    speed = Column(Float, nullable=True, default=0)
    accuracy = Column(Float, nullable=True)
    altitude = Column(Float, nullable=True)
    heading = Column(Float, nullable=True)
    battery_level = Column(Integer, nullable=True)

    # Timezone-aware UTC; client clocks may skew, so not used for recency
    timestamp = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index('idx_locations_device_id_desc', device_id, id.desc()),
        Index('idx_locations_device_timestamp', device_id, timestamp),
        {"sqlite_autoincrement": True},
    )

    @property
    def sample_id(self) -> int:
        return self.id

    def __repr__(self) -> str:
        return (
            f"<LocationSample(id={self.id}, device_id={self.device_id!r}, "
            f"lat={self.latitude}, lon={self.longitude})>"
        )
