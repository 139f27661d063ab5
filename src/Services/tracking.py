# src/Services/tracking.py
"""
Tracking Service
================
Request/response surface of the location core, transport-agnostic.

Wires the four components together around one explicit store handle
(a sessionmaker):

    DeviceRegistry ──exists/get──▶ IngestionService ──append──▶ LocationStore
                                         │
                                         └──publish──▶ BroadcastChannel

Queries bypass ingestion and read the LocationStore directly. Deleting a
device through the registry triggers on_device_deleted(), which purges the
device's samples before the device record is removed.

Usage:
    tracking = TrackingService.from_session_factory(SessionLocal)
    sample_id = tracking.submit_location("gps-1", 37.0, -122.0)
    latest = tracking.get_latest("gps-1")
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import sessionmaker

from src.Core.broadcast import BroadcastChannel, Subscription
from src.Core.config import settings
from src.Core.exceptions import NotFound
from src.Services.device_registry import DeviceRegistry
from src.Services.ingestion import IngestionService
from src.Services.location_store import LocationStore, TimeBound


class TrackingService:

    def __init__(self, registry: DeviceRegistry, store: LocationStore, channel: BroadcastChannel):
        self.registry = registry
        self.store = store
        self.channel = channel
        self.ingestion = IngestionService(registry, store, channel)
        registry.add_deletion_listener(self.on_device_deleted)

    @classmethod
    def from_session_factory(
        cls,
        session_factory: sessionmaker,
        queue_size: int = settings.SUBSCRIBER_QUEUE_SIZE,
        max_history_limit: int = settings.HISTORY_MAX_LIMIT,
    ) -> "TrackingService":
        return cls(
            registry=DeviceRegistry(session_factory),
            store=LocationStore(session_factory, max_history_limit=max_history_limit),
            channel=BroadcastChannel(queue_size=queue_size, name="LOCATION-BROADCAST"),
        )

    # ==========================================================
    # Ingestion
    # ==========================================================
    def submit_location(
        self,
        device_id: Optional[str],
        latitude: Optional[float],
        longitude: Optional[float],
        speed: Optional[float] = None,
        accuracy: Optional[float] = None,
        altitude: Optional[float] = None,
        heading: Optional[float] = None,
        battery_level: Optional[int] = None,
        timestamp: Optional[datetime] = None,
    ) -> dict[str, int]:
        sample_id = self.ingestion.submit(
            device_id,
            latitude,
            longitude,
            speed=speed,
            accuracy=accuracy,
            altitude=altitude,
            heading=heading,
            battery_level=battery_level,
            timestamp=timestamp,
        )
        return {"sample_id": sample_id}

    # ==========================================================
    # Queries
    # ==========================================================
    def get_latest(self, device_id: str) -> dict[str, Any]:
        """
        Raises:
            NotFound: the device has no samples (whether or not it exists)
        """
        sample = self.store.latest(device_id)
        if sample is None:
            raise NotFound("No location data found")
        return sample

    def get_latest_all(self) -> list[dict[str, Any]]:
        return self.store.latest_all()

    def get_history(
        self,
        device_id: str,
        limit: Any = settings.HISTORY_DEFAULT_LIMIT,
        start: TimeBound = None,
        end: TimeBound = None,
    ) -> list[dict[str, Any]]:
        return self.store.history(device_id, limit=limit, start=start, end=end)

    # ==========================================================
    # Live updates
    # ==========================================================
    def subscribe_updates(self, loop=None) -> Subscription:
        return self.channel.subscribe(loop=loop)

    def unsubscribe_updates(self, subscription: Subscription):
        self.channel.unsubscribe(subscription)

    # ==========================================================
    # Device cascade
    # ==========================================================
    def on_device_deleted(self, device_id: str):
        self.store.delete_all_for(device_id)
