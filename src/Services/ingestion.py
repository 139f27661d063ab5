# src/Services/ingestion.py
"""
Ingestion Service
=================
Gatekeeper for accepting one location sample.

Flow for submit():
1. Structural checks: device_id, latitude and longitude must be present
   (no numeric range validation, out-of-range coordinates are stored as-is)
2. Device Registry lookup -> UnknownDevice when not registered
3. Location Store append -> sample_id
4. Publish the persisted sample to the Broadcast Channel
5. Return sample_id to the caller

Publishing is fire-and-forget: it never blocks on observers and a delivery
problem never fails the submit. Steps 3-4 run under one ordering lock so
observers receive samples in sample_id order.

The existence check (2) and the append (3) are not one transaction with the
registry; a device deleted in between may still receive this sample.
"""

import threading
from datetime import datetime, timezone
from typing import Optional

from src.Core.broadcast import BroadcastChannel
from src.Core.exceptions import InvalidArgument, UnknownDevice
from src.Core.log_ws import log_event
from src.Schemas.location import LocationSample_create
from src.Services.device_registry import DeviceRegistry
from src.Services.location_serialization import serialize_accepted_sample, to_utc
from src.Services.location_store import LocationStore


class IngestionService:

    def __init__(self, registry: DeviceRegistry, store: LocationStore, channel: BroadcastChannel):
        self.registry = registry
        self.store = store
        self.channel = channel
        self._order_lock = threading.Lock()

    def submit(
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
    ) -> int:
        """
        Accept one sample and return its sample_id.

        Raises:
            InvalidArgument: device_id, latitude or longitude missing
            UnknownDevice: device_id is not registered
            StoreUnavailable: the sample could not be persisted
        """
        if not device_id or latitude is None or longitude is None:
            raise InvalidArgument("device_id, latitude, and longitude are required")

        if not self.registry.exists(device_id):
            log_event(f"[INGEST] ⚠️ Rejected ping from unregistered device '{device_id}'", "warning")
            raise UnknownDevice(device_id)

        sample = LocationSample_create(
            device_id=device_id,
            latitude=latitude,
            longitude=longitude,
            speed=0 if speed is None else speed,
            accuracy=accuracy,
            altitude=altitude,
            heading=heading,
            battery_level=battery_level,
            timestamp=to_utc(timestamp) if timestamp else datetime.now(timezone.utc),
        )

        with self._order_lock:
            sample_id = self.store.append(sample)
            try:
                delivered = self.channel.publish(serialize_accepted_sample(sample, sample_id))
            except Exception as e:
                # The sample is stored; observers simply miss it
                log_event(f"[INGEST] ❌ Broadcast of sample {sample_id} failed: {e}", "error")
                delivered = 0

        log_event(
            f"[INGEST] Accepted sample {sample_id} from '{device_id}' "
            f"({latitude}, {longitude}) → {delivered} observer(s)"
        )
        return sample_id
