# src/Services/device_registry.py
"""
Device Registry
===============
Known device identities consulted by ingestion, plus the thin registration
bookkeeping exposed over HTTP.

Contract used by the location core:
- exists(device_id) / get(device_id) always query the database, so every
  check reflects the current device set (no caching).

Deletion:
- delete(device_id) notifies deletion listeners first (the location core
  purges the device's samples), then removes the device record in a second
  transaction. The two steps are not atomic: a submit that passed its
  existence check before the deletion can still append a sample that
  outlives the device.
"""

from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from src.Core.exceptions import DeviceAlreadyRegistered, InvalidArgument, StoreUnavailable
from src.Core.log_ws import log_event
from src.Models.device import Device
from src.Repositories import device as device_repo


DeletionListener = Callable[[str], None]


class DeviceRegistry:
    """
    Registry of tracking devices backed by the devices table.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self._deletion_listeners: List[DeletionListener] = []

    def add_deletion_listener(self, listener: DeletionListener):
        """
        Register a callback run with the device_id before a device is removed.
        """
        self._deletion_listeners.append(listener)

    def _run(self, operation: str, fn, *args, **kwargs):
        with self.session_factory() as db:
            try:
                return fn(db, *args, **kwargs)
            except IntegrityError:
                db.rollback()
                raise
            except SQLAlchemyError as e:
                db.rollback()
                log_event(f"[REGISTRY] ❌ {operation} failed: {e}", "error")
                raise StoreUnavailable(f"Device registry unavailable during {operation}") from e

    # ==========================================================
    # 📌 Core contract
    # ==========================================================
    def exists(self, device_id: str) -> bool:
        return self._run("exists", device_repo.device_exists, device_id)

    def get(self, device_id: str) -> Optional[Device]:
        return self._run("get", device_repo.get_device_by_id, device_id)

    # ==========================================================
    # 📌 Registration bookkeeping
    # ==========================================================
    def register(self, device_id: Optional[str], name: Optional[str], phone_number: Optional[str] = None) -> Device:
        """
        Register a new device.

        Raises:
            InvalidArgument: device_id or name missing/empty
            DeviceAlreadyRegistered: device_id already in use
        """
        if not device_id or not name:
            raise InvalidArgument("device_id and name are required")

        try:
            device = self._run("register", device_repo.create_device, device_id, name, phone_number)
        except IntegrityError:
            raise DeviceAlreadyRegistered(device_id) from None

        log_event(f"[REGISTRY] ✅ Registered device '{device_id}' ({name})")
        return device

    def list_devices(self) -> List[Device]:
        return self._run("list_devices", device_repo.get_all_devices)

    def delete(self, device_id: str) -> bool:
        """
        Delete a device and, through the listeners, its location samples.

        Returns:
            True if a device record was removed, False if none existed
        """
        for listener in self._deletion_listeners:
            listener(device_id)

        deleted = self._run("delete", device_repo.delete_device, device_id)

        if deleted:
            log_event(f"[REGISTRY] 🗑️ Deleted device '{device_id}'")
        else:
            log_event(f"[REGISTRY] ⚠️ Delete requested for unknown device '{device_id}'", "warning")
        return deleted
