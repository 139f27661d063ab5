"""
Tests for DeviceRegistry registration bookkeeping and the delete cascade.
"""
import pytest
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from src.Core.exceptions import DeviceAlreadyRegistered, InvalidArgument, StoreUnavailable
from src.Services.device_registry import DeviceRegistry


@pytest.mark.unit
class TestRegister:

    def test_register_assigns_vehicle_id(self, registry):
        device = registry.register("gps-1", "Delivery Van", "+15550100")

        assert device.id == 1
        assert device.device_id == "gps-1"
        assert device.phone_number == "+15550100"
        assert registry.exists("gps-1") is True

    def test_duplicate_device_id(self, registry):
        registry.register("gps-1", "Delivery Van")

        with pytest.raises(DeviceAlreadyRegistered) as excinfo:
            registry.register("gps-1", "Another Van")

        assert excinfo.value.message == "Device already registered"
        assert registry.get("gps-1").name == "Delivery Van"

    @pytest.mark.parametrize("device_id,name", [(None, "Van"), ("", "Van"), ("gps-1", None), ("gps-1", "")])
    def test_missing_fields(self, registry, device_id, name):
        with pytest.raises(InvalidArgument):
            registry.register(device_id, name)

    def test_unknown_device(self, registry):
        assert registry.exists("ghost") is False
        assert registry.get("ghost") is None

    def test_list_newest_first(self, registry):
        registry.register("gps-1", "First")
        registry.register("gps-2", "Second")

        assert [d.device_id for d in registry.list_devices()] == ["gps-2", "gps-1"]


@pytest.mark.unit
class TestDelete:

    def test_delete_purges_samples_first(self, tracking, registry, count_samples):
        registry.register("gps-1", "Delivery Van")
        registry.register("gps-2", "Pickup Truck")
        tracking.submit_location("gps-1", 37.0, -122.0)
        tracking.submit_location("gps-2", 38.0, -121.0)

        assert registry.delete("gps-1") is True

        assert registry.exists("gps-1") is False
        assert count_samples("gps-1") == 0
        assert count_samples("gps-2") == 1

    def test_delete_unknown_device(self, registry):
        assert registry.delete("ghost") is False

    def test_listeners_run_before_record_removal(self, registry):
        seen = []
        registry.register("gps-1", "Delivery Van")
        registry.add_deletion_listener(lambda device_id: seen.append(registry.exists(device_id)))

        registry.delete("gps-1")

        assert seen == [True]


@pytest.mark.unit
class TestRegistryUnavailable:

    def test_database_error_is_translated(self):
        factory = MagicMock()
        session = factory.return_value.__enter__.return_value
        session.query.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))

        with pytest.raises(StoreUnavailable):
            DeviceRegistry(factory).exists("gps-1")

        session.rollback.assert_called_once()
