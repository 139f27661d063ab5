# src/Controller/Routes/vehicles.py

"""
Vehicle (Device) Registration REST API

Endpoints:
- POST   /api/vehicles/register      Register new device
- GET    /api/vehicles               List all devices (newest first)
- DELETE /api/vehicles/{device_id}   Delete device and its location history

Integration:
- Ingestion rejects pings from device_ids not registered here
- Deleting a device first purges its location samples, then removes the
  device record

Usage:
    # In main.py
    from src.Controller.Routes import vehicles
    app.include_router(vehicles.router, prefix="/api/vehicles", tags=["vehicles"])
"""

from fastapi import APIRouter, Depends, HTTPException
from typing import List
from src.Controller.deps import get_tracking, to_http_error
from src.Core.exceptions import TrackingError
from src.Schemas import device as device_schema
from src.Services.tracking import TrackingService

router = APIRouter()


# ==========================================================
# 📌 Register New Device
# ==========================================================

@router.post("/register", response_model=device_schema.Device_register_response)
def register_vehicle(
    payload: device_schema.Device_register,
    tracking: TrackingService = Depends(get_tracking)
):
    """
    Register a new tracking device.

    Once registered, the device can submit pings to POST /api/location.

    Example Request:
        POST /api/vehicles/register
        {"device_id": "gps-1", "name": "Delivery Van", "phone_number": "+15550100"}

    Returns:
        {"success": true, "vehicle_id": 1, "device_id": "gps-1"}

    Raises:
        400: device_id or name missing
        409: Device already registered
    """
    try:
        device = tracking.registry.register(
            payload.device_id, payload.name, payload.phone_number
        )
    except TrackingError as e:
        raise to_http_error(e)

    return {"success": True, "vehicle_id": device.id, "device_id": device.device_id}


# ==========================================================
# 📌 List Devices
# ==========================================================

@router.get("", response_model=List[device_schema.Device_get])
def list_vehicles(tracking: TrackingService = Depends(get_tracking)):
    """
    Get all registered devices, most recently registered first.
    """
    try:
        return tracking.registry.list_devices()
    except TrackingError as e:
        raise to_http_error(e)


# ==========================================================
# 📌 Delete Device (cascades to location history)
# ==========================================================

@router.delete("/{device_id}")
def delete_vehicle(device_id: str, tracking: TrackingService = Depends(get_tracking)):
    """
    Delete a device and all of its location samples.

    Raises:
        404: Device not found (its samples, if any, are still purged)
    """
    try:
        deleted = tracking.registry.delete(device_id)
    except TrackingError as e:
        raise to_http_error(e)

    if not deleted:
        raise HTTPException(status_code=404, detail=f"Device '{device_id}' not found")

    return {"success": True, "message": "Vehicle deleted"}
