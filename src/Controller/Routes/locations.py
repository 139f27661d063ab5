# src/Controller/Routes/locations.py
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from src.Controller.deps import get_tracking, to_http_error
from src.Core.exceptions import TrackingError, UnknownDevice
from src.Schemas import location as location_schema
from src.Services.tracking import TrackingService

router = APIRouter()


# ==========================================================
# ✅ INGESTION
# ==========================================================

@router.post("/location", response_model=location_schema.Location_submit_response)
def submit_location(
    payload: location_schema.Location_submit,
    tracking: TrackingService = Depends(get_tracking)
):
    """
    Accept one location ping from a registered device and broadcast it to
    every connected /ws/locations client.

    Example:
        POST /api/location
        {"device_id": "gps-1", "latitude": 37.1, "longitude": -122.1, "battery_level": 87}

    Returns:
        {"success": true, "sample_id": 2, "location_id": 2, "broadcasted": true}

    Raises:
        400: device_id, latitude or longitude missing
        404: Device not registered
        503: Location store unavailable
    """
    try:
        result = tracking.submit_location(**payload.model_dump())
    except TrackingError as e:
        raise to_http_error(e)

    return {
        "success": True,
        "sample_id": result["sample_id"],
        "location_id": result["sample_id"],
        "broadcasted": True,
    }


# ==========================================================
# ✅ QUERIES
# ==========================================================
# /locations/latest is a distinct prefix from /location/{device_id}/...,
# so route order does not matter here.
# ==========================================================

@router.get("/locations/latest", response_model=List[dict])
def get_latest_all(tracking: TrackingService = Depends(get_tracking)):
    """
    Latest sample of every device that has reported at least once, with the
    device name and phone number, newest timestamp first.

    Used by dashboards for state-on-connect before following /ws/locations.
    """
    try:
        return tracking.get_latest_all()
    except TrackingError as e:
        raise to_http_error(e)


@router.get("/location/{device_id}/latest", response_model=dict)
def get_latest(device_id: str, tracking: TrackingService = Depends(get_tracking)):
    """
    Most recent sample of a device (highest sample_id), with its name.

    Raises:
        404: Device not registered
        404: No location data found (registered, but no samples yet)
    """
    try:
        if not tracking.registry.exists(device_id):
            raise UnknownDevice(device_id)
        return tracking.get_latest(device_id)
    except TrackingError as e:
        raise to_http_error(e)


@router.get("/location/{device_id}/history", response_model=List[dict])
def get_history(
    device_id: str,
    limit: Optional[str] = Query(None, description="Maximum number of samples (default 100)"),
    start: Optional[str] = Query(None, alias="from", description="Inclusive lower bound, ISO-8601"),
    end: Optional[str] = Query(None, alias="to", description="Inclusive upper bound, ISO-8601"),
    tracking: TrackingService = Depends(get_tracking)
):
    """
    Location history of a device, newest first.

    Parameters are validated by the store so every malformed value is a 400:

    Examples:
        GET /api/location/gps-1/history?limit=50
        GET /api/location/gps-1/history?from=2025-10-11T00:00:00Z&to=2025-10-12T23:59:59Z

    Raises:
        400: limit not a positive integer, or malformed from/to
    """
    try:
        if limit is None:
            return tracking.get_history(device_id, start=start, end=end)
        return tracking.get_history(device_id, limit=limit, start=start, end=end)
    except TrackingError as e:
        raise to_http_error(e)

