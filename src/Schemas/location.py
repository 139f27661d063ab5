# src/Schemas/location.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


"""
Payload of POST /api/location as sent by devices.
Required fields are checked by the ingestion service (not here) so that
missing coordinates are an InvalidArgument rather than a schema error.
No range validation is performed on coordinates.
"""
class Location_submit(BaseModel):
    device_id: Optional[str] = Field(None, max_length=100)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    speed: Optional[float] = None
    accuracy: Optional[float] = None
    altitude: Optional[float] = None
    heading: Optional[float] = None
    battery_level: Optional[int] = None
    timestamp: Optional[datetime] = Field(
        None,
        description="Client timestamp; acceptance time is used when omitted"
    )


"""
Internal schema for a sample accepted by ingestion and handed to the store.
timestamp is always populated by the time it reaches the store.
"""
class LocationSample_create(BaseModel):
    device_id: str = Field(..., min_length=1, max_length=100)
    latitude: float
    longitude: float
    speed: Optional[float] = 0
    accuracy: Optional[float] = None
    altitude: Optional[float] = None
    heading: Optional[float] = None
    battery_level: Optional[int] = None
    timestamp: Optional[datetime] = None


"""
Schema for a persisted sample, including the store-assigned sample_id.
"""
class LocationSample_get(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sample_id: int = Field(..., description="Store-assigned, strictly increasing identifier")
    device_id: str
    latitude: float
    longitude: float
    speed: Optional[float] = None
    accuracy: Optional[float] = None
    altitude: Optional[float] = None
    heading: Optional[float] = None
    battery_level: Optional[int] = None
    timestamp: Optional[datetime] = None


class Location_submit_response(BaseModel):
    success: bool = True
    sample_id: int
    location_id: int
    broadcasted: bool = True
