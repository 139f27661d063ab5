# src/Schemas/device.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class Device_register(BaseModel):
    """
    Payload of POST /api/vehicles/register.

    Fields are optional at the schema level so that a missing device_id or
    name is reported by the registry as an InvalidArgument (HTTP 400) with
    the same message for every missing combination.
    """
    device_id: Optional[str] = Field(None, max_length=100, description="Unique device identifier")
    name: Optional[str] = Field(None, max_length=200, description="Display name (e.g., 'Van 01')")
    phone_number: Optional[str] = Field(None, max_length=50, description="Optional contact number")


class Device_get(BaseModel):
    """
    Schema for device response data including system timestamps.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Surrogate key assigned at registration")
    device_id: str
    name: str
    phone_number: Optional[str] = None
    created_at: datetime


class Device_register_response(BaseModel):
    success: bool = True
    vehicle_id: int
    device_id: str
