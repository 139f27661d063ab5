# src/Core/exceptions.py

"""
Tracking Error Taxonomy

Every failure path of the location core raises one of these exceptions so
callers can tell the kinds apart. Route handlers translate them into
HTTPException using the status_code attribute.

    InvalidArgument          400  malformed or missing required input
    UnknownDevice            404  ping from a device that was never registered
    NotFound                 404  a read query has no data to return
    DeviceAlreadyRegistered  409  duplicate registration
    StoreUnavailable         503  persistence layer failure
"""


class TrackingError(Exception):
    """Base class for all errors raised by the tracking core."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(TrackingError):
    status_code = 400


class UnknownDevice(TrackingError):
    status_code = 404

    def __init__(self, device_id: str):
        super().__init__("Device not registered")
        self.device_id = device_id


class NotFound(TrackingError):
    status_code = 404


class DeviceAlreadyRegistered(TrackingError):
    status_code = 409

    def __init__(self, device_id: str):
        super().__init__("Device already registered")
        self.device_id = device_id


class StoreUnavailable(TrackingError):
    """The underlying persistence could not complete the operation."""

    status_code = 503
