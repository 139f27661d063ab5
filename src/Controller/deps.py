#src/Controller/deps.py

from fastapi import HTTPException, Request, WebSocket
from src.Core.exceptions import TrackingError
from src.Services.tracking import TrackingService


def get_tracking(request: Request) -> TrackingService:
    return request.app.state.tracking


def get_tracking_ws(ws: WebSocket) -> TrackingService:
    return ws.app.state.tracking


def to_http_error(error: TrackingError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)
