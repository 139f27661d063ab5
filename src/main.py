"""
src/main.py
============================================
FastAPI Application for GPS Tracking Server
============================================

Main entry point of the tracking server. Devices register once, then post
periodic location pings; dashboards query latest / historical positions over
REST and follow new pings live over WebSocket.

Architecture Overview:
---------------------
- REST API: device registration, ping ingestion, latest/history queries
- WebSocket /ws/locations: one event per accepted ping, in acceptance order
- WebSocket /logs: live server log stream
- Static files: optional dashboard served from STATIC_DIR

Run:
    uvicorn src.main:app --host 0.0.0.0 --port 3000
"""

# Environment Configuration
from dotenv import load_dotenv
import os
load_dotenv()

# FastAPI Core
from fastapi import Depends, FastAPI, WebSocket
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from src.Core.config import settings
from src.Controller.Routes import locations, vehicles
from src.Controller.deps import get_tracking, get_tracking_ws

# WebSocket Management
from src.Core import log_ws
from src.Core.location_ws import LocationWebSocketManager

# Database
from src.DB.database import init_db, test_db_connection
from src.DB.session import SessionLocal, engine

# Location core
from src.Services.tracking import TrackingService


# ============================================================
# DEPLOYMENT CONFIGURATION #1: ROOT PATH HANDLING
# ============================================================
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.responses import RedirectResponse

# Extract root path for subdirectory deployment (e.g., /tracking)
ROOT_PATH = os.getenv("ROOT_PATH", "").strip()
if ROOT_PATH:
    if not ROOT_PATH.startswith("/"):
        ROOT_PATH = "/" + ROOT_PATH
    if ROOT_PATH.endswith("/"):
        ROOT_PATH = ROOT_PATH[:-1]


class StripPrefixMiddleware(BaseHTTPMiddleware):
    """
    Middleware for removing ROOT_PATH prefix from incoming requests.

    Example:
        ROOT_PATH = "/tracking"
        Incoming request: /tracking/api/locations/latest
        FastAPI receives: /api/locations/latest
    """

    def __init__(self, app, prefix: str):
        super().__init__(app)
        self.prefix = prefix

    async def dispatch(self, request, call_next):
        if self.prefix:
            path = request.url.path

            # Redirect bare prefix to prefix with trailing slash
            if path == self.prefix:
                return RedirectResponse(url=self.prefix + "/", status_code=307)

            if path.startswith(self.prefix + "/"):
                request.scope["path"] = path[len(self.prefix):] or "/"

        return await call_next(request)


# ============================================================
# DEPLOYMENT CONFIGURATION #2: DYNAMIC CORS CONFIGURATION
# ============================================================
from fastapi.middleware.cors import CORSMiddleware


def _parse_origins(csv_value: str):
    """
    Parse comma-separated origin values into a list for CORS configuration.

    Returns:
        Tuple of (is_wildcard: bool, origins: list)

    Examples:
        "*" → (True, ["*"])
        "https://app.com,https://admin.app.com" → (False, ["https://app.com", "https://admin.app.com"])
        "" → (False, [])
    """
    if not csv_value:
        return (False, [])

    csv_value = csv_value.strip()

    if csv_value == "*":
        return (True, ["*"])

    origins = [origin.strip() for origin in csv_value.split(",") if origin.strip()]
    return (False, origins)


_http_allow_all, _http_origins = _parse_origins(
    os.getenv("HTTP_ALLOWED_ORIGINS", "*")
)
_ws_allow_all, _ws_origins = _parse_origins(
    os.getenv("WS_ALLOWED_ORIGINS", "*")
)


# ============================================================
# APPLICATION LIFESPAN MANAGEMENT
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup Sequence:
        1. Create missing tables (AUTO_CREATE_TABLES)
        2. Build the location core around the SessionLocal store handle

    Shutdown Sequence:
        - Dispose of the engine's connection pool
    """
    if settings.AUTO_CREATE_TABLES:
        init_db(engine)

    app.state.tracking = TrackingService.from_session_factory(SessionLocal)
    log_ws.log_event("[STARTUP] ✅ Location core ready")

    yield

    log_ws.log_event("[SHUTDOWN] 🛑 Application shutdown initiated")
    engine.dispose()
    print("[SHUTDOWN] ✓ Server stopped")


# ============================================================
# APPLICATION INSTANCE CREATION
# ============================================================
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    lifespan=lifespan
)


# ============================================================
# MIDDLEWARE REGISTRATION
# ============================================================
if ROOT_PATH:
    app.add_middleware(StripPrefixMiddleware, prefix=ROOT_PATH)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_http_origins,
    allow_credentials=not _http_allow_all,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# HEALTH CHECK ENDPOINT
# ============================================================
@app.get("/api/health")
def health(tracking: TrackingService = Depends(get_tracking)):
    """
    Liveness probe. Always 200 while the process serves requests; the
    database field reports whether the store answers a trivial query.
    """
    db_healthy = test_db_connection(tracking.store.session_factory)
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "server": settings.PROJECT_NAME,
        "database": "connected" if db_healthy else "disconnected",
    }


# ============================================================
# REST API ROUTE REGISTRATION
# ============================================================
app.include_router(vehicles.router, prefix="/api/vehicles", tags=["vehicles"])
app.include_router(locations.router, prefix="/api", tags=["locations"])


# ============================================================
# WEBSOCKET ENDPOINTS
# ============================================================
async def socket_handler(ws: WebSocket, manager):
    """
    Generic WebSocket connection handler with origin validation.

    Connections from origins outside WS_ALLOWED_ORIGINS are closed with
    policy-violation code 1008 before the handshake completes.
    """
    origin = ws.headers.get("origin")

    if (not _ws_allow_all) and (origin not in _ws_origins):
        print(f"[WS] ❌ Connection rejected - unauthorized origin: {origin}")
        await ws.close(code=1008)
        return

    await manager.serve(ws)


@app.websocket("/ws/locations")
async def websocket_locations(ws: WebSocket, tracking: TrackingService = Depends(get_tracking_ws)):
    """
    Live location updates.

    Frontend Connection Example:
        const ws = new WebSocket('ws://localhost:3000/ws/locations');
        ws.onmessage = (event) => {
            const { event: kind, data } = JSON.parse(event.data);
            if (kind === 'location_update') updateMarker(data);
        };
    """
    await socket_handler(ws, LocationWebSocketManager(tracking.channel))


@app.websocket("/logs")
async def websocket_logs(ws: WebSocket):
    """
    Live server log stream: {"msg_type", "message", "timestamp"} objects.
    """
    await socket_handler(ws, log_ws.log_ws_manager)


# ============================================================
# FRONTEND STATIC FILE SERVING
# ============================================================
# Must be registered last (catch-all mount)
if os.path.isdir(settings.STATIC_DIR):
    app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="frontend")
    print(f"[STARTUP] ✅ Dashboard mounted from {settings.STATIC_DIR}")
else:
    print(f"[STARTUP] ⚠️  Static directory not found at {settings.STATIC_DIR}")
