"""First Bank of Pig Server - FastAPI Application Entry Point."""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from fbop import __version__
from fbop.config import settings
from fbop.database import get_store, init_db
from fbop.services.sweeper import CleanupScheduler
from fbop.store import DocumentStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database and the expired code cleanup on startup."""
    init_db()

    scheduler = None
    if settings.cleanup_enabled:
        scheduler = CleanupScheduler()
        scheduler.start()

    yield

    if scheduler:
        scheduler.stop()


app = FastAPI(
    title="First Bank of Pig",
    description="Family allowance tracking",
    version=__version__,
    lifespan=lifespan,
)

# CORS - web and mobile clients call from any origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Register API routers ---
from fbop.api.auth import router as auth_router  # noqa: E402
from fbop.api.family import router as family_router  # noqa: E402
from fbop.api.children import router as children_router  # noqa: E402
from fbop.api.devices import router as devices_router  # noqa: E402

API_PREFIX = "/api/v1"

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(family_router, prefix=API_PREFIX)
app.include_router(children_router, prefix=API_PREFIX)
app.include_router(devices_router, prefix=API_PREFIX)


# --- WebSocket endpoints ---
from fbop.ws.sync import websocket_sync  # noqa: E402


@app.websocket("/ws")
async def ws_endpoint(
    ws: WebSocket,
    token: str = Query(default=""),
    store: DocumentStore = Depends(get_store),
):
    await websocket_sync(ws, store, token or None)


@app.get("/")
def root():
    """Health check / server info."""
    return {
        "name": settings.server_name,
        "version": __version__,
        "status": "running",
    }


@app.get("/api/v1/health")
def health():
    return {"status": "ok"}
