"""
Laundry Orders API — FastAPI Application

Clients place laundry orders from a service catalog; admins move them through
the fulfillment pipeline; both sides see payment and status state, live over
WebSocket.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from domain.responses import error_response
from routes import auth, catalog, health, orders, subscriptions
from services.order_events import OrderEventBus

# ── Logging ─────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: validate settings, create tables, seed the catalog."""
    settings.validate_production_settings()

    from database import init_db, async_session, engine
    await init_db()
    logger.info("Database initialized")

    if settings.seed_catalog:
        from services import catalog_service
        async with async_session() as db:
            inserted = await catalog_service.seed_default_services(db)
            await db.commit()
        if inserted:
            logger.info(f"Catalog seeded with {inserted} services")

    logger.info(f"Status flow: {settings.status_flow}")

    yield  # app runs here

    await engine.dispose()
    logger.info("Shutting down")


# ── App Factory ─────────────────────────────────────────────────────

app = FastAPI(
    title="Laundry Orders API",
    description="Laundry order placement, fulfillment pipeline and payment tracking",
    version="1.0.0",
    lifespan=lifespan,
)

# Subscriptions registry shared by the order routes and the WebSocket feed
app.state.order_events = OrderEventBus()

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routes ──────────────────────────────────────────────────────────

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(catalog.router)
app.include_router(orders.router)
app.include_router(orders.reports_router)
app.include_router(subscriptions.router)


# ── Exception Handlers ──────────────────────────────────────────────


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """
    Catch-all for unhandled exceptions.

    Never return raw exception details to clients; the full traceback is
    logged server-side.
    """
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_response("internal_server_error", "Internal server error"),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    """
    Standardize HTTPException responses for frontend consumers.

    Keeps the original HTTP status code, but wraps the payload.
    """
    # DomainError carries a code, a message and structured details
    if hasattr(exc, "message") and hasattr(exc, "details"):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(getattr(exc, "code", "domain_error"), exc.message, exc.details),
        )

    detail = exc.detail
    message = detail if isinstance(detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response("http_error", message, detail if not isinstance(detail, str) else None),
        headers=getattr(exc, "headers", None),
    )


# ── Entrypoint ──────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
