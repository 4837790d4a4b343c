"""Engagement-orders FastAPI application.

Web server for the ordering domain: processes commands synchronously via
HTTP, with every request wrapped in the ordering domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (projectors fire in UoW)
#   - "production" → event_processing = "async" (projectors fire via Engine)
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ordering.domain import ordering  # noqa: E402
from ordering.utils.config import settings
from ordering.utils.logging import add_context, clear_context, configure_logging

configure_logging()
ordering.init()

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Engagement Orders API",
    description="Orders, coupons and crypto payment reconciliation for engagement packages",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context and bind request log context."""
    add_context(method=request.method, path=request.url.path)
    try:
        with ordering.domain_context():
            response = await call_next(request)
        return response
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api.errors import register_exception_handlers  # noqa: E402
from ordering.api.routes import coupon_router, order_router, payment_router  # noqa: E402

app.include_router(order_router)
app.include_router(payment_router)
app.include_router(coupon_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"ordering": {"name": ordering.name}},
        }
    )
