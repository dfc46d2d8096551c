"""OrderEase FastAPI application.

Web server that processes commands synchronously via HTTP. Every request is
wrapped in the ``orderease`` domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8080 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → in-memory providers
#   - "production" → PostgreSQL at $DATABASE_URL
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from orderease.config import configure_domain, get_settings
from orderease.domain import orderease
from orderease.shared.identity import configure_generator
from orderease.utils.logging import bind_request, clear_request

settings = get_settings()

configure_generator(settings.node_id)
configure_domain(orderease, settings)
orderease.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="OrderEase API",
    description="Multi-tenant shop ordering backend",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.server.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the Protean domain context and bind request fields for logging."""
    request_id = request.headers.get("X-Request-Id") or uuid4().hex
    bind_request(request_id=request_id, method=request.method, path=request.url.path)
    try:
        with orderease.domain_context():
            response = await call_next(request)
    finally:
        clear_request()
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from orderease.api import ROUTERS, register_exception_handlers  # noqa: E402

for router in ROUTERS:
    app.include_router(router, prefix=settings.server.base_path)

register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": orderease.name, "node_id": settings.node_id})
