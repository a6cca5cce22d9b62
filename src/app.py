"""Wholesale cart FastAPI application.

Serves the buyer cart and checkout endpoints. Each request runs inside the
wholesale domain context with the buyer id bound to the log context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV controls which config overlay is applied.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wholesale.domain import wholesale
from wholesale.utils.logging import add_context, clear_context

wholesale.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Wholesale Cart API",
    description="B2B cart, tiered pricing and checkout hand-off",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the wholesale domain context and tag logs with the buyer."""
    clear_context()
    add_context(buyer_id=request.headers.get("X-Buyer-Id"), path=request.url.path)
    with wholesale.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from wholesale.api import cart_router, checkout_router, register_exception_handlers  # noqa: E402

app.include_router(cart_router)
app.include_router(checkout_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": wholesale.name})
