"""FastAPI application entry point."""
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from sqlalchemy import text

from soloflow.core.config import settings
from soloflow.core.deps import RedirectRequired, UserUnavailable
from soloflow.core.structured_logging import build_log_context, configure_logging
from soloflow.db.session import engine
from soloflow.templating import render_error

configure_logging()
logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,  # Don't send PII to Sentry
    )
    logger.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from soloflow.core.rate_limit import limiter


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="SoloFlow",
    description="Client dashboards, admin panel and subscription billing",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
# Applies DEFAULT_LIMITS to every route not decorated or exempted
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-CSRF-Token"],
    expose_headers=["X-Request-ID"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Tag every request with an id and log its outcome (no PII)."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000

    route = request.scope.get("route")
    context = build_log_context(
        request_id=request_id,
        route=getattr(route, "path", request.url.path),
        method=request.method,
        status_code=response.status_code,
    )
    logger.info(
        "%s %s -> %s (%.1fms)",
        request.method,
        context["route"],
        response.status_code,
        elapsed_ms,
        extra=context,
    )
    response.headers["X-Request-ID"] = request_id
    return response


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(RedirectRequired)
async def redirect_required_handler(request: Request, exc: RedirectRequired):
    """Page dependencies raise this for login and role redirects."""
    return RedirectResponse(url=exc.location, status_code=303)


@app.exception_handler(UserUnavailable)
async def user_unavailable_handler(request: Request, exc: UserUnavailable):
    return render_error(request, "Your account could not be loaded. Please try again later.")


# ============================================================================
# Routers
# ============================================================================

from soloflow.routers import admin, auth, billing, content, dashboard, pages, profile

app.include_router(pages.router, tags=["pages"])
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(dashboard.router)
app.include_router(content.router)
app.include_router(admin.router)
app.include_router(profile.router)
app.include_router(billing.router)
app.include_router(billing.webhook_router, prefix="/webhooks")

# Dev router (ONLY mounted in dev mode)
if settings.ENV == "dev":
    from soloflow.routers import dev
    app.include_router(dev.router, prefix="/dev", tags=["dev"])


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
@limiter.exempt
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
