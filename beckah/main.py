"""
Beckah Marketplace Services - main FastAPI application.

Application entry point.
"""
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from beckah.config import settings
from beckah.core.exceptions import MarketplaceError

# Structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if settings.is_production else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle."""
    # Startup
    logger.info(
        "app_starting",
        environment=settings.environment,
        debug=settings.debug,
        supabase=settings.supabase_configured,
    )

    yield

    # Shutdown
    logger.info("app_shutting_down")


app = FastAPI(
    title="Beckah Marketplace Services",
    description="Moderation, AI listing assistance, payments and email for a charity marketplace",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# CORS (browser clients call every route directly)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==========================================
# Exception Handlers
# ==========================================

@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    """Handler for the system's own exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "marketplace_error",
        code=exc.code,
        message=exc.message,
        details=exc.details,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or incomplete request bodies -> 400."""
    fields = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)

    logger.warning("request_invalid", fields=fields, path=request.url.path)

    return JSONResponse(
        status_code=400,
        content={
            "error": f"Missing or invalid fields: {', '.join(fields)}",
            "code": "VALIDATION_ERROR",
            "details": {"missing_fields": fields},
        },
    )


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception(
        "unhandled_error",
        error=str(exc),
        path=request.url.path,
    )

    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


# ==========================================
# Basic routes
# ==========================================

@app.get("/")
async def root() -> dict[str, str]:
    """Root route."""
    return {
        "app": "Beckah Marketplace Services",
        "version": "1.0.0",
        "status": "running",
    }


@app.get("/health")
async def health() -> dict[str, Any]:
    """Basic health check."""
    return {
        "status": "healthy",
        "environment": settings.environment,
    }


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness check - verifies dependencies.

    The database must answer; provider keys are only reported, since each
    request fails on its own when the key it needs is missing.
    """
    checks: dict[str, Any] = {
        "status": "ready",
        "checks": {},
    }

    # Check Supabase
    try:
        from beckah.db import db
        await db.ping()
        checks["checks"]["database"] = "ok"
    except Exception as e:
        checks["status"] = "not_ready"
        checks["checks"]["database"] = f"error: {str(e)[:100]}"

    # Providers (only checks that the key exists)
    for name, key in (
        ("openai", settings.openai_api_key),
        ("gemini", settings.gemini_api_key),
        ("groq", settings.groq_api_key),
        ("stripe", settings.stripe_secret_key),
        ("resend", settings.resend_api_key),
    ):
        checks["checks"][name] = "ok" if key else "missing_key"

    status_code = 200 if checks["status"] == "ready" else 503
    return JSONResponse(content=checks, status_code=status_code)


@app.options("/{path:path}")
async def preflight(path: str) -> JSONResponse:
    """CORS preflight for clients that skip the Origin handshake."""
    return JSONResponse(content={"ok": True}, headers=CORS_HEADERS)


# ==========================================
# Module routes
# ==========================================

from beckah.api.analysis import router as analysis_router  # noqa: E402
from beckah.api.assistant import router as assistant_router  # noqa: E402
from beckah.api.emails import router as emails_router  # noqa: E402
from beckah.api.payments import router as payments_router  # noqa: E402
from beckah.api.submissions import router as submissions_router  # noqa: E402

app.include_router(submissions_router)
app.include_router(assistant_router)
app.include_router(analysis_router)
app.include_router(payments_router)
app.include_router(emails_router)


# ==========================================
# Debug route for the listing wizard
# ==========================================

@app.get("/debug/wizard")
async def debug_wizard() -> dict[str, Any]:
    """Debug: show the wizard structure."""
    if not settings.debug:
        return {"error": "Debug disabled"}

    from beckah.core.wizard import WIZARD, get_step_display_name, next_step

    steps = {}
    for step, req in WIZARD.items():
        steps[step.value] = {
            "name": get_step_display_name(step),
            "next": next_step(step, "").value,
            "suggestion": req.suggestion,
            "is_terminal": req.is_terminal,
            "hint": req.agent_hint[:50] + "..." if len(req.agent_hint) > 50 else req.agent_hint,
        }

    return {"steps": steps}


# ==========================================
# Development entry point
# ==========================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "beckah.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
