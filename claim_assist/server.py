"""
Claim Assist — FastAPI Server

Exposes the claim-preparation services over HTTP:

  Public (no auth):
    GET  /health                      — liveness check

  Protected (Bearer access token from the auth provider):
    POST /manage-interview            — advance the per-condition interview
    GET  /conditions/{id}/interview   — interview transcript
    GET  /conditions/common           — frequently claimed conditions
    GET  /conditions                  — list / POST add / DELETE remove
    POST /suggest-conditions          — AI condition suggestions
    *    /service-history             — service period CRUD
    *    /documents                   — supporting document upload/download

Every failure is rendered as {"error": "<message>"} with the status
code of the raised ClaimAssistError.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from claim_assist.condition_routes import router as condition_router
from claim_assist.config import settings
from claim_assist.dependencies import init_dependencies
from claim_assist.document_routes import router as document_router
from claim_assist.errors import ClaimAssistError
from claim_assist.interview_routes import router as interview_router
from claim_assist.middleware import configure_security
from claim_assist.pii_shield import install_log_scrubber
from claim_assist.service_history_routes import router as service_history_router

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s  %(name)-28s  %(levelname)-7s  %(message)s",
)
logger = logging.getLogger(__name__)


# ── Application lifespan (startup / shutdown) ────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize all subsystems at startup."""
    logger.info("Starting Claim Assist backend …")

    # Scrubber goes in before anything else logs
    install_log_scrubber()

    init_dependencies()

    logger.info("Store + AI workflow backend (%s) ready to serve.", settings.ai_provider)
    yield
    logger.info("Shutting down Claim Assist backend.")


app = FastAPI(
    title="Claim Assist",
    description=(
        "Guides U.S. military veterans through preparing VA disability "
        "claims: conditions, service history, evidence and a per-condition "
        "AI interview."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

# Apply CORS, rate limiting, and security headers
configure_security(app)

app.include_router(interview_router)
app.include_router(condition_router)
app.include_router(service_history_router)
app.include_router(document_router)


# ── Error envelope ───────────────────────────────────────────────────

@app.exception_handler(ClaimAssistError)
async def handle_claim_assist_error(request: Request, exc: ClaimAssistError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%d): %s",
                    request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    issues = [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        {"error": "Invalid request body", "issues": issues},
        status_code=400,
    )


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        {"error": str(exc.detail)},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Internal Server Error"}, status_code=500)


# ── Endpoints ────────────────────────────────────────────────────────

@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "ok", "ai_provider": settings.ai_provider}


# ── CLI entry point ──────────────────────────────────────────────────

def main():
    """Run with: python -m claim_assist.server"""
    import uvicorn
    uvicorn.run(
        "claim_assist.server:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
