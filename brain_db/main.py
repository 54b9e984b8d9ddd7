import logging
from typing import Any, Dict, Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from brain_db.config import settings
from brain_db.core.http import ExternalServiceError, close_http_client
from brain_db.modules.auth import routes as auth_routes
from brain_db.modules.aps import routes as aps_routes
from brain_db.modules.acc import routes as acc_routes
from brain_db.modules.extraction import routes as extraction_routes
from brain_db.modules.products import routes as products_routes
from brain_db.modules.nextcloud import routes as nextcloud_routes
from brain_db.modules.catalog import routes as catalog_routes
from brain_db.modules.f16 import routes as f16_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)
client_logger = logging.getLogger("brain_db.client")

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ExternalServiceError)
async def external_service_exception_handler(request: Request, exc: ExternalServiceError):
    return JSONResponse(
        status_code=exc.http_status,
        content={"detail": exc.message, "service": exc.service, "upstream_status": exc.status_code},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"SAMEORIGIN"),
                    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api")
app.include_router(auth_routes.admin_router, prefix="/api")
app.include_router(aps_routes.router, prefix="/api")
app.include_router(acc_routes.oauth_router, prefix="/api")
app.include_router(acc_routes.router, prefix="/api")
app.include_router(extraction_routes.router, prefix="/api")
app.include_router(products_routes.router, prefix="/api")
app.include_router(products_routes.captures_router, prefix="/api")
app.include_router(nextcloud_routes.router, prefix="/api")
app.include_router(catalog_routes.router, prefix="/api")
app.include_router(f16_routes.router, prefix="/api")
app.include_router(f16_routes.settings_router, prefix="/api")


class ClientErrorReport(BaseModel):
    message: str
    stack: Optional[str] = None
    url: Optional[str] = None
    user_agent: Optional[str] = None
    context: Optional[Dict[str, Any]] = None


@app.post("/api/log-error")
async def log_client_error(report: ClientErrorReport):
    """Record a browser-side error in the server log"""
    client_logger.error(
        f"Client error at {report.url or 'unknown url'}: {report.message}"
        f" | agent={report.user_agent or '-'} context={report.context or {}}"
        f"{chr(10) + report.stack if report.stack else ''}"
    )
    return {"logged": True}


@app.on_event("startup")
async def startup_event():
    logger.info(
        f"Application startup ({settings.environment}); "
        f"aps={settings.aps_configured} acc={settings.acc_configured} "
        f"openai={settings.openai_configured} perplexity={settings.perplexity_configured} "
        f"nextcloud={settings.nextcloud_configured}"
    )


@app.on_event("shutdown")
async def shutdown_event():
    await close_http_client()
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to brain-db", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness check: reports whether Supabase is configured."""
    return {"status": "ready", "supabase": bool(settings.supabase_url and settings.supabase_key)}
