"""FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from backend.api.deps import Services, build_services, get_services
from backend.api.limiter import limiter
from backend.config import settings, setup_logging
from backend.db.base import get_session_factory, init_db

logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and build services on startup; stop background work on shutdown."""
    setup_logging()
    init_db()
    services = await build_services(settings, get_session_factory())
    app.state.services = services
    logger.info(f"AI Company Matcher ready ({services.dispatcher.mode} dispatch)")
    yield
    await services.dispatcher.close()


app = FastAPI(
    title="AI Company Matcher API",
    description="AI-powered company discovery, enrichment and outreach",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Return 429 with a clear message when rate limit is exceeded."""
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


# Import and include routers
from backend.api.routes import companies, emails, profile, search  # noqa: E402

app.include_router(search.router, prefix="/search", tags=["Search"])
app.include_router(companies.router, prefix="/companies", tags=["Companies"])
app.include_router(emails.router, prefix="/emails", tags=["Emails"])
app.include_router(profile.router, prefix="/profile", tags=["Profile"])


@app.get("/health")
def health_check(services: Services = Depends(get_services)):
    """Health check with database status and configured services."""
    try:
        with services.session_factory() as db:
            db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {e}")
        database = "unavailable"

    config = services.config
    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
        "dispatch": services.dispatcher.mode,
        "services": {
            "deepseek": bool(config.deepseek_api_key),
            "apollo": bool(config.apollo_api_key),
            "hunter": bool(config.hunter_api_key),
        },
    }
