"""
Candidature Service - FastAPI Application

Endpoints:
- POST /api/candidatures: Submit a candidature
- GET /api/candidatures/exists?email=: Check whether an email already applied
- GET /api/candidatures/health, GET /health: Health checks
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import candidatures
from api.error_handlers import register_error_handlers
from api.middleware import OriginAllowListMiddleware, RateLimitMiddleware
from config import Config
from models.responses import HealthResponse
from services.candidature_repository import CandidatureRepository
from services.candidature_service import CandidatureService
from services.email_service import EmailService
from utils.database import DatabaseManager
from utils.logging_utils import get_logger
from utils.rate_limiter import RateLimiter

logger = get_logger(__name__)


def create_app(
    config: Optional[Config] = None,
    candidature_service: Optional[CandidatureService] = None,
    email_service: Optional[EmailService] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Build the application and wire its components

    Args:
        config: Configuration instance (read from the environment when omitted)
        candidature_service: Submission service (PostgreSQL-backed when omitted)
        email_service: Confirmation email dispatcher (SES when omitted)
        rate_limiter: Per-client limiter (built from config when omitted)

    Returns:
        Configured FastAPI app
    """
    config = config or Config()

    db_manager = None
    repository = None
    if candidature_service is None:
        db_manager = DatabaseManager(
            config.db_connection_string,
            min_connections=config.db_pool_min,
            max_connections=config.db_pool_max,
        )
        repository = CandidatureRepository(db_manager)
        candidature_service = CandidatureService(repository)

    email_service = email_service or EmailService(config)
    rate_limiter = rate_limiter or RateLimiter(config.rate_limit_max, config.rate_limit_window_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Candidature service starting (env=%s)", config.app_env)
        if repository is not None and config.db_auto_create_schema:
            repository.ensure_schema()
        try:
            yield
        finally:
            email_service.shutdown()
            if db_manager is not None:
                db_manager.close()
            logger.info("✅ Candidature service stopped")

    app = FastAPI(
        title="Candidature Service",
        description="Job application intake: validation, duplicate guard, persistence and confirmation email",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.candidature_service = candidature_service
    app.state.email_service = email_service

    # Last added runs first: origin check, then CORS headers, then rate limit
    app.add_middleware(RateLimitMiddleware, limiter=rate_limiter, trust_proxy=config.trust_proxy)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(OriginAllowListMiddleware, allowed_origins=config.cors_origins)

    register_error_handlers(app, is_production=config.is_production)
    app.include_router(candidatures.router)

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse()

    return app


if __name__ == "__main__":
    settings = Config()
    uvicorn.run("app:create_app", factory=True, host="0.0.0.0", port=settings.port)
