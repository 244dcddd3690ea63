import logging

from fastapi import FastAPI
from fastapi import Request as FastAPIRequest
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from resource_search.api import api_router
from resource_search.core.config import Settings, get_settings
from resource_search.core.rate_limit import limiter, rate_limit_exceeded_handler
from resource_search.services.result_cache import ResultCache

# Module loggers (search, cache, mutations) emit INFO-level diagnostics
logging.getLogger("resource_search").setLevel(logging.INFO)

logger = logging.getLogger(__name__)

# Explicit CORS methods for non-wildcard origins
CORS_ALLOW_METHODS = ["GET", "POST", "PATCH", "DELETE", "OPTIONS"]


def _configure_cors(app: FastAPI, settings: Settings) -> None:
    if settings.cors_origins.strip() == "*":
        # Bearer token auth, so no credentials are needed for wildcard origins
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        origins = [origin.strip() for origin in settings.cors_origins.split(",")]
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=CORS_ALLOW_METHODS,
            allow_headers=["Authorization", "Content-Type"],
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Resource Search API",
        description="Ranked search over user-submitted learning resources",
        version="0.1.0",
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/openapi.json",
    )

    # One cache per process, reachable through the get_result_cache dependency
    app.state.result_cache = ResultCache(
        ttl_seconds=settings.search_cache_ttl_seconds,
        capacity=settings.search_cache_capacity,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: FastAPIRequest, exc: Exception) -> JSONResponse:
        """Catch unhandled exceptions and return a generic 500 response."""
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        content = {"detail": "Internal server error"}
        if not settings.is_production:
            content["debug"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    _configure_cors(app, settings)
    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()
