from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import FileResponse, JSONResponse
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional
from sqlalchemy import text
import time
import uvicorn

from storefront.config import Settings, get_settings
from storefront.database import Base, build_engine, build_session_factory, wait_for_database
from storefront.routers import auth, cart, coupons, products
from storefront.services.cache_service import build_cache
from storefront.services.media_service import MediaService
from storefront.services.token_service import TokenService
from storefront.utils.logger import logger, setup_logger

# Import models to ensure they're registered with SQLAlchemy
from storefront import models  # noqa: F401

API_PREFIX = "/api"
VERSION = "1.0.0"
ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting Storefront API in {settings.environment} mode...")

    try:
        await wait_for_database(
            app.state.engine,
            base_delay=settings.db_retry_base_delay,
            max_delay=settings.db_retry_max_delay
        )
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=app.state.engine)

        cache = app.state.cache
        if await cache.ping():
            logger.info(f"Cache ready: {cache.backend}")
        else:
            logger.warning(f"Cache backend {cache.backend} is not reachable yet")

        if not app.state.media_service.is_configured:
            logger.warning("Cloudinary is not configured; product images are stored as sent by the client")

        logger.info("Application startup completed successfully")
    except Exception as e:
        logger.error(f"Startup failed: {str(e)}")
        raise

    yield

    logger.info("Shutting down Storefront API...")
    await app.state.cache.close()
    app.state.engine.dispose()
    logger.info("Application shutdown completed")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logger(settings.log_level)

    app = FastAPI(
        title="Storefront API",
        description="E-commerce backend: accounts, product catalog, cart and coupons",
        version=VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan
    )

    engine = build_engine(settings.database_url)
    cache = build_cache(settings.redis_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.cache = cache
    app.state.cookie_settings = settings.cookie_settings()
    app.state.token_service = TokenService(
        settings.access_token_secret,
        settings.refresh_token_secret,
        cache,
        app.state.cookie_settings
    )
    app.state.media_service = MediaService(
        settings.cloudinary_cloud_name,
        settings.cloudinary_api_key,
        settings.cloudinary_api_secret
    )

    logger.info(f"CORS origins: {settings.allowed_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
    )

    register_handlers(app)

    app.include_router(auth.router, prefix=API_PREFIX)
    app.include_router(products.router, prefix=API_PREFIX)
    app.include_router(cart.router, prefix=API_PREFIX)
    app.include_router(coupons.router, prefix=API_PREFIX)

    serving_frontend = False
    if settings.is_production and settings.frontend_dist_dir:
        serving_frontend = mount_frontend(app, Path(settings.frontend_dist_dir))
    if not serving_frontend:
        register_root(app)

    return app


def register_handlers(app: FastAPI):

    # Global exception handlers
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.error(f"HTTP {exc.status_code} error on {request.method} {request.url}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail, "status_code": exc.status_code},
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.error(f"Invalid request body on {request.method} {request.url}: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content={
                "message": "Invalid request body",
                "errors": jsonable_encoder(exc.errors()),
                "status_code": 400
            }
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url}: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={"message": "Server error", "error": str(exc), "status_code": 500}
        )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        logger.info(f"Incoming request: {request.method} {request.url}")

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(f"Request completed: {request.method} {request.url} - {response.status_code} in {process_time:.4f}s")
        return response

    @app.get("/health")
    async def health_check(request: Request):
        """Application health check"""
        try:
            with request.app.state.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            db_status = "connected"
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            db_status = "disconnected"

        cache = request.app.state.cache
        return {
            "status": "healthy",
            "service": "storefront",
            "version": VERSION,
            "environment": request.app.state.settings.environment,
            "components": {
                "database": db_status,
                "cache": cache.backend if await cache.ping() else "unreachable",
                "media": "configured" if request.app.state.media_service.is_configured else "not_configured"
            }
        }


def register_root(app: FastAPI):

    @app.get("/")
    async def root(request: Request):
        """Root endpoint"""
        return {
            "message": "Storefront API",
            "version": VERSION,
            "docs": "/docs" if request.app.state.settings.debug else "Documentation disabled",
            "health": "/health"
        }


def mount_frontend(app: FastAPI, dist_dir: Path) -> bool:
    """Serve the built single-page frontend for every path the API does not handle"""
    index_file = dist_dir / "index.html"
    if not index_file.exists():
        logger.warning(f"Frontend build not found: {index_file}")
        return False

    root_dir = dist_dir.resolve()
    logger.info(f"Serving frontend from {root_dir}")

    @app.get("/{full_path:path}", include_in_schema=False)
    async def serve_frontend(full_path: str):
        if full_path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not found")
        candidate = (root_dir / full_path).resolve()
        if full_path and candidate.is_file() and root_dir in candidate.parents:
            return FileResponse(candidate)
        return FileResponse(index_file)

    return True


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "storefront.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.port,
        reload=settings.debug,
        log_level="info" if settings.debug else "warning",
    )
