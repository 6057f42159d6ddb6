"""
Main FastAPI application entry point
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import chat, components, health, metrics, presets
from app.core.config import get_settings
from app.core.database import init_db
from app.core.errors import ComposerError
from app.core.logging_config import LoggingConfig
from app.core.metrics import app_info
from app.core.middleware import LoggingContextMiddleware
from app.core.middleware_metrics import MetricsMiddleware

APP_VERSION = "0.1.0"

# Configure logging first
LoggingConfig.configure()
logger = LoggingConfig.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI app"""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode...")
    if settings.database_auto_create:
        init_db()
        logger.info("Database schema ensured (auto-create enabled)")

    yield

    logger.info(f"Shutting down {settings.app_name}...")


_settings = get_settings()
app_info.info({"version": APP_VERSION, "environment": _settings.app_env})

app = FastAPI(
    title=_settings.app_name,
    description="Composable system prompts from reusable components and presets",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(LoggingContextMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ComposerError)
async def composer_error_handler(request: Request, exc: ComposerError):
    """Render domain errors with their status and per-field details"""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to log all unhandled errors"""
    if isinstance(exc, FastAPIHTTPException):
        raise exc

    logger.error(
        "Unhandled exception",
        exc_info=True,
        extra={
            "error_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        }
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__}
    )


app.include_router(health.router)
app.include_router(metrics.router)
app.include_router(components.router)
app.include_router(presets.router)
app.include_router(chat.router)


@app.get("/api")
async def root():
    """Root API endpoint"""
    settings = get_settings()
    return {
        "name": settings.app_name,
        "version": APP_VERSION,
        "status": "running",
        "environment": settings.app_env,
    }


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.app_env == "development",
    )
