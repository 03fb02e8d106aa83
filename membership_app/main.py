# Standard library imports
import asyncio
import contextlib
from contextlib import asynccontextmanager

# Third-party imports
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Local imports
from membership_app.api.v1.routes.router import router as api_v1_router
from membership_app.core.config import settings
from membership_app.core.error_handlers import register_exception_handlers
from membership_app.core.logging_config import get_logger
from membership_app.services.expiration_job import run_expiration_sweep_task


# Initialize centralized logger
logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown operations."""
    # Startup: schedule the daily expiration sweep
    sweep_task = None
    if settings.EXPIRATION_SWEEP_ENABLED:
        sweep_task = asyncio.create_task(run_expiration_sweep_task())
    yield
    # Shutdown: stop the background sweep
    if sweep_task is not None:
        sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweep_task


# Initialize FastAPI
app = FastAPI(
    title="Membership Card API",
    description="Membership lifecycle and card number allocation",
    version="1.0.0",
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

# Include the router with prefix
app.include_router(
    api_v1_router,
    prefix="/api/v1",
)

register_exception_handlers(app)

# Add CORS middleware
logger.info(f"Configuring CORS middleware with origins: {settings.ALLOWED_ORIGINS}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=settings.ALLOW_CREDENTIALS,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS,
)
logger.info("CORS middleware configured successfully")


# Run the app
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
