"""Main FastAPI application - preference API plus the minute notification tick."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, settings as default_settings
from .routers import users_router
from .services.push_sender import PushDispatcher
from .services.quotes import QuoteRotator
from .services.registry import UserRegistry
from .services.scheduler import TickDriver
from .utils.time_utils import Clock, local_now

# Configure logging
logging.basicConfig(
    level=getattr(logging, default_settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    config: Settings = app.state.settings
    tick_driver: TickDriver = app.state.tick_driver
    logger.info(f"Starting nudger on port {config.port}")

    if config.scheduler_enabled:
        tick_driver.start()

    yield

    # Shutdown
    tick_driver.stop()
    await tick_driver.drain()
    logger.info("Shutdown complete")


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as a failure response."""
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    logger.warning(f"Rejected {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": "Invalid request body", "errors": errors},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def create_app(
    config: Optional[Settings] = None,
    registry: Optional[UserRegistry] = None,
    dispatcher: Optional[PushDispatcher] = None,
    rotator: Optional[QuoteRotator] = None,
    clock: Clock = local_now,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The registry, dispatcher and tick driver live on app.state for the
    lifetime of the process.
    """
    config = config or default_settings
    registry = registry or UserRegistry(clock=clock)
    dispatcher = dispatcher or PushDispatcher(
        gateway_url=config.push_gateway_url,
        timeout=config.dispatch_timeout_seconds,
    )

    app = FastAPI(
        title="Nudger",
        description="Motivation quotes, screen time reminders and nudges for mobile devices",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.registry = registry
    app.state.tick_driver = TickDriver(
        registry=registry,
        dispatcher=dispatcher,
        rotator=rotator,
        clock=clock,
        max_concurrent_dispatches=config.max_concurrent_dispatches,
    )

    # CORS middleware for the mobile app / dev tools
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.include_router(users_router)

    @app.get("/", response_class=PlainTextResponse)
    async def index():
        return "Hello from nudger!"

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


# Create the application instance
app = create_app()


def run():
    """Console entry point."""
    import uvicorn

    uvicorn.run(app, host=default_settings.host, port=default_settings.port)


if __name__ == "__main__":
    run()
