"""FastAPI application setup and configuration."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from ticketgate import __version__
from ticketgate.config import settings
from ticketgate.api import api_router
from ticketgate.cache import init_cache, close_cache
from ticketgate.database import init_database, close_database
from ticketgate.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from ticketgate.utils.logging_config import setup_logging

setup_logging(
    log_level="DEBUG" if settings.debug else settings.log_level,
    log_file="logs/ticketgate.log" if settings.environment == "production" else None,
    enable_json_logging=settings.enable_json_logging or settings.environment == "production"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting Ticketgate")
    await init_database()

    if settings.enable_cache:
        try:
            await init_cache()
        except RedisError as e:
            # Event lookups fall through to the database
            logger.warning(f"Continuing without event cache: {e}")

    yield

    logger.info("Shutting down Ticketgate")
    await close_cache()
    await close_database()


app = FastAPI(
    title="Ticketgate API",
    description="""
    ## Ticketgate

    Ticket inventory and admission service for events.

    * **Booking**: one ticket per request, never beyond an event's capacity,
      at most two tickets per holder and event
    * **Admission**: each ticket admits exactly once; repeated scans report
      when it was first used
    * **Organizer tools**: capacity adjustment, ticket statistics, attendee list

    ### Authentication

    Send `Authorization: Bearer <token>` issued by the identity provider. The
    `sub` claim is the holder id; organizer endpoints require `role: organizer`.

    ### Errors

    ```json
    {
      "error": {
        "error_code": "ERROR_CODE",
        "message": "Human readable error message",
        "details": {},
        "suggestions": []
      },
      "error_id": "uuid",
      "timestamp": "ISO-8601"
    }
    ```
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "tickets",
            "description": "Ticket booking and holder ticket views"
        },
        {
            "name": "validations",
            "description": "Admission of ticket holders at the gate"
        },
        {
            "name": "events",
            "description": "Event lookup and organizer inventory management"
        },
        {
            "name": "health",
            "description": "System health endpoints"
        }
    ],
    lifespan=lifespan,
)

# Middleware added last runs first: logging wraps error handling

app.add_middleware(
    ErrorHandlerMiddleware,
    debug=settings.debug
)

app.add_middleware(
    LoggingMiddleware,
    log_requests=settings.enable_request_logging,
    log_responses=settings.enable_request_logging
)

if settings.debug:
    cors_origins = ["*"]
    cors_allow_credentials = False  # Cannot use credentials with wildcard origins
else:
    cors_origins = settings.cors_origins
    cors_allow_credentials = settings.cors_allow_credentials

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
    expose_headers=settings.cors_expose_headers
)

app.include_router(api_router)


@app.get("/", tags=["health"])
async def root():
    """Basic information about the API."""
    return {
        "message": "Ticketgate API",
        "version": __version__,
        "docs_url": "/docs",
        "status": "operational"
    }


@app.get("/health", tags=["health"])
async def health_check():
    """Liveness check for uptime monitoring."""
    return {"status": "healthy", "service": "ticketgate"}


def run():
    """Console entry point: serve the API with uvicorn."""
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3000)
