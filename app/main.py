import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import contact, health
from app.core.config import settings
from app.core.email_config import email_config
from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging
from app.core.middleware import BodySizeLimitMiddleware, RequestIdMiddleware
from app.core.security_headers import SecurityHeadersMiddleware

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


tags_metadata = [
    {
        "name": "contact",
        "description": "**Contact form** - Validated, spam-screened submissions forwarded to the site operator by email.",
    },
    {
        "name": "health",
        "description": "**Health** - Liveness probe with process uptime.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(
        "Mail provider: %s (confirmation emails %s)",
        email_config.transport.provider.value,
        "enabled" if email_config.send_confirmation else "disabled",
    )
    if email_config.transport.is_sandbox:
        if email_config.production:
            logger.error(
                "No mail provider configured in production; contact submissions will fail"
            )
        else:
            logger.warning("No mail provider configured; using the Ethereal sandbox")

    yield

    logger.info("Shutting down...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Contact form backend for the Erinnerungslicht website.",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS,
    expose_headers=settings.EXPOSE_HEADERS,
)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.MAX_BODY_BYTES)
app.add_middleware(RequestIdMiddleware)

# Register global exception handlers
register_exception_handlers(app)

app.include_router(contact.router, prefix=settings.API_PREFIX, tags=["contact"])
app.include_router(health.router, prefix=settings.API_PREFIX, tags=["health"])


@app.get("/", summary="API root", include_in_schema=False)
async def root():
    """Root endpoint with API info"""
    return {
        "name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": "/docs" if settings.DEBUG else None,
        "health": f"{settings.API_PREFIX}/health",
    }


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )
