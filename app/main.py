# app/main.py
from fastapi import FastAPI
from app.core.config import settings
from app.api.routing import DISPATCH_METHODS, dispatch
import logging

# Configure basic logging
logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    # Every path goes through dispatch(), so there is no OpenAPI surface to serve
    openapi_url=None,
    docs_url=None,
    redoc_url=None,
)

# A single catch-all route: dispatch() handles origin checks, CORS and
# selects pinFile/pinJson by the last path segment, e.g. /api/pinning/pinFile
app.add_api_route(
    "/{path:path}",
    dispatch,
    methods=DISPATCH_METHODS,
    include_in_schema=False,
)

logger.info(f"{settings.PROJECT_NAME} started (Pinata adapter: {settings.PINATA_ADAPTER})")
