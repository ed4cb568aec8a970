import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from holidarr.api.routes_api import (
    get_classifier,
    get_title_fetcher,
    router as api_router,
)
from holidarr.core.database import create_db_and_tables

load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """Application lifespan context manager."""
    create_db_and_tables()
    try:
        yield
    finally:
        # Teardown shared HTTP sessions, but only the ones that were created
        for getter in (get_title_fetcher, get_classifier):
            if not getter.cache_info().currsize:
                continue
            client = getter()
            if client is None:
                continue
            try:
                await client.aclose()
            except Exception as e:
                logger.error(f"Error closing {type(client).__name__}: {e}")


app = FastAPI(
    title="Holidarr",
    description="Holiday collections for your media library",
    version="0.1.0",
    lifespan=app_lifespan,
)

app.include_router(api_router, prefix="/api")
