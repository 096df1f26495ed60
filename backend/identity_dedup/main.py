"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from identity_dedup.config import get_settings
from identity_dedup.routers import duplicates
from identity_dedup.services.audit import get_audit_sink

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    try:
        sink = get_audit_sink()
        logger.info("startup.audit_sink available=%s", sink.available)
    except Exception:
        logger.exception("Audit sink selection failed; continuing without startup selection.")
    yield


app = FastAPI(title=get_settings().app_name, version="0.1.0", lifespan=lifespan)

app.include_router(duplicates.router, tags=["duplicates"])


@app.get("/health")
def health() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}
