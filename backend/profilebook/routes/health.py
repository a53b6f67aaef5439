"""
Profilebook Backend — Health Check Route
=========================================

What:  Liveness/readiness check for containers and load balancers.
How:   SELECT 1 against the database, a write-permission check on the image
       root, and whether the news API is configured.

Status levels:
    healthy:   everything available                         (HTTP 200)
    degraded:  news API not configured; news search fails    (HTTP 200)
    unhealthy: database unreachable or images not writable   (HTTP 503)
"""

import logging
import os
import time

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from profilebook import __version__
from profilebook.database import engine
from profilebook.schemas.profile import HealthResponse
from profilebook.services.news_service import news_service
from profilebook.services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    storage_status = "writable"
    news_status = "configured"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    images_root = storage_service.images_root
    if not (images_root.is_dir() and os.access(images_root, os.W_OK)):
        storage_status = "unwritable"
        overall = "unhealthy"
        logger.warning("Health check: %s is not writable", images_root)

    if not news_service.configured:
        news_status = "unconfigured"
        if overall == "healthy":
            overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        news=news_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
