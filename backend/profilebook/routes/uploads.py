"""
Profilebook Backend — Picture Upload Routes
============================================

What:  Replace a profile's picture or background image.
How:   Multipart form with fields `image` (the file), `id` and `oldName`.

Request Flow:
    1. StorageService writes the file as image_<ms><ext> in images/<id>/
    2. ProfileService points the column at the new name and commits,
       returning the name it referenced before
    3. DB failure → the new file is discarded and the error propagates
    4. Success → background task removes the superseded file
    5. Response: {"message": <new filename>, "status": 200}

The superseded file is the one the database referenced, not the client's
`oldName`, so a stale client cannot delete a file still in use. No previous
picture means no deletion.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from profilebook.database import get_db_session
from profilebook.schemas.profile import UploadResponse
from profilebook.services.profile_service import PROFILE_BACKGROUND, PROFILE_PIC, profile_service
from profilebook.services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])

UPLOAD_FIELD = "image"


async def replace_picture(
    db: AsyncSession,
    background_tasks: BackgroundTasks,
    profile_id: int,
    column: str,
    image: UploadFile,
    old_name: Optional[str],
) -> UploadResponse:
    try:
        content = await image.read()
    finally:
        await image.close()

    stored = await storage_service.store_upload(profile_id, UPLOAD_FIELD, image.filename, content)
    try:
        previous = await profile_service.set_picture(db, profile_id, column, stored.filename)
    except Exception:
        await storage_service.discard(stored)
        raise

    if old_name and old_name != previous:
        logger.debug("Client oldName %r differs from stored %r for profile %s", old_name, previous, profile_id)
    if previous and previous != stored.filename:
        background_tasks.add_task(storage_service.remove_file, profile_id, previous)

    return UploadResponse(message=stored.filename, status=200)


@router.post("/upload-profile", response_model=UploadResponse)
async def upload_profile_picture(
    background_tasks: BackgroundTasks,
    image: UploadFile = File(..., description="New profile picture"),
    id: int = Form(...),
    oldName: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db_session),
) -> UploadResponse:
    return await replace_picture(db, background_tasks, id, PROFILE_PIC, image, oldName)


@router.post("/upload-background", response_model=UploadResponse)
async def upload_background(
    background_tasks: BackgroundTasks,
    image: UploadFile = File(..., description="New background image"),
    id: int = Form(...),
    oldName: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db_session),
) -> UploadResponse:
    return await replace_picture(db, background_tasks, id, PROFILE_BACKGROUND, image, oldName)
