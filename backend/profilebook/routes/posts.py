"""
Profilebook Backend — Post & Image Routes
==========================================

What:  Timeline posts (text with an optional image) and standalone images.
Who:   Called by the web client's profile timeline and gallery.

Request Flow (POST /post):
    1. Multipart `image` (at most 2 files, only the first is kept), `data`, `id`
    2. Image stored in images/<id>/, then the post row inserted and committed
    3. Insert failure → stored image discarded, error propagates

Deletes report the deleted id back; the post's or image's file is removed in
the background after the row is gone. Posts without an image (pics == "")
remove nothing.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from profilebook.database import get_db_session
from profilebook.exceptions import ValidationError
from profilebook.schemas.profile import (
    CreatedImageResponse,
    CreatedPostResponse,
    DeletedResponse,
    DeleteEntryRequest,
    ImageItem,
    PostItem,
    TextPostRequest,
)
from profilebook.services.post_service import DeletedEntry, post_service
from profilebook.services.storage_service import StoredFile, storage_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Posts"])

UPLOAD_FIELD = "image"
MAX_POST_FILES = 2


async def _store_first(profile_id: int, files: List[UploadFile]) -> StoredFile:
    if not files:
        raise ValidationError(message="An image is required", field="image")
    if len(files) > MAX_POST_FILES:
        raise ValidationError(
            message=f"At most {MAX_POST_FILES} images may be sent",
            field="image",
            context={"count": len(files)},
        )
    try:
        content = await files[0].read()
    finally:
        for upload in files:
            await upload.close()
    return await storage_service.store_upload(profile_id, UPLOAD_FIELD, files[0].filename, content)


def _schedule_removal(background_tasks: BackgroundTasks, entry: Optional[DeletedEntry], claimed_owner: int) -> None:
    if entry is None:
        return
    if entry.profile_id != claimed_owner:
        logger.warning("Entry owned by %s was deleted through profile %s", entry.profile_id, claimed_owner)
    if entry.filename:
        background_tasks.add_task(storage_service.remove_file, entry.profile_id, entry.filename)


# ── Listings ──────────────────────────────────────────────────────────────


@router.get("/posts/{profile_id}", response_model=List[PostItem])
async def list_posts(profile_id: int, db: AsyncSession = Depends(get_db_session)) -> List[PostItem]:
    """Newest first."""
    return await post_service.list_posts(db, profile_id)


@router.get("/images/{profile_id}", response_model=List[ImageItem])
async def list_images(profile_id: int, db: AsyncSession = Depends(get_db_session)) -> List[ImageItem]:
    return await post_service.list_images(db, profile_id)


# ── Creation ──────────────────────────────────────────────────────────────


@router.post("/post", response_model=CreatedPostResponse)
async def create_post_with_image(
    image: List[UploadFile] = File(...),
    data: Optional[str] = Form(None),
    id: int = Form(...),
    db: AsyncSession = Depends(get_db_session),
) -> CreatedPostResponse:
    stored = await _store_first(id, image)
    try:
        created = await post_service.create_post(db, id, data, pics=stored.filename)
    except Exception:
        await storage_service.discard(stored)
        raise
    return CreatedPostResponse(message=created, status=200)


@router.post("/post_textonly", response_model=CreatedPostResponse)
async def create_text_post(
    payload: TextPostRequest,
    db: AsyncSession = Depends(get_db_session),
) -> CreatedPostResponse:
    created = await post_service.create_post(db, payload.id, payload.txt, pics="")
    return CreatedPostResponse(message=created, status=200)


@router.post("/post_imgonly", response_model=CreatedImageResponse)
async def create_image(
    image: List[UploadFile] = File(...),
    id: int = Form(...),
    db: AsyncSession = Depends(get_db_session),
) -> CreatedImageResponse:
    stored = await _store_first(id, image)
    try:
        created = await post_service.create_image(db, id, stored.filename)
    except Exception:
        await storage_service.discard(stored)
        raise
    return CreatedImageResponse(message=created, status=200)


# ── Deletion ──────────────────────────────────────────────────────────────


@router.post("/delete_imgpost", response_model=DeletedResponse)
async def delete_image(
    payload: DeleteEntryRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
) -> DeletedResponse:
    entry = await post_service.delete_image(db, payload.id)
    _schedule_removal(background_tasks, entry, payload.profileID)
    return DeletedResponse(message=payload.id, status=200)


@router.post("/delete-post", response_model=DeletedResponse)
async def delete_post(
    payload: DeleteEntryRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
) -> DeletedResponse:
    entry = await post_service.delete_post(db, payload.id)
    _schedule_removal(background_tasks, entry, payload.profileID)
    return DeletedResponse(message=payload.id, status=200)
