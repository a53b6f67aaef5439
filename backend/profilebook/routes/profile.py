"""
Profilebook Backend — Profile Routes
=====================================

What:  Account and profile-details endpoints.
Who:   Called by the web client's register, login, profile and settings pages.

Request Flow (DELETE /delete/{id}):
    1. ProfileService deletes images, posts, details and profile rows, commits
    2. Background task removes <storage_root>/images/<id>/ recursively
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from profilebook.database import get_db_session
from profilebook.schemas.profile import (
    DeletePictureRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileData,
    RegisterRequest,
    UpdateDataRequest,
    UpdateDataResponse,
)
from profilebook.services.profile_service import profile_service
from profilebook.services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Profile"])

MSG_PROFILE_DELETED = "Profile is deleted successfully."
MSG_PICTURE_CLEARED = "Updated"


@router.get(
    "/data/{profile_id}",
    response_model=Optional[ProfileData],
    summary="Profile with its details",
)
async def get_profile_data(
    profile_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> Optional[ProfileData]:
    """Joined profile row, or null when the id is unknown."""
    return await profile_service.get_profile(db, profile_id)


@router.post("/registrate", response_model=MessageResponse, response_model_exclude_none=True)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await profile_service.register(
        db,
        first_name=payload.name,
        last_name=payload.lastName,
        email=payload.email,
        password=payload.password,
    )


@router.post("/login", response_model=None, responses={200: {"model": LoginResponse}})
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    """
    `{"message": true, "id": .., "imageName": ..}` on a match, otherwise
    `{"message": false}`.
    """
    result = await profile_service.login(db, payload.name, payload.email, payload.password)
    # imageName stays in the success payload even when it is null
    return result.model_dump(exclude_none=not result.message)


@router.post("/update-data", response_model=UpdateDataResponse)
async def update_data(
    payload: UpdateDataRequest,
    db: AsyncSession = Depends(get_db_session),
) -> UpdateDataResponse:
    return await profile_service.update_data(db, payload)


@router.post("/delete-img", response_model=MessageResponse)
async def delete_picture(
    payload: DeletePictureRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """
    Clear the profile picture or the background.

    The file removed is the one the column referenced before the update;
    the client-supplied `name` is only logged when it disagrees.
    """
    previous = await profile_service.clear_picture(db, payload.id, payload.what)
    if payload.name and previous and payload.name != previous:
        logger.warning(
            "delete-img for profile %s named %r but the stored file was %r",
            payload.id,
            payload.name,
            previous,
        )
    if previous:
        background_tasks.add_task(storage_service.remove_file, payload.id, previous)
    return MessageResponse(message=MSG_PICTURE_CLEARED, status=200)


@router.delete("/delete/{profile_id}", response_model=MessageResponse, response_model_exclude_none=True)
async def delete_profile(
    profile_id: int,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await profile_service.delete_profile(db, profile_id)
    background_tasks.add_task(storage_service.remove_profile_dir, profile_id)
    return MessageResponse(message=MSG_PROFILE_DELETED)
