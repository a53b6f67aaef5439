"""
Profilebook Backend — Storage Reconciliation
=============================================

What:  Removes image files and directories the database no longer references.
Why:   Uploads and deletes are ordered write-new → commit → delete-old, so a
       crash between commit and cleanup can leave a superseded file behind.
How:   For every numeric directory under <storage_root>/images:
       - no such profile       → the directory is removed
       - file not referenced by profile_details, profile_posts or
         profile_images of that profile, and older than the grace period
         → the file is removed (this covers abandoned .upload-*.part files)

The grace period keeps files that were written for a request whose database
write has not committed yet.

Run:
    python -m profilebook.maintenance
"""

import asyncio
import logging
import time
from typing import Dict, Optional, Set

from sqlalchemy import select, union
from sqlalchemy.ext.asyncio import AsyncSession

from profilebook.config import settings
from profilebook.database import async_session_factory, dispose_engine
from profilebook.models.profile import Profile, ProfileDetails, ProfileImage, ProfilePost
from profilebook.services.storage_service import StorageService, storage_service

logger = logging.getLogger(__name__)


async def referenced_files(db: AsyncSession, profile_id: int) -> Set[str]:
    """Every filename a row of this profile points at."""
    query = union(
        select(ProfileDetails.profile_pic).where(ProfileDetails.id == profile_id),
        select(ProfileDetails.profile_background).where(ProfileDetails.id == profile_id),
        select(ProfilePost.pics).where(ProfilePost.id == profile_id),
        select(ProfileImage.image).where(ProfileImage.id == profile_id),
    )
    result = await db.execute(query)
    return {name for (name,) in result if name}


async def reconcile_storage(
    db: AsyncSession,
    storage: StorageService,
    grace_seconds: Optional[float] = None,
) -> Dict[str, int]:
    """
    Delete orphaned image directories and unreferenced files.

    Returns:
        {"profiles_checked", "directories_removed", "files_removed"}
    """
    grace = settings.upload_tmp_grace_seconds if grace_seconds is None else grace_seconds
    cutoff = time.time() - grace

    result = await db.execute(select(Profile.id))
    existing = {profile_id for (profile_id,) in result}

    summary = {"profiles_checked": 0, "directories_removed": 0, "files_removed": 0}
    for profile_id, directory in storage.iter_profile_dirs():
        summary["profiles_checked"] += 1

        if profile_id not in existing:
            logger.info("Profile %s no longer exists", profile_id)
            if await storage.remove_profile_dir(profile_id):
                summary["directories_removed"] += 1
            continue

        keep = await referenced_files(db, profile_id)
        for entry in directory.iterdir():
            if not entry.is_file() or entry.name in keep:
                continue
            try:
                if entry.stat().st_mtime > cutoff:
                    continue
                entry.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("Failed to delete %s: %s", entry, str(e))
                continue
            logger.info("%s was deleted", entry)
            summary["files_removed"] += 1

    logger.info(
        "Storage reconciliation: %d profiles checked, %d directories and %d files removed",
        summary["profiles_checked"],
        summary["directories_removed"],
        summary["files_removed"],
    )
    return summary


async def run_reconciliation() -> Dict[str, int]:
    """Runs one pass with its own session and disposes the engine afterwards."""
    try:
        async with async_session_factory() as db:
            return await reconcile_storage(db, storage_service)
    finally:
        await dispose_engine()


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    print(asyncio.run(run_reconciliation()))


if __name__ == "__main__":
    main()
