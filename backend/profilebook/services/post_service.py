"""
Profilebook Backend — Post Service
===================================

What:  Posts (`profile_posts`) and standalone images (`profile_images`).
How:   Inserts return the generated id so the client can render the new
       entry without re-fetching; listings are newest first.
Who:   Called by routes/posts.py.
"""

import logging
from typing import List, NamedTuple, Optional

from sqlalchemy import delete, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from profilebook.exceptions import DatabaseError
from profilebook.models.profile import ProfileImage, ProfilePost
from profilebook.schemas.profile import CreatedImage, CreatedPost, ImageItem, PostItem
from profilebook.services.storage_service import current_millis

logger = logging.getLogger(__name__)


class DeletedEntry(NamedTuple):
    """Owner and image filename of a deleted post or image row."""

    profile_id: int
    filename: Optional[str]


class PostService:
    """Stateless; every method receives the request's AsyncSession."""

    async def list_posts(self, db: AsyncSession, profile_id: int) -> List[PostItem]:
        """All posts of a profile, ordered by date DESC (post id breaks ties)."""
        try:
            result = await db.execute(
                select(ProfilePost)
                .where(ProfilePost.id == profile_id)
                .order_by(desc(ProfilePost.date), desc(ProfilePost.posts_id))
            )
            posts = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing posts of %s: %s", profile_id, str(e))
            raise DatabaseError(context={"profile_id": profile_id})
        return [PostItem.model_validate(post) for post in posts]

    async def list_images(self, db: AsyncSession, profile_id: int) -> List[ImageItem]:
        """All standalone images of a profile, ordered by date DESC."""
        try:
            result = await db.execute(
                select(ProfileImage)
                .where(ProfileImage.id == profile_id)
                .order_by(desc(ProfileImage.date), desc(ProfileImage.images_id))
            )
            images = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing images of %s: %s", profile_id, str(e))
            raise DatabaseError(context={"profile_id": profile_id})
        return [ImageItem.model_validate(image) for image in images]

    async def create_post(
        self,
        db: AsyncSession,
        profile_id: int,
        text: Optional[str],
        pics: str = "",
    ) -> CreatedPost:
        """
        Insert a post; `pics` is the stored image filename or "" for text-only.

        Commits before returning so a failure here lets the caller discard
        the uploaded image.
        """
        post = ProfilePost(id=profile_id, post=text, pics=pics, date=current_millis())
        try:
            db.add(post)
            await db.flush()  # assigns posts_id
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error creating post for %s: %s", profile_id, str(e))
            raise DatabaseError(context={"profile_id": profile_id})

        logger.info("Post %s created for profile %s", post.posts_id, profile_id)
        return CreatedPost(id=profile_id, post=text, pics=pics, date=post.date, postid=post.posts_id)

    async def create_image(self, db: AsyncSession, profile_id: int, image: str) -> CreatedImage:
        """Insert a standalone image entry."""
        entry = ProfileImage(id=profile_id, image=image, date=current_millis())
        try:
            db.add(entry)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error creating image for %s: %s", profile_id, str(e))
            raise DatabaseError(context={"profile_id": profile_id})

        logger.info("Image %s created for profile %s", entry.images_id, profile_id)
        return CreatedImage(id=profile_id, post=image, date=entry.date, imgID=entry.images_id)

    async def delete_post(self, db: AsyncSession, posts_id: int) -> Optional[DeletedEntry]:
        """
        Delete one post and commit.

        Returns the owner id and image filename of the deleted post so the
        caller can remove the image, or None when no such post existed.
        """
        try:
            result = await db.execute(
                select(ProfilePost.id, ProfilePost.pics).where(ProfilePost.posts_id == posts_id)
            )
            row = result.first()
            await db.execute(delete(ProfilePost).where(ProfilePost.posts_id == posts_id))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting post %s: %s", posts_id, str(e))
            raise DatabaseError(context={"posts_id": posts_id})
        return DeletedEntry(row.id, row.pics) if row else None

    async def delete_image(self, db: AsyncSession, images_id: int) -> Optional[DeletedEntry]:
        """Delete one standalone image entry and commit; returns its owner and filename, or None."""
        try:
            result = await db.execute(
                select(ProfileImage.id, ProfileImage.image).where(ProfileImage.images_id == images_id)
            )
            row = result.first()
            await db.execute(delete(ProfileImage).where(ProfileImage.images_id == images_id))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting image %s: %s", images_id, str(e))
            raise DatabaseError(context={"images_id": images_id})
        return DeletedEntry(row.id, row.image) if row else None


# ── Singleton Instance ────────────────────────────────────────────────────
post_service = PostService()
