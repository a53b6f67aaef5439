"""
Profilebook Backend — Profile SQLAlchemy Models
================================================

What:  ORM models for the `profile`, `profile_details`, `profile_posts`
       and `profile_images` tables.
How:   Inherit from the shared DeclarativeBase; Alembic revision 001 creates
       the same schema, and the test suite builds it with metadata.create_all().
Who:   Used by ProfileService and PostService.

Table Design:
    - profile:          identity record; e_mail is unique
    - profile_details:  one-to-one extension keyed by the profile id
    - profile_posts:    text/image posts; `pics` holds one image filename or ""
    - profile_images:   standalone images
    - `date` columns:   creation time as epoch milliseconds (BIGINT), which is
                        what the web client sorts and displays

Cascade Policy:
    Every child table references profile.id with ON DELETE CASCADE, and
    ProfileService.delete_profile() also deletes the child rows explicitly in
    the same transaction. Deployments where the database does not enforce
    foreign keys (SQLite without PRAGMA foreign_keys) therefore behave the same.
"""

from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from profilebook.database import Base


class Profile(Base):
    """Core user identity record (name, e-mail, password hash)."""

    __tablename__ = "profile"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(255))
    last_name: Mapped[Optional[str]] = mapped_column(String(255))
    e_mail: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    # pbkdf2_sha256$<iterations>$<salt>$<hash>; rows imported from the old
    # database may still hold a plaintext value (see security.verify_password)
    password: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, e_mail='{self.e_mail}')>"


class ProfileDetails(Base):
    """
    Extended one-to-one profile attributes.

    Created empty in the same transaction as its Profile; every column other
    than the id starts out NULL.
    """

    __tablename__ = "profile_details"

    id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("profile.id", ondelete="CASCADE"),
        primary_key=True,
        autoincrement=False,
    )
    certificate: Mapped[Optional[str]] = mapped_column(Text)
    school: Mapped[Optional[str]] = mapped_column(Text)
    place: Mapped[Optional[str]] = mapped_column(Text)
    about_me: Mapped[Optional[str]] = mapped_column(Text)
    links: Mapped[Optional[str]] = mapped_column(Text)
    profile_pic: Mapped[Optional[str]] = mapped_column(String(255))
    profile_background: Mapped[Optional[str]] = mapped_column(String(255))

    def __repr__(self) -> str:
        return f"<ProfileDetails(id={self.id}, profile_pic='{self.profile_pic}')>"


class ProfilePost(Base):
    """A text post owned by a profile, optionally carrying one image filename."""

    __tablename__ = "profile_posts"

    # Column order mirrors the positional inserts of the legacy schema:
    # (id, post, pics, date) with posts_id generated
    id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("profile.id", ondelete="CASCADE"),
        nullable=False,
    )
    post: Mapped[Optional[str]] = mapped_column(Text)
    pics: Mapped[Optional[str]] = mapped_column(String(255), default="")
    date: Mapped[int] = mapped_column(BigInteger, nullable=False)
    posts_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    def __repr__(self) -> str:
        return f"<ProfilePost(posts_id={self.posts_id}, id={self.id}, date={self.date})>"


class ProfileImage(Base):
    """A standalone image entry owned by a profile, distinct from posts."""

    __tablename__ = "profile_images"

    id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("profile.id", ondelete="CASCADE"),
        nullable=False,
    )
    image: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[int] = mapped_column(BigInteger, nullable=False)
    images_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    def __repr__(self) -> str:
        return f"<ProfileImage(images_id={self.images_id}, id={self.id}, image='{self.image}')>"


# Listings read one owner's rows newest first
Index("idx_profile_posts_owner_date", ProfilePost.id, ProfilePost.date.desc())
Index("idx_profile_images_owner_date", ProfileImage.id, ProfileImage.date.desc())
