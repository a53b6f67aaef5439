"""
Profilebook Backend — Profile Service
======================================

What:  Registration, login, profile reads/updates, picture columns and
       profile deletion.
How:   Parameterized SQLAlchemy statements against the session injected by
       the route. Methods that are followed by a filesystem change commit
       before returning, so a file is only ever deleted after the database
       stopped referencing it.
Who:   Called by routes/profile.py and routes/uploads.py.

Outcome vs Error:
    Registration and login report their negative outcomes ("null" placeholder,
    duplicate e-mail, wrong credentials) as normal responses. Only unexpected
    database failures raise DatabaseError.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from profilebook.exceptions import DatabaseError, NotFoundError
from profilebook.models.profile import Profile, ProfileDetails, ProfileImage, ProfilePost
from profilebook.schemas.profile import (
    LoginResponse,
    MessageResponse,
    ProfileData,
    UpdateDataRequest,
    UpdatedFields,
    UpdateDataResponse,
)
from profilebook.security import hash_password, verify_password

logger = logging.getLogger(__name__)

# The web client sends the string "null" for empty registration inputs
NULL_PLACEHOLDER = "null"

MSG_NULL_REJECTED = "You can't insert null! Try again."
MSG_DUPLICATE_EMAIL = "User with that E-mail already exists!"
MSG_REGISTERED = "Successfully registered, you can now login."

PROFILE_PIC = "profile_pic"
PROFILE_BACKGROUND = "profile_background"


class ProfileService:
    """
    Business logic for the `profile` and `profile_details` tables.

    Stateless; every method receives the request's AsyncSession.
    """

    async def get_profile(self, db: AsyncSession, profile_id: int) -> Optional[ProfileData]:
        """
        Joined profile + details row, or None when the profile does not exist.

        Query:
            SELECT p.id, first_name, …, profile_background
            FROM profile p INNER JOIN profile_details pd ON p.id = pd.id
            WHERE p.id = :id
        """
        query = (
            select(
                Profile.id,
                Profile.first_name,
                Profile.last_name,
                Profile.e_mail,
                ProfileDetails.certificate,
                ProfileDetails.school,
                ProfileDetails.place,
                ProfileDetails.about_me,
                ProfileDetails.links,
                ProfileDetails.profile_pic,
                ProfileDetails.profile_background,
            )
            .join(ProfileDetails, Profile.id == ProfileDetails.id)
            .where(Profile.id == profile_id)
        )
        try:
            result = await db.execute(query)
            row = result.mappings().first()
        except SQLAlchemyError as e:
            logger.error("Database error fetching profile %s: %s", profile_id, str(e))
            raise DatabaseError(context={"profile_id": profile_id})

        if row is None:
            return None
        return ProfileData(**row)

    async def _email_taken(self, db: AsyncSession, email: str) -> bool:
        result = await db.execute(select(Profile.id).where(Profile.e_mail == email))
        return result.first() is not None

    async def register(
        self,
        db: AsyncSession,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
    ) -> MessageResponse:
        """
        Create a profile and its empty details row in one transaction.

        Returns one of three user-facing messages; see module constants.
        """
        if NULL_PLACEHOLDER in (first_name, last_name, email, password):
            return MessageResponse(message=MSG_NULL_REJECTED)

        try:
            if await self._email_taken(db, email):
                return MessageResponse(message=MSG_DUPLICATE_EMAIL)

            profile = Profile(
                first_name=first_name,
                last_name=last_name,
                e_mail=email,
                password=await hash_password(password),
            )
            db.add(profile)
            await db.flush()  # assigns profile.id

            db.add(ProfileDetails(id=profile.id))
            await db.commit()
        except IntegrityError:
            # Concurrent registration with the same e-mail won the race
            await db.rollback()
            logger.info("Registration rejected by unique constraint for e-mail")
            return MessageResponse(message=MSG_DUPLICATE_EMAIL)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error during registration: %s", str(e), exc_info=True)
            raise DatabaseError(message="Registration failed")

        logger.info("Registered profile %s", profile.id)
        return MessageResponse(message=MSG_REGISTERED, status=200)

    async def login(self, db: AsyncSession, name: str, email: str, password: str) -> LoginResponse:
        """
        Authenticate with first name + e-mail + password.

        On success the profile id and its current picture filename are returned;
        on any mismatch only {"message": false}.
        """
        try:
            result = await db.execute(
                select(Profile.id, Profile.password, ProfileDetails.profile_pic)
                .outerjoin(ProfileDetails, Profile.id == ProfileDetails.id)
                .where(Profile.first_name == name, Profile.e_mail == email)
            )
            row = result.first()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e))
            raise DatabaseError(message="Login failed")

        if row is None or not await verify_password(password, row.password):
            return LoginResponse(message=False)

        return LoginResponse(message=True, id=row.id, imageName=row.profile_pic)

    async def update_data(self, db: AsyncSession, payload: UpdateDataRequest) -> UpdateDataResponse:
        """
        Update the details fields and the name fields together.

        Both statements run in the request's transaction; either both
        changes are committed or neither is.
        """
        try:
            await db.execute(
                update(ProfileDetails)
                .where(ProfileDetails.id == payload.id)
                .values(
                    certificate=payload.certificate,
                    school=payload.school,
                    place=payload.place,
                    about_me=payload.about,
                    links=payload.linkedIn,
                )
            )
            await db.execute(
                update(Profile)
                .where(Profile.id == payload.id)
                .values(first_name=payload.first_name, last_name=payload.last_name)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error updating profile %s: %s", payload.id, str(e))
            raise DatabaseError(context={"profile_id": payload.id})

        return UpdateDataResponse(
            message=UpdatedFields(
                newName=payload.first_name,
                newLastName=payload.last_name,
                newCert=payload.certificate,
                newSchool=payload.school,
                newPlace=payload.place,
                newAbout=payload.about,
                newLink=payload.linkedIn,
            ),
        )

    async def _current_picture(self, db: AsyncSession, profile_id: int, column: str) -> Tuple[bool, Optional[str]]:
        """(details row exists, filename the column references)"""
        if column == PROFILE_BACKGROUND:
            query = select(ProfileDetails.profile_background)
        else:
            query = select(ProfileDetails.profile_pic)
        result = await db.execute(query.where(ProfileDetails.id == profile_id))
        row = result.first()
        if row is None:
            return False, None
        return True, row[0]

    async def _write_picture(
        self,
        db: AsyncSession,
        profile_id: int,
        column: str,
        filename: Optional[str],
        missing_ok: bool = False,
    ) -> Optional[str]:
        """
        Point a picture column at `filename` (None clears it) and commit.

        Returns the filename the column referenced before, which the caller
        removes from disk once this returns. An unknown profile raises
        NotFoundError unless `missing_ok`, in which case nothing changes.
        """
        try:
            exists, previous = await self._current_picture(db, profile_id, column)
            if not exists:
                await db.rollback()
                if missing_ok:
                    return None
                raise NotFoundError(resource="profile", resource_id=str(profile_id))
            if column == PROFILE_BACKGROUND:
                stmt = update(ProfileDetails).values(profile_background=filename)
            else:
                stmt = update(ProfileDetails).values(profile_pic=filename)
            await db.execute(stmt.where(ProfileDetails.id == profile_id))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error updating %s of profile %s: %s", column, profile_id, str(e))
            raise DatabaseError(context={"profile_id": profile_id, "column": column})
        return previous

    async def set_picture(self, db: AsyncSession, profile_id: int, column: str, filename: str) -> Optional[str]:
        """Store a new profile picture or background filename; returns the superseded one."""
        return await self._write_picture(db, profile_id, column, filename)

    async def clear_picture(self, db: AsyncSession, profile_id: int, which: Optional[str]) -> Optional[str]:
        """
        Set a picture column to NULL without touching the rest of the row.

        `which == "profile_background"` clears the background; any other
        value clears the profile picture. Returns the cleared filename; an
        unknown profile is a no-op returning None.
        """
        column = PROFILE_BACKGROUND if which == PROFILE_BACKGROUND else PROFILE_PIC
        return await self._write_picture(db, profile_id, column, None, missing_ok=True)

    async def delete_profile(self, db: AsyncSession, profile_id: int) -> bool:
        """
        Delete a profile and every row that depends on it, then commit.

        Returns True when a profile row was removed. The caller deletes the
        image directory afterwards.
        """
        try:
            await db.execute(delete(ProfileImage).where(ProfileImage.id == profile_id))
            await db.execute(delete(ProfilePost).where(ProfilePost.id == profile_id))
            await db.execute(delete(ProfileDetails).where(ProfileDetails.id == profile_id))
            result = await db.execute(delete(Profile).where(Profile.id == profile_id))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting profile %s: %s", profile_id, str(e))
            raise DatabaseError(context={"profile_id": profile_id})

        deleted = result.rowcount > 0
        logger.info("Profile %s deleted (existed=%s)", profile_id, deleted)
        return deleted


# ── Singleton Instance ────────────────────────────────────────────────────
profile_service = ProfileService()
