"""
Profilebook Backend — Pydantic Request/Response Schemas
========================================================

What:  Pydantic models defining the API contract with the web client.
How:   FastAPI validates JSON request bodies against the request models and
       serializes handler results through the response models.

Wire names:
    The field names are the ones the existing web client sends and reads
    (camelCase in places, `pass` as a key, `e_mail` as a column name).
    Where a wire name is not a valid Python identifier, an alias is used.
    Ids arrive as numbers or numeric strings; both are accepted.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    """POST /registrate"""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    lastName: str
    email: str
    password: str = Field(alias="pass")


class LoginRequest(BaseModel):
    """POST /login: first name, e-mail and password must all match."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    email: str
    password: str = Field(alias="pass")


class UpdateDataRequest(BaseModel):
    """POST /update-data"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    certificate: Optional[str] = None
    school: Optional[str] = None
    place: Optional[str] = None
    about: Optional[str] = None
    linkedIn: Optional[str] = None
    id: int


class TextPostRequest(BaseModel):
    """POST /post_textonly"""
    txt: Optional[str] = None
    id: int


class NewsRequest(BaseModel):
    """POST /news"""
    what: str = ""


class DeletePictureRequest(BaseModel):
    """
    POST /delete-img

    `what` names the picture column; "profile_background" clears the
    background, any other value clears the profile picture.
    """
    what: Optional[str] = None
    name: Optional[str] = None
    id: int


class DeleteEntryRequest(BaseModel):
    """POST /delete_imgpost and /delete-post"""
    profileID: int
    id: int
    name: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ProfileData(BaseModel):
    """Joined profile + profile_details row returned by GET /data/{id}."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    e_mail: Optional[str] = None
    certificate: Optional[str] = None
    school: Optional[str] = None
    place: Optional[str] = None
    about_me: Optional[str] = None
    links: Optional[str] = None
    profile_pic: Optional[str] = None
    profile_background: Optional[str] = None


class PostItem(BaseModel):
    """One row of GET /posts/{id}."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    post: Optional[str] = None
    pics: Optional[str] = None
    date: int
    posts_id: int


class ImageItem(BaseModel):
    """One row of GET /images/{id}."""
    model_config = ConfigDict(from_attributes=True)

    image: str
    date: int
    images_id: int


class MessageResponse(BaseModel):
    """Plain user-facing message; `status` is only present on success."""
    message: str
    status: Optional[int] = None


class LoginResponse(BaseModel):
    """`id` and `imageName` are only present when authentication succeeded."""
    message: bool
    id: Optional[int] = None
    imageName: Optional[str] = None


class UploadResponse(BaseModel):
    """`message` carries the generated filename of the new picture."""
    message: str
    status: int = 200


class UpdatedFields(BaseModel):
    newName: Optional[str] = None
    newLastName: Optional[str] = None
    newCert: Optional[str] = None
    newSchool: Optional[str] = None
    newPlace: Optional[str] = None
    newAbout: Optional[str] = None
    newLink: Optional[str] = None


class UpdateDataResponse(BaseModel):
    message: UpdatedFields
    status: int = 200


class CreatedPost(BaseModel):
    """Echo of a new post so the client can render it without a re-fetch."""
    id: int
    post: Optional[str] = None
    pics: str = ""
    date: int
    postid: int


class CreatedPostResponse(BaseModel):
    message: CreatedPost
    status: int = 200


class CreatedImage(BaseModel):
    """Echo of a new standalone image; `post` holds the image filename."""
    id: int
    post: str
    date: int
    imgID: int


class CreatedImageResponse(BaseModel):
    message: CreatedImage
    status: int = 200


class DeletedResponse(BaseModel):
    """`message` echoes the id of the deleted post or image."""
    message: int
    status: int = 200


class ErrorResponse(BaseModel):
    """
    Error payload for every failed request.

    `message` is always "Error" so clients can detect failures by payload
    shape; `error` is a machine-readable code; `request_id` correlates
    with server logs.
    """
    message: str = "Error"
    error: Optional[str] = None
    request_id: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str
    database: str = Field(description="connected, disconnected")
    storage: str = Field(description="writable, unwritable")
    news: str = Field(description="configured, unconfigured")
    uptime_seconds: float

