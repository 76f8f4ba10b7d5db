"""
HTTP routes for the accounts backend API.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.concurrency import run_in_threadpool

from accounts_backend import images, messages, security
from accounts_backend.config import Settings, get_settings
from accounts_backend.db import DbClient, ProfileRecord, StoredImage, UserRecord
from accounts_backend.dependencies import get_db_client, get_storage_client
from accounts_backend.errors import (
    Conflict,
    ConstraintViolation,
    DuplicateEmail,
    ErrorCode,
    InvalidCredentialFormat,
    NotFound,
    StorageError,
    StorageUnavailable,
    Unauthorized,
    ValidationError,
)
from accounts_backend.schemas import (
    AddProfileResponse,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    RegisterRequest,
    RegisterResponse,
    UploadResponse,
)
from accounts_backend.storage import StorageClient
from accounts_backend.uploads import StagedImage, generate_filename, stage_image, stage_images

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

router = APIRouter(responses=ERROR_RESPONSES)
upload_router = APIRouter(responses=ERROR_RESPONSES)

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

MISSING_FIELDS_MESSAGE = "Please provide all required fields."


def _require(*values: Optional[str], message: str = MISSING_FIELDS_MESSAGE) -> None:
    if not all(values):
        raise ValidationError(message, code=ErrorCode.MISSING_FIELDS)


def _profile_response(profile: ProfileRecord, static_prefix: str) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        fullName=profile.full_name,
        mobile=profile.mobile,
        email=profile.email,
        location=profile.location,
        bio=profile.bio,
        profileImage=images.materialize(profile.profile_image, static_prefix),
        profileImageType=(
            profile.profile_image.content_type if profile.profile_image else None
        ),
        coverImage=images.materialize(profile.cover_image, static_prefix),
        coverImageType=(
            profile.cover_image.content_type if profile.cover_image else None
        ),
    )


@router.get("/profiles", response_model=list[ProfileResponse])
def list_profiles(
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    try:
        profiles = db.list_profiles()
    except StorageUnavailable as exc:
        logger.exception("Error fetching profiles")
        raise StorageError("Error fetching profiles") from exc
    return [_profile_response(p, settings.static_url_prefix) for p in profiles]


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(
    payload: RegisterRequest,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    _require(payload.first_name, payload.last_name, payload.email, payload.password)
    if not EMAIL_PATTERN.fullmatch(payload.email):
        raise ValidationError("Invalid email format.", code=ErrorCode.INVALID_EMAIL)
    if security.password_too_long(payload.password):
        raise ValidationError(
            f"Password must be at most {security.MAX_PASSWORD_BYTES} bytes.",
            code=ErrorCode.PASSWORD_TOO_LONG,
        )

    try:
        if db.find_user_by_email(payload.email):
            raise Conflict("Email already exists")
        user = UserRecord(
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            password=security.hash_password(
                payload.password, rounds=settings.password_hash_rounds
            ),
        )
        # The pre-check is a fast path; the gateway constraint is authoritative.
        db.insert_user(user)
    except DuplicateEmail as exc:
        raise Conflict("Email already exists") from exc
    except (StorageUnavailable, ConstraintViolation) as exc:
        logger.exception("Error registering user")
        raise StorageError("Error registering user") from exc

    logger.info("Registered user %s", user.id)
    return RegisterResponse(message=messages.message("register_success", settings.locale))


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def login(
    payload: LoginRequest,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    _require(
        payload.email,
        payload.password,
        message="Please provide both email and password.",
    )
    try:
        user = db.find_user_by_email(payload.email)
    except StorageUnavailable as exc:
        logger.exception("Error during login")
        raise StorageError("Error during login") from exc
    if not user:
        raise NotFound("User not found", code=ErrorCode.USER_NOT_FOUND)

    try:
        password_is_valid = security.verify_password(payload.password, user.password)
    except InvalidCredentialFormat as exc:
        logger.exception("Stored digest for user %s is malformed", user.id)
        raise StorageError("Error during login") from exc
    if not password_is_valid:
        raise Unauthorized("Invalid Password!", code=ErrorCode.INVALID_PASSWORD)

    return LoginResponse(
        id=user.id,
        email=user.email,
        message=messages.message("login_success", settings.locale),
        success=True,
    )


def _inline_image(staged: Optional[StagedImage]) -> Optional[StoredImage]:
    if staged is None:
        return None
    return StoredImage(content_type=staged.content_type, data=staged.data)


def _store_image(
    staged: Optional[StagedImage],
    storage: StorageClient,
    written: list[str],
) -> Optional[StoredImage]:
    if staged is None:
        return None
    filename = generate_filename(staged.filename)
    storage.put_bytes(filename, staged.data, staged.content_type)
    written.append(filename)
    return StoredImage(content_type=staged.content_type, path=filename)


def _discard(storage: StorageClient, paths: list[str]) -> None:
    for path in paths:
        try:
            storage.delete(path)
        except Exception:
            logger.warning("Could not remove orphaned upload %s", path, exc_info=True)


def _persist_profile(
    profile: ProfileRecord,
    staged: dict[str, Optional[StagedImage]],
    db: DbClient,
    storage: StorageClient,
    on_disk: bool,
) -> str:
    written: list[str] = []
    try:
        if on_disk:
            profile.profile_image = _store_image(staged["profileImage"], storage, written)
            profile.cover_image = _store_image(staged["coverImage"], storage, written)
        else:
            profile.profile_image = _inline_image(staged["profileImage"])
            profile.cover_image = _inline_image(staged["coverImage"])
        return db.insert_profile(profile)
    except (StorageUnavailable, ConstraintViolation) as exc:
        logger.exception("Error creating profile")
        _discard(storage, written)
        raise StorageError("Error creating profile") from exc


@router.post("/add-profile", response_model=AddProfileResponse, status_code=201)
async def add_profile(
    fullName: Optional[str] = Form(None),
    mobile: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    profileImage: Optional[list[UploadFile]] = File(None),
    coverImage: Optional[list[UploadFile]] = File(None),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    _require(fullName, mobile, email, location, bio)
    staged = await stage_images(
        {"profileImage": profileImage, "coverImage": coverImage}
    )

    profile = ProfileRecord(
        full_name=fullName,
        mobile=mobile,
        email=email,
        location=location,
        bio=bio,
    )
    # Storage clients are synchronous; keep them off the event loop.
    profile_id = await run_in_threadpool(
        _persist_profile,
        profile,
        staged,
        db,
        storage,
        settings.stores_images_on_disk,
    )

    logger.info("Created profile %s", profile_id)
    return AddProfileResponse(
        message=messages.message("profile_created", settings.locale),
        profileId=profile_id,
    )


@upload_router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: Optional[list[UploadFile]] = File(None),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    """
    Stores a single image and returns the URL path it is served from.

    Only routed when images are kept in file storage.
    """
    staged = await stage_image("file", file)
    if staged is None:
        raise ValidationError("No file uploaded.", code=ErrorCode.MISSING_FILE)

    filename = generate_filename(staged.filename)
    try:
        await run_in_threadpool(
            storage.put_bytes, filename, staged.data, staged.content_type
        )
    except StorageUnavailable as exc:
        logger.exception("Error storing upload")
        raise StorageError("Error uploading file") from exc

    return UploadResponse(
        message=messages.message("file_uploaded", settings.locale),
        filePath=images.static_url(filename, settings.static_url_prefix),
    )
