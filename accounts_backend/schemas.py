"""
Pydantic schemas for the accounts backend.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    # Presence is checked by the handler so missing fields map to 400.
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class RegisterResponse(BaseModel):
    message: str


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    id: str
    email: str
    message: str
    success: Literal[True] = True


class ProfileResponse(BaseModel):
    id: str
    fullName: str
    mobile: str
    email: str
    location: str
    bio: str
    profileImage: Optional[str] = None
    profileImageType: Optional[str] = None
    coverImage: Optional[str] = None
    coverImageType: Optional[str] = None


class AddProfileResponse(BaseModel):
    message: str
    profileId: str


class UploadResponse(BaseModel):
    message: str
    filePath: str


class ErrorResponse(BaseModel):
    message: str
    error: Optional[str] = None
