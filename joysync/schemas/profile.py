"""Pydantic schemas for user profiles."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

ProfileRole = Literal["user", "admin"]


class ProfileData(BaseModel):
    """Display data for a user."""

    user_id: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: ProfileRole = "user"

    model_config = {"from_attributes": True, "frozen": True}


class ProfileUpsert(BaseModel):
    """Schema for creating or updating a profile. Unset fields are left as they are."""

    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[ProfileRole] = None
