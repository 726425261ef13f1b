"""Pydantic schemas for gated profile reads."""
from __future__ import annotations
from typing import Any, Optional
from pydantic import BaseModel


class ProfileView(BaseModel):
    profile_id: str
    name: str
    type_of_work: Optional[str] = None
    profile_picture: Optional[str] = None
    bio: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    social_links: Optional[dict[str, Any]] = None
    custom_links: Optional[list[Any]] = None
    # Present only when the owner's privacy flags allow it
    email: Optional[str] = None
    mobile: Optional[str] = None
    date_of_birth: Optional[str] = None


class PublicProfileCheck(BaseModel):
    is_public: bool
    profile: Optional[ProfileView] = None
    profile_name: Optional[str] = None
    profile_type: Optional[str] = None
