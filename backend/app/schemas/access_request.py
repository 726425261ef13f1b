"""Pydantic schemas for AccessRequests."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, StrictBool


class AccessRequestCreate(BaseModel):
    profile_id: str = Field(..., min_length=1)
    # Length and format of contact fields are checked by the service
    requester_name: Optional[str] = None
    requester_email: Optional[str] = None
    requester_mobile: Optional[str] = None


class AccessRequestCreated(BaseModel):
    # The token is deliberately absent: it only reaches the owner by email
    request_id: str
    status: str
    expires_at: datetime
    message: str


class AccessRequestRespond(BaseModel):
    token: str = Field(..., min_length=1)
    approve: StrictBool


class AccessRequestResponded(BaseModel):
    status: str
    message: str


class ProfileOwnerOut(BaseModel):
    name: str
    type_of_work: Optional[str] = None

    model_config = {"from_attributes": True}


class AccessRequestDetails(BaseModel):
    request_id: str
    profile_owner: ProfileOwnerOut = Field(validation_alias="profile")
    requester_name: Optional[str] = None
    requester_email: Optional[str] = None
    requester_mobile: Optional[str] = None
    status: str
    expires_at: datetime
    created_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
