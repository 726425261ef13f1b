"""Profile Gate: who may read a profile, and which fields they get.

Two independent layers:
- an approved, unexpired access request grants temporal access to a
  private profile
- the owner's privacy flags decide field visibility for every reader,
  approved or public
"""
import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from app import errors
from app.models.access_request import AccessRequestStatus
from app.models.profile import Profile
from app.services.access_request_service import expire_if_lapsed, find_by_token

logger = logging.getLogger(__name__)

INVALID_TOKEN = "Invalid or expired access token"

DESCRIPTIVE_FIELDS = (
    "name",
    "type_of_work",
    "profile_picture",
    "bio",
    "department",
    "position",
    "social_links",
    "custom_links",
)

# field -> privacy flag that must be true for the field to be shown
GATED_FIELDS = {
    "email": "showEmail",
    "mobile": "showMobile",
    "date_of_birth": "showDateOfBirth",
}


def redact_profile(profile: Profile) -> dict[str, Any]:
    view = {"profile_id": profile.profile_id}
    for field in DESCRIPTIVE_FIELDS:
        view[field] = getattr(profile, field)
    for field, flag in GATED_FIELDS.items():
        if profile.privacy_flag(flag):
            view[field] = getattr(profile, field)
    return view


def _get_profile(db: Session, profile_id: str) -> Profile:
    profile = db.query(Profile).filter(Profile.profile_id == profile_id).first()
    if not profile:
        raise errors.NotFound("Profile not found")
    return profile


def view_profile(db: Session, *, profile_id: str, token: str, now: datetime) -> dict[str, Any]:
    """Read a private profile with a token from an approved access request."""
    access_request = find_by_token(db, token)
    if not access_request:
        raise errors.NotFound(INVALID_TOKEN)
    if access_request.profile_id != profile_id:
        logger.warning("Access request %s presented for foreign profile %s", access_request.request_id, profile_id)
        raise errors.Forbidden(INVALID_TOKEN)
    if expire_if_lapsed(db, access_request, now):
        raise errors.Expired("Access token has expired")
    if access_request.status != AccessRequestStatus.approved:
        raise errors.Forbidden(INVALID_TOKEN)

    return redact_profile(_get_profile(db, profile_id))


def check_public_or_gated(db: Session, *, profile_id: str) -> dict[str, Any]:
    """Public profiles are returned directly; private ones only expose what the request prompt needs."""
    profile = _get_profile(db, profile_id)
    if profile.is_public and profile.privacy_flag("allowProfileViews"):
        return {"is_public": True, "profile": redact_profile(profile)}
    return {
        "is_public": False,
        "profile_name": profile.name,
        "profile_type": profile.type_of_work or "Professional Profile",
    }
