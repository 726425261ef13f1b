"""Access-request lifecycle: creation, owner response and lazy expiry.

    pending ──approve──▶ approved ──(expires_at passes)──▶ expired
       ├────deny─────▶ denied
       └──(expires_at passes)──▶ expired

Responsibilities:
- Contact validation and the duplicate-pending guard on creation
- Conditional status writes: an UPDATE only lands if the row is still in a
  status it may leave, so racing responders produce exactly one winner
- Lazy expiry on every read path (no background sweep)
- Fire-and-forget notifications through BackgroundTasks
"""
import logging
import re
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from fastapi import BackgroundTasks
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from app import errors
from app.config import settings
from app.models.access_request import AccessRequest, AccessRequestStatus, LIVE_STATUSES
from app.models.profile import Profile
from app.services.clock import as_utc
from app.services.notifier import Notifier, deliver_safely
from app.services.tokens import MAX_ATTEMPTS, issue_unique_token

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MOBILE_RE = re.compile(r"^[+]?[\d\s\-()]{10,15}$")
MOBILE_SEPARATORS_RE = re.compile(r"[\s\-()]")

NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 255


def approval_link(token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/approve-access?token={token}"


def profile_access_link(profile_id: str, token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/profile/{profile_id}?token={token}"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize_mobile(mobile: Optional[str]) -> Optional[str]:
    """Drop spaces, dashes and brackets so one number has one stored form."""
    if mobile is None:
        return None
    return MOBILE_SEPARATORS_RE.sub("", mobile) or None


def _validate_contact(name: Optional[str], email: Optional[str], mobile: Optional[str]) -> None:
    if name and len(name) > NAME_MAX_LENGTH:
        raise errors.ValidationError(f"Name must be at most {NAME_MAX_LENGTH} characters")
    if not email and not mobile:
        raise errors.ValidationError("Either email or mobile number is required")
    if email and (len(email) > EMAIL_MAX_LENGTH or not EMAIL_RE.match(email)):
        raise errors.ValidationError("Please enter a valid email address")
    if mobile and not MOBILE_RE.match(mobile):
        raise errors.ValidationError("Please enter a valid mobile number")


def find_by_token(db: Session, token: str) -> Optional[AccessRequest]:
    return db.query(AccessRequest).filter(AccessRequest.access_token == token).first()


def _get_by_token(db: Session, token: str) -> AccessRequest:
    access_request = find_by_token(db, token)
    if not access_request:
        raise errors.NotFound("Invalid access request token")
    return access_request


def is_lapsed(access_request: AccessRequest, now: datetime) -> bool:
    return access_request.status in LIVE_STATUSES and now > as_utc(access_request.expires_at)


def transition_status(
    db: Session,
    request_id: str,
    from_statuses: Iterable[AccessRequestStatus],
    values: dict[str, Any],
) -> bool:
    """Conditionally move one request out of ``from_statuses``.

    Returns False when another writer changed the row first.
    """
    updated = (
        db.query(AccessRequest)
        .filter(
            AccessRequest.request_id == request_id,
            AccessRequest.status.in_(list(from_statuses)),
        )
        .update(values, synchronize_session=False)
    )
    db.commit()
    return updated == 1


def expire_if_lapsed(db: Session, access_request: AccessRequest, now: datetime) -> bool:
    """Materialize the ``expired`` transition if the request's time is up.

    Idempotent. If the write fails the caller still sees ``expired``.
    Returns True when the request is expired after the call.
    """
    if not is_lapsed(access_request, now):
        return access_request.status == AccessRequestStatus.expired

    request_id = access_request.request_id
    try:
        transition_status(
            db,
            request_id,
            LIVE_STATUSES,
            {"status": AccessRequestStatus.expired, "updated_at": now},
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not persist expiry of access request %s", request_id)
        set_committed_value(access_request, "status", AccessRequestStatus.expired)
        return True

    db.refresh(access_request)
    logger.info("Access request %s expired", request_id)
    return access_request.status == AccessRequestStatus.expired


def create_request(
    db: Session,
    *,
    profile_id: str,
    requester_name: Optional[str],
    requester_email: Optional[str],
    requester_mobile: Optional[str],
    now: datetime,
    notifier: Notifier,
    background_tasks: BackgroundTasks,
) -> AccessRequest:
    """Open a pending request for a profile and notify its owner."""
    requester_name = _clean(requester_name)
    requester_email = _clean(requester_email)
    requester_email = requester_email.lower() if requester_email else None
    requester_mobile = normalize_mobile(_clean(requester_mobile))
    _validate_contact(requester_name, requester_email, requester_mobile)

    profile = db.query(Profile).filter(Profile.profile_id == profile_id).first()
    if not profile:
        raise errors.NotFound("Profile not found")

    contact_match = []
    if requester_email:
        contact_match.append(AccessRequest.requester_email == requester_email)
    if requester_mobile:
        contact_match.append(AccessRequest.requester_mobile == requester_mobile)

    existing = (
        db.query(AccessRequest)
        .filter(
            AccessRequest.profile_id == profile_id,
            or_(*contact_match),
            AccessRequest.status == AccessRequestStatus.pending,
            AccessRequest.expires_at > now,
        )
        .first()
    )
    if existing:
        raise errors.Conflict(
            "You already have a pending request for this profile. Please wait for the owner's response."
        )

    for attempt in range(1, MAX_ATTEMPTS + 1):
        access_request = AccessRequest(
            profile_id=profile_id,
            requester_name=requester_name,
            requester_email=requester_email,
            requester_mobile=requester_mobile,
            access_token=issue_unique_token(db),
            status=AccessRequestStatus.pending,
            expires_at=now + timedelta(hours=settings.ACCESS_REQUEST_TTL_HOURS),
            created_at=now,
            updated_at=now,
        )
        db.add(access_request)
        try:
            db.commit()
            break
        except IntegrityError:
            # another request took the token between the check and the insert
            db.rollback()
            if attempt == MAX_ATTEMPTS:
                raise
            logger.warning("Access token taken on insert (attempt %d), regenerating", attempt)
    db.refresh(access_request)
    logger.info("Access request %s created for profile %s", access_request.request_id, profile_id)

    if profile.email:
        background_tasks.add_task(
            deliver_safely,
            notifier.notify_owner_of_request,
            owner_email=profile.email,
            owner_name=profile.name,
            profile_type=profile.type_of_work or "Professional Profile",
            requester_name=requester_name,
            requester_contact=requester_email or requester_mobile,
            approval_link=approval_link(access_request.access_token),
            expires_at=as_utc(access_request.expires_at),
        )
    else:
        logger.info("Profile %s has no email, owner not notified of request %s", profile_id, access_request.request_id)
    return access_request


def respond_to_request(
    db: Session,
    *,
    token: str,
    approve: bool,
    now: datetime,
    notifier: Notifier,
    background_tasks: BackgroundTasks,
) -> AccessRequest:
    """Record the owner's answer to a pending request."""
    access_request = _get_by_token(db, token)

    if expire_if_lapsed(db, access_request, now):
        raise errors.Expired("Access request has expired")
    if access_request.status != AccessRequestStatus.pending:
        raise errors.AlreadyResponded(f"Access request was already {access_request.status.value}")

    new_status = AccessRequestStatus.approved if approve else AccessRequestStatus.denied
    won = transition_status(
        db,
        access_request.request_id,
        (AccessRequestStatus.pending,),
        {"status": new_status, "responded_at": now, "updated_at": now},
    )
    db.refresh(access_request)
    if not won:
        raise errors.AlreadyResponded(f"Access request was already {access_request.status.value}")
    logger.info("Access request %s %s", access_request.request_id, new_status.value)

    if approve:
        if access_request.requester_email:
            background_tasks.add_task(
                deliver_safely,
                notifier.notify_requester_of_approval,
                requester_email=access_request.requester_email,
                requester_name=access_request.requester_name,
                access_link=profile_access_link(access_request.profile_id, access_request.access_token),
                owner_name=access_request.profile.name,
                expires_at=as_utc(access_request.expires_at),
            )
        else:
            logger.info("Access request %s has no requester email, approval not sent", access_request.request_id)
    return access_request


def get_request_details(db: Session, *, token: str, now: datetime) -> AccessRequest:
    """Look up a request by token for the owner's approval prompt."""
    access_request = _get_by_token(db, token)
    expire_if_lapsed(db, access_request, now)
    return access_request
