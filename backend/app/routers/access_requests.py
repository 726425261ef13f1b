"""AccessRequest API routes: thin glue over access_request_service."""
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.services import access_request_service
from app.services.clock import Clock, get_clock
from app.services.notifier import Notifier, get_notifier
from app.schemas.access_request import (
    AccessRequestCreate,
    AccessRequestCreated,
    AccessRequestDetails,
    AccessRequestRespond,
    AccessRequestResponded,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=AccessRequestCreated, status_code=status.HTTP_201_CREATED)
def create_access_request(
    payload: AccessRequestCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: Notifier = Depends(get_notifier),
):
    """Ask a profile owner for access. The owner is emailed an approval link."""
    access_request = access_request_service.create_request(
        db,
        profile_id=payload.profile_id,
        requester_name=payload.requester_name,
        requester_email=payload.requester_email,
        requester_mobile=payload.requester_mobile,
        now=clock(),
        notifier=notifier,
        background_tasks=background_tasks,
    )
    return AccessRequestCreated(
        request_id=access_request.request_id,
        status=access_request.status.value,
        expires_at=access_request.expires_at,
        message="Access request sent successfully. The profile owner will be notified.",
    )


@router.get("/details", response_model=AccessRequestDetails)
def get_access_request_details(
    token: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Request details for the owner's approval page."""
    return access_request_service.get_request_details(db, token=token, now=clock())


@router.post("/respond", response_model=AccessRequestResponded)
def respond_to_access_request(
    payload: AccessRequestRespond,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: Notifier = Depends(get_notifier),
):
    """Approve or deny a pending request. Approval emails the requester a profile link."""
    access_request = access_request_service.respond_to_request(
        db,
        token=payload.token,
        approve=payload.approve,
        now=clock(),
        notifier=notifier,
        background_tasks=background_tasks,
    )
    return AccessRequestResponded(
        status=access_request.status.value,
        message="Access approved successfully" if payload.approve else "Access denied",
    )
