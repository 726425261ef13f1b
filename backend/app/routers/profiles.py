"""Profile read routes: the public check and the token-gated view."""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.services import profile_gate
from app.services.clock import Clock, get_clock
from app.schemas.profile import ProfileView, PublicProfileCheck

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{profile_id}/public", response_model=PublicProfileCheck, response_model_exclude_none=True)
def check_public_profile(profile_id: str, db: Session = Depends(get_db)):
    """Public profile, or just enough to render the request-access prompt."""
    return profile_gate.check_public_or_gated(db, profile_id=profile_id)


@router.get("/{profile_id}/view", response_model=ProfileView, response_model_exclude_none=True)
def view_profile(
    profile_id: str,
    token: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Private profile read with a token from an approved access request."""
    return profile_gate.view_profile(db, profile_id=profile_id, token=token, now=clock())
