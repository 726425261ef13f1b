"""Access token issuer."""
import logging
import secrets

from sqlalchemy.orm import Session

from app.models.access_request import AccessRequest

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32  # 256 bits -> 64 hex chars
MAX_ATTEMPTS = 5


def issue_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def issue_unique_token(db: Session) -> str:
    """Issue a token not yet held by any access request.

    A collision is practically impossible; the unique index on
    ``access_requests.access_token`` still guards the insert.
    """
    for attempt in range(1, MAX_ATTEMPTS + 1):
        token = issue_token()
        taken = db.query(AccessRequest.request_id).filter(AccessRequest.access_token == token).first()
        if taken is None:
            return token
        logger.warning("Access token collision on attempt %d, regenerating", attempt)
    raise RuntimeError(f"Could not issue a unique access token after {MAX_ATTEMPTS} attempts")
