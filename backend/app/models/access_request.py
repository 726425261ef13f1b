"""AccessRequest ORM model: the only entity with a lifecycle."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class AccessRequestStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    denied = "denied"
    expired = "expired"


# Statuses that still lapse into ``expired`` once expires_at has passed
LIVE_STATUSES = (AccessRequestStatus.pending, AccessRequestStatus.approved)


class AccessRequest(Base):
    __tablename__ = "access_requests"

    request_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    profile_id = Column(String(36), ForeignKey("profiles.profile_id"), nullable=False, index=True)
    requester_name = Column(String(100), nullable=True)
    requester_email = Column(String(255), nullable=True, index=True)
    requester_mobile = Column(String(20), nullable=True, index=True)
    access_token = Column(String(64), nullable=False, unique=True, index=True)
    status = Column(SAEnum(AccessRequestStatus), nullable=False, default=AccessRequestStatus.pending, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    profile = relationship("Profile")
