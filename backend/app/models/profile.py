"""Profile ORM model: owned by the registration side, read-only here."""
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, JSON, Text
from sqlalchemy.sql import func
from app.database import Base

# Flags missing from a stored privacy object fall back to these
DEFAULT_PRIVACY = {
    "showEmail": False,
    "showMobile": False,
    "showDateOfBirth": False,
    "allowProfileViews": True,
    "allowConnectionRequests": True,
}


class Profile(Base):
    __tablename__ = "profiles"

    profile_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    type_of_work = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    mobile = Column(String(20), nullable=True)
    date_of_birth = Column(String(20), nullable=True)
    bio = Column(Text, nullable=True)
    department = Column(String(100), nullable=True)
    position = Column(String(100), nullable=True)
    profile_picture = Column(String(500), nullable=True)
    social_links = Column(JSON, nullable=True, default=dict)
    custom_links = Column(JSON, nullable=True, default=list)
    is_public = Column(Boolean, nullable=False, default=False)
    privacy = Column(JSON, nullable=True, default=lambda: dict(DEFAULT_PRIVACY))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def privacy_flag(self, name: str) -> bool:
        flags = self.privacy or {}
        return bool(flags.get(name, DEFAULT_PRIVACY[name]))
