import enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..platform.database import Base


class VisibilityScope(str, enum.Enum):
    OFF = "off"
    CIRCLE_ONLY = "circle_only"
    PUBLIC = "public"


class TalentProfile(Base):
    __tablename__ = "talent_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True, nullable=False)
    location = Column(String, nullable=True, index=True)
    role_key = Column(String, nullable=True, index=True)
    skills = Column(JSON, nullable=True)
    housing_needed = Column(Boolean, default=False, nullable=False)
    visibility_scope = Column(String, nullable=False, default=VisibilityScope.PUBLIC.value)
    available_for_extra_hours = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="talent_profile")


class BusyBlock(Base):
    """A window in which a talent is unavailable for any shift."""

    __tablename__ = "busy_blocks"

    id = Column(Integer, primary_key=True, index=True)
    talent_user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    start_ts = Column(DateTime(timezone=True), nullable=False)
    end_ts = Column(DateTime(timezone=True), nullable=False)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
