import enum

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..platform.database import Base


class ListingStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    MATCHING = "matching"
    CLOSED = "closed"


class ListingType(str, enum.Enum):
    JOB = "job"
    SHIFT_COVER = "shift_cover"


# Statuses visible in the talent swipe feed
FEED_VISIBLE_STATUSES = (ListingStatus.PUBLISHED.value, ListingStatus.MATCHING.value)


class Listing(Base):
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), index=True, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    title = Column(String, nullable=False)
    role_key = Column(String, nullable=False, index=True)
    listing_type = Column(String, nullable=False, default=ListingType.JOB.value)
    location = Column(String, nullable=True, index=True)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    shift_start = Column(DateTime(timezone=True), nullable=True)
    shift_end = Column(DateTime(timezone=True), nullable=True)
    housing_offered = Column(Boolean, default=False, nullable=False)
    required_badges = Column(JSON, nullable=True)
    status = Column(String, nullable=False, default=ListingStatus.DRAFT.value, index=True)
    demo_session_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    organization = relationship("Organization", back_populates="listings")
