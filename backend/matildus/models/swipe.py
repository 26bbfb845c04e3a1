import enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from ..platform.database import Base


class SwipeDirection(str, enum.Enum):
    YES = "yes"
    NO = "no"


class TalentJobSwipe(Base):
    __tablename__ = "talent_job_swipes"
    __table_args__ = (
        UniqueConstraint("talent_user_id", "listing_id", name="uq_talent_job_swipe"),
    )

    id = Column(Integer, primary_key=True, index=True)
    talent_user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    listing_id = Column(Integer, ForeignKey("listings.id"), index=True, nullable=False)
    direction = Column(String, nullable=False)
    demo_session_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class EmployerTalentSwipe(Base):
    __tablename__ = "employer_talent_swipes"
    __table_args__ = (
        UniqueConstraint("organization_id", "listing_id", "talent_user_id", name="uq_employer_talent_swipe"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), index=True, nullable=False)
    listing_id = Column(Integer, ForeignKey("listings.id"), index=True, nullable=False)
    talent_user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    swiper_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    direction = Column(String, nullable=False)
    demo_session_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
