import enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..platform.database import Base


class MatchStatus(str, enum.Enum):
    MATCHED = "matched"
    CHATTING = "chatting"
    COMPLETED = "completed"


MATCH_STATUS_ORDER = [MatchStatus.MATCHED.value, MatchStatus.CHATTING.value, MatchStatus.COMPLETED.value]


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("listing_id", "talent_user_id", name="uq_match_listing_talent"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), index=True, nullable=False)
    listing_id = Column(Integer, ForeignKey("listings.id"), index=True, nullable=False)
    talent_user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    status = Column(String, nullable=False, default=MatchStatus.MATCHED.value)
    demo_session_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    listing = relationship("Listing")
    organization = relationship("Organization")
