import enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..platform.database import Base


class BorrowScope(str, enum.Enum):
    INTERNAL = "internal"
    CIRCLE = "circle"
    LOCAL = "local"


class BorrowRequestStatus(str, enum.Enum):
    OPEN = "open"
    FILLED = "filled"
    CLOSED = "closed"


class BorrowOfferStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    # Sibling of an accepted offer, or offer of a closed/expired request
    CLOSED = "closed"


class BorrowRequest(Base):
    __tablename__ = "borrow_requests"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), index=True, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    location = Column(String, nullable=False, index=True)
    role_key = Column(String, nullable=False)
    start_ts = Column(DateTime(timezone=True), nullable=False)
    end_ts = Column(DateTime(timezone=True), nullable=False)
    message = Column(Text, nullable=True)
    # Fixed at creation; decides the eligible pool
    scope = Column(String, nullable=False, default=BorrowScope.LOCAL.value)
    circle_id = Column(Integer, ForeignKey("circles.id"), nullable=True)
    status = Column(String, nullable=False, default=BorrowRequestStatus.OPEN.value, index=True)
    filled_by_offer_id = Column(Integer, nullable=True)
    demo_session_id = Column(String, nullable=True, index=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    offers = relationship("BorrowOffer", back_populates="request", cascade="all, delete-orphan")


class BorrowOffer(Base):
    __tablename__ = "borrow_offers"
    __table_args__ = (
        UniqueConstraint("borrow_request_id", "talent_user_id", name="uq_borrow_offer_request_talent"),
    )

    id = Column(Integer, primary_key=True, index=True)
    borrow_request_id = Column(Integer, ForeignKey("borrow_requests.id"), index=True, nullable=False)
    talent_user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    status = Column(String, nullable=False, default=BorrowOfferStatus.PENDING.value, index=True)
    # Equals borrow_request_id once accepted; unique, so one acceptance per request
    accepted_request_id = Column(Integer, nullable=True, unique=True)
    booking_id = Column(Integer, ForeignKey("shift_bookings.id"), nullable=True)
    demo_session_id = Column(String, nullable=True, index=True)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    request = relationship("BorrowRequest", back_populates="offers")
