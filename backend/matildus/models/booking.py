import enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from ..platform.database import Base


class BookingStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    RELEASED = "released"


class BookingSource(str, enum.Enum):
    DIRECT = "direct"
    OFFER = "offer"
    BORROW = "borrow"
    RELEASE = "release"


class ReleaseOfferStatus(str, enum.Enum):
    OPEN = "open"
    TAKEN = "taken"
    CANCELLED = "cancelled"


class ShiftBooking(Base):
    __tablename__ = "shift_bookings"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), index=True, nullable=False)
    talent_user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    start_ts = Column(DateTime(timezone=True), nullable=False, index=True)
    end_ts = Column(DateTime(timezone=True), nullable=False)
    status = Column(String, nullable=False, default=BookingStatus.ACTIVE.value)
    source = Column(String, nullable=False, default=BookingSource.DIRECT.value)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    demo_session_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class ReleaseOffer(Base):
    """A booking an org releases to its trusted partners."""

    __tablename__ = "release_offers"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("shift_bookings.id"), index=True, nullable=False)
    from_org_id = Column(Integer, ForeignKey("organizations.id"), index=True, nullable=False)
    status = Column(String, nullable=False, default=ReleaseOfferStatus.OPEN.value, index=True)
    taken_by_org_id = Column(Integer, ForeignKey("organizations.id"), nullable=True)
    new_booking_id = Column(Integer, ForeignKey("shift_bookings.id"), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
