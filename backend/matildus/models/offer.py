import enum

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..platform.database import Base


class OfferStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    WITHDRAWN = "withdrawn"
    EXPIRED = "expired"


TERMINAL_OFFER_STATUSES = (
    OfferStatus.ACCEPTED.value,
    OfferStatus.DECLINED.value,
    OfferStatus.WITHDRAWN.value,
    OfferStatus.EXPIRED.value,
)

# Statuses that hold the (org, talent, match|listing) slot
ACTIVE_OFFER_STATUSES = (OfferStatus.SENT.value, OfferStatus.ACCEPTED.value)


def offer_slot_key(organization_id: int, talent_user_id: int, match_id: int | None, listing_id: int | None) -> str:
    """Key of the (org, talent, match-or-listing) slot an active offer occupies.

    A match always belongs to one listing, so the listing is preferred and an
    offer made before the match shares the slot with one made after it.
    """
    if listing_id is not None:
        target = f"l{listing_id}"
    elif match_id is not None:
        target = f"m{match_id}"
    else:
        target = "direct"
    return f"{organization_id}:{talent_user_id}:{target}"


class Offer(Base):
    __tablename__ = "offers"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), index=True, nullable=False)
    talent_user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    match_id = Column(Integer, ForeignKey("matches.id"), index=True, nullable=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), index=True, nullable=True)
    listing_type = Column(String, nullable=False, default="job")
    status = Column(String, nullable=False, default=OfferStatus.DRAFT.value, index=True)
    # Set while the offer is sent/accepted; the unique constraint makes a
    # second active offer for the same slot impossible at the database level.
    active_slot = Column(String, nullable=True, unique=True)
    message = Column(Text, nullable=True)

    # Terms
    location = Column(String, nullable=True)
    role_title = Column(String, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    shift_start = Column(DateTime(timezone=True), nullable=True)
    shift_end = Column(DateTime(timezone=True), nullable=True)
    hours_per_week = Column(Float, nullable=True)
    hourly_rate = Column(Float, nullable=True)
    currency = Column(String, nullable=False, default="SEK")
    housing_included = Column(Boolean, default=False, nullable=False)
    housing_note = Column(Text, nullable=True)

    # Audit
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    booking_id = Column(Integer, ForeignKey("shift_bookings.id"), nullable=True)
    demo_session_id = Column(String, nullable=True, index=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    organization = relationship("Organization")
