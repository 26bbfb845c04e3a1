import enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..platform.database import Base


class CircleLinkStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class CircleLink(Base):
    """Pairwise trust invite between two organizations."""

    __tablename__ = "circle_links"

    id = Column(Integer, primary_key=True, index=True)
    from_org_id = Column(Integer, ForeignKey("organizations.id"), index=True, nullable=False)
    to_org_id = Column(Integer, ForeignKey("organizations.id"), index=True, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(String, nullable=False, default=CircleLinkStatus.PENDING.value, index=True)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    from_org = relationship("Organization", foreign_keys=[from_org_id])
    to_org = relationship("Organization", foreign_keys=[to_org_id])


class Circle(Base):
    """Named grouping of partner organizations owned by one organization."""

    __tablename__ = "circles"
    __table_args__ = (
        UniqueConstraint("owner_org_id", "name", name="uq_circle_owner_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_org_id = Column(Integer, ForeignKey("organizations.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    members = relationship("CircleMembership", back_populates="circle", cascade="all, delete-orphan")


class CircleMembership(Base):
    __tablename__ = "circle_memberships"
    __table_args__ = (
        UniqueConstraint("circle_id", "organization_id", name="uq_circle_membership"),
    )

    id = Column(Integer, primary_key=True, index=True)
    circle_id = Column(Integer, ForeignKey("circles.id"), index=True, nullable=False)
    organization_id = Column(Integer, ForeignKey("organizations.id"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    circle = relationship("Circle", back_populates="members")
    organization = relationship("Organization")
