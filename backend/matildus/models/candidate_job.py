"""Backing records for the derived candidate/listing relationship state."""

import enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, UniqueConstraint
from sqlalchemy.sql import func

from ..platform.database import Base


class ApplicationStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"


class SavedJob(Base):
    __tablename__ = "saved_jobs"
    __table_args__ = (
        UniqueConstraint("candidate_id", "listing_id", name="uq_saved_job_candidate_listing"),
    )

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    listing_id = Column(Integer, ForeignKey("listings.id"), index=True, nullable=False)
    demo_session_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class JobDismissal(Base):
    __tablename__ = "job_dismissals"
    __table_args__ = (
        UniqueConstraint("candidate_id", "listing_id", name="uq_job_dismissal_candidate_listing"),
    )

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    listing_id = Column(Integer, ForeignKey("listings.id"), index=True, nullable=False)
    demo_session_id = Column(String, nullable=True, index=True)
    dismissed_at = Column(DateTime(timezone=True), server_default=func.now())


class JobApplication(Base):
    __tablename__ = "job_applications"
    __table_args__ = (
        UniqueConstraint("candidate_id", "listing_id", name="uq_job_application_candidate_listing"),
    )

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    listing_id = Column(Integer, ForeignKey("listings.id"), index=True, nullable=False)
    status = Column(String, nullable=False, default=ApplicationStatus.DRAFT.value)
    payload = Column(JSON, nullable=True)
    demo_session_id = Column(String, nullable=True, index=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
