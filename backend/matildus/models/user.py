from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fastapi_users.db import SQLAlchemyBaseUserTable

from ..platform.database import Base

ACCOUNT_TYPE_TALENT = "talent"
ACCOUNT_TYPE_EMPLOYER = "employer"
ACCOUNT_TYPES = (ACCOUNT_TYPE_TALENT, ACCOUNT_TYPE_EMPLOYER)


class User(SQLAlchemyBaseUserTable[int], Base):
    """User model extending FastAPI-Users base with marketplace fields."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True, autoincrement=True)
    full_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    account_type: Mapped[str] = mapped_column(String, nullable=False, default=ACCOUNT_TYPE_TALENT)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    memberships = relationship("OrgMembership", back_populates="user", cascade="all, delete-orphan")
    talent_profile = relationship("TalentProfile", back_populates="user", uselist=False)
