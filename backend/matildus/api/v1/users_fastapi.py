"""
FastAPI-Users configuration: user manager, auth backend, schemas.
"""

import logging
from typing import Literal, Optional

from fastapi import Depends, Request
from fastapi_users import BaseUserManager, FastAPIUsers, IntegerIDMixin, InvalidPasswordException, exceptions, schemas
from fastapi_users.authentication import AuthenticationBackend, BearerTransport, JWTStrategy
from fastapi_users.db import SQLAlchemyUserDatabase
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models.organization import ORG_ROLE_OWNER, Organization, OrgMembership
from ...models.talent import TalentProfile, VisibilityScope
from ...models.user import ACCOUNT_TYPE_EMPLOYER, ACCOUNT_TYPE_TALENT, User
from ...platform.config import settings
from ...platform.database import get_async_db

logger = logging.getLogger("matildus.auth")


# ---- Schemas (extend FastAPI-Users base) ----
class UserRead(schemas.BaseUser[int]):
    full_name: Optional[str] = None
    account_type: str = ACCOUNT_TYPE_TALENT


class UserCreate(schemas.BaseUserCreate):
    full_name: Optional[str] = None
    account_type: Literal["talent", "employer"] = ACCOUNT_TYPE_TALENT
    organization_name: Optional[str] = None
    location: Optional[str] = None


class UserUpdate(schemas.BaseUserUpdate):
    full_name: Optional[str] = None


def org_slug(name: str) -> str:
    return "-".join(name.lower().split())


# ---- User Manager ----
class UserManager(IntegerIDMixin, BaseUserManager[User, int]):
    reset_password_token_secret = settings.SECRET_KEY
    verification_token_secret = settings.SECRET_KEY
    reset_password_token_lifetime_seconds = 3600
    verification_token_lifetime_seconds = 86400  # 24 hours

    async def validate_password(self, password: str, user) -> None:
        if len(password) < 8:
            raise InvalidPasswordException(reason="Password should be at least 8 characters")

    async def create(self, user_create, safe: bool = False, request: Optional[Request] = None) -> User:
        await self.validate_password(user_create.password, user_create)

        existing_user = await self.user_db.get_by_email(user_create.email)
        if existing_user is not None:
            raise exceptions.UserAlreadyExists()

        user_dict = (
            user_create.create_update_dict()
            if safe
            else user_create.create_update_dict_superuser()
        )
        password = user_dict.pop("password")
        user_dict["hashed_password"] = self.password_helper.hash(password)
        organization_name = (user_dict.pop("organization_name", None) or "").strip()
        location = (user_dict.pop("location", None) or "").strip() or None
        if organization_name:
            user_dict["account_type"] = ACCOUNT_TYPE_EMPLOYER

        created_user = await self.user_db.create(user_dict)

        session: AsyncSession = self.user_db.session
        if organization_name:
            slug = org_slug(organization_name)
            result = await session.execute(select(Organization.id).where(Organization.slug == slug))
            if result.scalar_one_or_none() is not None:
                # Registration always founds a new organization.
                slug = f"{slug}-{created_user.id}"
            org = Organization(name=organization_name, slug=slug, location=location)
            session.add(org)
            await session.flush()
            session.add(OrgMembership(organization_id=org.id, user_id=created_user.id, role=ORG_ROLE_OWNER))
            await session.commit()
        elif created_user.account_type == ACCOUNT_TYPE_TALENT:
            session.add(
                TalentProfile(
                    user_id=created_user.id,
                    location=location,
                    visibility_scope=VisibilityScope.PUBLIC.value,
                )
            )
            await session.commit()

        await self.on_after_register(created_user, request)
        return created_user

    async def on_after_register(self, user: User, request: Optional[Request] = None) -> None:
        logger.info("User registered user_id=%s account_type=%s", user.id, user.account_type)

    async def on_after_forgot_password(
        self, user: User, token: str, request: Optional[Request] = None
    ) -> None:
        # Delivery belongs to the external notifier; the reset token is only logged as issued.
        logger.info("Password reset requested user_id=%s", user.id)


async def get_user_db(session: AsyncSession = Depends(get_async_db)):
    yield SQLAlchemyUserDatabase(session, User)


async def get_user_manager(user_db: SQLAlchemyUserDatabase = Depends(get_user_db)):
    yield UserManager(user_db)


# ---- Auth Backend ----
bearer_transport = BearerTransport(tokenUrl="/api/v1/auth/jwt/login")


def get_jwt_strategy() -> JWTStrategy:
    return JWTStrategy(
        secret=settings.SECRET_KEY,
        lifetime_seconds=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


auth_backend = AuthenticationBackend(
    name="jwt",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)

fastapi_users = FastAPIUsers[User, int](get_user_manager, [auth_backend])

current_active_user = fastapi_users.current_user(active=True)
