from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...components.identity.membership import get_organization, list_my_orgs
from ...deps import get_current_user
from ...models.user import User
from ...platform.database import get_db
from ...schemas.organization import OrgResponse, OrgSummary

router = APIRouter(prefix="/orgs", tags=["Organizations"])


@router.get("/me", response_model=List[OrgSummary])
def my_orgs(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return list_my_orgs(db, current_user)


@router.get("/{org_id}", response_model=OrgResponse)
def get_org(
    org_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_organization(db, org_id)
