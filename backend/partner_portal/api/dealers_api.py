"""
Dealer Network API
CRUD for dealer records (partners: own records, admins: all records)
"""

import logging
from typing import List, Optional
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from partner_portal.core.database import get_db
from partner_portal.api.auth_api import require_auth, require_admin
from partner_portal.api.forms import body_of
from partner_portal.services.auth_service import SessionContext
from partner_portal.services.dealer_service import DealerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["dealers"])


# ============================================================================
# SCHEMAS
# ============================================================================

class DealerSchema(BaseModel):
    """Dealer record"""
    id: int
    partner_user_id: int
    partner_username: Optional[str] = None
    company_name: str
    contact_person: Optional[str] = None
    phone_number: str
    gstin_number: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DealerUpsertRequest(BaseModel):
    """Create (no id, or id 0) or update (id set) a dealer"""
    id: Optional[int] = None
    company_name: Optional[str] = Field(None, alias="companyName")
    contact_person: Optional[str] = Field(None, alias="contactPerson")
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    gstin_number: Optional[str] = Field(None, alias="gstinNumber")
    address: Optional[str] = None

    model_config = {"populate_by_name": True}

    @field_validator("id", mode="before")
    @classmethod
    def blank_id_means_new(cls, v):
        # HTML forms send "" for a new record
        if v == "" or v is None:
            return None
        return v


class DealerListResponse(BaseModel):
    success: bool = True
    dealers: List[DealerSchema]


class DealerResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    dealer: DealerSchema


class MessageResponse(BaseModel):
    success: bool = True
    message: str


def get_dealer_service(db: Session = Depends(get_db)) -> DealerService:
    return DealerService(db)


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("/dealers", response_model=DealerListResponse)
def get_dealers(
    ctx: SessionContext = Depends(require_auth),
    service: DealerService = Depends(get_dealer_service)
):
    """
    Dealer network of the current user

    Admins get every dealer with the owning partner's username,
    partners only the dealers they created. Newest first.
    """
    dealers = service.list_dealers(ctx)

    return DealerListResponse(
        dealers=[DealerSchema.model_validate(d) for d in dealers]
    )


@router.get("/dealers/{dealer_id}", response_model=DealerResponse)
def get_dealer(
    dealer_id: int,
    ctx: SessionContext = Depends(require_auth),
    service: DealerService = Depends(get_dealer_service)
):
    """
    A single dealer

    404 when the dealer does not exist or belongs to another partner
    """
    dealer = service.get_dealer(ctx, dealer_id)

    return DealerResponse(dealer=DealerSchema.model_validate(dealer))


@router.post("/dealers", response_model=DealerResponse)
def save_dealer(
    request: DealerUpsertRequest = Depends(body_of(DealerUpsertRequest)),
    ctx: SessionContext = Depends(require_auth),
    service: DealerService = Depends(get_dealer_service)
):
    """
    Create or update a dealer

    - companyName and phoneNumber are required
    - Partners may only update dealers they created
    - The owner of a dealer never changes
    """
    data = request.model_dump(exclude={"id"})
    dealer, created = service.save_dealer(ctx, data, dealer_id=request.id)

    action = "added" if created else "updated"

    return DealerResponse(
        message=f"Dealer {dealer.company_name} successfully {action}.",
        dealer=DealerSchema.model_validate(dealer),
    )


@router.delete("/dealers/{dealer_id}", response_model=MessageResponse)
def delete_dealer(
    dealer_id: int,
    ctx: SessionContext = Depends(require_auth),
    service: DealerService = Depends(get_dealer_service)
):
    """
    Delete a dealer

    Partners can only delete their own dealers, admins can delete any
    """
    service.delete_dealer(ctx, dealer_id)

    return MessageResponse(message="Dealer deleted successfully.")


@router.get("/admin/all-dealers", response_model=DealerListResponse)
def get_all_dealers(
    ctx: SessionContext = Depends(require_admin),
    service: DealerService = Depends(get_dealer_service)
):
    """
    Every dealer of every partner, grouped by partner then company name

    Requires admin rights
    """
    dealers = service.list_all_dealers()

    return DealerListResponse(
        dealers=[DealerSchema.model_validate(d) for d in dealers]
    )
