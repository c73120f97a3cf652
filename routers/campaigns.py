# Campaigns Router for the crowdfunding platform
# Public listing and detail, plus the operator's drafting and submission flow

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from auth.dependencies import get_current_user, get_optional_current_user
from core.exceptions import PermissionDenied
from database.config import get_db
from database.models import User
from schemas.crowdfunding import (
    CampaignCreate,
    CampaignUpdate,
    CampaignResponse,
    CampaignOwnerResponse,
    CampaignDetailResponse,
    FeedbackResponse,
    ValidationReportResponse,
)
from services.campaign_access import get_campaign, is_operator
from services.campaign_lifecycle import CampaignLifecycle
from services.notification_service import NotificationService
from services.reward_inventory import RewardInventory
from routers.rewards import reward_response

router = APIRouter(prefix="/crowdfunding", tags=["Crowdfunding"])


def _ensure_owner_or_staff(db: Session, campaign_id: str, user: User):
    campaign = get_campaign(db, campaign_id)
    if not (user.is_staff or is_operator(db, campaign, user.id)):
        raise PermissionDenied()
    return campaign


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@router.get("", response_model=List[CampaignResponse])
async def list_campaigns(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """Published and completed campaigns."""
    return CampaignLifecycle(db).list_public(limit=limit, offset=offset)


@router.get("/mine", response_model=List[CampaignOwnerResponse])
async def list_my_campaigns(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Every campaign on channels the caller owns, in any status."""
    return CampaignLifecycle(db).list_for_operator(current_user.id)


@router.get("/{campaign_id}", response_model=CampaignDetailResponse)
async def get_campaign_detail(
    campaign_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    """
    Campaign detail. Drafts, campaigns under review and rejected campaigns
    are only shown to their operator and to staff.
    """
    detail = CampaignLifecycle(db).get_detail(campaign_id, viewer=current_user)
    schema = CampaignOwnerResponse if (detail.is_owner or detail.viewing_as_admin) else CampaignResponse
    inventory = RewardInventory(db)

    return {
        "campaign": schema.model_validate(detail.campaign).model_dump(mode="json"),
        "rewards": [reward_response(r, inventory) for r in detail.rewards],
        "supporters_count": detail.supporters_count,
        "viewing_as_admin": detail.viewing_as_admin,
        "is_owner": detail.is_owner,
    }


# ============================================================================
# OPERATOR ENDPOINTS
# ============================================================================

@router.post("", response_model=CampaignOwnerResponse, status_code=status.HTTP_201_CREATED)
async def create_campaign(
    campaign_data: CampaignCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Start a draft campaign from one of the caller's idea posts."""
    return CampaignLifecycle(db).create_draft(
        post_id=campaign_data.post_id,
        operator_user_id=current_user.id,
        title=campaign_data.title,
        description=campaign_data.description,
        target_amount=campaign_data.target_amount,
        start_date=campaign_data.start_date,
        end_date=campaign_data.end_date,
    )


@router.patch("/{campaign_id}", response_model=CampaignOwnerResponse)
async def update_campaign(
    campaign_id: str,
    changes: CampaignUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return CampaignLifecycle(db).update_content(campaign_id, current_user.id, changes)


@router.get("/{campaign_id}/validation", response_model=ValidationReportResponse)
async def get_validation_report(
    campaign_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Submission checklist; safe to call as often as the editor likes."""
    _ensure_owner_or_staff(db, campaign_id, current_user)
    return CampaignLifecycle(db).validate(campaign_id).to_dict()


@router.post("/{campaign_id}/submit", response_model=CampaignResponse)
async def submit_campaign(
    campaign_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return CampaignLifecycle(db).submit(campaign_id, current_user.id)


@router.post("/{campaign_id}/cancel", response_model=CampaignResponse)
async def cancel_campaign(
    campaign_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return CampaignLifecycle(db).cancel(campaign_id, current_user.id)


@router.get("/{campaign_id}/feedback", response_model=List[FeedbackResponse])
async def list_feedback(
    campaign_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Staff messages and rejection reasons for the operator."""
    _ensure_owner_or_staff(db, campaign_id, current_user)
    return NotificationService(db).list_for_campaign(campaign_id)
