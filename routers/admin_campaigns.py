# Admin Campaign Review Router
# Staff review queue: approve or reject submissions, message operators,
# record identity verification results and close finished campaigns

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from auth.decorators import require_staff
from database.config import get_db
from database.models import User
from database.crowdfunding_models import CampaignStatusDB
from schemas.crowdfunding import (
    ApprovalRequest,
    CampaignOwnerResponse,
    FeedbackRequest,
    FeedbackResponse,
    IdentityVerificationRequest,
    ProjectPayoutResponse,
    CreatorRewardResponse,
)
from services.campaign_lifecycle import CampaignLifecycle

router = APIRouter(prefix="/admin/crowdfunding", tags=["Admin - Crowdfunding"])


@router.get("/pending", response_model=List[CampaignOwnerResponse])
async def list_pending_campaigns(
    db: Session = Depends(get_db),
    admin: User = Depends(require_staff())
):
    """Campaigns waiting for review, oldest submission first."""
    return CampaignLifecycle(db).list_for_staff([CampaignStatusDB.UNDER_REVIEW])


@router.get("", response_model=List[CampaignOwnerResponse])
async def list_all_campaigns(
    status: Optional[List[CampaignStatusDB]] = Query(None),
    db: Session = Depends(get_db),
    admin: User = Depends(require_staff())
):
    return CampaignLifecycle(db).list_for_staff(status)


@router.post("/approval")
async def review_campaign(
    request: ApprovalRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_staff())
):
    """Approve or reject a campaign under review. Rejection needs a reason."""
    lifecycle = CampaignLifecycle(db)
    if request.action == "approve":
        campaign = lifecycle.approve(request.campaign_id, admin.id)
        message = "Campaign approved and published"
    else:
        campaign = lifecycle.reject(request.campaign_id, admin.id, request.reason)
        message = "Campaign rejected"

    return {
        "success": True,
        "message": message,
        "campaign": CampaignOwnerResponse.model_validate(campaign).model_dump(mode="json"),
    }


@router.post("/feedback", response_model=FeedbackResponse)
async def send_feedback(
    request: FeedbackRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_staff())
):
    return CampaignLifecycle(db).send_feedback(
        request.campaign_id, admin.id, request.message, request.message_type
    )


@router.post("/{campaign_id}/identity-verification", response_model=CampaignOwnerResponse)
async def record_identity_verification(
    campaign_id: str,
    request: IdentityVerificationRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_staff())
):
    """Store the identity provider's verdict for a campaign's operator."""
    return CampaignLifecycle(db).record_identity_verification(
        campaign_id, request.provider_status, required=request.required
    )


@router.post("/{campaign_id}/complete")
async def complete_campaign(
    campaign_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_staff())
):
    """Close a published campaign and create its payout and creator reward."""
    result = CampaignLifecycle(db).complete(campaign_id, actor_id=admin.id)
    return {
        "success": True,
        "created": result.created,
        "payout": ProjectPayoutResponse.model_validate(result.payout).model_dump(mode="json"),
        "creator_reward": CreatorRewardResponse.model_validate(result.creator_reward).model_dump(mode="json"),
    }
