# Admin Payouts Router
# Staff advance operator payouts and creator rewards; processed_by is always
# the authenticated staff member

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from auth.decorators import require_permission
from auth.roles import Permission
from database.config import get_db
from database.models import User
from database.crowdfunding_models import CreatorRewardStatusDB, PayableTypeDB, PayoutStatusDB
from schemas.crowdfunding import (
    AuditEntryResponse,
    CreatorRewardResponse,
    CreatorRewardUpdateRequest,
    PayoutUpdateRequest,
    ProjectPayoutResponse,
)
from services.settlement_ledger import SettlementLedger, percentage_of_gross

router = APIRouter(prefix="/admin/payouts", tags=["Admin - Payouts"])

require_payout_manager = require_permission(Permission.MANAGE_PAYOUTS)


@router.get("/summary")
async def get_payout_summary(
    db: Session = Depends(get_db),
    admin: User = Depends(require_payout_manager)
):
    """Dashboard totals for both payables."""
    return SettlementLedger(db).summary()


# ============================================================================
# PROJECT PAYOUTS
# ============================================================================

@router.get("/project", response_model=List[ProjectPayoutResponse])
async def list_project_payouts(
    status: Optional[PayoutStatusDB] = Query(None),
    campaign_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin: User = Depends(require_payout_manager)
):
    return SettlementLedger(db).list_payouts(status=status, campaign_id=campaign_id)


@router.patch("/project/{payout_id}", response_model=ProjectPayoutResponse)
async def update_project_payout(
    payout_id: str,
    request: PayoutUpdateRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_payout_manager)
):
    return SettlementLedger(db).advance_payout(
        payout_id,
        request.payout_status,
        actor_id=admin.id,
        processing_notes=request.processing_notes,
        bank_transfer_id=request.bank_transfer_id,
        payout_method=request.payout_method,
    )


@router.get("/project/{payout_id}/audit", response_model=List[AuditEntryResponse])
async def get_project_payout_audit(
    payout_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_payout_manager)
):
    ledger = SettlementLedger(db)
    ledger.get_payout(payout_id)
    return ledger.audit_trail(PayableTypeDB.PROJECT_PAYOUT, payout_id)


# ============================================================================
# CREATOR REWARDS
# ============================================================================

@router.get("/creator", response_model=List[CreatorRewardResponse])
async def list_creator_rewards(
    status: Optional[CreatorRewardStatusDB] = Query(None),
    campaign_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin: User = Depends(require_payout_manager)
):
    """Creator rewards with their share of the campaign total."""
    rows = []
    for listing in SettlementLedger(db).list_creator_rewards(status=status, campaign_id=campaign_id):
        data = CreatorRewardResponse.model_validate(listing.reward).model_dump(mode="json")
        data["percentage_of_gross"] = listing.percentage_of_gross
        rows.append(data)
    return rows


@router.patch("/creator/{reward_id}", response_model=CreatorRewardResponse)
async def update_creator_reward(
    reward_id: str,
    request: CreatorRewardUpdateRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_payout_manager)
):
    ledger = SettlementLedger(db)
    reward = ledger.advance_creator_reward(
        reward_id,
        request.payment_status,
        actor_id=admin.id,
        processing_notes=request.processing_notes,
        bank_transfer_id=request.bank_transfer_id,
    )
    data = CreatorRewardResponse.model_validate(reward).model_dump(mode="json")
    data["percentage_of_gross"] = percentage_of_gross(reward.amount, reward.campaign.current_amount)
    return data


@router.get("/creator/{reward_id}/audit", response_model=List[AuditEntryResponse])
async def get_creator_reward_audit(
    reward_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_payout_manager)
):
    ledger = SettlementLedger(db)
    ledger.get_creator_reward(reward_id)
    return ledger.audit_trail(PayableTypeDB.CREATOR_REWARD, reward_id)
