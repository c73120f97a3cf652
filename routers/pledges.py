# Pledges Router for the crowdfunding platform
# Supporters open pledges; the payment provider reports their outcome

import hmac
from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session
from typing import Optional

from auth.decorators import AuthError
from auth.dependencies import get_current_user
from config.app_config import PAYMENT_WEBHOOK_SECRET
from database.config import get_db
from database.models import User
from schemas.crowdfunding import PledgeCreate, PledgeResponse
from services.pledge_service import PledgeService

router = APIRouter(tags=["Pledges"])


def verify_payment_callback(x_payment_webhook_secret: Optional[str] = Header(None)):
    """Payment callbacks must carry the shared secret."""
    if not PAYMENT_WEBHOOK_SECRET or not x_payment_webhook_secret:
        raise AuthError(detail="Invalid payment callback", status_code=status.HTTP_401_UNAUTHORIZED)
    if not hmac.compare_digest(PAYMENT_WEBHOOK_SECRET, x_payment_webhook_secret):
        raise AuthError(detail="Invalid payment callback", status_code=status.HTTP_401_UNAUTHORIZED)


@router.post("/crowdfunding/{campaign_id}/pledges", response_model=PledgeResponse, status_code=status.HTTP_201_CREATED)
async def create_pledge(
    campaign_id: str,
    pledge_data: PledgeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Open a pending pledge; checkout happens with the payment provider."""
    return PledgeService(db).create_pledge(
        campaign_id=campaign_id,
        user_id=current_user.id,
        amount=pledge_data.amount,
        reward_id=pledge_data.reward_id,
    )


@router.post("/pledges/{pledge_id}/complete", response_model=PledgeResponse,
             dependencies=[Depends(verify_payment_callback)])
async def complete_pledge(pledge_id: str, db: Session = Depends(get_db)):
    return PledgeService(db).complete_pledge(pledge_id)


@router.post("/pledges/{pledge_id}/fail", response_model=PledgeResponse,
             dependencies=[Depends(verify_payment_callback)])
async def fail_pledge(pledge_id: str, db: Session = Depends(get_db)):
    return PledgeService(db).fail_pledge(pledge_id)
