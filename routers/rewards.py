# Rewards Router for the crowdfunding platform
# Operators manage pledge tiers while their campaign is editable

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from auth.dependencies import get_current_user, get_optional_current_user
from core.exceptions import NotFound
from database.config import get_db
from database.models import User
from database.crowdfunding_models import Reward
from schemas.crowdfunding import RewardCreate, RewardUpdate, RewardResponse
from services.campaign_access import get_owned_campaign
from services.campaign_lifecycle import CampaignLifecycle
from services.reward_inventory import RewardInventory

router = APIRouter(prefix="/crowdfunding", tags=["Crowdfunding Rewards"])


def reward_response(reward: Reward, inventory: RewardInventory) -> dict:
    data = RewardResponse.model_validate(reward).model_dump(mode="json")
    data["is_sold_out"] = inventory.is_sold_out(reward)
    return data


def _owned_reward(db: Session, campaign_id: str, reward_id: str, user: User) -> Reward:
    get_owned_campaign(db, campaign_id, user.id)
    reward = RewardInventory(db).get(reward_id)
    if reward.campaign_id != campaign_id:
        raise NotFound("Reward", reward_id)
    return reward


@router.get("/{campaign_id}/rewards", response_model=List[RewardResponse])
async def list_rewards(
    campaign_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    """Tiers ordered by price, under the campaign's visibility rule."""
    detail = CampaignLifecycle(db).get_detail(campaign_id, viewer=current_user)
    inventory = RewardInventory(db)
    return [reward_response(r, inventory) for r in detail.rewards]


@router.post("/{campaign_id}/rewards", response_model=RewardResponse, status_code=status.HTTP_201_CREATED)
async def create_reward(
    campaign_id: str,
    reward_data: RewardCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    get_owned_campaign(db, campaign_id, current_user.id)
    inventory = RewardInventory(db)
    reward = inventory.create(
        campaign_id=campaign_id,
        title=reward_data.title,
        description=reward_data.description,
        amount=reward_data.amount,
        quantity=None if reward_data.is_unlimited else reward_data.quantity,
        delivery_date=reward_data.delivery_date,
        requires_shipping=reward_data.requires_shipping,
    )
    return reward_response(reward, inventory)


@router.patch("/{campaign_id}/rewards/{reward_id}", response_model=RewardResponse)
async def update_reward(
    campaign_id: str,
    reward_id: str,
    changes: RewardUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    _owned_reward(db, campaign_id, reward_id, current_user)
    inventory = RewardInventory(db)
    reward = inventory.update(reward_id, **changes.model_dump(exclude_unset=True))
    return reward_response(reward, inventory)


@router.delete("/{campaign_id}/rewards/{reward_id}")
async def delete_reward(
    campaign_id: str,
    reward_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    _owned_reward(db, campaign_id, reward_id, current_user)
    RewardInventory(db).delete(reward_id)
    return {"success": True, "message": "Reward deleted"}
