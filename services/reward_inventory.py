# Reward tier inventory
# Stock is only ever decremented by a conditional UPDATE at the storage layer,
# so concurrent pledges against the last unit cannot both succeed.

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from config.app_config import REWARD_MIN_AMOUNT, REWARD_MAX_AMOUNT
from core.exceptions import IllegalTransition, InvalidInput, NotFound, SoldOut
from database.config import atomic
from database.crowdfunding_models import CampaignStatusDB, Pledge, PledgeStatusDB, Reward
from services.campaign_access import ensure_editable, get_campaign

logger = logging.getLogger(__name__)

_CONTENT_FIELDS = ("title", "description", "amount", "delivery_date", "requires_shipping")


def _check_amount(amount: int):
    if amount is None or not (REWARD_MIN_AMOUNT <= amount <= REWARD_MAX_AMOUNT):
        raise InvalidInput(
            f"Reward amount must be between {REWARD_MIN_AMOUNT:,} and {REWARD_MAX_AMOUNT:,}",
            field="amount",
        )


def _check_quantity(quantity: Optional[int]):
    if quantity is not None and quantity <= 0:
        raise InvalidInput("Quantity must be a positive integer", field="quantity")


class RewardInventory:
    """Pledge tiers of a campaign and their remaining stock."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, reward_id: str) -> Reward:
        reward = self.db.query(Reward).filter(Reward.id == reward_id).first()
        if not reward:
            raise NotFound("Reward", reward_id)
        return reward

    def list_for_campaign(self, campaign_id: str) -> List[Reward]:
        return self.db.query(Reward).filter(
            Reward.campaign_id == campaign_id
        ).order_by(Reward.amount.asc()).all()

    def create(
        self,
        campaign_id: str,
        title: str,
        description: str,
        amount: int,
        quantity: Optional[int],
        delivery_date: Optional[datetime] = None,
        requires_shipping: bool = False,
    ) -> Reward:
        """Add a tier. quantity=None creates an unlimited tier."""
        _check_amount(amount)
        _check_quantity(quantity)

        with atomic(self.db):
            campaign = get_campaign(self.db, campaign_id)
            ensure_editable(campaign, "add reward")

            reward = Reward(
                campaign_id=campaign_id,
                title=title,
                description=description,
                amount=amount,
                quantity=quantity,
                remaining_quantity=quantity,
                delivery_date=delivery_date,
                requires_shipping=requires_shipping,
            )
            self.db.add(reward)

        self.db.refresh(reward)
        logger.info(f"Reward {reward.id} created for campaign {campaign_id} (amount={amount}, quantity={quantity})")
        return reward

    def update(self, reward_id: str, **fields) -> Reward:
        """
        Edit a tier while its campaign is editable.

        A new quantity keeps the units already sold:
        remaining = max(0, new_quantity - sold).
        Pass is_unlimited=True to drop the stock limit.
        """
        fields = {k: v for k, v in fields.items() if v is not None}
        if "amount" in fields:
            _check_amount(fields["amount"])
        _check_quantity(fields.get("quantity"))

        with atomic(self.db):
            reward = self.get(reward_id)
            ensure_editable(get_campaign(self.db, reward.campaign_id), "edit reward")

            for key in _CONTENT_FIELDS:
                if key in fields:
                    setattr(reward, key, fields[key])

            if fields.get("is_unlimited"):
                reward.quantity = None
                reward.remaining_quantity = None
            elif "quantity" in fields:
                sold = self.sold_count(reward)
                reward.quantity = fields["quantity"]
                reward.remaining_quantity = max(0, fields["quantity"] - sold)
            elif fields.get("is_unlimited") is False and reward.is_unlimited:
                raise InvalidInput("quantity is required to limit a reward", field="quantity")

        self.db.refresh(reward)
        logger.info(f"Reward {reward_id} updated: {sorted(fields)}")
        return reward

    def delete(self, reward_id: str):
        with atomic(self.db):
            reward = self.get(reward_id)
            campaign = get_campaign(self.db, reward.campaign_id)
            if campaign.status != CampaignStatusDB.DRAFT:
                raise IllegalTransition(
                    campaign.status.value,
                    "delete reward",
                    message="Rewards can only be deleted while the campaign is a draft",
                )
            self.db.delete(reward)
        logger.info(f"Reward {reward_id} deleted from campaign {campaign.id}")

    def decrement_on_pledge(self, reward_id: str) -> Reward:
        """
        Take one unit of stock for a completed pledge.

        Runs inside the caller's transaction. Raises SoldOut when no unit is
        left at the moment of the UPDATE, whatever the caller read earlier.
        Unlimited tiers are left untouched.
        """
        reward = self.get(reward_id)
        if reward.is_unlimited:
            return reward

        updated = self.db.query(Reward).filter(
            Reward.id == reward_id,
            Reward.remaining_quantity > 0
        ).update(
            {Reward.remaining_quantity: Reward.remaining_quantity - 1},
            synchronize_session=False
        )

        if updated == 0:
            logger.warning(f"Reward {reward_id} sold out")
            raise SoldOut(reward_id)

        self.db.expire(reward, ["remaining_quantity"])
        return reward

    def is_sold_out(self, reward: Reward) -> bool:
        if reward.is_unlimited:
            return False
        return (reward.remaining_quantity or 0) <= 0

    def sold_count(self, reward: Reward) -> int:
        if reward.is_unlimited:
            return self.db.query(Pledge).filter(
                Pledge.reward_id == reward.id,
                Pledge.payment_status == PledgeStatusDB.COMPLETED
            ).count()
        return reward.quantity - (reward.remaining_quantity or 0)
