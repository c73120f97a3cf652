# Pledge service
# Receives the payment collaborator's callbacks. A pledge counts toward the
# campaign total, the supporter count and settlement only once completed.

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from core.exceptions import CampaignNotActive, IllegalTransition, InvalidInput, NotFound, SoldOut, StaleTransition
from database.config import atomic
from database.crowdfunding_models import Campaign, CampaignStatusDB, Pledge, PledgeStatusDB, Reward
from services.campaign_access import get_campaign
from services.reward_inventory import RewardInventory

logger = logging.getLogger(__name__)


def supporter_count(db: Session, campaign_id: str) -> int:
    return db.query(Pledge).filter(
        Pledge.campaign_id == campaign_id,
        Pledge.payment_status == PledgeStatusDB.COMPLETED
    ).count()


class PledgeService:
    def __init__(self, db: Session, inventory: Optional[RewardInventory] = None):
        self.db = db
        self.inventory = inventory or RewardInventory(db)

    def get(self, pledge_id: str) -> Pledge:
        pledge = self.db.query(Pledge).filter(Pledge.id == pledge_id).first()
        if not pledge:
            raise NotFound("Pledge", pledge_id)
        return pledge

    def supporter_count(self, campaign_id: str) -> int:
        return supporter_count(self.db, campaign_id)

    def create_pledge(self, campaign_id: str, user_id: str, amount: int, reward_id: Optional[str] = None) -> Pledge:
        """
        Open a pending pledge. The stock check here is advisory only; the
        unit is taken when the payment completes.
        """
        if amount is None or amount <= 0:
            raise InvalidInput("Pledge amount must be positive", field="amount")

        with atomic(self.db):
            campaign = get_campaign(self.db, campaign_id)
            if campaign.status != CampaignStatusDB.APPROVED:
                raise CampaignNotActive(campaign_id, campaign.status.value)

            if reward_id:
                reward = self.db.query(Reward).filter(
                    Reward.id == reward_id,
                    Reward.campaign_id == campaign_id
                ).first()
                if not reward:
                    raise NotFound("Reward", reward_id)
                if amount < reward.amount:
                    raise InvalidInput(
                        f"Pledge amount must be at least the reward price ({reward.amount:,})",
                        field="amount",
                    )
                if self.inventory.is_sold_out(reward):
                    logger.warning(f"Pledge refused: reward {reward_id} sold out")
                    raise SoldOut(reward_id)

            pledge = Pledge(
                campaign_id=campaign_id,
                user_id=user_id,
                reward_id=reward_id,
                amount=amount,
                payment_status=PledgeStatusDB.PENDING,
            )
            self.db.add(pledge)

        self.db.refresh(pledge)
        logger.info(f"Pledge {pledge.id} opened on campaign {campaign_id} (amount={amount}, reward={reward_id})")
        return pledge

    def complete_pledge(self, pledge_id: str, now: Optional[datetime] = None) -> Pledge:
        """
        pending -> completed, exactly once.

        In one transaction: mark the pledge, take one unit of its reward and
        add the amount to the campaign total. SoldOut or a campaign that is no
        longer published rolls the whole completion back.
        """
        now = now or datetime.utcnow()
        with atomic(self.db):
            pledge = self.get(pledge_id)
            if pledge.payment_status == PledgeStatusDB.COMPLETED:
                logger.debug(f"Pledge {pledge_id} already completed")
                return pledge
            if pledge.payment_status != PledgeStatusDB.PENDING:
                raise IllegalTransition(pledge.payment_status.value, PledgeStatusDB.COMPLETED.value)

            updated = self.db.query(Pledge).filter(
                Pledge.id == pledge_id,
                Pledge.payment_status == PledgeStatusDB.PENDING
            ).update(
                {Pledge.payment_status: PledgeStatusDB.COMPLETED, Pledge.completed_at: now},
                synchronize_session=False
            )
            if updated == 0:
                actual = self.db.query(Pledge.payment_status).filter(Pledge.id == pledge_id).scalar()
                if actual == PledgeStatusDB.COMPLETED:
                    logger.debug(f"Pledge {pledge_id} completed concurrently")
                    self.db.expire(pledge)
                    return pledge
                logger.warning(f"Stale completion of pledge {pledge_id}: found {getattr(actual, 'value', actual)}")
                raise StaleTransition("Pledge", pledge_id, expected="pending", actual=getattr(actual, "value", actual))

            if pledge.reward_id:
                self.inventory.decrement_on_pledge(pledge.reward_id)

            updated = self.db.query(Campaign).filter(
                Campaign.id == pledge.campaign_id,
                Campaign.status == CampaignStatusDB.APPROVED
            ).update(
                {Campaign.current_amount: Campaign.current_amount + pledge.amount},
                synchronize_session=False
            )
            if updated == 0:
                status = self.db.query(Campaign.status).filter(Campaign.id == pledge.campaign_id).scalar()
                raise CampaignNotActive(pledge.campaign_id, getattr(status, "value", status))

        logger.info(f"Pledge {pledge_id} completed: +{pledge.amount} to campaign {pledge.campaign_id}")
        return pledge

    def fail_pledge(self, pledge_id: str) -> Pledge:
        with atomic(self.db):
            pledge = self.get(pledge_id)
            if pledge.payment_status == PledgeStatusDB.FAILED:
                return pledge
            updated = self.db.query(Pledge).filter(
                Pledge.id == pledge_id,
                Pledge.payment_status == PledgeStatusDB.PENDING
            ).update({Pledge.payment_status: PledgeStatusDB.FAILED}, synchronize_session=False)
            if updated == 0:
                raise IllegalTransition(pledge.payment_status.value, PledgeStatusDB.FAILED.value)

        logger.info(f"Pledge {pledge_id} failed")
        return pledge
