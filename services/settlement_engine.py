# Settlement engine
# Splits a completed campaign's collected total into the operator payout and
# the idea author's royalty, and materializes both payables exactly once.

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config.app_config import CREATOR_ROYALTY_RATE, CURRENCY, GATEWAY_FEE_RATE, PLATFORM_FEE_RATE
from core.exceptions import IllegalTransition, InvalidInput, SettlementIntegrityError
from database.models import Post
from database.crowdfunding_models import (
    Campaign,
    CampaignStatusDB,
    CreatorReward,
    CreatorRewardStatusDB,
    PayoutStatusDB,
    ProjectPayout,
)
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)

_UNIT = Decimal("1")


def round_money(value: Decimal) -> int:
    """Round to whole currency units, halves away from zero."""
    return int(value.quantize(_UNIT, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class SettlementBreakdown:
    gross_amount: int
    platform_fee: int
    gateway_fee: int
    net_amount: int
    creator_reward_amount: int


@dataclass
class SettlementResult:
    payout: ProjectPayout
    creator_reward: CreatorReward
    created: bool


class SettlementEngine:
    """
    Computes and persists the two payables of a completed campaign.

    settle() only flushes. It is meant to run inside the transaction that
    moves the campaign to completed, so the status change and the payables
    commit or roll back together.
    """

    def __init__(
        self,
        db: Session,
        platform_fee_rate: Decimal = PLATFORM_FEE_RATE,
        gateway_fee_rate: Decimal = GATEWAY_FEE_RATE,
        royalty_rate: Decimal = CREATOR_ROYALTY_RATE,
    ):
        self.db = db
        self.platform_fee_rate = Decimal(str(platform_fee_rate))
        self.gateway_fee_rate = Decimal(str(gateway_fee_rate))
        self.royalty_rate = Decimal(str(royalty_rate))

    def compute(self, gross_amount: int) -> SettlementBreakdown:
        if gross_amount is None or gross_amount < 0:
            raise InvalidInput("gross_amount must be zero or positive", field="gross_amount")

        gross = Decimal(gross_amount)
        platform_fee = round_money(gross * self.platform_fee_rate)
        gateway_fee = round_money(gross * self.gateway_fee_rate)
        # platform_fee is shown as inclusive of the gateway fee, but both columns
        # are subtracted as stored
        net_amount = gross_amount - platform_fee - gateway_fee

        return SettlementBreakdown(
            gross_amount=gross_amount,
            platform_fee=platform_fee,
            gateway_fee=gateway_fee,
            net_amount=net_amount,
            creator_reward_amount=round_money(gross * self.royalty_rate),
        )

    def existing(self, campaign_id: str):
        payout = self.db.query(ProjectPayout).filter(ProjectPayout.campaign_id == campaign_id).first()
        reward = self.db.query(CreatorReward).filter(CreatorReward.campaign_id == campaign_id).first()
        return payout, reward

    def settle(self, campaign: Campaign) -> SettlementResult:
        if campaign.status != CampaignStatusDB.COMPLETED:
            raise IllegalTransition(
                campaign.status.value,
                "settle",
                message="Only completed campaigns can be settled",
            )

        # A failed flush expires the campaign, so keep the id readable
        campaign_id = campaign.id
        payout, reward = self.existing(campaign_id)
        if payout and reward:
            logger.info(f"Campaign {campaign_id} already settled; trigger ignored")
            return SettlementResult(payout=payout, creator_reward=reward, created=False)

        breakdown = self.compute(campaign.current_amount or 0)

        if payout is None:
            payout = ProjectPayout(
                campaign_id=campaign_id,
                gross_amount=breakdown.gross_amount,
                platform_fee=breakdown.platform_fee,
                gateway_fee=breakdown.gateway_fee,
                net_amount=breakdown.net_amount,
                payout_status=PayoutStatusDB.PENDING,
            )
            self.db.add(payout)

        if reward is None:
            reward = CreatorReward(
                campaign_id=campaign_id,
                recipient_user_id=self._royalty_recipient(campaign),
                amount=breakdown.creator_reward_amount,
                payment_status=CreatorRewardStatusDB.PENDING,
            )
            self.db.add(reward)

        try:
            self.db.flush()
        except IntegrityError as exc:
            # Two triggers raced past the existence check
            logger.error(f"Duplicate settlement rows for campaign {campaign_id}: {exc.orig}")
            raise SettlementIntegrityError(campaign_id) from exc

        NotificationService(self.db).notify_settled(campaign_id, payout.net_amount, CURRENCY)

        logger.info(
            f"Campaign {campaign_id} settled: gross={breakdown.gross_amount} "
            f"platform_fee={breakdown.platform_fee} gateway_fee={breakdown.gateway_fee} "
            f"net={breakdown.net_amount} royalty={breakdown.creator_reward_amount}"
        )
        return SettlementResult(payout=payout, creator_reward=reward, created=True)

    def _royalty_recipient(self, campaign: Campaign) -> Optional[str]:
        post = self.db.query(Post).filter(Post.id == campaign.post_id).first()
        return post.user_id if post else None
