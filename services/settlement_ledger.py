# Settlement ledger
# Staff-driven status tracking for the two payables of a completed campaign.
# Each advance is a conditional UPDATE on the row's current status and writes
# one audit entry. Advancing to the status a row already has is a no-op.

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.exceptions import IllegalTransition, InvalidInput, NotFound, StaleTransition
from database.config import atomic
from database.crowdfunding_models import (
    Campaign,
    CreatorReward,
    CreatorRewardStatusDB,
    PayableTypeDB,
    PayoutStatusDB,
    ProjectPayout,
    SettlementAuditEntry,
)

logger = logging.getLogger(__name__)

P = PayoutStatusDB
C = CreatorRewardStatusDB

PAYOUT_TRANSITIONS: Dict[PayoutStatusDB, FrozenSet[PayoutStatusDB]] = {
    P.PENDING: frozenset({P.PROCESSING, P.COMPLETED, P.FAILED, P.CANCELLED}),
    P.PROCESSING: frozenset({P.COMPLETED, P.FAILED, P.CANCELLED}),
    P.COMPLETED: frozenset(),
    P.FAILED: frozenset(),
    P.CANCELLED: frozenset(),
}

CREATOR_REWARD_TRANSITIONS: Dict[CreatorRewardStatusDB, FrozenSet[CreatorRewardStatusDB]] = {
    C.PENDING: frozenset({C.PROCESSING, C.PAID, C.FAILED, C.CANCELLED}),
    C.PROCESSING: frozenset({C.PAID, C.FAILED, C.CANCELLED}),
    C.PAID: frozenset(),
    C.FAILED: frozenset(),
    C.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class _Payable:
    """Column layout of one payable table."""
    model: type
    payable_type: PayableTypeDB
    status_enum: type
    status_column: str
    date_column: str
    done_status: object
    transitions: dict


_PAYOUT = _Payable(ProjectPayout, PayableTypeDB.PROJECT_PAYOUT, PayoutStatusDB,
                   "payout_status", "payout_date", P.COMPLETED, PAYOUT_TRANSITIONS)
_CREATOR_REWARD = _Payable(CreatorReward, PayableTypeDB.CREATOR_REWARD, CreatorRewardStatusDB,
                           "payment_status", "payment_date", C.PAID, CREATOR_REWARD_TRANSITIONS)


@dataclass
class CreatorRewardListing:
    reward: CreatorReward
    campaign_title: Optional[str]
    gross_amount: int
    percentage_of_gross: Optional[float]


def percentage_of_gross(amount: int, gross_amount: int) -> Optional[float]:
    """Display-only share of the campaign total."""
    if not gross_amount:
        return None
    return round(amount / gross_amount * 100, 2)


class SettlementLedger:
    def __init__(self, db: Session):
        self.db = db

    # ==================== Status advances ====================

    def advance_payout(
        self,
        payout_id: str,
        to_status: Union[PayoutStatusDB, str],
        actor_id: str,
        processing_notes: Optional[str] = None,
        bank_transfer_id: Optional[str] = None,
        payout_method: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ProjectPayout:
        extra = {"payout_method": payout_method} if payout_method else {}
        return self._advance(_PAYOUT, payout_id, to_status, actor_id, processing_notes, bank_transfer_id, extra, now)

    def advance_creator_reward(
        self,
        reward_id: str,
        to_status: Union[CreatorRewardStatusDB, str],
        actor_id: str,
        processing_notes: Optional[str] = None,
        bank_transfer_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CreatorReward:
        return self._advance(_CREATOR_REWARD, reward_id, to_status, actor_id, processing_notes, bank_transfer_id, {}, now)

    def _advance(self, payable: _Payable, row_id, to_status, actor_id, notes, bank_transfer_id, extra, now):
        if not actor_id:
            raise InvalidInput("An acting staff member is required", field="processed_by")
        try:
            target = payable.status_enum(getattr(to_status, "value", to_status))
        except ValueError:
            raise InvalidInput(f"Unknown status '{to_status}'", field=payable.status_column)
        now = now or datetime.utcnow()
        model = payable.model
        status_col = getattr(model, payable.status_column)

        with atomic(self.db):
            row = self.db.query(model).filter(model.id == row_id).first()
            if not row:
                raise NotFound(model.__name__, row_id)

            current = getattr(row, payable.status_column)
            if current == target:
                logger.debug(f"{payable.payable_type.value} {row_id} already {target.value}; no-op")
                return row
            if target not in payable.transitions[current]:
                raise IllegalTransition(current.value, target.value)

            values = {
                payable.status_column: target,
                "processed_by": actor_id,
                "updated_at": now,
            }
            if notes is not None:
                values["processing_notes"] = notes
            if bank_transfer_id is not None:
                values["bank_transfer_id"] = bank_transfer_id
            if target == payable.done_status:
                values[payable.date_column] = now
            values.update(extra)

            updated = self.db.query(model).filter(
                model.id == row_id,
                status_col == current
            ).update(values, synchronize_session=False)

            if updated == 0:
                actual = self.db.query(status_col).filter(model.id == row_id).scalar()
                if actual == target:
                    logger.debug(f"{payable.payable_type.value} {row_id} reached {target.value} concurrently; no-op")
                    self.db.expire(row)
                    return row
                logger.warning(
                    f"Stale advance on {payable.payable_type.value} {row_id}: expected {current.value}, "
                    f"found {getattr(actual, 'value', actual)}"
                )
                raise StaleTransition(model.__name__, row_id, expected=current.value, actual=getattr(actual, "value", actual))

            self.db.add(SettlementAuditEntry(
                payable_type=payable.payable_type,
                payable_id=row_id,
                from_status=current.value,
                to_status=target.value,
                actor_id=actor_id,
                processing_notes=notes,
                bank_transfer_id=bank_transfer_id,
                created_at=now,
            ))

        self.db.expire(row)
        logger.info(f"{payable.payable_type.value} {row_id}: {current.value} -> {target.value} (by {actor_id})")
        return row

    # ==================== Reads ====================

    def get_payout(self, payout_id: str) -> ProjectPayout:
        payout = self.db.query(ProjectPayout).filter(ProjectPayout.id == payout_id).first()
        if not payout:
            raise NotFound("ProjectPayout", payout_id)
        return payout

    def get_creator_reward(self, reward_id: str) -> CreatorReward:
        reward = self.db.query(CreatorReward).filter(CreatorReward.id == reward_id).first()
        if not reward:
            raise NotFound("CreatorReward", reward_id)
        return reward

    def list_payouts(self, status: Optional[Union[PayoutStatusDB, str]] = None, campaign_id: Optional[str] = None) -> List[ProjectPayout]:
        query = self.db.query(ProjectPayout)
        if status:
            query = query.filter(ProjectPayout.payout_status == PayoutStatusDB(getattr(status, "value", status)))
        if campaign_id:
            query = query.filter(ProjectPayout.campaign_id == campaign_id)
        return query.order_by(ProjectPayout.created_at.desc()).all()

    def list_creator_rewards(self, status: Optional[Union[CreatorRewardStatusDB, str]] = None, campaign_id: Optional[str] = None) -> List[CreatorRewardListing]:
        query = self.db.query(CreatorReward, Campaign).join(Campaign, Campaign.id == CreatorReward.campaign_id)
        if status:
            query = query.filter(CreatorReward.payment_status == CreatorRewardStatusDB(getattr(status, "value", status)))
        if campaign_id:
            query = query.filter(CreatorReward.campaign_id == campaign_id)

        listings = []
        for reward, campaign in query.order_by(CreatorReward.created_at.desc()).all():
            gross = campaign.current_amount or 0
            listings.append(CreatorRewardListing(
                reward=reward,
                campaign_title=campaign.title,
                gross_amount=gross,
                percentage_of_gross=percentage_of_gross(reward.amount, gross),
            ))
        return listings

    def audit_trail(self, payable_type: Union[PayableTypeDB, str], payable_id: str) -> List[SettlementAuditEntry]:
        return self.db.query(SettlementAuditEntry).filter(
            SettlementAuditEntry.payable_type == PayableTypeDB(getattr(payable_type, "value", payable_type)),
            SettlementAuditEntry.payable_id == payable_id
        ).order_by(SettlementAuditEntry.created_at.asc()).all()

    def summary(self) -> dict:
        """Counts per status and amounts for the payout dashboard."""
        return {
            "project_payouts": self._summarize(
                ProjectPayout.payout_status, ProjectPayout.net_amount,
                PayoutStatusDB, open_statuses=(P.PENDING, P.PROCESSING), done_status=P.COMPLETED,
            ),
            "creator_rewards": self._summarize(
                CreatorReward.payment_status, CreatorReward.amount,
                CreatorRewardStatusDB, open_statuses=(C.PENDING, C.PROCESSING), done_status=C.PAID,
            ),
        }

    def _summarize(self, status_col, amount_col, status_enum, open_statuses, done_status) -> dict:
        rows = self.db.query(status_col, func.count(), func.coalesce(func.sum(amount_col), 0)).group_by(status_col).all()
        counts = {s.value: 0 for s in status_enum}
        amounts = {s.value: 0 for s in status_enum}
        for status, count, amount in rows:
            counts[status.value] = count
            amounts[status.value] = int(amount)
        return {
            "counts": counts,
            "total_amount": sum(amounts.values()),
            "pending_amount": sum(amounts[s.value] for s in open_statuses),
            "paid_amount": amounts[done_status.value],
        }
