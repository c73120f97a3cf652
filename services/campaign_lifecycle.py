# Campaign lifecycle
# Editorial and publication state machine for crowdfunding campaigns.
# Every status change is a conditional UPDATE on the expected pre-state, so
# two concurrent actors resolve to one outcome and the loser gets StaleTransition.

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from core.exceptions import (
    CrowdfundingError,
    IllegalTransition,
    IncompleteComplianceData,
    InvalidInput,
    NotFound,
    PermissionDenied,
    StaleTransition,
    ValidationFailed,
)
from database.config import atomic
from database.models import Channel, Post, User
from database.crowdfunding_models import (
    Campaign,
    CampaignFeedback,
    CampaignStatusDB,
    FeedbackTypeDB,
    IdentityVerificationDB,
    OperatorTypeDB,
    Reward,
)
from schemas.crowdfunding import CampaignUpdate
from services.campaign_access import EDITABLE_STATUSES, get_campaign, get_owned_campaign, is_operator
from services.notification_service import NotificationService
from services.pledge_service import supporter_count
from services.settlement_engine import SettlementEngine, SettlementResult
from services.validation_gate import ValidationGate, ValidationReport, as_naive_utc, identity_state_from_provider

logger = logging.getLogger(__name__)

S = CampaignStatusDB

TRANSITIONS: Dict[CampaignStatusDB, FrozenSet[CampaignStatusDB]] = {
    S.DRAFT: frozenset({S.UNDER_REVIEW, S.CANCELLED}),
    S.UNDER_REVIEW: frozenset({S.APPROVED, S.REJECTED, S.CANCELLED}),
    S.REJECTED: frozenset({S.UNDER_REVIEW, S.CANCELLED}),
    S.APPROVED: frozenset({S.COMPLETED, S.CANCELLED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = (S.COMPLETED, S.CANCELLED)
PUBLIC_STATUSES = (S.APPROVED, S.COMPLETED)

_CONTENT_FIELDS = (
    "title", "description", "story", "main_image", "thumbnail_image",
    "target_amount", "start_date", "end_date",
)


@dataclass
class CampaignDetail:
    campaign: Campaign
    rewards: List[Reward]
    supporters_count: int
    viewing_as_admin: bool
    is_owner: bool


def allowed_transitions(status: Union[CampaignStatusDB, str]) -> FrozenSet[CampaignStatusDB]:
    return TRANSITIONS[CampaignStatusDB(status)]


def can_transition(from_status: Union[CampaignStatusDB, str], to_status: Union[CampaignStatusDB, str]) -> bool:
    return CampaignStatusDB(to_status) in allowed_transitions(from_status)


class CampaignLifecycle:
    """
    Operator and staff actions on a campaign.

    Each public method is one transaction: it commits on success and rolls
    back on any error, so a refused action never partially applies.
    """

    allowed_transitions = staticmethod(allowed_transitions)
    can_transition = staticmethod(can_transition)

    def __init__(self, db: Session, gate: Optional[ValidationGate] = None, settlement: Optional[SettlementEngine] = None):
        self.db = db
        self.gate = gate or ValidationGate()
        self.settlement = settlement or SettlementEngine(db)
        self.notifications = NotificationService(db)

    # ==================== Internals ====================

    def _move(self, campaign: Campaign, to_status: CampaignStatusDB, actor_id: Optional[str] = None, **values):
        """Conditionally move campaign from its loaded status to to_status."""
        from_status = campaign.status
        if not can_transition(from_status, to_status):
            raise IllegalTransition(from_status.value, to_status.value)

        values["status"] = to_status
        values["updated_at"] = datetime.utcnow()
        updated = self.db.query(Campaign).filter(
            Campaign.id == campaign.id,
            Campaign.status == from_status
        ).update(values, synchronize_session=False)

        if updated == 0:
            actual = self.db.query(Campaign.status).filter(Campaign.id == campaign.id).scalar()
            logger.warning(
                f"Stale transition on campaign {campaign.id}: expected {from_status.value}, "
                f"found {getattr(actual, 'value', actual)}"
            )
            raise StaleTransition("Campaign", campaign.id, expected=from_status.value, actual=getattr(actual, "value", actual))

        self.db.expire(campaign)
        logger.info(f"Campaign {campaign.id}: {from_status.value} -> {to_status.value} (actor={actor_id})")

    def _rewards(self, campaign_id: str) -> List[Reward]:
        return self.db.query(Reward).filter(Reward.campaign_id == campaign_id).order_by(Reward.amount.asc()).all()

    # ==================== Operator actions ====================

    def create_draft(
        self,
        post_id: str,
        operator_user_id: str,
        title: str = "",
        description: str = "",
        target_amount: int = 0,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Campaign:
        with atomic(self.db):
            post = self.db.query(Post).filter(Post.id == post_id).first()
            if not post:
                raise NotFound("Post", post_id)

            owns_channel = self.db.query(Channel).filter(
                Channel.id == post.channel_id,
                Channel.owner_user_id == operator_user_id
            ).count() > 0
            if not owns_channel:
                raise PermissionDenied("Only the channel owner can start a campaign from this post")

            campaign = Campaign(
                channel_id=post.channel_id,
                post_id=post.id,
                title=title or "",
                description=description or "",
                target_amount=target_amount or 0,
                start_date=as_naive_utc(start_date),
                end_date=as_naive_utc(end_date),
                status=S.DRAFT,
                operator_type=OperatorTypeDB.INDIVIDUAL,
                identity_verification=IdentityVerificationDB.REQUIRED_PENDING,
            )
            self.db.add(campaign)

        self.db.refresh(campaign)
        logger.info(f"Campaign {campaign.id} drafted from post {post_id} by {operator_user_id}")
        return campaign

    def update_content(self, campaign_id: str, operator_user_id: str, changes: Union[CampaignUpdate, dict]) -> Campaign:
        """Apply a partial edit while the campaign is draft or rejected."""
        if isinstance(changes, dict):
            changes = CampaignUpdate.model_validate(changes)
        data = changes.model_dump(exclude_unset=True)

        with atomic(self.db):
            campaign = get_owned_campaign(self.db, campaign_id, operator_user_id)
            if campaign.status not in EDITABLE_STATUSES:
                raise IllegalTransition(
                    campaign.status.value,
                    "edit",
                    message=f"Campaign cannot be edited while {campaign.status.value}",
                )

            values = {}
            for key in _CONTENT_FIELDS:
                if key in data:
                    value = data[key]
                    if key in ("start_date", "end_date"):
                        value = as_naive_utc(value)
                    values[key] = value

            for key in ("bank_account_info", "legal_info"):
                if key in data:
                    payload = getattr(changes, key)
                    values[key] = payload.model_dump(mode="json") if payload is not None else None

            operator_type = OperatorTypeDB(data["operator_type"]) if data.get("operator_type") else campaign.operator_type
            values["operator_type"] = operator_type
            if operator_type == OperatorTypeDB.INDIVIDUAL:
                if changes.corporate_info is not None:
                    raise InvalidInput("corporate_info is only accepted for corporate operators", field="corporate_info")
                values["corporate_info"] = None
            else:
                corporate = changes.corporate_info.model_dump(mode="json") if changes.corporate_info else campaign.corporate_info
                if not corporate:
                    raise InvalidInput("corporate_info is required for corporate operators", field="corporate_info")
                values["corporate_info"] = corporate

            required = data.get("identity_verification_required")
            if required is False:
                values["identity_verification"] = IdentityVerificationDB.NOT_REQUIRED
            elif required is True and campaign.identity_verification == IdentityVerificationDB.NOT_REQUIRED:
                values["identity_verification"] = IdentityVerificationDB.REQUIRED_PENDING

            values["updated_at"] = datetime.utcnow()
            updated = self.db.query(Campaign).filter(
                Campaign.id == campaign.id,
                Campaign.status == campaign.status
            ).update(values, synchronize_session=False)
            if updated == 0:
                logger.warning(f"Campaign {campaign.id} changed status during edit")
                raise StaleTransition("Campaign", campaign.id, expected=campaign.status.value)

        self.db.expire(campaign)
        logger.info(f"Campaign {campaign_id} edited by {operator_user_id}: {sorted(data)}")
        return campaign

    def record_identity_verification(self, campaign_id: str, provider_status: Optional[str], required: bool = True) -> Campaign:
        """Store the identity provider's verdict as the campaign's identity state."""
        state = identity_state_from_provider(required, provider_status)
        with atomic(self.db):
            campaign = get_campaign(self.db, campaign_id)
            if campaign.status in TERMINAL_STATUSES:
                raise IllegalTransition(campaign.status.value, "identity verification")
            campaign.identity_verification = state
        logger.info(f"Campaign {campaign_id} identity state: {state.value} (provider status {provider_status!r})")
        return campaign

    def validate(self, campaign_id: str, now: Optional[datetime] = None) -> ValidationReport:
        campaign = get_campaign(self.db, campaign_id)
        return self.gate.evaluate(campaign, self._rewards(campaign_id), now=now)

    def submit(self, campaign_id: str, operator_user_id: str, now: Optional[datetime] = None) -> Campaign:
        """draft|rejected -> under_review, only when the checklist has no incomplete item."""
        now = as_naive_utc(now) or datetime.utcnow()
        with atomic(self.db):
            campaign = get_owned_campaign(self.db, campaign_id, operator_user_id)
            if not can_transition(campaign.status, S.UNDER_REVIEW):
                raise IllegalTransition(campaign.status.value, S.UNDER_REVIEW.value)

            report = self.gate.evaluate(campaign, self._rewards(campaign.id), now=now)
            if not report.is_valid:
                logger.info(f"Campaign {campaign_id} submission blocked: {[i.id for i in report.incomplete_items]}")
                raise ValidationFailed(report.incomplete_items)

            self._move(campaign, S.UNDER_REVIEW, actor_id=operator_user_id, submitted_at=now)
        return campaign

    def cancel(self, campaign_id: str, actor_id: str, now: Optional[datetime] = None) -> Campaign:
        """Withdraw a non-terminal campaign. No settlement is generated."""
        now = as_naive_utc(now) or datetime.utcnow()
        with atomic(self.db):
            campaign = get_campaign(self.db, campaign_id)
            actor = self.db.query(User).filter(User.id == actor_id).first()
            if not is_operator(self.db, campaign, actor_id) and not (actor and actor.is_staff):
                raise PermissionDenied()
            self._move(campaign, S.CANCELLED, actor_id=actor_id, cancelled_at=now)
        return campaign

    # ==================== Staff actions ====================

    def approve(self, campaign_id: str, staff_id: str, now: Optional[datetime] = None) -> Campaign:
        now = as_naive_utc(now) or datetime.utcnow()
        with atomic(self.db):
            campaign = get_campaign(self.db, campaign_id)
            if campaign.status != S.UNDER_REVIEW:
                raise IllegalTransition(campaign.status.value, S.APPROVED.value)

            report = self.gate.evaluate(campaign, self._rewards(campaign.id), now=now)
            missing = [item for item in self.gate.compliance_items(report) if item.is_blocking]
            if missing:
                raise IncompleteComplianceData(missing)

            self._move(
                campaign, S.APPROVED, actor_id=staff_id,
                approved_at=now, reviewed_by=staff_id, reviewed_at=now,
            )
            self.notifications.notify_approved(campaign.id, staff_id)
        return campaign

    def reject(self, campaign_id: str, staff_id: str, reason: str, now: Optional[datetime] = None) -> Campaign:
        """under_review -> rejected. The reason is persisted and sent to the operator."""
        if not reason or not reason.strip():
            raise InvalidInput("A rejection reason is required", field="reason")
        reason = reason.strip()
        now = as_naive_utc(now) or datetime.utcnow()

        with atomic(self.db):
            campaign = get_campaign(self.db, campaign_id)
            if campaign.status != S.UNDER_REVIEW:
                raise IllegalTransition(campaign.status.value, S.REJECTED.value)
            self._move(
                campaign, S.REJECTED, actor_id=staff_id,
                rejection_reason=reason, reviewed_by=staff_id, reviewed_at=now,
            )
            self.notifications.notify_rejected(campaign.id, staff_id, reason)
        return campaign

    def send_feedback(self, campaign_id: str, staff_id: str, message: str, message_type: Union[FeedbackTypeDB, str] = FeedbackTypeDB.INFO) -> CampaignFeedback:
        if not message or not message.strip():
            raise InvalidInput("Message is required", field="message")
        with atomic(self.db):
            get_campaign(self.db, campaign_id)
            feedback = self.notifications.create(campaign_id, message_type, message.strip(), sender_id=staff_id)
        self.db.refresh(feedback)
        logger.info(f"Feedback {feedback.message_type.value} sent on campaign {campaign_id} by {staff_id}")
        return feedback

    # ==================== Completion ====================

    def complete(self, campaign_id: str, actor_id: Optional[str] = None, now: Optional[datetime] = None) -> SettlementResult:
        """
        approved -> completed, materializing the payout and creator reward in
        the same transaction. Calling it again on a completed campaign only
        re-runs the idempotent settlement.
        """
        now = as_naive_utc(now) or datetime.utcnow()
        with atomic(self.db):
            campaign = get_campaign(self.db, campaign_id)
            if campaign.status != S.COMPLETED:
                self._move(campaign, S.COMPLETED, actor_id=actor_id or "system", completed_at=now)
            result = self.settlement.settle(campaign)
        return result

    def complete_expired(self, now: Optional[datetime] = None) -> List[str]:
        """Complete every approved campaign whose end_date has passed."""
        now = as_naive_utc(now) or datetime.utcnow()
        due = [
            row.id for row in self.db.query(Campaign.id).filter(
                Campaign.status == S.APPROVED,
                Campaign.end_date.isnot(None),
                Campaign.end_date <= now
            ).all()
        ]

        completed = []
        for campaign_id in due:
            try:
                self.complete(campaign_id, now=now)
                completed.append(campaign_id)
            except StaleTransition:
                logger.info(f"Campaign {campaign_id} changed before completion; skipped")
            except CrowdfundingError as e:
                logger.error(f"Failed to complete campaign {campaign_id}: {e.error_code} {e.message}")

        if completed:
            logger.info(f"Completed {len(completed)} expired campaign(s): {completed}")
        return completed

    # ==================== Read filters ====================

    def list_public(self, limit: int = 50, offset: int = 0) -> List[Campaign]:
        return self.db.query(Campaign).filter(
            Campaign.status.in_(PUBLIC_STATUSES)
        ).order_by(Campaign.created_at.desc()).offset(offset).limit(limit).all()

    def list_for_staff(self, statuses: Optional[Iterable[Union[CampaignStatusDB, str]]] = None) -> List[Campaign]:
        query = self.db.query(Campaign)
        if statuses:
            query = query.filter(Campaign.status.in_([CampaignStatusDB(s) for s in statuses]))
        return query.order_by(Campaign.submitted_at.asc(), Campaign.created_at.asc()).all()

    def list_for_operator(self, user_id: str) -> List[Campaign]:
        return self.db.query(Campaign).join(Channel, Channel.id == Campaign.channel_id).filter(
            Channel.owner_user_id == user_id
        ).order_by(Campaign.created_at.desc()).all()

    def get_detail(self, campaign_id: str, viewer: Optional[User] = None) -> CampaignDetail:
        """
        Campaign detail under the visibility rule. Unpublished campaigns are
        reported as missing to anyone but their operator and staff.
        """
        campaign = get_campaign(self.db, campaign_id)
        is_owner = viewer is not None and is_operator(self.db, campaign, viewer.id)
        is_staff = viewer is not None and viewer.is_staff

        if campaign.status not in PUBLIC_STATUSES and not (is_owner or is_staff):
            raise NotFound("Campaign", campaign_id)

        return CampaignDetail(
            campaign=campaign,
            rewards=self._rewards(campaign.id),
            supporters_count=supporter_count(self.db, campaign.id),
            viewing_as_admin=is_staff and not is_owner,
            is_owner=is_owner,
        )


def get_campaign_lifecycle(db: Session) -> CampaignLifecycle:
    return CampaignLifecycle(db)
