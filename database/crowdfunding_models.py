# Crowdfunding Models for the IdeaTube platform
# Campaigns, reward tiers, pledges and the two settlement ledgers
# Import these in addition to the core models in database/models.py

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, JSON, Enum, Boolean, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

# Use the same Base from core models
from database.models import Base, generate_uuid


# ============================================================================
# ENUMS
# ============================================================================

class CampaignStatusDB(str, enum.Enum):
    DRAFT = "draft"
    UNDER_REVIEW = "under_review"
    REJECTED = "rejected"
    APPROVED = "approved"      # Published and accepting pledges
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OperatorTypeDB(str, enum.Enum):
    INDIVIDUAL = "individual"
    CORPORATE = "corporate"


class IdentityVerificationDB(str, enum.Enum):
    NOT_REQUIRED = "not_required"
    REQUIRED_PENDING = "required_pending"
    REQUIRED_VERIFIED = "required_verified"
    REQUIRED_FAILED = "required_failed"


class PledgeStatusDB(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PayoutStatusDB(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class CreatorRewardStatusDB(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


class FeedbackTypeDB(str, enum.Enum):
    REJECTION = "rejection"
    REVISION_REQUEST = "revision_request"
    INFO = "info"
    APPROVAL = "approval"
    SETTLEMENT = "settlement"


class PayableTypeDB(str, enum.Enum):
    PROJECT_PAYOUT = "project_payout"
    CREATOR_REWARD = "creator_reward"


def _enum(enum_cls, name):
    return Enum(enum_cls, values_callable=lambda x: [e.value for e in x], name=name)


# ============================================================================
# CAMPAIGN
# ============================================================================

class Campaign(Base):
    """Crowdfunding campaign run by a channel operator from an idea post."""
    __tablename__ = "crowdfunding_campaigns"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    channel_id = Column(String(36), ForeignKey("channels.id"), nullable=False)
    post_id = Column(String(36), ForeignKey("posts.id"), nullable=False)

    # Content
    title = Column(String(255), nullable=False, default="")
    description = Column(Text, default="")
    story = Column(Text)  # Rich text body
    main_image = Column(String(500))
    thumbnail_image = Column(String(500))

    # Funding terms (integer currency units)
    target_amount = Column(Integer, nullable=False, default=0)
    current_amount = Column(Integer, nullable=False, default=0)  # Completed pledges only
    start_date = Column(DateTime)
    end_date = Column(DateTime)

    status = Column(_enum(CampaignStatusDB, "campaignstatusdb"), nullable=False, default=CampaignStatusDB.DRAFT, index=True)

    # Compliance
    operator_type = Column(_enum(OperatorTypeDB, "operatortypedb"), nullable=False, default=OperatorTypeDB.INDIVIDUAL)
    identity_verification = Column(
        _enum(IdentityVerificationDB, "identityverificationdb"),
        nullable=False,
        default=IdentityVerificationDB.REQUIRED_PENDING
    )
    bank_account_info = Column(JSON)  # BankAccountInfo
    corporate_info = Column(JSON)     # CorporateInfo, required iff operator_type=corporate
    legal_info = Column(JSON)         # LegalInfo (template / input variants)

    # Review
    rejection_reason = Column(Text)
    reviewed_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime)

    # Timeline
    submitted_at = Column(DateTime)
    approved_at = Column(DateTime)
    completed_at = Column(DateTime)
    cancelled_at = Column(DateTime)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    channel = relationship("Channel")
    post = relationship("Post")
    rewards = relationship("Reward", back_populates="campaign", order_by="Reward.amount")
    pledges = relationship("Pledge", back_populates="campaign")
    feedback = relationship("CampaignFeedback", back_populates="campaign", order_by="CampaignFeedback.created_at")
    payout = relationship("ProjectPayout", back_populates="campaign", uselist=False)
    creator_reward = relationship("CreatorReward", back_populates="campaign", uselist=False)


# ============================================================================
# REWARD
# ============================================================================

class Reward(Base):
    """Pledge tier with a price and an optional stock limit."""
    __tablename__ = "crowdfunding_rewards"
    __table_args__ = (
        CheckConstraint("remaining_quantity IS NULL OR remaining_quantity >= 0", name="ck_rewards_remaining_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    campaign_id = Column(String(36), ForeignKey("crowdfunding_campaigns.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Integer, nullable=False)  # Pledge price
    # NULL quantity means unlimited stock
    quantity = Column(Integer, nullable=True)
    remaining_quantity = Column(Integer, nullable=True)

    delivery_date = Column(DateTime)
    requires_shipping = Column(Boolean, default=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    campaign = relationship("Campaign", back_populates="rewards")

    @property
    def is_unlimited(self):
        return self.quantity is None


# ============================================================================
# PLEDGE
# ============================================================================

class Pledge(Base):
    """A supporter's pledge; only completed pledges count toward a campaign."""
    __tablename__ = "crowdfunding_supporters"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    campaign_id = Column(String(36), ForeignKey("crowdfunding_campaigns.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    reward_id = Column(String(36), ForeignKey("crowdfunding_rewards.id"), nullable=True)

    amount = Column(Integer, nullable=False)
    payment_status = Column(_enum(PledgeStatusDB, "pledgestatusdb"), nullable=False, default=PledgeStatusDB.PENDING)
    completed_at = Column(DateTime)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    campaign = relationship("Campaign", back_populates="pledges")
    reward = relationship("Reward")


# ============================================================================
# FEEDBACK
# ============================================================================

class CampaignFeedback(Base):
    """Staff messages to the operator, handed off to the messaging component."""
    __tablename__ = "campaign_feedback"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    campaign_id = Column(String(36), ForeignKey("crowdfunding_campaigns.id"), nullable=False, index=True)
    sender_id = Column(String(36), ForeignKey("users.id"), nullable=True)  # NULL for system messages

    message_type = Column(_enum(FeedbackTypeDB, "feedbacktypedb"), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False)

    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    campaign = relationship("Campaign", back_populates="feedback")


# ============================================================================
# SETTLEMENT
# ============================================================================

class ProjectPayout(Base):
    """Operator payout, one per completed campaign."""
    __tablename__ = "project_payouts"
    __table_args__ = (
        UniqueConstraint("campaign_id", name="uq_project_payouts_campaign_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    campaign_id = Column(String(36), ForeignKey("crowdfunding_campaigns.id"), nullable=False)

    gross_amount = Column(Integer, nullable=False)
    platform_fee = Column(Integer, nullable=False)  # Disclosed as inclusive of the gateway fee
    gateway_fee = Column(Integer, nullable=False)
    net_amount = Column(Integer, nullable=False)    # gross - platform_fee - gateway_fee

    payout_status = Column(_enum(PayoutStatusDB, "payoutstatusdb"), nullable=False, default=PayoutStatusDB.PENDING)
    payout_method = Column(String(30), default="bank_transfer")
    payout_date = Column(DateTime)
    processing_notes = Column(Text)
    bank_transfer_id = Column(String(255))
    processed_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    campaign = relationship("Campaign", back_populates="payout")


class CreatorReward(Base):
    """Royalty owed to the idea post's author, one per completed campaign."""
    __tablename__ = "creator_rewards"
    __table_args__ = (
        UniqueConstraint("campaign_id", name="uq_creator_rewards_campaign_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    campaign_id = Column(String(36), ForeignKey("crowdfunding_campaigns.id"), nullable=False)
    recipient_user_id = Column(String(36), ForeignKey("users.id"), nullable=False)

    amount = Column(Integer, nullable=False)  # Fixed at settlement time

    payment_status = Column(_enum(CreatorRewardStatusDB, "creatorrewardstatusdb"), nullable=False, default=CreatorRewardStatusDB.PENDING)
    payment_date = Column(DateTime)
    processing_notes = Column(Text)
    bank_transfer_id = Column(String(255))
    processed_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    campaign = relationship("Campaign", back_populates="creator_reward")


class SettlementAuditEntry(Base):
    """One row per effective status change on a payout or creator reward."""
    __tablename__ = "settlement_audit_entries"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    payable_type = Column(_enum(PayableTypeDB, "payabletypedb"), nullable=False)
    payable_id = Column(String(36), nullable=False, index=True)

    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    actor_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    processing_notes = Column(Text)
    bank_transfer_id = Column(String(255))

    created_at = Column(DateTime, server_default=func.now())
