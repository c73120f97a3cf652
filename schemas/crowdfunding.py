# Pydantic Schemas for the crowdfunding engine
# Compliance payloads are modelled as tagged variants and validated here,
# before anything reaches the completeness gate or the database.

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Annotated, List, Literal, Optional, Union
from datetime import datetime
from enum import Enum

from config.app_config import REWARD_MIN_AMOUNT, REWARD_MAX_AMOUNT


# ============================================================================
# ENUMS
# ============================================================================

class CampaignStatus(str, Enum):
    DRAFT = "draft"
    UNDER_REVIEW = "under_review"
    REJECTED = "rejected"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OperatorType(str, Enum):
    INDIVIDUAL = "individual"
    CORPORATE = "corporate"


class IdentityVerificationState(str, Enum):
    NOT_REQUIRED = "not_required"
    REQUIRED_PENDING = "required_pending"
    REQUIRED_VERIFIED = "required_verified"
    REQUIRED_FAILED = "required_failed"


class ChecklistStatus(str, Enum):
    COMPLETED = "completed"
    WARNING = "warning"
    INCOMPLETE = "incomplete"


class PledgeStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PayoutStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class CreatorRewardStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


class FeedbackType(str, Enum):
    REJECTION = "rejection"
    REVISION_REQUEST = "revision_request"
    INFO = "info"
    APPROVAL = "approval"
    SETTLEMENT = "settlement"


class PayableType(str, Enum):
    PROJECT_PAYOUT = "project_payout"
    CREATOR_REWARD = "creator_reward"


# ============================================================================
# COMPLIANCE PAYLOADS
# ============================================================================

class BankAccountInfo(BaseModel):
    """Payout destination. Partial data may be saved while drafting."""
    bank_name: Optional[str] = Field(None, max_length=100)
    branch_name: Optional[str] = Field(None, max_length=100)
    account_type: Literal["ordinary", "checking"] = "ordinary"
    account_number: Optional[str] = Field(None, max_length=20)
    account_holder: Optional[str] = Field(None, max_length=100)

    @field_validator("account_number")
    @classmethod
    def digits_only(cls, v):
        if v and not v.isdigit():
            raise ValueError("account_number must contain digits only")
        return v


class CorporateInfo(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=200)
    representative_name: str = Field(..., min_length=1, max_length=100)
    representative_name_kana: Optional[str] = None
    representative_birth_date: Optional[str] = None
    company_postal_code: Optional[str] = None
    company_address: Optional[str] = None
    company_phone: Optional[str] = None
    registration_number: Optional[str] = None


class TemplateLegalInfo(BaseModel):
    """Legal disclosure rendered from the platform template."""
    display_method: Literal["template"] = "template"


class InputLegalInfo(BaseModel):
    """Legal disclosure entered by the operator."""
    display_method: Literal["input"] = "input"
    business_name: str = Field(..., min_length=1)
    business_representative: str = Field(..., min_length=1)
    business_postal_code: Optional[str] = None
    business_address: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=1)


LegalInfo = Annotated[Union[TemplateLegalInfo, InputLegalInfo], Field(discriminator="display_method")]


# ============================================================================
# CAMPAIGN SCHEMAS
# ============================================================================

class CampaignCreate(BaseModel):
    """Schema for starting a draft campaign from an idea post."""
    post_id: str
    title: str = Field("", max_length=255)
    description: str = ""
    target_amount: int = Field(0, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class CampaignUpdate(BaseModel):
    """Partial update of a draft or rejected campaign."""
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    story: Optional[str] = None
    main_image: Optional[str] = None
    thumbnail_image: Optional[str] = None
    target_amount: Optional[int] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    operator_type: Optional[OperatorType] = None
    identity_verification_required: Optional[bool] = None
    bank_account_info: Optional[BankAccountInfo] = None
    corporate_info: Optional[CorporateInfo] = None
    legal_info: Optional[LegalInfo] = None

    @model_validator(mode="after")
    def corporate_needs_company(self):
        if self.operator_type == OperatorType.INDIVIDUAL and self.corporate_info is not None:
            raise ValueError("corporate_info is only accepted for corporate operators")
        return self


class CampaignResponse(BaseModel):
    id: str
    channel_id: str
    post_id: str
    title: str
    description: Optional[str]
    story: Optional[str] = None
    main_image: Optional[str] = None
    thumbnail_image: Optional[str] = None
    target_amount: int
    current_amount: int
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    status: CampaignStatus
    operator_type: OperatorType
    identity_verification: IdentityVerificationState
    rejection_reason: Optional[str] = None
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CampaignOwnerResponse(CampaignResponse):
    """Operator and staff view, including the compliance payloads."""
    bank_account_info: Optional[dict] = None
    corporate_info: Optional[dict] = None
    legal_info: Optional[dict] = None


# ============================================================================
# REWARD SCHEMAS
# ============================================================================

class RewardCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    amount: int = Field(..., ge=REWARD_MIN_AMOUNT, le=REWARD_MAX_AMOUNT)
    quantity: Optional[int] = Field(None, gt=0)
    is_unlimited: bool = False
    delivery_date: Optional[datetime] = None
    requires_shipping: bool = False

    @model_validator(mode="after")
    def quantity_or_unlimited(self):
        if not self.is_unlimited and self.quantity is None:
            raise ValueError("quantity is required unless the reward is unlimited")
        return self


class RewardUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    amount: Optional[int] = Field(None, ge=REWARD_MIN_AMOUNT, le=REWARD_MAX_AMOUNT)
    quantity: Optional[int] = Field(None, gt=0)
    is_unlimited: Optional[bool] = None
    delivery_date: Optional[datetime] = None
    requires_shipping: Optional[bool] = None


class RewardResponse(BaseModel):
    id: str
    campaign_id: str
    title: str
    description: str
    amount: int
    quantity: Optional[int]
    remaining_quantity: Optional[int]
    is_unlimited: bool
    is_sold_out: bool = False
    delivery_date: Optional[datetime] = None
    requires_shipping: bool = False

    class Config:
        from_attributes = True


# ============================================================================
# VALIDATION SCHEMAS
# ============================================================================

class ChecklistItemResponse(BaseModel):
    id: str
    title: str
    section: str
    status: ChecklistStatus
    details: Optional[str] = None


class ValidationReportResponse(BaseModel):
    items: List[ChecklistItemResponse]
    is_valid: bool
    completion_rate: float
    completion_percent: int


# ============================================================================
# PLEDGE SCHEMAS
# ============================================================================

class PledgeCreate(BaseModel):
    amount: int = Field(..., gt=0)
    reward_id: Optional[str] = None


class PledgeResponse(BaseModel):
    id: str
    campaign_id: str
    user_id: str
    reward_id: Optional[str]
    amount: int
    payment_status: PledgeStatus
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# STAFF REVIEW SCHEMAS
# ============================================================================

class ApprovalRequest(BaseModel):
    campaign_id: str
    action: Literal["approve", "reject"]
    reason: Optional[str] = None


class FeedbackRequest(BaseModel):
    campaign_id: str
    message: str = Field(..., min_length=1, max_length=5000)
    message_type: FeedbackType = FeedbackType.INFO


class FeedbackResponse(BaseModel):
    id: str
    campaign_id: str
    sender_id: Optional[str]
    message_type: FeedbackType
    message: str
    is_read: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# SETTLEMENT SCHEMAS
# ============================================================================

class PayoutUpdateRequest(BaseModel):
    payout_status: PayoutStatus
    processing_notes: Optional[str] = None
    bank_transfer_id: Optional[str] = Field(None, max_length=255)
    payout_method: Optional[str] = Field(None, max_length=30)


class CreatorRewardUpdateRequest(BaseModel):
    payment_status: CreatorRewardStatus
    processing_notes: Optional[str] = None
    bank_transfer_id: Optional[str] = Field(None, max_length=255)


class ProjectPayoutResponse(BaseModel):
    id: str
    campaign_id: str
    gross_amount: int
    platform_fee: int
    gateway_fee: int
    net_amount: int
    payout_status: PayoutStatus
    payout_method: Optional[str] = None
    payout_date: Optional[datetime] = None
    processing_notes: Optional[str] = None
    bank_transfer_id: Optional[str] = None
    processed_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CreatorRewardResponse(BaseModel):
    id: str
    campaign_id: str
    recipient_user_id: str
    amount: int
    payment_status: CreatorRewardStatus
    payment_date: Optional[datetime] = None
    processing_notes: Optional[str] = None
    bank_transfer_id: Optional[str] = None
    processed_by: Optional[str] = None
    percentage_of_gross: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AuditEntryResponse(BaseModel):
    id: str
    payable_type: PayableType
    payable_id: str
    from_status: str
    to_status: str
    actor_id: str
    processing_notes: Optional[str] = None
    bank_transfer_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class IdentityVerificationRequest(BaseModel):
    """Verdict relayed from the identity verification provider."""
    provider_status: Optional[str] = None
    required: bool = True


class CampaignDetailResponse(BaseModel):
    campaign: dict
    rewards: List[RewardResponse]
    supporters_count: int
    viewing_as_admin: bool = False
    is_owner: bool = False
