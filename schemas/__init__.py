# Schemas module for the crowdfunding platform
# Organizes all Pydantic schemas in a modular structure

from schemas.crowdfunding import (
    # Enums
    CampaignStatus,
    OperatorType,
    IdentityVerificationState,
    ChecklistStatus,
    PledgeStatus,
    PayoutStatus,
    CreatorRewardStatus,
    FeedbackType,
    PayableType,

    # Compliance payloads
    BankAccountInfo,
    CorporateInfo,
    TemplateLegalInfo,
    InputLegalInfo,
    LegalInfo,

    # Campaign schemas
    CampaignCreate,
    CampaignUpdate,
    CampaignResponse,
    CampaignOwnerResponse,
    CampaignDetailResponse,
    IdentityVerificationRequest,

    # Reward schemas
    RewardCreate,
    RewardUpdate,
    RewardResponse,

    # Validation schemas
    ChecklistItemResponse,
    ValidationReportResponse,

    # Pledge schemas
    PledgeCreate,
    PledgeResponse,

    # Staff review schemas
    ApprovalRequest,
    FeedbackRequest,
    FeedbackResponse,

    # Settlement schemas
    PayoutUpdateRequest,
    CreatorRewardUpdateRequest,
    ProjectPayoutResponse,
    CreatorRewardResponse,
    AuditEntryResponse,
)

__all__ = [
    # Enums
    "CampaignStatus",
    "OperatorType",
    "IdentityVerificationState",
    "ChecklistStatus",
    "PledgeStatus",
    "PayoutStatus",
    "CreatorRewardStatus",
    "FeedbackType",
    "PayableType",

    # Compliance payloads
    "BankAccountInfo",
    "CorporateInfo",
    "TemplateLegalInfo",
    "InputLegalInfo",
    "LegalInfo",

    # Campaign schemas
    "CampaignCreate",
    "CampaignUpdate",
    "CampaignResponse",
    "CampaignOwnerResponse",
    "CampaignDetailResponse",
    "IdentityVerificationRequest",

    # Reward schemas
    "RewardCreate",
    "RewardUpdate",
    "RewardResponse",

    # Validation schemas
    "ChecklistItemResponse",
    "ValidationReportResponse",

    # Pledge schemas
    "PledgeCreate",
    "PledgeResponse",

    # Staff review schemas
    "ApprovalRequest",
    "FeedbackRequest",
    "FeedbackResponse",

    # Settlement schemas
    "PayoutUpdateRequest",
    "CreatorRewardUpdateRequest",
    "ProjectPayoutResponse",
    "CreatorRewardResponse",
    "AuditEntryResponse",
]
