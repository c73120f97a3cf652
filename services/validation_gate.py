# Submission completeness gate
# Scores a campaign snapshot and its rewards against the pre-review checklist.
# Pure: reads attributes only, never touches the session.

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from config.app_config import (
    TITLE_MIN_LENGTH,
    TITLE_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    STORY_WARNING_LENGTH,
    STORY_COMPLETE_LENGTH,
    TARGET_MIN_AMOUNT,
    TARGET_MAX_AMOUNT,
)
from database.crowdfunding_models import IdentityVerificationDB


COMPLETED = "completed"
WARNING = "warning"
INCOMPLETE = "incomplete"

# Provider statuses that count as a finished identity check
VERIFIED_PROVIDER_STATUSES = {"verified", "succeeded"}
FAILED_PROVIDER_STATUSES = {"failed", "canceled", "cancelled"}

COMPLIANCE_ITEM_IDS = ("owner-identity-verification", "owner-bank-info")


@dataclass
class ValidationItem:
    id: str
    title: str
    section: str
    status: str
    details: Optional[str] = None

    @property
    def is_blocking(self) -> bool:
        return self.status == INCOMPLETE


@dataclass
class ValidationReport:
    items: List[ValidationItem] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.incomplete_items

    @property
    def completion_rate(self) -> float:
        if not self.items:
            return 0.0
        done = sum(1 for item in self.items if item.status == COMPLETED)
        return done / len(self.items)

    @property
    def completion_percent(self) -> int:
        return round(self.completion_rate * 100)

    @property
    def incomplete_items(self) -> List[ValidationItem]:
        return [item for item in self.items if item.status == INCOMPLETE]

    @property
    def warnings(self) -> List[ValidationItem]:
        return [item for item in self.items if item.status == WARNING]

    def get(self, item_id: str) -> Optional[ValidationItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            "items": [item.__dict__.copy() for item in self.items],
            "is_valid": self.is_valid,
            "completion_rate": self.completion_rate,
            "completion_percent": self.completion_percent,
        }


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC; convert aware input to match."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def identity_state_from_provider(required: bool, provider_status: Optional[str]) -> IdentityVerificationDB:
    """Collapse the provider's session status into the campaign's single identity state."""
    if not required:
        return IdentityVerificationDB.NOT_REQUIRED
    status = (provider_status or "").lower()
    if status in VERIFIED_PROVIDER_STATUSES:
        return IdentityVerificationDB.REQUIRED_VERIFIED
    if status in FAILED_PROVIDER_STATUSES:
        return IdentityVerificationDB.REQUIRED_FAILED
    return IdentityVerificationDB.REQUIRED_PENDING


def _length(value: Any) -> int:
    return len(value) if value else 0


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


class ValidationGate:
    """
    Pre-submission checklist.

    Every item is evaluated on every call so the operator sees the whole
    report at once. Only `incomplete` items block submission; `warning`
    items are advisory.
    """

    def evaluate(self, campaign: Any, rewards: Optional[Iterable[Any]] = None, now: Optional[datetime] = None) -> ValidationReport:
        now = as_naive_utc(now) or datetime.utcnow()
        rewards = list(rewards if rewards is not None else getattr(campaign, "rewards", []) or [])

        return ValidationReport(items=[
            self._check_title(campaign),
            self._check_description(campaign),
            self._check_story(campaign),
            self._check_target_amount(campaign),
            self._check_dates(campaign, now),
            self._check_main_image(campaign),
            self._check_identity(campaign),
            self._check_bank_info(campaign),
            self._check_rewards(rewards),
        ])

    def compliance_items(self, report: ValidationReport) -> List[ValidationItem]:
        """Identity and bank items, the ones approval re-checks."""
        return [item for item in report.items if item.id in COMPLIANCE_ITEM_IDS]

    # ==================== Basic information ====================

    def _check_title(self, campaign) -> ValidationItem:
        title = getattr(campaign, "title", None)
        length = _length(title)
        ok = TITLE_MIN_LENGTH <= length <= TITLE_MAX_LENGTH
        if ok:
            details = None
        elif not title:
            details = "Title is not set"
        else:
            details = f"Title must be {TITLE_MIN_LENGTH}-{TITLE_MAX_LENGTH} characters (currently {length})"
        return ValidationItem("basic-title", "Project title", "basic", COMPLETED if ok else INCOMPLETE, details)

    def _check_description(self, campaign) -> ValidationItem:
        description = getattr(campaign, "description", None)
        length = _length(description)
        ok = DESCRIPTION_MIN_LENGTH <= length <= DESCRIPTION_MAX_LENGTH
        if ok:
            details = None
        elif not description:
            details = "Overview is not set"
        else:
            details = (
                f"Overview must be {DESCRIPTION_MIN_LENGTH}-{DESCRIPTION_MAX_LENGTH} characters "
                f"(currently {length})"
            )
        return ValidationItem("basic-description", "Project overview", "basic", COMPLETED if ok else INCOMPLETE, details)

    def _check_story(self, campaign) -> ValidationItem:
        length = _length(getattr(campaign, "story", None))
        if length >= STORY_COMPLETE_LENGTH:
            status, details = COMPLETED, None
        elif length >= STORY_WARNING_LENGTH:
            status = WARNING
            details = f"A story of {STORY_COMPLETE_LENGTH}+ characters is recommended (currently {length})"
        elif length == 0:
            status, details = INCOMPLETE, "Story is not set"
        else:
            status = INCOMPLETE
            details = f"Story must be at least {STORY_WARNING_LENGTH} characters (currently {length})"
        return ValidationItem("basic-story", "Project story", "basic", status, details)

    # ==================== Funding settings ====================

    def _check_target_amount(self, campaign) -> ValidationItem:
        target = getattr(campaign, "target_amount", None) or 0
        ok = TARGET_MIN_AMOUNT <= target <= TARGET_MAX_AMOUNT
        if ok:
            details = None
        elif not target:
            details = "Target amount is not set"
        else:
            details = f"Target amount must be between {TARGET_MIN_AMOUNT:,} and {TARGET_MAX_AMOUNT:,}"
        return ValidationItem("settings-target-amount", "Target amount", "settings", COMPLETED if ok else INCOMPLETE, details)

    def _check_dates(self, campaign, now: datetime) -> ValidationItem:
        start = as_naive_utc(getattr(campaign, "start_date", None))
        end = as_naive_utc(getattr(campaign, "end_date", None))
        if not start or not end:
            status, details = INCOMPLETE, "Funding period is not set"
        elif start >= end:
            status, details = INCOMPLETE, "End date must be after the start date"
        elif end <= now:
            status, details = INCOMPLETE, "End date must be in the future"
        else:
            status, details = COMPLETED, None
        return ValidationItem("settings-dates", "Funding period", "settings", status, details)

    def _check_main_image(self, campaign) -> ValidationItem:
        ok = bool(getattr(campaign, "main_image", None))
        return ValidationItem(
            "image-main", "Main image", "image",
            COMPLETED if ok else INCOMPLETE,
            None if ok else "Main image is not set",
        )

    # ==================== Operator compliance ====================

    def _check_identity(self, campaign) -> ValidationItem:
        state = _enum_value(getattr(campaign, "identity_verification", None))
        ok = state in (IdentityVerificationDB.NOT_REQUIRED.value, IdentityVerificationDB.REQUIRED_VERIFIED.value)
        if ok:
            details = None
        elif state == IdentityVerificationDB.REQUIRED_FAILED.value:
            details = "Identity verification failed; please verify again"
        else:
            details = "Identity verification is not complete"
        return ValidationItem("owner-identity-verification", "Identity verification", "owner", COMPLETED if ok else INCOMPLETE, details)

    def _check_bank_info(self, campaign) -> ValidationItem:
        bank = getattr(campaign, "bank_account_info", None) or {}
        if hasattr(bank, "model_dump"):
            bank = bank.model_dump()
        ok = bool(bank.get("bank_name")) and bool(bank.get("account_number"))
        return ValidationItem(
            "owner-bank-info", "Payout bank account", "owner",
            COMPLETED if ok else INCOMPLETE,
            None if ok else "Bank name and account number are required",
        )

    # ==================== Rewards ====================

    def _check_rewards(self, rewards: List[Any]) -> ValidationItem:
        ok = len(rewards) > 0
        return ValidationItem(
            "rewards-list", "Rewards", "rewards",
            COMPLETED if ok else INCOMPLETE,
            None if ok else "Add at least one reward",
        )
