"""
Crowdfunding engine errors.

Every error raised by the services carries an error code, an HTTP status and
structured details so callers can render actionable feedback. The FastAPI
handlers in server.py turn them into JSON responses.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

logger = logging.getLogger(__name__)


class CrowdfundingError(Exception):
    """Base class for engine errors."""

    error_code: str = "CROWDFUNDING_ERROR"
    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "An error occurred", details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# ==================== Submission gate ====================

class ValidationFailed(CrowdfundingError):
    """The completeness gate found at least one incomplete checklist item."""
    error_code = "VALIDATION_FAILED"
    status_code = HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, items: List[Any], message: str = "Campaign is incomplete"):
        self.items = list(items)
        super().__init__(
            message=message,
            details={
                "items": [
                    {"id": item.id, "title": item.title, "details": item.details}
                    for item in self.items
                ]
            },
        )

    @property
    def failing_ids(self) -> List[str]:
        return [item.id for item in self.items]


class IncompleteComplianceData(ValidationFailed):
    """Bank account or identity verification is missing where required."""
    error_code = "INCOMPLETE_COMPLIANCE_DATA"

    def __init__(self, items: List[Any]):
        super().__init__(items, message="Required compliance information is missing")


# ==================== State machine ====================

class IllegalTransition(CrowdfundingError):
    """The requested status is not reachable from the current status."""
    error_code = "ILLEGAL_TRANSITION"
    status_code = HTTP_409_CONFLICT

    def __init__(self, from_status: str, to_status: str, message: Optional[str] = None):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            message=message or f"Cannot move from '{from_status}' to '{to_status}'",
            details={"from_status": from_status, "to_status": to_status},
        )


class StaleTransition(CrowdfundingError):
    """Another actor changed the record first; re-fetch and retry."""
    error_code = "STALE_TRANSITION"
    status_code = HTTP_409_CONFLICT

    def __init__(self, resource: str, resource_id: str, expected: Optional[str] = None, actual: Optional[str] = None):
        super().__init__(
            message=f"{resource} {resource_id} was modified concurrently",
            details={"resource": resource, "id": resource_id, "expected": expected, "actual": actual},
        )


class CampaignNotActive(CrowdfundingError):
    """Pledges are only accepted by published campaigns."""
    error_code = "CAMPAIGN_NOT_ACTIVE"
    status_code = HTTP_409_CONFLICT

    def __init__(self, campaign_id: str, status: str):
        super().__init__(
            message="Only published campaigns accept pledges",
            details={"campaign_id": campaign_id, "status": status},
        )


# ==================== Inventory ====================

class SoldOut(CrowdfundingError):
    error_code = "SOLD_OUT"
    status_code = HTTP_409_CONFLICT

    def __init__(self, reward_id: str):
        self.reward_id = reward_id
        super().__init__(message="This reward is sold out", details={"reward_id": reward_id})


# ==================== Settlement ====================

class SettlementIntegrityError(CrowdfundingError):
    """A uniqueness constraint on settlement rows was violated."""
    error_code = "SETTLEMENT_INTEGRITY_ERROR"
    status_code = HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, campaign_id: str):
        super().__init__(
            message="Duplicate settlement rejected by the datastore",
            details={"campaign_id": campaign_id},
        )


# ==================== Generic ====================

class NotFound(CrowdfundingError):
    error_code = "NOT_FOUND"
    status_code = HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        msg = f"{resource} {resource_id} not found" if resource_id else f"{resource} not found"
        super().__init__(message=msg, details={"resource": resource, "id": resource_id})


class PermissionDenied(CrowdfundingError):
    error_code = "PERMISSION_DENIED"
    status_code = HTTP_403_FORBIDDEN

    def __init__(self, message: str = "You don't have access to this campaign"):
        super().__init__(message=message)


class InvalidInput(CrowdfundingError):
    error_code = "INVALID_INPUT"
    status_code = HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message=message, details={"field": field} if field else {})


# ==================== Handler registration ====================

def register_exception_handlers(app):
    """Render engine errors as structured JSON responses."""

    @app.exception_handler(CrowdfundingError)
    async def crowdfunding_error_handler(request: Request, exc: CrowdfundingError):
        logger.info(
            f"{exc.error_code} - {exc.message} | Path: {request.url.path} | Details: {exc.details}"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, **exc.to_dict()},
        )
