# Notification Service for the crowdfunding engine
# Persists staff and system messages for campaign operators. Delivery is
# handled by the messaging component, which reads the campaign_feedback table.

from sqlalchemy.orm import Session
from typing import Optional, List
from enum import Enum
import logging

from database.crowdfunding_models import CampaignFeedback, FeedbackTypeDB

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Service for recording messages to campaign operators.
    Rows are flushed, never committed: the caller's transaction decides.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        campaign_id: str,
        type: FeedbackTypeDB | str,
        message: str,
        sender_id: Optional[str] = None,
    ) -> CampaignFeedback:
        """
        Create a feedback row for a campaign's operator.

        Args:
            campaign_id: The campaign the message is about
            type: Feedback type (FeedbackTypeDB or its value)
            message: Full message text
            sender_id: Staff user who wrote it, None for system messages

        Returns:
            The created CampaignFeedback object
        """
        value = type.value if isinstance(type, Enum) else type
        try:
            type_db = FeedbackTypeDB(value)
        except ValueError:
            type_db = FeedbackTypeDB.INFO

        feedback = CampaignFeedback(
            campaign_id=campaign_id,
            sender_id=sender_id,
            message_type=type_db,
            message=message,
        )
        self.db.add(feedback)
        self.db.flush()  # Get the ID without committing
        logger.debug(f"Feedback {type_db.value} recorded for campaign {campaign_id}")
        return feedback

    def list_for_campaign(self, campaign_id: str) -> List[CampaignFeedback]:
        return self.db.query(CampaignFeedback).filter(
            CampaignFeedback.campaign_id == campaign_id
        ).order_by(CampaignFeedback.created_at).all()

    def mark_all_read(self, campaign_id: str) -> int:
        """
        Mark every message on a campaign as read.

        Returns:
            Number of messages marked as read
        """
        return self.db.query(CampaignFeedback).filter(
            CampaignFeedback.campaign_id == campaign_id,
            CampaignFeedback.is_read == False
        ).update({"is_read": True}, synchronize_session=False)

    def get_unread_count(self, campaign_id: str) -> int:
        return self.db.query(CampaignFeedback).filter(
            CampaignFeedback.campaign_id == campaign_id,
            CampaignFeedback.is_read == False
        ).count()

    # =========================================================================
    # LIFECYCLE HELPERS
    # =========================================================================

    def notify_rejected(self, campaign_id: str, staff_id: str, reason: str):
        """Hand the rejection reason to the operator."""
        return self.create(
            campaign_id=campaign_id,
            type=FeedbackTypeDB.REJECTION,
            message=reason,
            sender_id=staff_id,
        )

    def notify_approved(self, campaign_id: str, staff_id: str):
        return self.create(
            campaign_id=campaign_id,
            type=FeedbackTypeDB.APPROVAL,
            message="Your campaign has been approved and is now public.",
            sender_id=staff_id,
        )

    def notify_settled(self, campaign_id: str, net_amount: int, currency: str):
        """System message sent once the payout has been calculated."""
        return self.create(
            campaign_id=campaign_id,
            type=FeedbackTypeDB.SETTLEMENT,
            message=f"Your campaign has ended. Payout of {currency} {net_amount:,} is being prepared.",
        )


# Convenience function to get service
def get_notification_service(db: Session) -> NotificationService:
    """Get NotificationService instance."""
    return NotificationService(db)
