# Shared campaign lookups for the crowdfunding services

from sqlalchemy.orm import Session

from core.exceptions import NotFound, PermissionDenied, IllegalTransition
from database.models import Channel
from database.crowdfunding_models import Campaign, CampaignStatusDB

# Statuses in which the operator may change content, terms and rewards
EDITABLE_STATUSES = (CampaignStatusDB.DRAFT, CampaignStatusDB.REJECTED)


def get_campaign(db: Session, campaign_id: str) -> Campaign:
    campaign = db.query(Campaign).filter(Campaign.id == campaign_id).first()
    if not campaign:
        raise NotFound("Campaign", campaign_id)
    return campaign


def is_operator(db: Session, campaign: Campaign, user_id: str) -> bool:
    """True when the user owns the campaign's channel."""
    if not user_id:
        return False
    return db.query(Channel).filter(
        Channel.id == campaign.channel_id,
        Channel.owner_user_id == user_id
    ).count() > 0


def get_owned_campaign(db: Session, campaign_id: str, user_id: str) -> Campaign:
    campaign = get_campaign(db, campaign_id)
    if not is_operator(db, campaign, user_id):
        raise PermissionDenied()
    return campaign


def ensure_editable(campaign: Campaign, action: str = "edit"):
    if campaign.status not in EDITABLE_STATUSES:
        raise IllegalTransition(
            campaign.status.value,
            action,
            message=f"Campaign cannot be changed while {campaign.status.value}",
        )
