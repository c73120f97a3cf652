# Services Module for the crowdfunding engine
# Contains business logic services

from services.notification_service import NotificationService, get_notification_service
from services.validation_gate import ValidationGate, ValidationItem, ValidationReport
from services.reward_inventory import RewardInventory
from services.pledge_service import PledgeService
from services.settlement_engine import SettlementEngine, SettlementBreakdown, SettlementResult
from services.settlement_ledger import SettlementLedger
from services.campaign_lifecycle import CampaignLifecycle, get_campaign_lifecycle

__all__ = [
    'NotificationService',
    'get_notification_service',
    'ValidationGate',
    'ValidationItem',
    'ValidationReport',
    'RewardInventory',
    'PledgeService',
    'SettlementEngine',
    'SettlementBreakdown',
    'SettlementResult',
    'SettlementLedger',
    'CampaignLifecycle',
    'get_campaign_lifecycle',
]
