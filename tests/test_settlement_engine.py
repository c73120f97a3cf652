"""
Tests for settlement calculation and payable materialization.
"""
from decimal import Decimal

import pytest

from core.exceptions import IllegalTransition, InvalidInput, SettlementIntegrityError
from database.crowdfunding_models import (
    CampaignFeedback,
    CampaignStatusDB,
    CreatorReward,
    CreatorRewardStatusDB,
    FeedbackTypeDB,
    PayoutStatusDB,
    ProjectPayout,
)
from services.campaign_lifecycle import CampaignLifecycle
from services.settlement_engine import SettlementEngine, round_money


@pytest.fixture
def engine_(session):
    return SettlementEngine(session)


class TestCompute:
    def test_reference_split(self, engine_):
        breakdown = engine_.compute(250_000)
        assert breakdown.gross_amount == 250_000
        assert breakdown.platform_fee == 20_000
        assert breakdown.gateway_fee == 9_000
        assert breakdown.net_amount == 221_000
        assert breakdown.creator_reward_amount == 7_500

    @pytest.mark.parametrize("gross", [0, 1, 49, 50, 12_345, 999_999, 10_000_000])
    def test_net_is_gross_minus_both_fees(self, engine_, gross):
        b = engine_.compute(gross)
        assert b.net_amount == b.gross_amount - b.platform_fee - b.gateway_fee
        assert all(isinstance(v, int) for v in (b.platform_fee, b.gateway_fee, b.net_amount, b.creator_reward_amount))

    def test_halves_round_up(self, engine_):
        # 50 * 0.036 = 1.8, 50 * 0.03 = 1.5
        b = engine_.compute(50)
        assert (b.platform_fee, b.gateway_fee, b.net_amount, b.creator_reward_amount) == (4, 2, 44, 2)

    def test_round_money(self):
        assert round_money(Decimal("2.5")) == 3
        assert round_money(Decimal("2.49")) == 2

    def test_negative_gross(self, engine_):
        with pytest.raises(InvalidInput):
            engine_.compute(-1)

    def test_custom_rates(self, session):
        b = SettlementEngine(session, platform_fee_rate="0.10", gateway_fee_rate="0", royalty_rate="0.05").compute(1000)
        assert (b.platform_fee, b.gateway_fee, b.net_amount, b.creator_reward_amount) == (100, 0, 900, 50)


class TestSettle:
    def test_completion_creates_both_payables(self, session, make_campaign, author):
        campaign = make_campaign(status=CampaignStatusDB.APPROVED, current_amount=250_000)

        result = CampaignLifecycle(session).complete(campaign.id)

        assert result.created
        payout = session.query(ProjectPayout).filter_by(campaign_id=campaign.id).one()
        reward = session.query(CreatorReward).filter_by(campaign_id=campaign.id).one()
        assert (payout.gross_amount, payout.platform_fee, payout.gateway_fee, payout.net_amount) == (250_000, 20_000, 9_000, 221_000)
        assert payout.payout_status == PayoutStatusDB.PENDING
        assert reward.amount == 7_500
        assert reward.recipient_user_id == author.id
        assert reward.payment_status == CreatorRewardStatusDB.PENDING

    def test_operator_is_told_about_the_payout(self, session, make_campaign):
        campaign = make_campaign(status=CampaignStatusDB.APPROVED, current_amount=250_000)
        CampaignLifecycle(session).complete(campaign.id)

        message = session.query(CampaignFeedback).filter_by(
            campaign_id=campaign.id, message_type=FeedbackTypeDB.SETTLEMENT
        ).one()
        assert message.sender_id is None
        assert "221,000" in message.message

    def test_repeated_trigger_is_a_no_op(self, session, make_campaign):
        campaign = make_campaign(status=CampaignStatusDB.APPROVED, current_amount=250_000)
        lifecycle = CampaignLifecycle(session)

        first = lifecycle.complete(campaign.id)
        second = lifecycle.complete(campaign.id)

        assert not second.created
        assert second.payout.id == first.payout.id
        assert session.query(ProjectPayout).filter_by(campaign_id=campaign.id).count() == 1
        assert session.query(CreatorReward).filter_by(campaign_id=campaign.id).count() == 1

    def test_zero_gross_settles_to_zero(self, session, make_campaign):
        campaign = make_campaign(status=CampaignStatusDB.APPROVED, current_amount=0)
        result = CampaignLifecycle(session).complete(campaign.id)
        assert result.payout.net_amount == 0
        assert result.creator_reward.amount == 0

    def test_missing_half_is_filled_in(self, session, make_campaign, engine_):
        campaign = make_campaign(status=CampaignStatusDB.COMPLETED, current_amount=250_000)
        session.add(ProjectPayout(
            campaign_id=campaign.id, gross_amount=250_000, platform_fee=20_000,
            gateway_fee=9_000, net_amount=221_000,
        ))
        session.commit()

        result = engine_.settle(campaign)
        session.commit()

        assert result.created
        assert session.query(ProjectPayout).filter_by(campaign_id=campaign.id).count() == 1
        assert session.query(CreatorReward).filter_by(campaign_id=campaign.id).one().amount == 7_500

    def test_only_completed_campaigns_settle(self, make_campaign, engine_):
        campaign = make_campaign(status=CampaignStatusDB.APPROVED, current_amount=1000)
        with pytest.raises(IllegalTransition):
            engine_.settle(campaign)

    def test_duplicate_rows_are_rejected_by_the_datastore(self, session, make_campaign, engine_, monkeypatch):
        campaign = make_campaign(status=CampaignStatusDB.COMPLETED, current_amount=250_000)
        session.add(ProjectPayout(
            campaign_id=campaign.id, gross_amount=250_000, platform_fee=20_000,
            gateway_fee=9_000, net_amount=221_000,
        ))
        session.commit()

        # Simulate a second trigger that raced past the existence check
        campaign_id = campaign.id
        monkeypatch.setattr(engine_, "existing", lambda campaign_id: (None, None))
        with pytest.raises(SettlementIntegrityError) as exc:
            engine_.settle(campaign)
        assert exc.value.details == {"campaign_id": campaign_id}
        session.rollback()

        assert session.query(ProjectPayout).filter_by(campaign_id=campaign.id).count() == 1
        assert session.query(CreatorReward).filter_by(campaign_id=campaign.id).count() == 0
