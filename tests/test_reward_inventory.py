"""
Tests for reward tiers and stock handling.
"""
import pytest

from core.exceptions import IllegalTransition, InvalidInput, SoldOut
from database.crowdfunding_models import CampaignStatusDB, Reward
from services.reward_inventory import RewardInventory


@pytest.fixture
def inventory(session):
    return RewardInventory(session)


@pytest.fixture
def draft(make_campaign):
    return make_campaign(with_reward=False)


class TestCreateReward:
    def test_limited_reward_starts_with_full_stock(self, inventory, draft):
        reward = inventory.create(draft.id, "Starter kit", "One toy kit", amount=3000, quantity=20)
        assert reward.quantity == 20
        assert reward.remaining_quantity == 20
        assert not reward.is_unlimited
        assert not inventory.is_sold_out(reward)

    def test_unlimited_reward(self, inventory, draft):
        reward = inventory.create(draft.id, "Thank-you letter", "A handwritten letter", amount=500, quantity=None)
        assert reward.is_unlimited
        assert reward.remaining_quantity is None
        assert not inventory.is_sold_out(reward)

    @pytest.mark.parametrize("amount", [499, 2_900_001, 0])
    def test_amount_out_of_bounds(self, inventory, draft, amount):
        with pytest.raises(InvalidInput) as exc:
            inventory.create(draft.id, "Kit", "Kit", amount=amount, quantity=5)
        assert exc.value.details == {"field": "amount"}

    @pytest.mark.parametrize("amount", [500, 2_900_000])
    def test_amount_bounds_are_inclusive(self, inventory, draft, amount):
        assert inventory.create(draft.id, "Kit", "Kit", amount=amount, quantity=5).amount == amount

    def test_quantity_must_be_positive(self, inventory, draft):
        with pytest.raises(InvalidInput):
            inventory.create(draft.id, "Kit", "Kit", amount=3000, quantity=0)

    def test_published_campaign_is_not_editable(self, inventory, make_campaign, session):
        campaign = make_campaign(status=CampaignStatusDB.APPROVED, with_reward=False)
        with pytest.raises(IllegalTransition):
            inventory.create(campaign.id, "Late tier", "Too late", amount=3000, quantity=5)
        assert session.query(Reward).filter_by(campaign_id=campaign.id).count() == 0

    def test_rejected_campaign_is_editable(self, inventory, make_campaign):
        campaign = make_campaign(status=CampaignStatusDB.REJECTED, with_reward=False)
        assert inventory.create(campaign.id, "Kit", "Kit", amount=3000, quantity=5).campaign_id == campaign.id

    def test_list_is_ordered_by_amount(self, inventory, draft):
        inventory.create(draft.id, "Deluxe", "Deluxe", amount=10_000, quantity=5)
        inventory.create(draft.id, "Basic", "Basic", amount=1_000, quantity=5)
        assert [r.title for r in inventory.list_for_campaign(draft.id)] == ["Basic", "Deluxe"]


class TestUpdateReward:
    def test_new_quantity_keeps_units_already_sold(self, inventory, draft, make_reward):
        reward = make_reward(draft, quantity=10, remaining=7)

        reward = inventory.update(reward.id, quantity=5)
        assert reward.quantity == 5
        assert reward.remaining_quantity == 2

        reward = inventory.update(reward.id, quantity=2)
        assert reward.remaining_quantity == 0
        assert inventory.is_sold_out(reward)

    def test_switch_to_unlimited(self, inventory, draft, make_reward):
        reward = make_reward(draft, quantity=10)
        reward = inventory.update(reward.id, is_unlimited=True)
        assert reward.quantity is None
        assert reward.remaining_quantity is None

    def test_limiting_an_unlimited_reward_needs_a_quantity(self, inventory, draft):
        reward = inventory.create(draft.id, "Letter", "Letter", amount=500, quantity=None)
        with pytest.raises(InvalidInput):
            inventory.update(reward.id, is_unlimited=False)

    def test_none_values_are_ignored(self, inventory, draft, make_reward):
        reward = make_reward(draft, amount=3000)
        reward = inventory.update(reward.id, title="Renamed kit", amount=None)
        assert reward.title == "Renamed kit"
        assert reward.amount == 3000


class TestDeleteReward:
    def test_delete_in_draft(self, inventory, draft, make_reward, session):
        reward = make_reward(draft)
        inventory.delete(reward.id)
        assert session.query(Reward).filter_by(id=reward.id).first() is None

    @pytest.mark.parametrize("status", [CampaignStatusDB.REJECTED, CampaignStatusDB.APPROVED])
    def test_delete_outside_draft_is_refused(self, inventory, make_campaign, make_reward, session, status):
        campaign = make_campaign(status=status, with_reward=False)
        reward = make_reward(campaign)
        with pytest.raises(IllegalTransition):
            inventory.delete(reward.id)
        assert session.query(Reward).filter_by(id=reward.id).first() is not None


class TestDecrementOnPledge:
    def test_takes_one_unit(self, inventory, draft, make_reward, session):
        reward = make_reward(draft, quantity=3)
        inventory.decrement_on_pledge(reward.id)
        session.commit()
        assert inventory.get(reward.id).remaining_quantity == 2

    def test_unlimited_reward_is_untouched(self, inventory, draft, session):
        reward = inventory.create(draft.id, "Letter", "Letter", amount=500, quantity=None)
        for _ in range(5):
            inventory.decrement_on_pledge(reward.id)
        session.commit()
        reward = inventory.get(reward.id)
        assert reward.remaining_quantity is None
        assert not inventory.is_sold_out(reward)

    def test_never_goes_below_zero(self, inventory, draft, make_reward, session):
        reward = make_reward(draft, quantity=3)
        outcomes = []
        for _ in range(5):
            try:
                inventory.decrement_on_pledge(reward.id)
                session.commit()
                outcomes.append("ok")
            except SoldOut:
                session.rollback()
                outcomes.append("sold_out")

        assert outcomes == ["ok", "ok", "ok", "sold_out", "sold_out"]
        assert inventory.get(reward.id).remaining_quantity == 0

    def test_last_unit_goes_to_exactly_one_of_two_sessions(self, draft, make_reward, session, session_factory):
        reward = make_reward(draft, quantity=1)

        other = session_factory()
        try:
            inventory_b = RewardInventory(other)
            # Both sides have read the last unit before either decrements
            stale_b = inventory_b.get(reward.id)
            assert stale_b.remaining_quantity == 1
            inventory_a = RewardInventory(session)
            stale_a = inventory_a.get(reward.id)
            assert stale_a.remaining_quantity == 1

            inventory_a.decrement_on_pledge(reward.id)
            session.commit()

            with pytest.raises(SoldOut):
                inventory_b.decrement_on_pledge(reward.id)
            other.rollback()
        finally:
            other.close()

        session.expire_all()
        assert session.query(Reward).filter_by(id=reward.id).one().remaining_quantity == 0
