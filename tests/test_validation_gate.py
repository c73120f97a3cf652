"""
Tests for the submission completeness gate.
The gate is pure, so snapshots are plain namespaces.
"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from database.crowdfunding_models import IdentityVerificationDB
from services.validation_gate import (
    COMPLETED,
    INCOMPLETE,
    WARNING,
    ValidationGate,
    identity_state_from_provider,
)

NOW = datetime(2026, 10, 19, 12, 0, 0)

ALL_IDS = [
    "basic-title",
    "basic-description",
    "basic-story",
    "settings-target-amount",
    "settings-dates",
    "image-main",
    "owner-identity-verification",
    "owner-bank-info",
    "rewards-list",
]


def snapshot(**overrides):
    fields = dict(
        title="Hand-carved wooden toy kits",
        description="Cedar toy kits made by hand.",
        story="s" * 120,
        target_amount=100_000,
        start_date=NOW - timedelta(days=1),
        end_date=NOW + timedelta(days=30),
        main_image="https://cdn.example.com/main.jpg",
        identity_verification=IdentityVerificationDB.REQUIRED_VERIFIED,
        bank_account_info={"bank_name": "Mizuho Bank", "account_number": "1234567"},
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def empty_snapshot():
    return SimpleNamespace(
        title=None, description=None, story=None, target_amount=None,
        start_date=None, end_date=None, main_image=None,
        identity_verification=IdentityVerificationDB.REQUIRED_PENDING,
        bank_account_info=None,
    )


REWARDS = [SimpleNamespace(id="r1", amount=3000)]


@pytest.fixture
def gate():
    return ValidationGate()


def status_of(report, item_id):
    return report.get(item_id).status


class TestCompleteCampaign:
    def test_everything_filled_in_is_valid(self, gate):
        report = gate.evaluate(snapshot(), REWARDS, now=NOW)
        assert report.is_valid
        assert report.completion_rate == 1.0
        assert report.completion_percent == 100
        assert report.incomplete_items == []

    def test_every_item_is_always_reported(self, gate):
        report = gate.evaluate(empty_snapshot(), [], now=NOW)
        assert [item.id for item in report.items] == ALL_IDS
        assert all(item.status == INCOMPLETE for item in report.items)
        assert report.completion_rate == 0.0

    def test_aware_now_is_accepted(self, gate):
        aware = NOW.replace(tzinfo=timezone.utc)
        assert gate.evaluate(snapshot(), REWARDS, now=aware).is_valid


class TestBasicInformation:
    def test_title_of_four_characters_is_incomplete(self, gate):
        report = gate.evaluate(snapshot(title="Toys"), REWARDS, now=NOW)
        assert status_of(report, "basic-title") == INCOMPLETE
        assert not report.is_valid
        assert [i.id for i in report.incomplete_items] == ["basic-title"]

    @pytest.mark.parametrize("length,expected", [(5, COMPLETED), (100, COMPLETED), (101, INCOMPLETE)])
    def test_title_bounds(self, gate, length, expected):
        report = gate.evaluate(snapshot(title="t" * length), REWARDS, now=NOW)
        assert status_of(report, "basic-title") == expected

    @pytest.mark.parametrize("length,expected", [(9, INCOMPLETE), (10, COMPLETED), (500, COMPLETED), (501, INCOMPLETE)])
    def test_description_bounds(self, gate, length, expected):
        report = gate.evaluate(snapshot(description="d" * length), REWARDS, now=NOW)
        assert status_of(report, "basic-description") == expected

    @pytest.mark.parametrize("length,expected", [
        (0, INCOMPLETE), (49, INCOMPLETE), (50, WARNING), (99, WARNING), (100, COMPLETED),
    ])
    def test_story_thresholds(self, gate, length, expected):
        report = gate.evaluate(snapshot(story="s" * length), REWARDS, now=NOW)
        assert status_of(report, "basic-story") == expected

    def test_short_story_warning_does_not_block(self, gate):
        report = gate.evaluate(snapshot(story="s" * 60), REWARDS, now=NOW)
        assert report.is_valid
        assert [i.id for i in report.warnings] == ["basic-story"]
        assert report.completion_rate < 1.0


class TestFundingSettings:
    @pytest.mark.parametrize("target,expected", [
        (None, INCOMPLETE), (9_999, INCOMPLETE), (10_000, COMPLETED),
        (10_000_000, COMPLETED), (10_000_001, INCOMPLETE),
    ])
    def test_target_amount_bounds(self, gate, target, expected):
        report = gate.evaluate(snapshot(target_amount=target), REWARDS, now=NOW)
        assert status_of(report, "settings-target-amount") == expected

    def test_end_date_in_the_past(self, gate):
        report = gate.evaluate(
            snapshot(start_date=NOW - timedelta(days=10), end_date=NOW - timedelta(days=1)),
            REWARDS, now=NOW,
        )
        assert status_of(report, "settings-dates") == INCOMPLETE

    def test_start_after_end(self, gate):
        report = gate.evaluate(
            snapshot(start_date=NOW + timedelta(days=5), end_date=NOW + timedelta(days=2)),
            REWARDS, now=NOW,
        )
        assert status_of(report, "settings-dates") == INCOMPLETE

    def test_missing_main_image(self, gate):
        report = gate.evaluate(snapshot(main_image=""), REWARDS, now=NOW)
        assert status_of(report, "image-main") == INCOMPLETE


class TestOperatorCompliance:
    @pytest.mark.parametrize("state,expected", [
        (IdentityVerificationDB.NOT_REQUIRED, COMPLETED),
        (IdentityVerificationDB.REQUIRED_VERIFIED, COMPLETED),
        (IdentityVerificationDB.REQUIRED_PENDING, INCOMPLETE),
        (IdentityVerificationDB.REQUIRED_FAILED, INCOMPLETE),
    ])
    def test_identity_states(self, gate, state, expected):
        report = gate.evaluate(snapshot(identity_verification=state), REWARDS, now=NOW)
        assert status_of(report, "owner-identity-verification") == expected

    @pytest.mark.parametrize("bank,expected", [
        (None, INCOMPLETE),
        ({"bank_name": "Mizuho Bank"}, INCOMPLETE),
        ({"account_number": "1234567"}, INCOMPLETE),
        ({"bank_name": "Mizuho Bank", "account_number": "1234567"}, COMPLETED),
    ])
    def test_bank_info_needs_name_and_number(self, gate, bank, expected):
        report = gate.evaluate(snapshot(bank_account_info=bank), REWARDS, now=NOW)
        assert status_of(report, "owner-bank-info") == expected

    def test_compliance_items_subset(self, gate):
        report = gate.evaluate(snapshot(bank_account_info=None), REWARDS, now=NOW)
        items = gate.compliance_items(report)
        assert [i.id for i in items] == ["owner-identity-verification", "owner-bank-info"]
        assert [i.id for i in items if i.is_blocking] == ["owner-bank-info"]


class TestRewards:
    def test_no_rewards_is_incomplete(self, gate):
        report = gate.evaluate(snapshot(), [], now=NOW)
        assert status_of(report, "rewards-list") == INCOMPLETE

    def test_rewards_fall_back_to_campaign_relationship(self, gate):
        campaign = snapshot(rewards=REWARDS)
        report = gate.evaluate(campaign, now=NOW)
        assert status_of(report, "rewards-list") == COMPLETED


class TestMonotonicity:
    FILL_STEPS = [
        ("title", "Hand-carved wooden toy kits"),
        ("description", "Cedar toy kits made by hand."),
        ("story", "s" * 60),
        ("story", "s" * 120),
        ("target_amount", 100_000),
        ("start_date", NOW - timedelta(days=1)),
        ("end_date", NOW + timedelta(days=30)),
        ("main_image", "https://cdn.example.com/main.jpg"),
        ("identity_verification", IdentityVerificationDB.REQUIRED_VERIFIED),
        ("bank_account_info", {"bank_name": "Mizuho Bank", "account_number": "1234567"}),
    ]

    def test_filling_fields_never_lowers_completion(self, gate):
        campaign = empty_snapshot()
        previous = gate.evaluate(campaign, [], now=NOW)

        for attr, value in self.FILL_STEPS:
            setattr(campaign, attr, value)
            current = gate.evaluate(campaign, [], now=NOW)
            assert current.completion_rate >= previous.completion_rate
            for before, after in zip(previous.items, current.items):
                if before.status == COMPLETED:
                    assert after.status == COMPLETED
            previous = current

        final = gate.evaluate(campaign, REWARDS, now=NOW)
        assert final.is_valid
        assert final.completion_rate == 1.0


class TestIdentityProviderMapping:
    @pytest.mark.parametrize("provider_status,expected", [
        ("verified", IdentityVerificationDB.REQUIRED_VERIFIED),
        ("succeeded", IdentityVerificationDB.REQUIRED_VERIFIED),
        ("processing", IdentityVerificationDB.REQUIRED_PENDING),
        (None, IdentityVerificationDB.REQUIRED_PENDING),
        ("canceled", IdentityVerificationDB.REQUIRED_FAILED),
    ])
    def test_required(self, provider_status, expected):
        assert identity_state_from_provider(True, provider_status) == expected

    def test_not_required_ignores_provider(self):
        assert identity_state_from_provider(False, "failed") == IdentityVerificationDB.NOT_REQUIRED
