"""
Tests for the completion worker cycle.
"""
from datetime import datetime, timedelta

import main
from database.crowdfunding_models import Campaign, CampaignStatusDB, ProjectPayout


class TestCompletionCycle:
    def test_cycle_completes_ended_campaigns(self, monkeypatch, session, session_factory, make_campaign):
        now = datetime.utcnow()
        ended = make_campaign(
            status=CampaignStatusDB.APPROVED, current_amount=50_000,
            start_date=now - timedelta(days=30), end_date=now - timedelta(hours=1),
        )
        running = make_campaign(status=CampaignStatusDB.APPROVED)
        monkeypatch.setattr(main, "SessionLocal", session_factory)

        assert main.run_completion_cycle() == [ended.id]

        session.expire_all()
        assert session.query(Campaign).filter_by(id=ended.id).one().status == CampaignStatusDB.COMPLETED
        assert session.query(Campaign).filter_by(id=running.id).one().status == CampaignStatusDB.APPROVED
        assert session.query(ProjectPayout).filter_by(campaign_id=ended.id).one().gross_amount == 50_000

    def test_scheduled_cycle_survives_errors(self, monkeypatch):
        def broken():
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(main, "run_completion_cycle", broken)
        main._scheduled_cycle()
