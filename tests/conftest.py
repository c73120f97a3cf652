"""
Common test fixtures for the crowdfunding engine test suite.

Provides:
- In-memory SQLite database sessions (a second one for race tests)
- Factories for users, channels, posts, campaigns and rewards
- FastAPI TestClient with the DB dependency overridden and bearer tokens
"""
import os

# Must be set before anything imports database.config or config.app_config
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("PAYMENT_WEBHOOK_SECRET", "test-webhook-secret")

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from database.models import Base, User, UserRole, Channel, Post
from database.crowdfunding_models import (
    Campaign,
    CampaignStatusDB,
    IdentityVerificationDB,
    OperatorTypeDB,
    Reward,
)

WEBHOOK_HEADERS = {"X-Payment-Webhook-Secret": "test-webhook-secret"}

VALID_STORY = (
    "We carve every toy by hand from cedar grown in our valley. "
    "Your support funds the workshop tools and the first production run of 300 kits."
)
VALID_BANK = {
    "bank_name": "Mizuho Bank",
    "branch_name": "Shibuya",
    "account_type": "ordinary",
    "account_number": "1234567",
    "account_holder": "Taro Yamada",
}


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine with all tables."""
    _engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(_engine)
    return _engine


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def session(session_factory):
    """Provide a database session for tests."""
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


# ============================================================================
# IDENTITY RECORDS
# ============================================================================

def _user(session, email, name, role=UserRole.USER):
    user = User(email=email, name=name, role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def operator(session):
    """Channel owner who runs campaigns."""
    return _user(session, "operator@example.com", "Channel Operator")


@pytest.fixture
def author(session):
    """Author of the idea post; receives the creator royalty."""
    return _user(session, "author@example.com", "Idea Author")


@pytest.fixture
def supporter(session):
    return _user(session, "supporter@example.com", "Supporter")


@pytest.fixture
def staff(session):
    return _user(session, "staff@example.com", "Review Staff", role=UserRole.STAFF)


@pytest.fixture
def channel(session, operator):
    channel = Channel(owner_user_id=operator.id, name="Woodworking Weekly")
    session.add(channel)
    session.commit()
    session.refresh(channel)
    return channel


@pytest.fixture
def post(session, channel, author):
    post = Post(channel_id=channel.id, user_id=author.id, title="Wooden toy kits for kids")
    session.add(post)
    session.commit()
    session.refresh(post)
    return post


# ============================================================================
# CAMPAIGNS AND REWARDS
# ============================================================================

@pytest.fixture
def make_reward(session):
    def _make(campaign, amount=3000, quantity=10, remaining=None, title="Starter kit"):
        reward = Reward(
            campaign_id=campaign.id,
            title=title,
            description="One hand-carved toy kit",
            amount=amount,
            quantity=quantity,
            remaining_quantity=quantity if remaining is None else remaining,
        )
        session.add(reward)
        session.commit()
        session.refresh(reward)
        return reward
    return _make


@pytest.fixture
def make_campaign(session, channel, post, make_reward):
    """
    Insert a campaign directly in the given status. Defaults describe a
    campaign that passes every checklist item once it has a reward.
    """
    def _make(status=CampaignStatusDB.DRAFT, with_reward=True, **overrides):
        now = datetime.utcnow()
        fields = dict(
            channel_id=channel.id,
            post_id=post.id,
            title="Hand-carved wooden toy kits",
            description="Cedar toy kits made by hand in our workshop.",
            story=VALID_STORY,
            main_image="https://cdn.example.com/toys/main.jpg",
            target_amount=100_000,
            current_amount=0,
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=30),
            status=status,
            operator_type=OperatorTypeDB.INDIVIDUAL,
            identity_verification=IdentityVerificationDB.REQUIRED_VERIFIED,
            bank_account_info=dict(VALID_BANK),
        )
        fields.update(overrides)
        campaign = Campaign(**fields)
        session.add(campaign)
        session.commit()
        session.refresh(campaign)
        if with_reward:
            make_reward(campaign)
        return campaign
    return _make


# ============================================================================
# HTTP
# ============================================================================

@pytest.fixture
def client(session):
    """
    FastAPI TestClient with the DB session dependency overridden
    to use the in-memory test database.
    """
    from server import app
    from database.config import get_db

    def _override_get_db():
        yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    from auth.dependencies import create_access_token

    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.email)}"}
    return _headers
