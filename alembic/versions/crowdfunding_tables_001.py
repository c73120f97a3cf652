"""Create crowdfunding tables

This migration adds:
1. users, channels and posts (ownership and royalty payee lookups)
2. crowdfunding_campaigns
3. crowdfunding_rewards
4. crowdfunding_supporters (pledges)
5. campaign_feedback
6. project_payouts and creator_rewards, unique per campaign
7. settlement_audit_entries

Revision ID: crowdfunding_tables_001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = 'crowdfunding_tables_001'
down_revision = None
branch_labels = None
depends_on = None


campaign_status = sa.Enum('draft', 'under_review', 'rejected', 'approved', 'completed', 'cancelled', name='campaignstatusdb')
operator_type = sa.Enum('individual', 'corporate', name='operatortypedb')
identity_verification = sa.Enum('not_required', 'required_pending', 'required_verified', 'required_failed', name='identityverificationdb')
pledge_status = sa.Enum('pending', 'completed', 'failed', name='pledgestatusdb')
payout_status = sa.Enum('pending', 'processing', 'completed', 'failed', 'cancelled', name='payoutstatusdb')
creator_reward_status = sa.Enum('pending', 'processing', 'paid', 'failed', 'cancelled', name='creatorrewardstatusdb')
feedback_type = sa.Enum('rejection', 'revision_request', 'info', 'approval', 'settlement', name='feedbacktypedb')
payable_type = sa.Enum('project_payout', 'creator_reward', name='payabletypedb')


def upgrade():
    # 1. Identity records
    op.create_table('users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255)),
        sa.Column('role', sa.Enum('user', 'staff', name='userrole'), server_default='user'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table('channels',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('owner_user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('icon_url', sa.String(500)),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table('posts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('channel_id', sa.String(36), sa.ForeignKey('channels.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

    # 2. Campaigns
    op.create_table('crowdfunding_campaigns',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('channel_id', sa.String(36), sa.ForeignKey('channels.id'), nullable=False),
        sa.Column('post_id', sa.String(36), sa.ForeignKey('posts.id'), nullable=False),

        # Content
        sa.Column('title', sa.String(255), nullable=False, server_default=''),
        sa.Column('description', sa.Text),
        sa.Column('story', sa.Text),
        sa.Column('main_image', sa.String(500)),
        sa.Column('thumbnail_image', sa.String(500)),

        # Funding terms
        sa.Column('target_amount', sa.Integer, nullable=False, server_default='0'),
        sa.Column('current_amount', sa.Integer, nullable=False, server_default='0'),
        sa.Column('start_date', sa.DateTime),
        sa.Column('end_date', sa.DateTime),
        sa.Column('status', campaign_status, nullable=False, server_default='draft'),

        # Compliance
        sa.Column('operator_type', operator_type, nullable=False, server_default='individual'),
        sa.Column('identity_verification', identity_verification, nullable=False, server_default='required_pending'),
        sa.Column('bank_account_info', sa.JSON),
        sa.Column('corporate_info', sa.JSON),
        sa.Column('legal_info', sa.JSON),

        # Review and timeline
        sa.Column('rejection_reason', sa.Text),
        sa.Column('reviewed_by', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime),
        sa.Column('submitted_at', sa.DateTime),
        sa.Column('approved_at', sa.DateTime),
        sa.Column('completed_at', sa.DateTime),
        sa.Column('cancelled_at', sa.DateTime),

        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_crowdfunding_campaigns_status', 'crowdfunding_campaigns', ['status'])

    # 3. Rewards (NULL quantity = unlimited)
    op.create_table('crowdfunding_rewards',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('campaign_id', sa.String(36), sa.ForeignKey('crowdfunding_campaigns.id'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('amount', sa.Integer, nullable=False),
        sa.Column('quantity', sa.Integer, nullable=True),
        sa.Column('remaining_quantity', sa.Integer, nullable=True),
        sa.Column('delivery_date', sa.DateTime),
        sa.Column('requires_shipping', sa.Boolean, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint('remaining_quantity IS NULL OR remaining_quantity >= 0', name='ck_rewards_remaining_non_negative'),
    )
    op.create_index('ix_crowdfunding_rewards_campaign_id', 'crowdfunding_rewards', ['campaign_id'])

    # 4. Pledges
    op.create_table('crowdfunding_supporters',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('campaign_id', sa.String(36), sa.ForeignKey('crowdfunding_campaigns.id'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('reward_id', sa.String(36), sa.ForeignKey('crowdfunding_rewards.id'), nullable=True),
        sa.Column('amount', sa.Integer, nullable=False),
        sa.Column('payment_status', pledge_status, nullable=False, server_default='pending'),
        sa.Column('completed_at', sa.DateTime),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_crowdfunding_supporters_campaign_id', 'crowdfunding_supporters', ['campaign_id'])

    # 5. Staff feedback
    op.create_table('campaign_feedback',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('campaign_id', sa.String(36), sa.ForeignKey('crowdfunding_campaigns.id'), nullable=False),
        sa.Column('sender_id', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('message_type', feedback_type, nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('is_read', sa.Boolean, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_campaign_feedback_campaign_id', 'campaign_feedback', ['campaign_id'])

    # 6. Settlement
    op.create_table('project_payouts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('campaign_id', sa.String(36), sa.ForeignKey('crowdfunding_campaigns.id'), nullable=False),
        sa.Column('gross_amount', sa.Integer, nullable=False),
        sa.Column('platform_fee', sa.Integer, nullable=False),
        sa.Column('gateway_fee', sa.Integer, nullable=False),
        sa.Column('net_amount', sa.Integer, nullable=False),
        sa.Column('payout_status', payout_status, nullable=False, server_default='pending'),
        sa.Column('payout_method', sa.String(30), server_default='bank_transfer'),
        sa.Column('payout_date', sa.DateTime),
        sa.Column('processing_notes', sa.Text),
        sa.Column('bank_transfer_id', sa.String(255)),
        sa.Column('processed_by', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('campaign_id', name='uq_project_payouts_campaign_id'),
    )

    op.create_table('creator_rewards',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('campaign_id', sa.String(36), sa.ForeignKey('crowdfunding_campaigns.id'), nullable=False),
        sa.Column('recipient_user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('amount', sa.Integer, nullable=False),
        sa.Column('payment_status', creator_reward_status, nullable=False, server_default='pending'),
        sa.Column('payment_date', sa.DateTime),
        sa.Column('processing_notes', sa.Text),
        sa.Column('bank_transfer_id', sa.String(255)),
        sa.Column('processed_by', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('campaign_id', name='uq_creator_rewards_campaign_id'),
    )

    # 7. Ledger audit trail
    op.create_table('settlement_audit_entries',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('payable_type', payable_type, nullable=False),
        sa.Column('payable_id', sa.String(36), nullable=False),
        sa.Column('from_status', sa.String(20), nullable=False),
        sa.Column('to_status', sa.String(20), nullable=False),
        sa.Column('actor_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('processing_notes', sa.Text),
        sa.Column('bank_transfer_id', sa.String(255)),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_settlement_audit_entries_payable_id', 'settlement_audit_entries', ['payable_id'])


def downgrade():
    op.drop_table('settlement_audit_entries')
    op.drop_table('creator_rewards')
    op.drop_table('project_payouts')
    op.drop_table('campaign_feedback')
    op.drop_table('crowdfunding_supporters')
    op.drop_table('crowdfunding_rewards')
    op.drop_table('crowdfunding_campaigns')
    op.drop_table('posts')
    op.drop_table('channels')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (payable_type, feedback_type, creator_reward_status, payout_status,
                      pledge_status, identity_verification, operator_type, campaign_status,
                      sa.Enum(name='userrole')):
        enum_type.drop(bind, checkfirst=True)
