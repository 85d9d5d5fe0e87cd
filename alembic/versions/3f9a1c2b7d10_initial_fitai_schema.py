"""initial_fitai_schema

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2025-12-01 09:12:44.531207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f9a1c2b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def _user_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE')


def upgrade() -> None:
    """Upgrade schema."""
    # Users & auth
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False, comment='Login email (lowercase)'),
        sa.Column('password_hash', sa.String(length=255), nullable=False, comment='bcrypt password hash'),
        sa.Column('full_name', sa.String(length=255), nullable=True, comment='Display name'),
        sa.Column('avatar_url', sa.String(length=512), nullable=True, comment='Public avatar path'),
        sa.Column('is_banned', sa.Boolean(), nullable=False, comment='Account suspended'),
        sa.Column('pending_referral_code', sa.String(length=32), nullable=True,
                  comment='Referral code staged until the referral row is created'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True, comment='Last successful login'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_created_at'), 'users', ['created_at'], unique=False)

    op.create_table(
        'password_reset_tokens',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(length=128), nullable=False, comment='URL-safe random token'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False, comment='Token expiration'),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True, comment='When the token was consumed'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_password_reset_tokens_user_id'), 'password_reset_tokens', ['user_id'], unique=False)
    op.create_index(op.f('ix_password_reset_tokens_token'), 'password_reset_tokens', ['token'], unique=True)

    op.create_table(
        'user_profiles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('height_cm', sa.Numeric(precision=5, scale=1), nullable=True),
        sa.Column('weight_kg', sa.Numeric(precision=5, scale=1), nullable=True),
        sa.Column('fitness_level', sa.String(length=50), nullable=True, comment='iniciante, intermediario, avancado'),
        sa.Column('fitness_goals', sa.Text(), nullable=True),
        sa.Column('workout_location', sa.String(length=50), nullable=True,
                  comment='casa, casa_equipamentos, academia, parque, condominio'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_profiles_user_id'), 'user_profiles', ['user_id'], unique=True)

    op.create_table(
        'user_progress',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('weight_kg', sa.Numeric(precision=5, scale=1), nullable=True),
        sa.Column('body_fat_pct', sa.Numeric(precision=4, scale=1), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_progress_user_id'), 'user_progress', ['user_id'], unique=False)
    op.create_index(op.f('ix_user_progress_recorded_at'), 'user_progress', ['recorded_at'], unique=False)

    # Billing
    op.create_table(
        'subscriptions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False, comment='User ID (foreign key)'),
        sa.Column('payment_id', sa.String(length=64), nullable=False, comment='Asaas payment ID'),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False, comment='Charged amount (BRL)'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='pending, active, expired, cancelled'),
        sa.Column('payment_method', sa.String(length=20), nullable=False, comment='Payment method'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True, comment='Access valid until'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_subscriptions_user_id'), 'subscriptions', ['user_id'], unique=False)
    op.create_index(op.f('ix_subscriptions_payment_id'), 'subscriptions', ['payment_id'], unique=True)
    op.create_index(op.f('ix_subscriptions_status'), 'subscriptions', ['status'], unique=False)
    op.create_index(op.f('ix_subscriptions_expires_at'), 'subscriptions', ['expires_at'], unique=False)

    # Gamification
    op.create_table(
        'user_gamification',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('xp', sa.Integer(), nullable=False, comment='Total XP'),
        sa.Column('level', sa.Integer(), nullable=False, comment='Level 1-6'),
        sa.Column('current_streak', sa.Integer(), nullable=False, comment='Consecutive days with a workout'),
        sa.Column('best_streak', sa.Integer(), nullable=False),
        sa.Column('total_workouts', sa.Integer(), nullable=False),
        sa.Column('achievements', JSON_TYPE, nullable=False, comment='Unlocked achievement ids'),
        sa.Column('fitness_category', sa.String(length=20), nullable=False,
                  comment='iniciante, intermediario, avancado'),
        sa.Column('last_activity_date', sa.Date(), nullable=True, comment='Date of the last recorded workout'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_gamification_user_id'), 'user_gamification', ['user_id'], unique=True)
    op.create_index('ix_user_gamification_xp', 'user_gamification', ['xp'], unique=False)

    op.create_table(
        'challenges',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False, comment='daily, weekly'),
        sa.Column('category', sa.String(length=30), nullable=False, comment='workout, nutrition, general'),
        sa.Column('target_value', sa.Integer(), nullable=False),
        sa.Column('target_unit', sa.String(length=30), nullable=False),
        sa.Column('xp_reward', sa.Integer(), nullable=False),
        sa.Column('difficulty', sa.String(length=20), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_challenges_type'), 'challenges', ['type'], unique=False)
    op.create_index(op.f('ix_challenges_start_date'), 'challenges', ['start_date'], unique=False)
    op.create_index(op.f('ix_challenges_end_date'), 'challenges', ['end_date'], unique=False)
    op.create_index(op.f('ix_challenges_is_active'), 'challenges', ['is_active'], unique=False)

    op.create_table(
        'user_challenge_progress',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('challenge_id', sa.Integer(), nullable=False),
        sa.Column('current_value', sa.Integer(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        _user_fk(),
        sa.ForeignKeyConstraint(['challenge_id'], ['challenges.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'challenge_id', name='uq_user_challenge'),
    )
    op.create_index(op.f('ix_user_challenge_progress_user_id'), 'user_challenge_progress', ['user_id'], unique=False)
    op.create_index(
        op.f('ix_user_challenge_progress_challenge_id'), 'user_challenge_progress', ['challenge_id'], unique=False
    )

    # Forum
    op.create_table(
        'forum_categories',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('color', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'forum_posts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('author_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('likes_count', sa.Integer(), nullable=False),
        sa.Column('replies_count', sa.Integer(), nullable=False),
        sa.Column('is_pinned', sa.Boolean(), nullable=False),
        sa.Column('is_closed', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['forum_categories.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_forum_posts_author_id'), 'forum_posts', ['author_id'], unique=False)
    op.create_index(op.f('ix_forum_posts_category_id'), 'forum_posts', ['category_id'], unique=False)
    op.create_index(op.f('ix_forum_posts_created_at'), 'forum_posts', ['created_at'], unique=False)

    op.create_table(
        'forum_replies',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('post_id', sa.Integer(), nullable=False),
        sa.Column('author_id', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('likes_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['post_id'], ['forum_posts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_forum_replies_post_id'), 'forum_replies', ['post_id'], unique=False)
    op.create_index(op.f('ix_forum_replies_author_id'), 'forum_replies', ['author_id'], unique=False)

    op.create_table(
        'forum_post_likes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('post_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['post_id'], ['forum_posts.id'], ondelete='CASCADE'),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('post_id', 'user_id', name='uq_post_like'),
    )
    op.create_index(op.f('ix_forum_post_likes_post_id'), 'forum_post_likes', ['post_id'], unique=False)
    op.create_index(op.f('ix_forum_post_likes_user_id'), 'forum_post_likes', ['user_id'], unique=False)

    op.create_table(
        'forum_reply_likes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('reply_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['reply_id'], ['forum_replies.id'], ondelete='CASCADE'),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reply_id', 'user_id', name='uq_reply_like'),
    )
    op.create_index(op.f('ix_forum_reply_likes_reply_id'), 'forum_reply_likes', ['reply_id'], unique=False)
    op.create_index(op.f('ix_forum_reply_likes_user_id'), 'forum_reply_likes', ['user_id'], unique=False)

    # Affiliates & promoters
    op.create_table(
        'affiliates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('affiliate_code', sa.String(length=16), nullable=False, comment='Public referral code'),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('commission_rate', sa.Numeric(precision=5, scale=2), nullable=False, comment='Commission %'),
        sa.Column('total_earnings', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total_referrals', sa.Integer(), nullable=False),
        sa.Column('pix_key', sa.String(length=140), nullable=True, comment='PIX key for payouts'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_affiliates_user_id'), 'affiliates', ['user_id'], unique=True)
    op.create_index(op.f('ix_affiliates_affiliate_code'), 'affiliates', ['affiliate_code'], unique=True)
    op.create_index(op.f('ix_affiliates_status'), 'affiliates', ['status'], unique=False)

    op.create_table(
        'referrals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('affiliate_id', sa.Integer(), nullable=False),
        sa.Column('referred_user_id', sa.Integer(), nullable=False),
        sa.Column('referral_code', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('conversion_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['affiliate_id'], ['affiliates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referred_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_referrals_affiliate_id'), 'referrals', ['affiliate_id'], unique=False)
    op.create_index(op.f('ix_referrals_referred_user_id'), 'referrals', ['referred_user_id'], unique=True)
    op.create_index(op.f('ix_referrals_status'), 'referrals', ['status'], unique=False)

    op.create_table(
        'commissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('affiliate_id', sa.Integer(), nullable=False),
        sa.Column('referral_id', sa.Integer(), nullable=False),
        sa.Column('subscription_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('commission_rate', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['affiliate_id'], ['affiliates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referral_id'], ['referrals.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['subscription_id'], ['subscriptions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('subscription_id'),
    )
    op.create_index(op.f('ix_commissions_affiliate_id'), 'commissions', ['affiliate_id'], unique=False)
    op.create_index(op.f('ix_commissions_referral_id'), 'commissions', ['referral_id'], unique=False)
    op.create_index(op.f('ix_commissions_status'), 'commissions', ['status'], unique=False)

    op.create_table(
        'affiliate_withdrawals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('affiliate_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('pix_key', sa.String(length=140), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['affiliate_id'], ['affiliates.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_affiliate_withdrawals_affiliate_id'), 'affiliate_withdrawals', ['affiliate_id'], unique=False
    )
    op.create_index(op.f('ix_affiliate_withdrawals_status'), 'affiliate_withdrawals', ['status'], unique=False)

    op.create_table(
        'promoters',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('promoter_code', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('deactivated_at', sa.DateTime(timezone=True), nullable=True,
                  comment='Start of the post-deactivation grace period'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('promoter_code'),
    )
    op.create_index(op.f('ix_promoters_user_id'), 'promoters', ['user_id'], unique=True)
    op.create_index(op.f('ix_promoters_status'), 'promoters', ['status'], unique=False)

    # Onboarding & notifications
    op.create_table(
        'user_onboarding_status',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('has_seen_tour', sa.Boolean(), nullable=False),
        sa.Column('completed_checklist_steps', JSON_TYPE, nullable=False),
        sa.Column('dismissed_contextual_tips', JSON_TYPE, nullable=False),
        sa.Column('hide_checklist', sa.Boolean(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_user_onboarding_status_user_id'), 'user_onboarding_status', ['user_id'], unique=True
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=30), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('action_url', sa.String(length=512), nullable=True),
        sa.Column('metadata', JSON_TYPE, nullable=True, comment='Free-form payload'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_notifications_user_id'), 'notifications', ['user_id'], unique=False)
    op.create_index(op.f('ix_notifications_is_read'), 'notifications', ['is_read'], unique=False)
    op.create_index(op.f('ix_notifications_created_at'), 'notifications', ['created_at'], unique=False)

    # AI
    op.create_table(
        'ai_conversations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('conversation_type', sa.String(length=20), nullable=False),
        sa.Column('messages', JSON_TYPE, nullable=False, comment='[{role, content, timestamp}]'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'conversation_type', name='uq_user_conversation_type'),
    )
    op.create_index(op.f('ix_ai_conversations_user_id'), 'ai_conversations', ['user_id'], unique=False)

    op.create_table(
        'user_workout_plans',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('plan_data', JSON_TYPE, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_workout_plans_user_id'), 'user_workout_plans', ['user_id'], unique=True)

    op.create_table(
        'workout_plan_queue',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('request_data', JSON_TYPE, nullable=False),
        sa.Column('position_in_queue', sa.Integer(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        _user_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_workout_plan_queue_user_id'), 'workout_plan_queue', ['user_id'], unique=False)
    op.create_index(op.f('ix_workout_plan_queue_status'), 'workout_plan_queue', ['status'], unique=False)
    op.create_index(op.f('ix_workout_plan_queue_created_at'), 'workout_plan_queue', ['created_at'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'workout_plan_queue',
        'user_workout_plans',
        'ai_conversations',
        'notifications',
        'user_onboarding_status',
        'promoters',
        'affiliate_withdrawals',
        'commissions',
        'referrals',
        'affiliates',
        'forum_reply_likes',
        'forum_post_likes',
        'forum_replies',
        'forum_posts',
        'forum_categories',
        'user_challenge_progress',
        'challenges',
        'user_gamification',
        'subscriptions',
        'user_progress',
        'user_profiles',
        'password_reset_tokens',
        'users',
    ):
        op.drop_table(table)
