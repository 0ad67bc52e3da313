"""Initial schema: users, directory, reviews, votes, reports, reputation.

Creates every table the API uses with its constraints and indexes.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-17
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            auth_id VARCHAR(64) UNIQUE NOT NULL,
            email VARCHAR(320) NOT NULL,
            display_name VARCHAR(64),
            avatar_url TEXT,
            bio VARCHAR(280),
            role VARCHAR(16) NOT NULL DEFAULT 'user',
            is_banned BOOLEAN NOT NULL DEFAULT false,
            profile_completed BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            last_login TIMESTAMPTZ,
            reputation_points INTEGER NOT NULL DEFAULT 0,
            reputation_level INTEGER NOT NULL DEFAULT 0,
            badges_count INTEGER NOT NULL DEFAULT 0
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_users_reputation
        ON users(reputation_points DESC)
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS email_preferences (
            user_id UUID PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            welcome_email BOOLEAN NOT NULL DEFAULT true,
            group_approved BOOLEAN NOT NULL DEFAULT true,
            new_review BOOLEAN NOT NULL DEFAULT true,
            reputation_milestone BOOLEAN NOT NULL DEFAULT true,
            new_badge BOOLEAN NOT NULL DEFAULT true,
            new_report BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Directory ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS categories (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(64) UNIQUE NOT NULL,
            description TEXT,
            icon VARCHAR(64),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS groups (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(200) NOT NULL,
            url VARCHAR(500) UNIQUE NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            category_id UUID REFERENCES categories(id) ON DELETE SET NULL,
            size INTEGER,
            activity_level VARCHAR(16),
            screenshot_url TEXT,
            is_private BOOLEAN NOT NULL DEFAULT false,
            submitted_by UUID REFERENCES users(id) ON DELETE SET NULL,
            submitted_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            status VARCHAR(16) NOT NULL DEFAULT 'pending'
                CONSTRAINT groups_status_check CHECK (status IN ('pending', 'active', 'removed')),
            upvotes INTEGER NOT NULL DEFAULT 0 CONSTRAINT groups_upvotes_non_negative CHECK (upvotes >= 0),
            downvotes INTEGER NOT NULL DEFAULT 0 CONSTRAINT groups_downvotes_non_negative CHECK (downvotes >= 0),
            average_rating DOUBLE PRECISION NOT NULL DEFAULT 0,
            review_count INTEGER NOT NULL DEFAULT 0,
            view_count INTEGER NOT NULL DEFAULT 0,
            is_verified BOOLEAN NOT NULL DEFAULT false,
            verification_status VARCHAR(16),
            verified_by UUID REFERENCES users(id),
            verification_date TIMESTAMPTZ,
            verification_notes TEXT
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_groups_status
        ON groups(status, submitted_at DESC)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_groups_category
        ON groups(category_id)
    """)

    # --- Reviews & votes ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS reviews (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            group_id UUID NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            rating INTEGER NOT NULL CONSTRAINT reviews_rating_range CHECK (rating >= 1 AND rating <= 5),
            comment TEXT,
            helpful_votes INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT reviews_user_id_group_id_key UNIQUE (user_id, group_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_reviews_group
        ON reviews(group_id)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS votes (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            group_id UUID NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            vote_type VARCHAR(16) NOT NULL
                CONSTRAINT votes_vote_type_check CHECK (vote_type IN ('upvote', 'downvote')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT votes_user_id_group_id_key UNIQUE (user_id, group_id)
        )
    """)

    # --- Reports ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS reports (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            group_id UUID NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            reason VARCHAR(200) NOT NULL,
            comment TEXT,
            status VARCHAR(16) NOT NULL DEFAULT 'pending'
                CONSTRAINT reports_status_check
                CHECK (status IN ('pending', 'in_review', 'resolved', 'dismissed')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            resolved_at TIMESTAMPTZ,
            resolved_by UUID REFERENCES users(id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_reports_status
        ON reports(status, created_at DESC)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS verification_logs (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            group_id UUID NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            status VARCHAR(16) NOT NULL,
            notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_verification_logs_group
        ON verification_logs(group_id, created_at DESC)
    """)

    # --- Reputation & badges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS reputation_history (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            points INTEGER NOT NULL,
            reason VARCHAR(256) NOT NULL,
            source_type VARCHAR(32) NOT NULL,
            source_id VARCHAR(64),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_reputation_history_user
        ON reputation_history(user_id, created_at DESC)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS badges (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(128) UNIQUE NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            icon VARCHAR(64),
            category VARCHAR(32) NOT NULL,
            level INTEGER NOT NULL DEFAULT 1,
            points INTEGER NOT NULL DEFAULT 0,
            requirements JSONB,
            display_order INTEGER NOT NULL DEFAULT 999,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_badges (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            badge_id UUID NOT NULL REFERENCES badges(id) ON DELETE CASCADE,
            level INTEGER NOT NULL DEFAULT 1,
            times_awarded INTEGER NOT NULL DEFAULT 1,
            awarded_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_badges_user_id_badge_id_key UNIQUE (user_id, badge_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_badges_user
        ON user_badges(user_id)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_badges CASCADE")
    op.execute("DROP TABLE IF EXISTS badges CASCADE")
    op.execute("DROP TABLE IF EXISTS reputation_history CASCADE")
    op.execute("DROP TABLE IF EXISTS verification_logs CASCADE")
    op.execute("DROP TABLE IF EXISTS reports CASCADE")
    op.execute("DROP TABLE IF EXISTS votes CASCADE")
    op.execute("DROP TABLE IF EXISTS reviews CASCADE")
    op.execute("DROP TABLE IF EXISTS groups CASCADE")
    op.execute("DROP TABLE IF EXISTS categories CASCADE")
    op.execute("DROP TABLE IF EXISTS email_preferences CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
