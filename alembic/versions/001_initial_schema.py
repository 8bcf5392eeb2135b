"""Initial schema: users, roadmaps, task progress, resources, stars, connections.

Unique constraints on task_progress, roadmap_stars, follows and
friend_requests arbitrate concurrent writes and must not be dropped.

Revision ID: 001_initial_schema
Revises:
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
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(100) NOT NULL,
            email VARCHAR(320) NOT NULL UNIQUE,
            password_hash VARCHAR(256) NOT NULL,
            total_xp INTEGER NOT NULL DEFAULT 0,
            level INTEGER NOT NULL DEFAULT 0,
            streak INTEGER NOT NULL DEFAULT 0,
            last_active_date DATE,
            body_xp INTEGER NOT NULL DEFAULT 0,
            skills_xp INTEGER NOT NULL DEFAULT 0,
            mindset_xp INTEGER NOT NULL DEFAULT 0,
            career_xp INTEGER NOT NULL DEFAULT 0,
            custom_xp INTEGER NOT NULL DEFAULT 0,
            is_profile_public BOOLEAN DEFAULT false,
            allow_close_friend_requests BOOLEAN DEFAULT true,
            follower_count INTEGER NOT NULL DEFAULT 0,
            close_friend_count INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ,
            CONSTRAINT ck_users_total_xp CHECK (total_xp >= 0),
            CONSTRAINT ck_users_custom_xp CHECK (custom_xp >= 0),
            CONSTRAINT ck_users_follower_count CHECK (follower_count >= 0),
            CONSTRAINT ck_users_close_friend_count CHECK (close_friend_count >= 0)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_users_total_xp ON users(total_xp)")

    # --- Roadmaps ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS roadmaps (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            goal VARCHAR(500) NOT NULL,
            title VARCHAR(200) NOT NULL DEFAULT '',
            skill_level VARCHAR(16) DEFAULT 'beginner',
            difficulty VARCHAR(8) NOT NULL,
            duration INTEGER NOT NULL,
            weekly_plan JSONB NOT NULL DEFAULT '[]'::jsonb,
            progress INTEGER NOT NULL DEFAULT 0,
            is_public BOOLEAN DEFAULT false,
            is_custom BOOLEAN DEFAULT false,
            star_count INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ,
            CONSTRAINT ck_roadmaps_progress CHECK (progress >= 0 AND progress <= 100),
            CONSTRAINT ck_roadmaps_star_count CHECK (star_count >= 0)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_roadmaps_user_id ON roadmaps(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_roadmaps_user_created ON roadmaps(user_id, created_at)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_roadmaps_public ON roadmaps(user_id, is_public)")

    # --- Task progress ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS task_progress (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            roadmap_id BIGINT NOT NULL REFERENCES roadmaps(id) ON DELETE CASCADE,
            week INTEGER NOT NULL,
            day VARCHAR(16) NOT NULL,
            task_title VARCHAR(200) NOT NULL,
            completed BOOLEAN DEFAULT false,
            xp_earned INTEGER NOT NULL DEFAULT 0,
            category VARCHAR(16) NOT NULL,
            completed_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ,
            CONSTRAINT uq_task_progress_user_roadmap_task UNIQUE (user_id, roadmap_id, task_title),
            CONSTRAINT ck_task_progress_xp_earned CHECK (xp_earned >= 0)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_task_progress_roadmap_id ON task_progress(roadmap_id)")
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_task_progress_user_roadmap_week_day
        ON task_progress(user_id, roadmap_id, week, day)
    """)

    # --- Task resources ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS task_resources (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            roadmap_id BIGINT NOT NULL REFERENCES roadmaps(id) ON DELETE CASCADE,
            week INTEGER NOT NULL,
            type VARCHAR(16) NOT NULL,
            url TEXT NOT NULL,
            label VARCHAR(200) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_task_resources_roadmap_id ON task_resources(roadmap_id)")
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_task_resources_user_roadmap_week
        ON task_resources(user_id, roadmap_id, week)
    """)

    # --- Stars ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS roadmap_stars (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            roadmap_id BIGINT NOT NULL REFERENCES roadmaps(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_roadmap_stars_user_roadmap UNIQUE (user_id, roadmap_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_roadmap_stars_user_id ON roadmap_stars(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_roadmap_stars_roadmap_id ON roadmap_stars(roadmap_id)")

    # --- Follows ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS follows (
            id BIGSERIAL PRIMARY KEY,
            follower_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            followed_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_follows_follower_followed UNIQUE (follower_id, followed_id),
            CONSTRAINT ck_follows_no_self CHECK (follower_id <> followed_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_follows_follower_id ON follows(follower_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_follows_followed_id ON follows(followed_id)")

    # --- Friend requests ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS friend_requests (
            id BIGSERIAL PRIMARY KEY,
            sender_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            receiver_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            user_low_id BIGINT NOT NULL,
            user_high_id BIGINT NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'pending',
            resend_after TIMESTAMPTZ,
            expires_at TIMESTAMPTZ NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ,
            CONSTRAINT uq_friend_requests_sender_receiver UNIQUE (sender_id, receiver_id),
            CONSTRAINT uq_friend_requests_pair UNIQUE (user_low_id, user_high_id),
            CONSTRAINT ck_friend_requests_no_self CHECK (sender_id <> receiver_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_friend_requests_receiver_status
        ON friend_requests(receiver_id, status)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_friend_requests_sender_status
        ON friend_requests(sender_id, status)
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_friend_requests_expires ON friend_requests(expires_at)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS friend_requests CASCADE")
    op.execute("DROP TABLE IF EXISTS follows CASCADE")
    op.execute("DROP TABLE IF EXISTS roadmap_stars CASCADE")
    op.execute("DROP TABLE IF EXISTS task_resources CASCADE")
    op.execute("DROP TABLE IF EXISTS task_progress CASCADE")
    op.execute("DROP TABLE IF EXISTS roadmaps CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
