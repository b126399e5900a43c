"""
Initial schema: users, threads, posts, quotes, tags, tag tree and notifications.

Revision ID: 20261018_000000_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00
"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op  # type: ignore[reportMissingImports]

# revision identifiers, used by Alembic.
revision = "20261018_000000_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def _tag_array(name: str) -> sa.Column:
    return sa.Column(
        name, postgresql.ARRAY(sa.String(length=64)), server_default=sa.text("'{}'")
    )


def upgrade() -> None:
    # Required extension for uuid_generate_v4
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp";')

    # users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), server_default=sa.text("uuid_generate_v4()")),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=64), nullable=True),
        _tag_array("tags"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="users_pkey"),
        sa.UniqueConstraint("email", name="users_email_key"),
        sa.UniqueConstraint("name", name="users_name_key"),
    )

    # threads
    op.create_table(
        "threads",
        sa.Column("id", sa.String(length=16), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("anonymous", sa.Boolean(), nullable=False),
        sa.Column("author", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("main_tag", sa.String(length=64), nullable=False),
        _tag_array("sub_tags"),
        sa.Column("reply_count", sa.Integer(), server_default=sa.text("0")),
        _timestamp("create_time", nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE", name="threads_user_id_fkey"
        ),
        sa.PrimaryKeyConstraint("id", name="threads_pkey"),
    )
    op.create_index("idx_threads_create_time", "threads", ["create_time"])
    op.create_index("idx_threads_main_tag", "threads", ["main_tag"])
    op.create_index("idx_threads_sub_tags", "threads", ["sub_tags"], postgresql_using="gin")
    op.create_index("idx_threads_user", "threads", ["user_id"])

    # posts
    op.create_table(
        "posts",
        sa.Column("id", sa.String(length=16), nullable=False),
        sa.Column("thread_id", sa.String(length=16), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("anonymous", sa.Boolean(), nullable=False),
        sa.Column("author", sa.String(length=64), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("quote_count", sa.Integer(), server_default=sa.text("0")),
        _timestamp("create_time", nullable=False),
        sa.ForeignKeyConstraint(
            ["thread_id"], ["threads.id"], ondelete="CASCADE", name="posts_thread_id_fkey"
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE", name="posts_user_id_fkey"
        ),
        sa.PrimaryKeyConstraint("id", name="posts_pkey"),
    )
    op.create_index("idx_posts_thread_time", "posts", ["thread_id", "create_time"])
    op.create_index("idx_posts_user", "posts", ["user_id"])

    # post_quotes
    op.create_table(
        "post_quotes",
        sa.Column("post_id", sa.String(length=16), nullable=False),
        sa.Column("quoted_post_id", sa.String(length=16), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["post_id"], ["posts.id"], ondelete="CASCADE", name="post_quotes_post_id_fkey"
        ),
        sa.ForeignKeyConstraint(
            ["quoted_post_id"],
            ["posts.id"],
            ondelete="CASCADE",
            name="post_quotes_quoted_post_id_fkey",
        ),
        sa.PrimaryKeyConstraint("post_id", "quoted_post_id", name="post_quotes_pkey"),
    )
    op.create_index("idx_post_quotes_quoted", "post_quotes", ["quoted_post_id"])

    # tags
    op.create_table(
        "tags",
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("is_main", sa.Boolean(), server_default=sa.text("false")),
        sa.Column("is_recommended", sa.Boolean(), server_default=sa.text("false")),
        sa.Column("sort_order", sa.Integer(), server_default=sa.text("0")),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("name", name="tags_pkey"),
    )

    # tag_tree
    op.create_table(
        "tag_tree",
        sa.Column("main_tag", sa.String(length=64), nullable=False),
        sa.Column("sub_tag", sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(
            ["main_tag"], ["tags.name"], ondelete="CASCADE", name="tag_tree_main_tag_fkey"
        ),
        sa.PrimaryKeyConstraint("main_tag", "sub_tag", name="tag_tree_pkey"),
    )

    # notifications
    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), server_default=sa.text("uuid_generate_v4()")),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        _timestamp("event_time", nullable=False),
        sa.Column("has_read", sa.Boolean(), server_default=sa.text("false")),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("thread_id", sa.String(length=16), nullable=True),
        sa.Column("post_id", sa.String(length=16), nullable=True),
        _tag_array("actors"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE", name="notifications_user_id_fkey"
        ),
        sa.ForeignKeyConstraint(
            ["thread_id"],
            ["threads.id"],
            ondelete="CASCADE",
            name="notifications_thread_id_fkey",
        ),
        sa.ForeignKeyConstraint(
            ["post_id"], ["posts.id"], ondelete="CASCADE", name="notifications_post_id_fkey"
        ),
        sa.PrimaryKeyConstraint("id", name="notifications_pkey"),
        sa.CheckConstraint(
            "type IN ('system', 'replied', 'quoted')", name="notifications_type_check"
        ),
    )
    op.create_index(
        "idx_notifications_user_type_time", "notifications", ["user_id", "type", "event_time"]
    )


def downgrade() -> None:
    op.drop_index("idx_notifications_user_type_time", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("tag_tree")
    op.drop_table("tags")
    op.drop_index("idx_post_quotes_quoted", table_name="post_quotes")
    op.drop_table("post_quotes")
    op.drop_index("idx_posts_user", table_name="posts")
    op.drop_index("idx_posts_thread_time", table_name="posts")
    op.drop_table("posts")
    op.drop_index("idx_threads_user", table_name="threads")
    op.drop_index("idx_threads_sub_tags", table_name="threads")
    op.drop_index("idx_threads_main_tag", table_name="threads")
    op.drop_index("idx_threads_create_time", table_name="threads")
    op.drop_table("threads")
    op.drop_table("users")
