"""
Database models for the BBS (authoritative ORM definitions).

This module defines the SQLAlchemy Base with a naming convention for stable
Alembic autogenerate diffs, and exposes `target_metadata` for Alembic.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKeyConstraint,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# Naming convention for deterministic constraint/index names in Alembic diffs
naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

NOTIFICATION_TYPES = ("system", "replied", "quoted")


class Base(DeclarativeBase):
    """Base class for all database models with type checking support."""

    metadata = MetaData(naming_convention=naming_convention)


class Users(Base):
    __tablename__ = "users"
    __table_args__ = (
        PrimaryKeyConstraint("id", name="users_pkey"),
        UniqueConstraint("email", name="users_email_key"),
        UniqueConstraint("name", name="users_name_key"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, server_default=text("uuid_generate_v4()"))
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(64))
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(String(64)), default=list, server_default=text("'{}'")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(True), server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True), server_default=text("CURRENT_TIMESTAMP")
    )

    threads: Mapped[list["Threads"]] = relationship("Threads", uselist=True, back_populates="user")
    posts: Mapped[list["Posts"]] = relationship("Posts", uselist=True, back_populates="user")
    notifications: Mapped[list["Notifications"]] = relationship(
        "Notifications", uselist=True, back_populates="user"
    )


class Threads(Base):
    __tablename__ = "threads"
    __table_args__ = (
        ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE", name="threads_user_id_fkey"
        ),
        PrimaryKeyConstraint("id", name="threads_pkey"),
        Index("idx_threads_create_time", "create_time"),
        Index("idx_threads_main_tag", "main_tag"),
        Index("idx_threads_sub_tags", "sub_tags", postgresql_using="gin"),
        Index("idx_threads_user", "user_id"),
    )

    id: Mapped[str] = mapped_column(String(16))
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    author: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    main_tag: Mapped[str] = mapped_column(String(64), nullable=False)
    sub_tags: Mapped[list[str]] = mapped_column(
        ARRAY(String(64)), default=list, server_default=text("'{}'")
    )
    reply_count: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    create_time: Mapped[datetime] = mapped_column(
        DateTime(True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    user: Mapped["Users"] = relationship("Users", back_populates="threads")
    posts: Mapped[list["Posts"]] = relationship("Posts", uselist=True, back_populates="thread")


class Posts(Base):
    __tablename__ = "posts"
    __table_args__ = (
        ForeignKeyConstraint(
            ["thread_id"], ["threads.id"], ondelete="CASCADE", name="posts_thread_id_fkey"
        ),
        ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE", name="posts_user_id_fkey"
        ),
        PrimaryKeyConstraint("id", name="posts_pkey"),
        Index("idx_posts_thread_time", "thread_id", "create_time"),
        Index("idx_posts_user", "user_id"),
    )

    id: Mapped[str] = mapped_column(String(16))
    thread_id: Mapped[str] = mapped_column(String(16), nullable=False)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    author: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    quote_count: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    create_time: Mapped[datetime] = mapped_column(
        DateTime(True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    thread: Mapped["Threads"] = relationship("Threads", back_populates="posts")
    user: Mapped["Users"] = relationship("Users", back_populates="posts")


class PostQuotes(Base):
    __tablename__ = "post_quotes"
    __table_args__ = (
        ForeignKeyConstraint(
            ["post_id"], ["posts.id"], ondelete="CASCADE", name="post_quotes_post_id_fkey"
        ),
        ForeignKeyConstraint(
            ["quoted_post_id"],
            ["posts.id"],
            ondelete="CASCADE",
            name="post_quotes_quoted_post_id_fkey",
        ),
        PrimaryKeyConstraint("post_id", "quoted_post_id", name="post_quotes_pkey"),
        Index("idx_post_quotes_quoted", "quoted_post_id"),
    )

    post_id: Mapped[str] = mapped_column(String(16))
    quoted_post_id: Mapped[str] = mapped_column(String(16))
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Tags(Base):
    __tablename__ = "tags"
    __table_args__ = (PrimaryKeyConstraint("name", name="tags_pkey"),)

    name: Mapped[str] = mapped_column(String(64))
    is_main: Mapped[bool] = mapped_column(Boolean, default=False, server_default=text("false"))
    is_recommended: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false")
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(True), server_default=text("CURRENT_TIMESTAMP")
    )


class TagTree(Base):
    __tablename__ = "tag_tree"
    __table_args__ = (
        ForeignKeyConstraint(
            ["main_tag"], ["tags.name"], ondelete="CASCADE", name="tag_tree_main_tag_fkey"
        ),
        PrimaryKeyConstraint("main_tag", "sub_tag", name="tag_tree_pkey"),
    )

    main_tag: Mapped[str] = mapped_column(String(64))
    sub_tag: Mapped[str] = mapped_column(String(64))


class Notifications(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE", name="notifications_user_id_fkey"
        ),
        ForeignKeyConstraint(
            ["thread_id"],
            ["threads.id"],
            ondelete="CASCADE",
            name="notifications_thread_id_fkey",
        ),
        ForeignKeyConstraint(
            ["post_id"], ["posts.id"], ondelete="CASCADE", name="notifications_post_id_fkey"
        ),
        PrimaryKeyConstraint("id", name="notifications_pkey"),
        CheckConstraint(
            "type IN ('system', 'replied', 'quoted')", name="notifications_type_check"
        ),
        Index("idx_notifications_user_type_time", "user_id", "type", "event_time"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, server_default=text("uuid_generate_v4()"))
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    event_time: Mapped[datetime] = mapped_column(
        DateTime(True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )
    has_read: Mapped[bool] = mapped_column(Boolean, default=False, server_default=text("false"))
    title: Mapped[str | None] = mapped_column(String(255))
    content: Mapped[str | None] = mapped_column(Text)
    thread_id: Mapped[str | None] = mapped_column(String(16))
    post_id: Mapped[str | None] = mapped_column(String(16))
    actors: Mapped[list[str]] = mapped_column(
        ARRAY(String(64)), default=list, server_default=text("'{}'")
    )

    user: Mapped["Users"] = relationship("Users", back_populates="notifications")


target_metadata = Base.metadata

__all__ = [
    "Base",
    "NOTIFICATION_TYPES",
    "Notifications",
    "PostQuotes",
    "Posts",
    "TagTree",
    "Tags",
    "Threads",
    "Users",
    "target_metadata",
]
