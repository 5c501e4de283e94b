"""Database models for forum threads, posts and their authors."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Boolean
from sqlalchemy import DateTime
from sqlalchemy import ForeignKey
from sqlalchemy import Index, UniqueConstraint
from sqlalchemy import Integer
from sqlalchemy import JSON
from sqlalchemy import String
from sqlalchemy import Text
from sqlalchemy.orm import Mapped
from sqlalchemy.orm import mapped_column
from sqlalchemy.orm import relationship

from thread_merge.shared.database import Base

POST_TYPE_COMMENT = "comment"
POST_TYPE_THREAD_MERGED = "thread_merged"


class User(Base):
    """Forum member who can author posts and request merges."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Unique user identifier"
    )
    username: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        doc="Display name of the user"
    )
    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Administrators hold every permission"
    )
    permissions: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        doc="Granted permission names (e.g. ['thread.merge'])"
    )

    def __init__(self, **kwargs):
        """Initialize User with default flags."""
        kwargs.setdefault('is_admin', False)
        kwargs.setdefault('permissions', [])
        super().__init__(**kwargs)

    def has_permission(self, permission: str) -> bool:
        """Check whether the user was granted ``permission``."""
        return self.is_admin or permission in (self.permissions or [])


class Thread(Base):
    """Discussion thread holding an ordered sequence of posts.

    ``post_number_index`` is the last number handed out to a post in this
    thread and seeds the next one. The aggregate columns are denormalised
    summaries of ``posts`` refreshed after structural changes such as merges.
    """

    __tablename__ = "threads"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Unique thread identifier"
    )
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Thread title"
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        doc="Author of the thread"
    )

    # Numbering
    post_number_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Highest post number assigned in this thread"
    )

    # Aggregates
    comment_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Number of visible comment posts"
    )
    participant_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Number of distinct authors of visible comments"
    )
    first_post_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="Earliest post in the thread"
    )
    last_post_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="Latest visible comment in the thread"
    )
    last_posted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Creation time of the latest visible comment"
    )
    last_posted_user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="Author of the latest visible comment"
    )

    posts: Mapped[List["Post"]] = relationship(
        back_populates="thread",
        order_by="Post.number",
        lazy="selectin",
        cascade="save-update, merge",
        passive_deletes="all",
    )

    def __init__(self, **kwargs):
        """Initialize Thread with zeroed counters."""
        kwargs.setdefault('post_number_index', 0)
        kwargs.setdefault('comment_count', 0)
        kwargs.setdefault('participant_count', 0)
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        return f"<Thread id={self.id} title={self.title!r}>"


class Post(Base):
    """Single message within a thread.

    ``number`` is the 1-based position of the post inside its thread and is
    unique per thread. ``created_at`` orders posts when threads are merged.
    """

    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Unique post identifier"
    )
    thread_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("threads.id", ondelete="CASCADE"),
        nullable=False,
        doc="Owning thread"
    )
    number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Position of the post inside its thread"
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        doc="Author of the post"
    )
    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=POST_TYPE_COMMENT,
        doc="Post kind: comment or an event post such as thread_merged"
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        doc="Post body"
    )
    hidden_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Set when a moderator hides the post"
    )

    thread: Mapped[Thread] = relationship(back_populates="posts")

    __table_args__ = (
        UniqueConstraint("thread_id", "number", name="uq_posts_thread_number"),
        Index("ix_posts_thread_id", "thread_id"),
        Index("ix_posts_thread_created", "thread_id", "created_at"),
    )

    def __init__(self, **kwargs):
        """Initialize Post with a client-side creation timestamp."""
        kwargs.setdefault('type', POST_TYPE_COMMENT)
        kwargs.setdefault('content', "")
        kwargs.setdefault('created_at', datetime.now(timezone.utc))
        super().__init__(**kwargs)

    @property
    def is_visible_comment(self) -> bool:
        """Comments count towards thread aggregates unless hidden."""
        return self.type == POST_TYPE_COMMENT and self.hidden_at is None

    def __repr__(self) -> str:
        return f"<Post id={self.id} thread_id={self.thread_id} number={self.number}>"
