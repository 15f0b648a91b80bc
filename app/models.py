"""
Database Models for the Postboard Application

This module defines the SQLAlchemy ORM models for the application:
- User: Registered accounts holding a password hash and the current session token
- Post: Text posts with a like counter
- AuditLog: Record of account and post lifecycle actions

The set of users who liked a post lives in the post_likes association table.
Post.likes is a denormalized counter that must always equal the number of
post_likes rows for that post.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship


# Base class for all ORM models
Base = declarative_base()


def new_id() -> str:
    """Opaque identifier for users and posts."""
    return uuid.uuid4().hex


# Association table between posts and the users who liked them
# The composite primary key is what enforces at-most-one-like-per-user:
# a second INSERT for the same pair fails with an IntegrityError.
post_likes = Table(
    "post_likes",
    Base.metadata,
    Column("post_id", String(32), ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(32), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime, default=datetime.utcnow),
)


class User(Base):
    """
    A registered account.

    The password column only ever holds a bcrypt hash (salt embedded).
    The token column holds the single live session token; it is overwritten
    on every login and set to "" on logout.
    """
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)

    name = Column(String, nullable=False)

    # unique=True backs the signup pre-check against concurrent registrations
    email = Column(String, unique=True, index=True, nullable=False)

    password = Column(String, nullable=False)

    token = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)


class Post(Base):
    """
    A text post owned by its author.

    Only the author may edit title/description/body or delete the post.
    Any authenticated user may like or unlike it.
    """
    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint("likes >= 0", name="ck_posts_likes_non_negative"),
    )

    id = Column(String(32), primary_key=True, default=new_id)

    title = Column(String, nullable=False)
    description = Column(String, nullable=False)
    body = Column(Text, nullable=False)

    likes = Column(Integer, nullable=False, default=0)

    # Set at creation and never changed
    author = Column(String(32), ForeignKey("users.id"), index=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Users who liked this post, loaded explicitly with selectinload()
    liked_by = relationship("User", secondary=post_likes, viewonly=True)

    def to_dict(self) -> dict:
        """
        Wire representation of a post.

        Requires liked_by to be loaded; async sessions cannot lazy-load it.
        """
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "body": self.body,
            "likes": self.likes,
            "likedBy": [u.id for u in self.liked_by],
            "author": self.author,
        }


class AuditLog(Base):
    """
    One recorded account or post action.

    user_id identifies the actor for good; user_email is the address
    the actor had at the time and may no longer match the account.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    action = Column(String(32), nullable=False, index=True)
    user_id = Column(String(32), nullable=False, index=True)
    user_email = Column(String, nullable=False)
    details = Column(Text, nullable=True)  # JSON object or free text
    created_at = Column(DateTime, default=datetime.utcnow)
