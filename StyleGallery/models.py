# models.py
"""
Database models for StyleGallery.

This file defines all SQLAlchemy models used by the application,
providing a single source of truth for the database schema.

Set-valued social fields (a design's likes, a user's followers and
following) are association tables keyed on both ids, so the database
rejects duplicate membership on write.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Boolean, DateTime, Text, Integer, JSON, ForeignKey,
    CheckConstraint, Index,
)
from sqlalchemy.orm import relationship

from db import Base
from identity import UserType


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -----------------------
# Models
# -----------------------
class User(Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(320), unique=True, nullable=False, index=True)
    hashed_password = Column(String(512), nullable=False)
    user_type = Column(String(16), nullable=False, default=UserType.INDIVIDUAL.value)

    # Identity fields, which ones apply depends on user_type
    username = Column(String(64), nullable=True, unique=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    company_name = Column(String(200), nullable=True)
    phone = Column(String(32), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    designs = relationship("Design", back_populates="owner")


class Follow(Base):
    """
    One row per follow edge.

    follower_id follows followee_id, so the row is at the same time an entry
    in the follower's `following` set and in the followee's `followers` set.
    """
    __tablename__ = "follows"
    follower_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    followee_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("follower_id != followee_id", name="ck_no_self_follow"),
        Index("idx_follows_followee", "followee_id"),
    )


class Design(Base):
    __tablename__ = "designs"
    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(64), nullable=True, index=True)
    tags = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)  # [{"url": ..., "is_primary": bool}]
    is_public = Column(Boolean, nullable=False, default=True)
    shares = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    owner = relationship("User", back_populates="designs")

    __table_args__ = (
        CheckConstraint("shares >= 0", name="ck_design_shares_non_negative"),
    )


class DesignLike(Base):
    __tablename__ = "design_likes"
    design_id = Column(String(36), ForeignKey("designs.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class Comment(Base):
    __tablename__ = "comments"
    # Autoincrement id doubles as the append order
    id = Column(Integer, primary_key=True, autoincrement=True)
    design_id = Column(String(36), ForeignKey("designs.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    author = relationship("User", lazy="joined")

    __table_args__ = (
        Index("idx_comments_design", "design_id", "id"),
    )


class Notification(Base):
    __tablename__ = "notifications"
    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(32), nullable=False)  # design_liked, design_commented, design_shared, new_follower
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    # No FK: a deleted design leaves its notifications behind
    related_id = Column(String(36), nullable=True)
    related_model = Column(String(16), nullable=True)  # 'Design' or 'User'
    action_url = Column(String(512), nullable=True)
    extra = Column(JSON, nullable=False, default=dict)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
