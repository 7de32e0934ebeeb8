# social.py
"""
Social interaction engine.

State transitions for likes, comments, shares and follows on designs and
users, plus owner-gated design deletion. Every operation checks its
preconditions before touching anything, so a rejected request leaves the
database exactly as it was. Repeated likes and follows are errors for the
caller, not silent no-ops.

Notifications (and the optional SMS on a like) are sent after the main
write has committed. They can fail without affecting the operation.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from fastapi import Depends
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db
from errors import (
    AlreadyFollowing, AlreadyLiked, Forbidden, InternalError, NotFollowing,
    NotFound, NotLiked, SelfActionForbidden, ValidationError,
)
from identity import InvalidRecord, identity_fields, resolve_display_name
from models import Comment, User
from notifications import NotificationEmitter, NotificationEvent, NotificationType
from repositories import DesignRepository, UserRepository
from settings import settings
from sms import SmsGateway

logger = logging.getLogger(__name__)


# ===================================================================
# Results
# ===================================================================

class _Result(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LikeResult(_Result):
    is_liked: bool
    likes_count: int


class ShareResult(_Result):
    shares_count: int


class FollowResult(_Result):
    is_following: bool
    followers_count: int
    following_count: int


class CommentAuthor(_Result):
    id: str
    user_type: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    display_name: Optional[str] = None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without their zone
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CommentOut(_Result):
    id: int
    author: CommentAuthor
    text: str
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment, author: User) -> "CommentOut":
        return cls(
            id=comment.id,
            author=CommentAuthor(**identity_fields(author)),
            text=comment.text,
            created_at=_as_utc(comment.created_at),
        )


class CommentResult(_Result):
    comment: CommentOut
    comments_count: int


class CommentList(_Result):
    comments: List[CommentOut]
    comments_count: int


class DeleteResult(_Result):
    design_id: str


# ===================================================================
# Engine
# ===================================================================

class DesignRef(NamedTuple):
    """The design fields side effects need, read before anything can expire them."""
    id: str
    owner_id: str
    title: str


class SocialEngine:
    """
    Likes, comments, shares, follows and deletion for one request.

    A failed notification rolls the session back, which expires every
    loaded instance, so each operation builds its result and copies the
    values it still needs before any side effect runs.
    """

    def __init__(
        self,
        designs: DesignRepository,
        users: UserRepository,
        notifier: NotificationEmitter,
        sms: Optional[SmsGateway] = None,
        comment_max_length: int = settings.COMMENT_MAX_LENGTH,
    ):
        self.designs = designs
        self.users = users
        self.notifier = notifier
        self.sms = sms
        self.comment_max_length = comment_max_length

    # --- lookups ---

    async def _get_design(self, design_id: str, viewer_id: Optional[str] = None) -> DesignRef:
        if not design_id:
            raise ValidationError("Design ID is required")
        design = await self.designs.find_by_id(design_id)
        # Private designs do not exist for anyone but their owner
        if design is None or (not design.is_public and design.owner_id != viewer_id):
            raise NotFound("Design not found")
        return DesignRef(design.id, design.owner_id, design.title)

    async def _display_name(self, user_id: str) -> str:
        user = await self.users.find_by_id(user_id)
        if user is None:
            return "Someone"
        return self._name_of(user)

    @staticmethod
    def _name_of(user: User) -> str:
        try:
            return resolve_display_name(user)
        except InvalidRecord as e:
            logger.warning(f"User {user.id} has an incomplete identity record: {e}")
            return "Someone"

    async def _notify(self, event: NotificationEvent) -> None:
        try:
            await self.notifier.emit(event)
        except Exception:
            logger.exception(f"Notification '{event.type.value}' could not be dispatched")

    async def _write_failed(self, action: str, error: SQLAlchemyError) -> InternalError:
        logger.exception(f"Database error while trying to {action}: {error}")
        await self.designs.rollback()
        return InternalError(f"Failed to {action}")

    @staticmethod
    def _design_event(design: DesignRef, type: NotificationType, title: str, message: str,
                      metadata: Dict[str, Any]) -> NotificationEvent:
        return NotificationEvent(
            user_id=design.owner_id,
            type=type,
            title=title,
            message=message,
            related_id=design.id,
            related_model="Design",
            action_url=f"/designs/{design.id}",
            metadata={**metadata, "designTitle": design.title},
        )

    # --- likes ---

    async def like(self, design_id: str, user_id: str) -> LikeResult:
        design = await self._get_design(design_id, user_id)
        if design.owner_id == user_id:
            raise SelfActionForbidden("Cannot like your own design")
        if await self.designs.has_like(design.id, user_id):
            raise AlreadyLiked()

        try:
            await self.designs.add_like(design.id, user_id)
        except IntegrityError:
            # Lost a race with an identical request; the primary key kept one row
            await self.designs.rollback()
            raise AlreadyLiked()
        except SQLAlchemyError as e:
            raise await self._write_failed("like design", e)

        result = LikeResult(is_liked=True, likes_count=await self.designs.likes_count(design.id))
        logger.info(f"❤️ User {user_id} liked design {design.id} ({result.likes_count} likes)")

        liker_name = await self._display_name(user_id)
        await self._notify(
            self._design_event(
                design,
                NotificationType.DESIGN_LIKED,
                "Design Liked",
                f'{liker_name} liked your design "{design.title}"',
                {"likerId": user_id, "likerName": liker_name},
            )
        )
        await self._send_like_sms(design, liker_name)
        return result

    async def _send_like_sms(self, design: DesignRef, liker_name: str) -> None:
        if self.sms is None:
            return
        try:
            owner = await self.users.find_by_id(design.owner_id)
            if owner is None or not owner.phone:
                return
            await self.sms.send_design_liked(owner.phone, liker_name, design.title)
        except Exception:
            logger.exception(f"SMS notification for design {design.id} failed")

    async def unlike(self, design_id: str, user_id: str) -> LikeResult:
        design = await self._get_design(design_id, user_id)
        if design.owner_id == user_id:
            raise SelfActionForbidden("Cannot like your own design")
        if not await self.designs.has_like(design.id, user_id):
            raise NotLiked()

        try:
            removed = await self.designs.remove_like(design.id, user_id)
        except SQLAlchemyError as e:
            raise await self._write_failed("unlike design", e)
        if not removed:
            raise NotLiked()

        likes_count = await self.designs.likes_count(design.id)
        logger.info(f"User {user_id} unliked design {design.id} ({likes_count} likes)")
        return LikeResult(is_liked=False, likes_count=likes_count)

    # --- comments ---

    def _clean_comment(self, text: Optional[str]) -> str:
        cleaned = (text or "").strip()
        if not cleaned:
            raise ValidationError("Comment text is required")
        if len(cleaned) > self.comment_max_length:
            raise ValidationError(
                f"Comment text must be at most {self.comment_max_length} characters"
            )
        return cleaned

    async def add_comment(self, design_id: str, user_id: str, text: Optional[str]) -> CommentResult:
        cleaned = self._clean_comment(text)
        design = await self._get_design(design_id, user_id)
        author = await self.users.find_by_id(user_id)
        if author is None:
            raise NotFound("User not found")

        comment = Comment(
            design_id=design.id,
            author_id=author.id,
            text=cleaned,
            created_at=datetime.now(timezone.utc),
        )
        try:
            await self.designs.add_comment(comment)
        except SQLAlchemyError as e:
            raise await self._write_failed("add comment", e)

        result = CommentResult(
            comment=CommentOut.from_comment(comment, author),
            comments_count=await self.designs.comments_count(design.id),
        )
        logger.info(f"💬 User {user_id} commented on design {design.id} ({result.comments_count} comments)")

        if design.owner_id != user_id:
            commenter_name = self._name_of(author)
            await self._notify(
                self._design_event(
                    design,
                    NotificationType.DESIGN_COMMENTED,
                    "New Comment",
                    f'{commenter_name} commented on your design "{design.title}"',
                    {"commenterId": user_id, "commenterName": commenter_name},
                )
            )
        return result

    async def list_comments(self, design_id: str, viewer_id: Optional[str] = None) -> CommentList:
        design = await self._get_design(design_id, viewer_id)
        comments = await self.designs.comments(design.id)
        return CommentList(
            comments=[CommentOut.from_comment(c, c.author) for c in comments],
            comments_count=len(comments),
        )

    # --- shares ---

    async def share(self, design_id: str, user_id: str) -> ShareResult:
        design = await self._get_design(design_id, user_id)
        try:
            result = ShareResult(shares_count=await self.designs.increment_shares(design.id))
        except SQLAlchemyError as e:
            raise await self._write_failed("share design", e)
        logger.info(f"🔁 User {user_id} shared design {design.id} ({result.shares_count} shares)")

        if design.owner_id != user_id:
            sharer_name = await self._display_name(user_id)
            await self._notify(
                self._design_event(
                    design,
                    NotificationType.DESIGN_SHARED,
                    "Design Shared",
                    f'{sharer_name} shared your design "{design.title}"',
                    {"sharerId": user_id, "sharerName": sharer_name},
                )
            )
        return result

    # --- follows ---

    async def _follow_parties(self, user_id: str, target_user_id: str) -> Tuple[User, User]:
        if not target_user_id:
            raise ValidationError("User ID is required")
        if user_id == target_user_id:
            raise SelfActionForbidden("Cannot follow yourself")
        current_user = await self.users.find_by_id(user_id)
        target_user = await self.users.find_by_id(target_user_id)
        if current_user is None or target_user is None:
            raise NotFound("User not found")
        return current_user, target_user

    async def _follow_result(self, follower_id: str, followee_id: str, is_following: bool) -> FollowResult:
        return FollowResult(
            is_following=is_following,
            followers_count=await self.users.followers_count(followee_id),
            following_count=await self.users.following_count(follower_id),
        )

    async def follow(self, user_id: str, target_user_id: str) -> FollowResult:
        current_user, target_user = await self._follow_parties(user_id, target_user_id)
        follower_id, followee_id = current_user.id, target_user.id
        follower_name = self._name_of(current_user)
        if await self.users.is_following(follower_id, followee_id):
            raise AlreadyFollowing()

        try:
            await self.users.add_follow(follower_id, followee_id)
        except IntegrityError:
            await self.users.rollback()
            raise AlreadyFollowing()
        except SQLAlchemyError as e:
            raise await self._write_failed("follow user", e)

        result = await self._follow_result(follower_id, followee_id, True)
        logger.info(f"👥 User {follower_id} now follows {followee_id}")

        await self._notify(
            NotificationEvent(
                user_id=followee_id,
                type=NotificationType.NEW_FOLLOWER,
                title="New Follower",
                message=f"{follower_name} started following you",
                related_id=follower_id,
                related_model="User",
                action_url="/profile",
                metadata={"followerId": follower_id, "followerName": follower_name},
            )
        )
        return result

    async def unfollow(self, user_id: str, target_user_id: str) -> FollowResult:
        current_user, target_user = await self._follow_parties(user_id, target_user_id)
        follower_id, followee_id = current_user.id, target_user.id
        if not await self.users.is_following(follower_id, followee_id):
            raise NotFollowing()

        try:
            removed = await self.users.remove_follow(follower_id, followee_id)
        except SQLAlchemyError as e:
            raise await self._write_failed("unfollow user", e)
        if not removed:
            raise NotFollowing()
        logger.info(f"User {follower_id} unfollowed {followee_id}")

        return await self._follow_result(follower_id, followee_id, False)

    # --- deletion ---

    async def delete_design(self, design_id: str, user_id: str) -> DeleteResult:
        design = await self._get_design(design_id, user_id)
        if design.owner_id != user_id:
            raise Forbidden("You can only delete your own designs")

        try:
            await self.designs.delete_by_id(design.id)
        except SQLAlchemyError as e:
            raise await self._write_failed("delete design", e)
        logger.info(f"✅ Design {design.id} deleted by user {user_id}")
        return DeleteResult(design_id=design.id)


# ===================================================================
# FastAPI Dependency
# ===================================================================

async def get_social_engine(db: AsyncSession = Depends(get_db)) -> SocialEngine:
    """One engine per request, sharing the request's database session."""
    return SocialEngine(
        designs=DesignRepository(db),
        users=UserRepository(db),
        notifier=NotificationEmitter(db),
        sms=SmsGateway(),
    )
