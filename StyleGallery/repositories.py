# repositories.py
"""
Persistence collaborators for the social engine.

Each repository wraps the request's AsyncSession and exposes the same
small surface: find_by_id, save, delete_by_id, plus the set-membership
helpers the social operations need. Membership writes commit straight
away; the composite primary keys on the association tables reject a
second insert of the same pair with an IntegrityError.
"""

from abc import ABC, abstractmethod
from typing import Generic, List, Optional, Sequence, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models import Comment, Design, DesignLike, Follow, User

T = TypeVar("T")


class BaseRepository(ABC, Generic[T]):
    """Abstract base for entity repositories."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @abstractmethod
    async def find_by_id(self, id: str) -> Optional[T]:
        """Get entity by ID."""

    async def save(self, entity: T) -> T:
        """Insert or update the entity and commit."""
        self.session.add(entity)
        await self.session.commit()
        return entity

    @abstractmethod
    async def delete_by_id(self, id: str) -> bool:
        """Delete entity by ID. Returns True if deleted."""

    async def rollback(self) -> None:
        await self.session.rollback()


class UserRepository(BaseRepository[User]):

    async def find_by_id(self, id: str) -> Optional[User]:
        if not id:
            return None
        return await self.session.get(User, id)

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def find_by_username(self, username: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalars().first()

    async def delete_by_id(self, id: str) -> bool:
        result = await self.session.execute(delete(User).where(User.id == id))
        await self.session.commit()
        return result.rowcount > 0

    # --- following / followers ---

    async def is_following(self, follower_id: str, followee_id: str) -> bool:
        return await self.session.get(Follow, (follower_id, followee_id)) is not None

    async def add_follow(self, follower_id: str, followee_id: str) -> None:
        self.session.add(Follow(follower_id=follower_id, followee_id=followee_id))
        await self.session.commit()

    async def remove_follow(self, follower_id: str, followee_id: str) -> bool:
        result = await self.session.execute(
            delete(Follow).where(
                Follow.follower_id == follower_id,
                Follow.followee_id == followee_id,
            )
        )
        await self.session.commit()
        return result.rowcount > 0

    async def followers_count(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Follow).where(Follow.followee_id == user_id)
        )
        return result.scalar_one()

    async def following_count(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)
        )
        return result.scalar_one()

    async def follower_ids(self, user_id: str) -> List[str]:
        result = await self.session.execute(
            select(Follow.follower_id).where(Follow.followee_id == user_id)
        )
        return list(result.scalars().all())

    async def following_ids(self, user_id: str) -> List[str]:
        result = await self.session.execute(
            select(Follow.followee_id).where(Follow.follower_id == user_id)
        )
        return list(result.scalars().all())


SORT_COLUMNS = {
    "createdAt": Design.created_at,
    "shares": Design.shares,
    "title": Design.title,
}


class DesignRepository(BaseRepository[Design]):

    async def find_by_id(self, id: str) -> Optional[Design]:
        if not id:
            return None
        return await self.session.get(Design, id)

    async def delete_by_id(self, id: str) -> bool:
        # Likes and comments go with the design; SQLite does not enforce
        # ON DELETE CASCADE unless the pragma is on, so delete them explicitly.
        await self.session.execute(delete(DesignLike).where(DesignLike.design_id == id))
        await self.session.execute(delete(Comment).where(Comment.design_id == id))
        result = await self.session.execute(delete(Design).where(Design.id == id))
        await self.session.commit()
        return result.rowcount > 0

    async def list(
        self,
        category: Optional[str] = None,
        owner_id: Optional[str] = None,
        sort_by: str = "createdAt",
        descending: bool = True,
        offset: int = 0,
        limit: int = 20,
    ) -> Sequence[Design]:
        query = select(Design).where(Design.is_public.is_(True))
        if category:
            query = query.where(Design.category == category)
        if owner_id:
            query = query.where(Design.owner_id == owner_id)

        if sort_by == "likes":
            likes = (
                select(func.count())
                .select_from(DesignLike)
                .where(DesignLike.design_id == Design.id)
                .scalar_subquery()
            )
            order_column = likes
        else:
            order_column = SORT_COLUMNS.get(sort_by, Design.created_at)
        order = order_column.desc() if descending else order_column.asc()

        result = await self.session.execute(
            query.order_by(order, Design.id).offset(offset).limit(limit)
        )
        return result.scalars().all()

    async def count(self, category: Optional[str] = None, owner_id: Optional[str] = None) -> int:
        query = select(func.count()).select_from(Design).where(Design.is_public.is_(True))
        if category:
            query = query.where(Design.category == category)
        if owner_id:
            query = query.where(Design.owner_id == owner_id)
        result = await self.session.execute(query)
        return result.scalar_one()

    # --- likes ---

    async def has_like(self, design_id: str, user_id: str) -> bool:
        return await self.session.get(DesignLike, (design_id, user_id)) is not None

    async def add_like(self, design_id: str, user_id: str) -> None:
        self.session.add(DesignLike(design_id=design_id, user_id=user_id))
        await self.session.commit()

    async def remove_like(self, design_id: str, user_id: str) -> bool:
        result = await self.session.execute(
            delete(DesignLike).where(
                DesignLike.design_id == design_id,
                DesignLike.user_id == user_id,
            )
        )
        await self.session.commit()
        return result.rowcount > 0

    async def likes_count(self, design_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(DesignLike).where(DesignLike.design_id == design_id)
        )
        return result.scalar_one()

    async def like_user_ids(self, design_id: str) -> List[str]:
        result = await self.session.execute(
            select(DesignLike.user_id).where(DesignLike.design_id == design_id)
        )
        return list(result.scalars().all())

    # --- comments ---

    async def add_comment(self, comment: Comment) -> Comment:
        self.session.add(comment)
        await self.session.commit()
        return comment

    async def comments(self, design_id: str) -> List[Comment]:
        # Comments added in this session have no author loaded yet
        result = await self.session.execute(
            select(Comment)
            .where(Comment.design_id == design_id)
            .order_by(Comment.id.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def comments_count(self, design_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Comment).where(Comment.design_id == design_id)
        )
        return result.scalar_one()

    # --- shares ---

    async def increment_shares(self, design_id: str) -> int:
        """Atomic `shares = shares + 1`, returns the new counter."""
        await self.session.execute(
            update(Design)
            .where(Design.id == design_id)
            .values(shares=Design.shares + 1)
        )
        await self.session.commit()
        result = await self.session.execute(select(Design.shares).where(Design.id == design_id))
        return result.scalar_one()
