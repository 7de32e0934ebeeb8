# users.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, get_optional_user
from db import get_db
from errors import NotFound, ok
from identity import identity_fields
from models import User
from repositories import DesignRepository, UserRepository
from social import SocialEngine, get_social_engine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["Users"])


async def _identities(users: UserRepository, ids: List[str]) -> List[dict]:
    result = []
    for user_id in ids:
        user = await users.find_by_id(user_id)
        if user is not None:
            result.append(identity_fields(user))
    return result


@router.get("/{user_id}", summary="Public profile of a user")
async def get_profile(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    """Identity fields plus follower, following and design counts."""
    users = UserRepository(db)
    user = await users.find_by_id(user_id)
    if user is None:
        raise NotFound("User not found")

    profile = identity_fields(user)
    profile.update({
        "followers_count": await users.followers_count(user.id),
        "following_count": await users.following_count(user.id),
        "designs_count": await DesignRepository(db).count(owner_id=user.id),
        "is_following": (
            await users.is_following(viewer.id, user.id)
            if viewer is not None and viewer.id != user.id else None
        ),
    })
    return ok(_camel_dict(profile))


@router.get("/{user_id}/followers", summary="Users following this user")
async def list_followers(user_id: str, db: AsyncSession = Depends(get_db)):
    users = UserRepository(db)
    if await users.find_by_id(user_id) is None:
        raise NotFound("User not found")
    followers = await _identities(users, await users.follower_ids(user_id))
    return ok({"followers": [_camel_dict(f) for f in followers], "followersCount": len(followers)})


@router.get("/{user_id}/following", summary="Users this user follows")
async def list_following(user_id: str, db: AsyncSession = Depends(get_db)):
    users = UserRepository(db)
    if await users.find_by_id(user_id) is None:
        raise NotFound("User not found")
    following = await _identities(users, await users.following_ids(user_id))
    return ok({"following": [_camel_dict(f) for f in following], "followingCount": len(following)})


@router.post("/{user_id}/follow", summary="Follow a user")
async def follow_user(
    user_id: str,
    engine: SocialEngine = Depends(get_social_engine),
    current_user: User = Depends(get_current_user),
):
    result = await engine.follow(current_user.id, user_id)
    return ok(result, message="User followed successfully")


@router.delete("/{user_id}/follow", summary="Unfollow a user")
async def unfollow_user(
    user_id: str,
    engine: SocialEngine = Depends(get_social_engine),
    current_user: User = Depends(get_current_user),
):
    result = await engine.unfollow(current_user.id, user_id)
    return ok(result, message="User unfollowed successfully")


def _camel_dict(data: dict) -> dict:
    return {to_camel(k): v for k, v in data.items()}
