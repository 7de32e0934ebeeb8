# designs.py
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, HttpUrl
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

# Local application imports
from auth import get_current_user, get_optional_user
from db import get_db
from errors import NotFound, ValidationError, ok
from identity import identity_fields
from models import Design, User
from repositories import DesignRepository, UserRepository
from settings import settings
from social import SocialEngine, get_social_engine

# --- Module-level Configuration ---
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/designs", tags=["Designs"])

SORT_FIELDS = ("createdAt", "likes", "shares", "title")


# ===================================================================
# Pydantic Schemas for API Contracts
# ===================================================================

class _CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class DesignImage(_CamelModel):
    """An image already uploaded to the client's storage provider."""
    url: HttpUrl
    is_primary: bool = False


class CreateDesignRequest(_CamelModel):
    """Request body for submitting a new design."""
    title: str = Field(..., max_length=200, examples=["Midnight Runway Gown"])
    description: Optional[str] = Field(None, max_length=5000)
    category: Optional[str] = Field(None, max_length=64, examples=["dress"])
    tags: List[str] = Field(default_factory=list)
    images: List[DesignImage] = Field(default_factory=list)
    is_public: bool = True


class CommentRequest(BaseModel):
    """Request body for a new comment. Length rules live in the engine."""
    text: Optional[str] = None


class DesignOwner(_CamelModel):
    id: str
    user_type: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    display_name: Optional[str] = None


class DesignResponse(_CamelModel):
    """Standard response model for a design object."""
    id: str
    owner: Optional[DesignOwner]
    title: str
    description: Optional[str]
    category: Optional[str]
    tags: List[str]
    images: List[Dict[str, Any]]
    is_public: bool
    likes_count: int
    comments_count: int
    shares_count: int
    is_liked: Optional[bool] = None
    created_at: datetime


# ===================================================================
# Helpers
# ===================================================================

async def _design_response(
    design: Design,
    designs: DesignRepository,
    users: UserRepository,
    viewer: Optional[User] = None,
) -> DesignResponse:
    owner = await users.find_by_id(design.owner_id)
    return DesignResponse(
        id=design.id,
        owner=DesignOwner(**identity_fields(owner)) if owner else None,
        title=design.title,
        description=design.description,
        category=design.category,
        tags=design.tags or [],
        images=design.images or [],
        is_public=design.is_public,
        likes_count=await designs.likes_count(design.id),
        comments_count=await designs.comments_count(design.id),
        shares_count=design.shares,
        is_liked=await designs.has_like(design.id, viewer.id) if viewer else None,
        created_at=design.created_at,
    )


def _normalize_images(images: List[DesignImage]) -> List[Dict[str, Any]]:
    """Stores images as plain dicts, exactly one of them primary."""
    stored = [{"url": str(img.url), "is_primary": img.is_primary} for img in images]
    if stored and not any(img["is_primary"] for img in stored):
        stored[0]["is_primary"] = True
    return stored


# ===================================================================
# API Endpoints
# ===================================================================

@router.post("", status_code=status.HTTP_201_CREATED, summary="Submit a new design")
async def create_design(
    payload: CreateDesignRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Saves a design whose images were already uploaded by the client.
    The submitting user becomes the owner.
    """
    title = payload.title.strip()
    if not title:
        raise ValidationError("Title is required")

    designs = DesignRepository(db)
    new_design = Design(
        owner_id=current_user.id,
        title=title,
        description=(payload.description or "").strip(),
        category=(payload.category or "").strip().lower() or None,
        tags=[tag.strip() for tag in payload.tags if tag.strip()],
        images=_normalize_images(payload.images),
        is_public=payload.is_public,
        shares=0,
    )
    await designs.save(new_design)
    logger.info(f"🎨 Design {new_design.id} submitted by user {current_user.id}")

    response = await _design_response(new_design, designs, UserRepository(db), current_user)
    return ok(response, message="Design submitted successfully")


@router.get("", summary="List public designs")
async def list_designs(
    category: Optional[str] = None,
    user_id: Optional[str] = Query(None, alias="userId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    """
    Lists public designs, optionally filtered by category or owner.
    Results are paginated; `limit` is capped at DESIGNS_PAGE_MAX.
    """
    if sort_by not in SORT_FIELDS:
        raise ValidationError(f"sortBy must be one of: {', '.join(SORT_FIELDS)}")
    if sort_order not in ("asc", "desc"):
        raise ValidationError("sortOrder must be 'asc' or 'desc'")
    limit = min(limit, settings.DESIGNS_PAGE_MAX)
    category = category.strip().lower() if category else None

    designs = DesignRepository(db)
    users = UserRepository(db)
    rows = await designs.list(
        category=category,
        owner_id=user_id,
        sort_by=sort_by,
        descending=sort_order == "desc",
        offset=(page - 1) * limit,
        limit=limit,
    )
    total = await designs.count(category=category, owner_id=user_id)
    items = [await _design_response(d, designs, users, viewer) for d in rows]
    return ok({
        "designs": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    })


@router.get("/{design_id}", summary="Get one design")
async def get_design(
    design_id: str,
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    designs = DesignRepository(db)
    design = await designs.find_by_id(design_id)
    # Private designs are only visible to their owner
    if design is None or (not design.is_public and (viewer is None or viewer.id != design.owner_id)):
        raise NotFound("Design not found")
    return ok(await _design_response(design, designs, UserRepository(db), viewer))


@router.delete("/{design_id}", summary="Delete your own design")
async def delete_design(
    design_id: str,
    engine: SocialEngine = Depends(get_social_engine),
    current_user: User = Depends(get_current_user),
):
    result = await engine.delete_design(design_id, current_user.id)
    return ok(result, message="Design deleted successfully")


@router.get("/{design_id}/comment", summary="List comments on a design")
async def list_comments(
    design_id: str,
    engine: SocialEngine = Depends(get_social_engine),
    viewer: Optional[User] = Depends(get_optional_user),
):
    return ok(await engine.list_comments(design_id, viewer.id if viewer else None))


@router.post("/{design_id}/comment", summary="Comment on a design")
async def add_comment(
    design_id: str,
    payload: Optional[CommentRequest] = None,
    engine: SocialEngine = Depends(get_social_engine),
    current_user: User = Depends(get_current_user),
):
    text = payload.text if payload else None
    result = await engine.add_comment(design_id, current_user.id, text)
    return ok(result, message="Comment added successfully")


@router.post("/{design_id}/like", summary="Like a design")
async def like_design(
    design_id: str,
    engine: SocialEngine = Depends(get_social_engine),
    current_user: User = Depends(get_current_user),
):
    result = await engine.like(design_id, current_user.id)
    return ok(result, message="Design liked successfully")


@router.delete("/{design_id}/like", summary="Remove your like from a design")
async def unlike_design(
    design_id: str,
    engine: SocialEngine = Depends(get_social_engine),
    current_user: User = Depends(get_current_user),
):
    result = await engine.unlike(design_id, current_user.id)
    return ok(result, message="Design unliked successfully")


@router.post("/{design_id}/share", summary="Record a share of a design")
async def share_design(
    design_id: str,
    engine: SocialEngine = Depends(get_social_engine),
    current_user: User = Depends(get_current_user),
):
    result = await engine.share(design_id, current_user.id)
    return ok(result, message="Design shared successfully")
