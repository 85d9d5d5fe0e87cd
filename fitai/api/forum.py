"""
Community Forum API
"""

from typing import Dict, Any, Tuple, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.api.auth import get_current_user_with_session, require_admin
from fitai.database.models import User
from fitai.services.auth_service import AuthService
from fitai.services.forum_service import (
    ForumService,
    SORT_OPTIONS,
    TRENDING_DAYS,
    TRENDING_LIMIT,
    serialize_post,
    serialize_reply,
)


router = APIRouter(prefix="/forum", tags=["forum"])


# ===========================
# REQUEST MODELS
# ===========================


class CreateCategoryRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    color: str = "#3B82F6"


class CreatePostRequest(BaseModel):
    category_id: int
    title: str
    content: str


class CreateReplyRequest(BaseModel):
    content: str


class PostFlagsRequest(BaseModel):
    is_pinned: Optional[bool] = None
    is_closed: Optional[bool] = None


POST_ERRORS = {
    "invalid_title": (400, "O título deve ter entre 3 e 200 caracteres"),
    "invalid_content": (400, "O conteúdo deve ter pelo menos 10 caracteres"),
    "category_not_found": (404, "Categoria não encontrada"),
    "not_found": (404, "Post não encontrado"),
    "post_closed": (403, "Este post está fechado para novas respostas"),
    "forbidden": (403, "Você não pode excluir este post"),
}


def _raise_for(code: str) -> None:
    status_code, detail = POST_ERRORS.get(code, (400, code))
    raise HTTPException(status_code=status_code, detail=detail)


# ===========================
# CATEGORIES
# ===========================


@router.get("/categories")
async def list_categories(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    _, session = user_session
    categories = await ForumService.list_categories(session)
    return {
        "categories": [
            {"id": c.id, "name": c.name, "description": c.description, "color": c.color}
            for c in categories
        ]
    }


@router.post("/categories")
async def create_category(
    data: CreateCategoryRequest,
    admin_session: Tuple[User, AsyncSession] = Depends(require_admin),
) -> Dict[str, Any]:
    _, session = admin_session
    category = await ForumService.create_category(session, data.name, data.description, data.color)
    return {"id": category.id, "name": category.name, "description": category.description, "color": category.color}


# ===========================
# POSTS
# ===========================


@router.get("/posts")
async def list_posts(
    category_id: Optional[int] = None,
    sort: str = Query("recent"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """
    Posts, pinned first

    Query:
        sort: recent | popular | replies
    """
    _, session = user_session
    if sort not in SORT_OPTIONS:
        raise HTTPException(status_code=400, detail=f"sort must be one of {', '.join(SORT_OPTIONS)}")

    posts = await ForumService.list_posts(
        session, category_id=category_id, sort=sort, limit=limit, offset=offset
    )
    return {"posts": posts}


@router.post("/posts")
async def create_post(
    data: CreatePostRequest,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    post, code = await ForumService.create_post(
        session, user.id, data.category_id, data.title, data.content
    )
    if not post:
        _raise_for(code)

    return serialize_post(post, user)


@router.get("/posts/{post_id}")
async def get_post(
    post_id: int,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    data = await ForumService.get_post(session, post_id, viewer_id=user.id)
    if not data:
        _raise_for("not_found")
    return data


@router.delete("/posts/{post_id}")
async def delete_post(
    post_id: int,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """Author or admin only"""
    user, session = user_session
    deleted, code = await ForumService.delete_post(
        session, post_id, user.id, is_admin=AuthService.is_admin_email(user.email)
    )
    if not deleted:
        _raise_for(code)
    return {"success": True}


@router.patch("/posts/{post_id}")
async def set_post_flags(
    post_id: int,
    data: PostFlagsRequest,
    admin_session: Tuple[User, AsyncSession] = Depends(require_admin),
) -> Dict[str, Any]:
    """Pin / close (admin)"""
    _, session = admin_session
    post = await ForumService.set_post_flags(
        session, post_id, pinned=data.is_pinned, closed=data.is_closed
    )
    if not post:
        _raise_for("not_found")
    return serialize_post(post)


@router.post("/posts/{post_id}/like")
async def toggle_post_like(
    post_id: int,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    result = await ForumService.toggle_post_like(session, post_id, user.id)
    if result is None:
        _raise_for("not_found")
    return result


# ===========================
# REPLIES
# ===========================


@router.post("/posts/{post_id}/replies")
async def create_reply(
    post_id: int,
    data: CreateReplyRequest,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    reply, code = await ForumService.create_reply(session, post_id, user, data.content)
    if not reply:
        _raise_for(code)
    return serialize_reply(reply, user)


@router.post("/replies/{reply_id}/like")
async def toggle_reply_like(
    reply_id: int,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    result = await ForumService.toggle_reply_like(session, reply_id, user.id)
    if result is None:
        raise HTTPException(status_code=404, detail="Resposta não encontrada")
    return result


# ===========================
# COMMUNITY
# ===========================


@router.get("/trending")
async def get_trending(
    days: int = Query(TRENDING_DAYS, ge=1, le=90),
    limit: int = Query(TRENDING_LIMIT, ge=1, le=50),
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    _, session = user_session
    return {"posts": await ForumService.get_trending(session, days=days, limit=limit)}


@router.get("/stats")
async def get_community_stats(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    _, session = user_session
    return await ForumService.get_community_stats(session)
