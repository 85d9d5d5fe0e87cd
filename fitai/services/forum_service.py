# coding: utf-8
"""
Forum Service

Posts, replies, likes, trending posts and community stats.

Counters (likes_count / replies_count) are denormalized on the parent
row and kept in step with the like/reply rows here.
"""

from datetime import datetime, timedelta, UTC
from typing import Optional, List, Dict, Any, Tuple

from loguru import logger
from sqlalchemy import select, func, delete, distinct, union
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.database.models import (
    ForumCategory,
    ForumPost,
    ForumReply,
    ForumPostLike,
    ForumReplyLike,
    User,
)
from fitai.services.notification_service import NotificationService
from fitai.utils.time_utils import ensure_utc, isoformat


TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 200
CONTENT_MIN_LENGTH = 10

TRENDING_DAYS = 7
TRENDING_LIMIT = 5

SORT_OPTIONS = ("recent", "popular", "replies")


def activity_score(post: ForumPost) -> int:
    """Trending score: replies weigh twice as much as likes"""
    return (post.likes_count or 0) + 2 * (post.replies_count or 0)


def serialize_post(post: ForumPost, author: Optional[User] = None, liked: bool = False) -> Dict[str, Any]:
    return {
        "id": post.id,
        "category_id": post.category_id,
        "author_id": post.author_id,
        "author_name": author.full_name if author else None,
        "author_avatar": author.avatar_url if author else None,
        "title": post.title,
        "content": post.content,
        "likes_count": post.likes_count,
        "replies_count": post.replies_count,
        "is_pinned": post.is_pinned,
        "is_closed": post.is_closed,
        "liked": liked,
        "created_at": isoformat(post.created_at),
        "updated_at": isoformat(post.updated_at),
    }


def serialize_reply(reply: ForumReply, author: Optional[User] = None, liked: bool = False) -> Dict[str, Any]:
    return {
        "id": reply.id,
        "post_id": reply.post_id,
        "author_id": reply.author_id,
        "author_name": author.full_name if author else None,
        "author_avatar": author.avatar_url if author else None,
        "content": reply.content,
        "likes_count": reply.likes_count,
        "liked": liked,
        "created_at": isoformat(reply.created_at),
    }


class ForumService:
    """Community forum"""

    # ===========================
    # CATEGORIES
    # ===========================

    @staticmethod
    async def list_categories(session: AsyncSession) -> List[ForumCategory]:
        result = await session.execute(select(ForumCategory).order_by(ForumCategory.name))
        return list(result.scalars().all())

    @staticmethod
    async def create_category(
        session: AsyncSession, name: str, description: Optional[str] = None, color: str = "#3B82F6"
    ) -> ForumCategory:
        category = ForumCategory(name=name, description=description, color=color)
        session.add(category)
        await session.commit()
        await session.refresh(category)
        logger.info(f"Forum category created: {name}")
        return category

    # ===========================
    # POSTS
    # ===========================

    @staticmethod
    async def create_post(
        session: AsyncSession,
        author_id: int,
        category_id: int,
        title: str,
        content: str,
    ) -> Tuple[Optional[ForumPost], str]:
        """
        Create forum post

        Args:
            session: Database session
            author_id: Author user ID
            category_id: Target category
            title: 3-200 chars
            content: At least 10 chars

        Returns:
            Tuple of (ForumPost or None, status code: ok, category_not_found,
            invalid_title, invalid_content)
        """
        title = (title or "").strip()
        content = (content or "").strip()

        if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
            return None, "invalid_title"
        if len(content) < CONTENT_MIN_LENGTH:
            return None, "invalid_content"

        category = await session.get(ForumCategory, category_id)
        if not category:
            return None, "category_not_found"

        post = ForumPost(
            author_id=author_id,
            category_id=category_id,
            title=title,
            content=content,
        )
        session.add(post)
        await session.commit()
        await session.refresh(post)

        logger.info(f"Forum post {post.id} created by user {author_id} in category {category_id}")
        return post, "ok"

    @staticmethod
    async def get_post(
        session: AsyncSession, post_id: int, viewer_id: Optional[int] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Post with its replies (oldest first)

        Returns:
            {"post": {...}, "replies": [...]} or None
        """
        post = await session.get(ForumPost, post_id)
        if not post:
            return None

        author = await session.get(User, post.author_id)

        stmt = (
            select(ForumReply, User)
            .join(User, User.id == ForumReply.author_id)
            .where(ForumReply.post_id == post_id)
            .order_by(ForumReply.created_at.asc(), ForumReply.id.asc())
        )
        rows = (await session.execute(stmt)).all()

        liked_post = False
        liked_replies: set = set()
        if viewer_id is not None:
            liked_post = await ForumService._has_post_like(session, post_id, viewer_id)
            reply_ids = [reply.id for reply, _ in rows]
            if reply_ids:
                like_stmt = (
                    select(ForumReplyLike.reply_id)
                    .where(ForumReplyLike.user_id == viewer_id)
                    .where(ForumReplyLike.reply_id.in_(reply_ids))
                )
                liked_replies = set((await session.execute(like_stmt)).scalars().all())

        return {
            "post": serialize_post(post, author, liked_post),
            "replies": [
                serialize_reply(reply, reply_author, reply.id in liked_replies)
                for reply, reply_author in rows
            ],
        }

    @staticmethod
    async def list_posts(
        session: AsyncSession,
        category_id: Optional[int] = None,
        sort: str = "recent",
        limit: int = 20,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """
        List posts, pinned first

        Args:
            session: Database session
            category_id: Filter by category
            sort: recent | popular | replies
            limit: Page size
            offset: Page offset

        Returns:
            Serialized posts with author info
        """
        stmt = select(ForumPost, User).join(User, User.id == ForumPost.author_id)
        if category_id is not None:
            stmt = stmt.where(ForumPost.category_id == category_id)

        if sort == "popular":
            order = ForumPost.likes_count.desc()
        elif sort == "replies":
            order = ForumPost.replies_count.desc()
        else:
            order = ForumPost.created_at.desc()

        stmt = (
            stmt.order_by(ForumPost.is_pinned.desc(), order, ForumPost.id.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = (await session.execute(stmt)).all()
        return [serialize_post(post, author) for post, author in rows]

    @staticmethod
    async def delete_post(
        session: AsyncSession, post_id: int, user_id: int, is_admin: bool = False
    ) -> Tuple[bool, str]:
        """
        Delete post (author or admin)

        Returns:
            Tuple of (deleted, status code: ok, not_found, forbidden)
        """
        post = await session.get(ForumPost, post_id)
        if not post:
            return False, "not_found"
        if post.author_id != user_id and not is_admin:
            return False, "forbidden"

        reply_ids = select(ForumReply.id).where(ForumReply.post_id == post_id)
        await session.execute(delete(ForumReplyLike).where(ForumReplyLike.reply_id.in_(reply_ids)))
        await session.execute(delete(ForumReply).where(ForumReply.post_id == post_id))
        await session.execute(delete(ForumPostLike).where(ForumPostLike.post_id == post_id))
        await session.delete(post)
        await session.commit()

        logger.info(f"Forum post {post_id} deleted by user {user_id} (admin={is_admin})")
        return True, "ok"

    @staticmethod
    async def set_post_flags(
        session: AsyncSession,
        post_id: int,
        pinned: Optional[bool] = None,
        closed: Optional[bool] = None,
    ) -> Optional[ForumPost]:
        """Pin / close a post (admin only, checked by the caller)"""
        post = await session.get(ForumPost, post_id)
        if not post:
            return None

        if pinned is not None:
            post.is_pinned = pinned
        if closed is not None:
            post.is_closed = closed
        post.updated_at = datetime.now(UTC)

        await session.commit()
        await session.refresh(post)
        return post

    # ===========================
    # REPLIES
    # ===========================

    @staticmethod
    async def create_reply(
        session: AsyncSession,
        post_id: int,
        author: User,
        content: str,
    ) -> Tuple[Optional[ForumReply], str]:
        """
        Reply to a post and notify its author

        Returns:
            Tuple of (ForumReply or None, status code: ok, not_found,
            post_closed, invalid_content)
        """
        content = (content or "").strip()
        if not content:
            return None, "invalid_content"

        post = await session.get(ForumPost, post_id)
        if not post:
            return None, "not_found"
        if post.is_closed:
            return None, "post_closed"

        reply = ForumReply(post_id=post_id, author_id=author.id, content=content)
        session.add(reply)
        post.replies_count = (post.replies_count or 0) + 1
        post.updated_at = datetime.now(UTC)

        await session.commit()
        await session.refresh(reply)

        if post.author_id != author.id:
            await NotificationService.notify_forum_reply(
                session,
                user_id=post.author_id,
                post_id=post.id,
                post_title=post.title,
                replier_name=author.full_name or "Alguém",
            )

        logger.info(f"Reply {reply.id} on post {post_id} by user {author.id}")
        return reply, "ok"

    # ===========================
    # LIKES
    # ===========================

    @staticmethod
    async def _has_post_like(session: AsyncSession, post_id: int, user_id: int) -> bool:
        stmt = (
            select(ForumPostLike.id)
            .where(ForumPostLike.post_id == post_id)
            .where(ForumPostLike.user_id == user_id)
        )
        return (await session.execute(stmt)).scalar_one_or_none() is not None

    @staticmethod
    async def toggle_post_like(
        session: AsyncSession, post_id: int, user_id: int
    ) -> Optional[Dict[str, Any]]:
        """
        Like or unlike a post

        Returns:
            {"liked": bool, "likes_count": int} or None if the post does not exist
        """
        post = await session.get(ForumPost, post_id)
        if not post:
            return None

        stmt = (
            select(ForumPostLike)
            .where(ForumPostLike.post_id == post_id)
            .where(ForumPostLike.user_id == user_id)
        )
        existing = (await session.execute(stmt)).scalar_one_or_none()

        if existing:
            await session.delete(existing)
            post.likes_count = max((post.likes_count or 0) - 1, 0)
            liked = False
        else:
            session.add(ForumPostLike(post_id=post_id, user_id=user_id))
            post.likes_count = (post.likes_count or 0) + 1
            liked = True

        await session.commit()
        return {"liked": liked, "likes_count": post.likes_count}

    @staticmethod
    async def toggle_reply_like(
        session: AsyncSession, reply_id: int, user_id: int
    ) -> Optional[Dict[str, Any]]:
        """
        Like or unlike a reply

        Returns:
            {"liked": bool, "likes_count": int} or None if the reply does not exist
        """
        reply = await session.get(ForumReply, reply_id)
        if not reply:
            return None

        stmt = (
            select(ForumReplyLike)
            .where(ForumReplyLike.reply_id == reply_id)
            .where(ForumReplyLike.user_id == user_id)
        )
        existing = (await session.execute(stmt)).scalar_one_or_none()

        if existing:
            await session.delete(existing)
            reply.likes_count = max((reply.likes_count or 0) - 1, 0)
            liked = False
        else:
            session.add(ForumReplyLike(reply_id=reply_id, user_id=user_id))
            reply.likes_count = (reply.likes_count or 0) + 1
            liked = True

        await session.commit()
        return {"liked": liked, "likes_count": reply.likes_count}

    # ===========================
    # TRENDING & STATS
    # ===========================

    @staticmethod
    async def get_trending(
        session: AsyncSession,
        days: int = TRENDING_DAYS,
        limit: int = TRENDING_LIMIT,
        now: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """
        Most active posts of the lookback window

        Ranked by likes + 2 * replies, ties broken by recency.

        Returns:
            Serialized posts with activity_score
        """
        now = now or datetime.now(UTC)
        since = now - timedelta(days=days)

        stmt = (
            select(ForumPost, User)
            .join(User, User.id == ForumPost.author_id)
            .where(ForumPost.created_at >= since)
        )
        rows = (await session.execute(stmt)).all()

        ranked = sorted(
            rows,
            key=lambda row: (activity_score(row[0]), ensure_utc(row[0].created_at)),
            reverse=True,
        )

        trending = []
        for post, author in ranked[:limit]:
            data = serialize_post(post, author)
            data["activity_score"] = activity_score(post)
            trending.append(data)
        return trending

    @staticmethod
    async def get_community_stats(
        session: AsyncSession, now: Optional[datetime] = None
    ) -> Dict[str, int]:
        """
        Community totals

        Returns:
            {total_posts, total_replies, total_likes, posts_this_week, active_members}
        """
        now = now or datetime.now(UTC)
        week_ago = now - timedelta(days=7)

        total_posts = (await session.execute(select(func.count(ForumPost.id)))).scalar() or 0
        total_replies = (await session.execute(select(func.count(ForumReply.id)))).scalar() or 0

        post_likes = (await session.execute(select(func.count(ForumPostLike.id)))).scalar() or 0
        reply_likes = (await session.execute(select(func.count(ForumReplyLike.id)))).scalar() or 0

        posts_this_week = (
            await session.execute(
                select(func.count(ForumPost.id)).where(ForumPost.created_at >= week_ago)
            )
        ).scalar() or 0

        authors = union(
            select(ForumPost.author_id.label("user_id")),
            select(ForumReply.author_id.label("user_id")),
        ).subquery()
        active_members = (
            await session.execute(select(func.count(distinct(authors.c.user_id))))
        ).scalar() or 0

        return {
            "total_posts": total_posts,
            "total_replies": total_replies,
            "total_likes": post_likes + reply_likes,
            "posts_this_week": posts_this_week,
            "active_members": active_members,
        }
