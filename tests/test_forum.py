"""
Tests for the community forum
Posts, replies, likes, trending and community stats
"""

import pytest
import pytest_asyncio
from datetime import datetime, timedelta, UTC

from fitai.database.models import ForumPost
from fitai.services.forum_service import ForumService, activity_score
from fitai.services.notification_service import NotificationService

from tests.conftest import ADMIN_EMAIL, auth_headers


LONG_CONTENT = "Conteúdo com mais de dez caracteres"


@pytest_asyncio.fixture
async def category(db_session):
    return await ForumService.create_category(db_session, "Treinos", "Dúvidas sobre treinos")


async def _post(session, author, category, title="Meu treino", **counters):
    post, code = await ForumService.create_post(session, author.id, category.id, title, LONG_CONTENT)
    assert code == "ok"
    if counters:
        for name, value in counters.items():
            setattr(post, name, value)
        await session.commit()
    return post


# ============================================================================
# POSTS
# ============================================================================


@pytest.mark.asyncio
async def test_create_post_validation(db_session, make_user, category):
    user = await make_user()

    assert (await ForumService.create_post(db_session, user.id, category.id, "Oi", LONG_CONTENT))[1] == "invalid_title"
    assert (await ForumService.create_post(db_session, user.id, category.id, "Título", "curto"))[1] == "invalid_content"
    assert (await ForumService.create_post(db_session, user.id, 999, "Título", LONG_CONTENT))[1] == "category_not_found"

    post, code = await ForumService.create_post(db_session, user.id, category.id, "  Título  ", LONG_CONTENT)
    assert code == "ok"
    assert post.title == "Título"


@pytest.mark.asyncio
async def test_list_posts_pinned_first(db_session, make_user, category):
    user = await make_user()
    first = await _post(db_session, user, category, title="Primeiro")
    await _post(db_session, user, category, title="Segundo")
    await ForumService.set_post_flags(db_session, first.id, pinned=True)

    posts = await ForumService.list_posts(db_session)

    assert [p["title"] for p in posts] == ["Primeiro", "Segundo"]
    assert posts[0]["is_pinned"] is True


@pytest.mark.asyncio
async def test_delete_post_permissions(db_session, make_user, category):
    author = await make_user(email="author@example.com")
    stranger = await make_user(email="stranger@example.com")
    post = await _post(db_session, author, category)

    assert await ForumService.delete_post(db_session, post.id, stranger.id) == (False, "forbidden")
    assert await ForumService.delete_post(db_session, post.id, stranger.id, is_admin=True) == (True, "ok")
    assert await ForumService.delete_post(db_session, post.id, author.id) == (False, "not_found")


# ============================================================================
# REPLIES & LIKES
# ============================================================================


@pytest.mark.asyncio
async def test_reply_notifies_post_author(db_session, make_user, category):
    author = await make_user(email="author@example.com")
    replier = await make_user(email="replier@example.com", full_name="Carla")
    post = await _post(db_session, author, category)

    reply, code = await ForumService.create_reply(db_session, post.id, replier, "Boa!")

    assert code == "ok"
    assert post.replies_count == 1
    notifications = await NotificationService.list_notifications(db_session, author.id)
    assert len(notifications) == 1
    assert "Carla" in notifications[0].message
    assert notifications[0].action_url == f"/forum/posts/{post.id}"


@pytest.mark.asyncio
async def test_own_reply_does_not_notify(db_session, make_user, category):
    author = await make_user()
    post = await _post(db_session, author, category)

    await ForumService.create_reply(db_session, post.id, author, "Atualização")

    assert await NotificationService.list_notifications(db_session, author.id) == []


@pytest.mark.asyncio
async def test_closed_post_rejects_replies(db_session, make_user, category):
    author = await make_user()
    post = await _post(db_session, author, category)
    await ForumService.set_post_flags(db_session, post.id, closed=True)

    reply, code = await ForumService.create_reply(db_session, post.id, author, "Oi")

    assert reply is None
    assert code == "post_closed"


@pytest.mark.asyncio
async def test_toggle_post_like(db_session, make_user, category):
    author = await make_user()
    post = await _post(db_session, author, category)

    assert await ForumService.toggle_post_like(db_session, post.id, author.id) == {"liked": True, "likes_count": 1}
    assert await ForumService.toggle_post_like(db_session, post.id, author.id) == {"liked": False, "likes_count": 0}
    assert await ForumService.toggle_post_like(db_session, 999, author.id) is None


@pytest.mark.asyncio
async def test_get_post_marks_viewer_likes(db_session, make_user, category):
    author = await make_user()
    post = await _post(db_session, author, category)
    reply, _ = await ForumService.create_reply(db_session, post.id, author, "Resposta")
    await ForumService.toggle_reply_like(db_session, reply.id, author.id)

    data = await ForumService.get_post(db_session, post.id, viewer_id=author.id)

    assert data["post"]["liked"] is False
    assert data["replies"][0]["liked"] is True
    assert data["replies"][0]["likes_count"] == 1


# ============================================================================
# TRENDING & STATS
# ============================================================================


def test_activity_score_weights_replies():
    assert activity_score(ForumPost(likes_count=3, replies_count=2)) == 7


@pytest.mark.asyncio
async def test_trending_ranks_by_activity_within_window(db_session, make_user, category):
    user = await make_user()
    await _post(db_session, user, category, title="Calmo", likes_count=1)
    await _post(db_session, user, category, title="Quente", likes_count=2, replies_count=3)
    await _post(
        db_session, user, category, title="Antigo", likes_count=50,
        created_at=datetime.now(UTC) - timedelta(days=10),
    )

    trending = await ForumService.get_trending(db_session)

    assert [p["title"] for p in trending] == ["Quente", "Calmo"]
    assert trending[0]["activity_score"] == 8


@pytest.mark.asyncio
async def test_community_stats(db_session, make_user, category):
    author = await make_user(email="author@example.com")
    replier = await make_user(email="replier@example.com")
    await make_user(email="lurker@example.com")
    post = await _post(db_session, author, category)
    reply, _ = await ForumService.create_reply(db_session, post.id, replier, "Boa!")
    await ForumService.toggle_post_like(db_session, post.id, replier.id)
    await ForumService.toggle_reply_like(db_session, reply.id, author.id)

    stats = await ForumService.get_community_stats(db_session)

    assert stats == {
        "total_posts": 1,
        "total_replies": 1,
        "total_likes": 2,
        "posts_this_week": 1,
        "active_members": 2,
    }


# ============================================================================
# API
# ============================================================================


@pytest.mark.asyncio
async def test_category_creation_is_admin_only(client, make_user):
    user = await make_user()
    admin = await make_user(email=ADMIN_EMAIL)
    payload = {"name": "Nutrição"}

    denied = await client.post("/api/forum/categories", headers=auth_headers(user), json=payload)
    created = await client.post("/api/forum/categories", headers=auth_headers(admin), json=payload)

    assert denied.status_code == 403
    assert created.status_code == 200
    listing = await client.get("/api/forum/categories", headers=auth_headers(user))
    assert [c["name"] for c in listing.json()["categories"]] == ["Nutrição"]


@pytest.mark.asyncio
async def test_post_endpoints(client, make_user, category):
    user = await make_user()
    headers = auth_headers(user)

    bad = await client.post("/api/forum/posts", headers=headers, json={
        "category_id": category.id, "title": "Oi", "content": LONG_CONTENT,
    })
    created = await client.post("/api/forum/posts", headers=headers, json={
        "category_id": category.id, "title": "Dúvida de treino", "content": LONG_CONTENT,
    })
    post_id = created.json()["id"]
    reply = await client.post(f"/api/forum/posts/{post_id}/replies", headers=headers, json={"content": "Eu também"})
    detail = await client.get(f"/api/forum/posts/{post_id}", headers=headers)
    bad_sort = await client.get("/api/forum/posts?sort=random", headers=headers)

    assert bad.status_code == 400
    assert created.status_code == 200
    assert reply.status_code == 200
    assert detail.json()["post"]["replies_count"] == 1
    assert bad_sort.status_code == 400
    assert (await client.get("/api/forum/posts/999", headers=headers)).status_code == 404
