"""
Tests for profile data, progress log, avatar storage and public config
"""

import pytest

from config.marketing import HERO
from config.pricing import SUBSCRIPTION_PRICE
from fitai.services import storage_service
from fitai.services.storage_service import StorageService

from tests.conftest import auth_headers


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


# ============================================================================
# AVATAR STORAGE
# ============================================================================


def test_save_avatar_rejects_bad_uploads(tmp_path):
    storage = StorageService(root=str(tmp_path), max_bytes=64)

    assert storage.save_avatar(1, PNG_BYTES, "application/pdf") == (None, "invalid_type")
    assert storage.save_avatar(1, PNG_BYTES, None) == (None, "invalid_type")
    assert storage.save_avatar(1, b"", "image/png") == (None, "empty")
    assert storage.save_avatar(1, b"x" * 65, "image/png") == (None, "too_large")


def test_save_avatar_writes_file_and_replaces_previous(tmp_path):
    storage = StorageService(root=str(tmp_path))
    old = tmp_path / "avatars" / "1" / "avatar-1.jpg"
    old.parent.mkdir(parents=True)
    old.write_bytes(b"old")

    url, code = storage.save_avatar(1, PNG_BYTES, "IMAGE/PNG", previous_url="/media/avatars/1/avatar-1.jpg")

    assert code == "ok"
    assert url.startswith("/media/avatars/1/avatar-")
    assert url.endswith(".png")
    assert storage.path_from_url(url).read_bytes() == PNG_BYTES
    assert not old.exists()


def test_path_from_url_stays_inside_root(tmp_path):
    storage = StorageService(root=str(tmp_path))

    assert storage.path_from_url("/media/../../etc/passwd") is None
    assert storage.path_from_url("https://cdn.example.com/a.png") is None
    assert storage.path_from_url(None) is None
    assert storage.delete_avatar("/media/avatars/1/missing.png") is False


# ============================================================================
# API
# ============================================================================


@pytest.mark.asyncio
async def test_profile_update_and_read(client, make_user):
    user = await make_user()
    headers = auth_headers(user)

    updated = await client.put("/api/profile", headers=headers, json={
        "full_name": "  Ana Souza ",
        "age": 29,
        "height_cm": 165,
        "weight_kg": 60.5,
        "fitness_level": "intermediate",
    })
    invalid = await client.put("/api/profile", headers=headers, json={"age": 5})
    current = await client.get("/api/profile", headers=headers)

    assert updated.status_code == 200
    assert invalid.status_code == 422
    body = current.json()
    assert body["user"]["full_name"] == "Ana Souza"
    assert body["profile"]["weight_kg"] == 60.5
    assert body["permissions"]["is_trial_active"] is True


@pytest.mark.asyncio
async def test_progress_entries(client, make_user):
    user = await make_user()
    headers = auth_headers(user)

    await client.post("/api/profile/progress", headers=headers, json={"weight_kg": 82})
    await client.post("/api/profile/progress", headers=headers, json={"weight_kg": 81.2, "notes": "Semana 2"})
    listing = await client.get("/api/profile/progress", headers=headers)

    entries = listing.json()["entries"]
    assert len(entries) == 2
    assert {e["weight_kg"] for e in entries} == {82.0, 81.2}


@pytest.mark.asyncio
async def test_avatar_upload_and_delete(client, make_user, tmp_path, monkeypatch):
    monkeypatch.setattr(storage_service, "_storage_service", StorageService(root=str(tmp_path), max_bytes=64))
    user = await make_user()
    headers = auth_headers(user)

    wrong = await client.post(
        "/api/profile/avatar", headers=headers, files={"file": ("a.gif", b"GIF89a", "image/gif")}
    )
    large = await client.post(
        "/api/profile/avatar", headers=headers, files={"file": ("a.png", b"x" * 100, "image/png")}
    )
    uploaded = await client.post(
        "/api/profile/avatar", headers=headers, files={"file": ("a.png", PNG_BYTES, "image/png")}
    )

    assert wrong.status_code == 400
    assert large.status_code == 413
    avatar_url = uploaded.json()["avatar_url"]
    stored = tmp_path / avatar_url[len("/media/"):]
    assert stored.exists()

    removed = await client.delete("/api/profile/avatar", headers=headers)
    profile = await client.get("/api/profile", headers=headers)

    assert removed.status_code == 200
    assert not stored.exists()
    assert profile.json()["user"]["avatar_url"] is None


@pytest.mark.asyncio
async def test_public_config_endpoints(client):
    landing = await client.get("/api/config/landing")
    pricing = await client.get("/api/config/pricing")

    assert landing.status_code == 200
    assert landing.json()["hero"]["headline"] == HERO["headline"]
    assert set(landing.json()) == {"hero", "features", "testimonials", "pricing", "footer"}
    assert pricing.json()["price"] == float(SUBSCRIPTION_PRICE)
    assert pricing.json()["currency"] == "BRL"
    assert pricing.json()["billing_type"] == "PIX"
