"""Tests for the admin API endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.main import app
from backend.app.models.user import Role
from backend.app.services.policy import build_policy, get_policy
from tests.conftest import auth_headers, create_feature, create_session, create_user, create_vote


@pytest.fixture
async def admin(db: AsyncSession):
    user = await create_user(db, email="admin@example.com", name="Admin", role=Role.ADMIN)
    await db.commit()
    return user


@pytest.fixture
async def admin_headers(db: AsyncSession, admin) -> dict[str, str]:
    token = await create_session(db, admin)
    await db.commit()
    return auth_headers(token)


@pytest.fixture
async def member(db: AsyncSession):
    user = await create_user(db, email="member@example.com", name="Member")
    await db.commit()
    return user


@pytest.fixture
async def member_headers(db: AsyncSession, member) -> dict[str, str]:
    token = await create_session(db, member)
    await db.commit()
    return auth_headers(token)


async def test_check_admin(client: AsyncClient, admin_headers, member_headers):
    """GET /api/admin/check distinguishes 401, 403 and 200."""
    assert (await client.get("/api/admin/check")).status_code == 401
    assert (await client.get("/api/admin/check", headers=member_headers)).status_code == 403
    resp = await client.get("/api/admin/check", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {"is_admin": True}


async def test_email_domain_policy_override(client: AsyncClient, db: AsyncSession):
    """Swapping the injected policy changes who is admin without touching routes."""
    boss = await create_user(db, email="boss@yourcompany.com")
    token = await create_session(db, boss)
    await db.commit()

    assert (
        await client.get("/api/admin/check", headers=auth_headers(token))
    ).status_code == 403

    app.dependency_overrides[get_policy] = lambda: build_policy(
        "email_domain", email_domain="yourcompany.com"
    )
    resp = await client.get("/api/admin/check", headers=auth_headers(token))
    assert resp.status_code == 200


async def test_admin_list_features(
    client: AsyncClient, db: AsyncSession, member, admin_headers, member_headers
):
    await create_feature(db, title="From member", created_by=member.id)
    await db.commit()

    resp = await client.get("/api/admin/features", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data[0]["creator_email"] == "member@example.com"

    assert (
        await client.get("/api/admin/features", headers=member_headers)
    ).status_code == 403


async def test_admin_delete_feature(
    client: AsyncClient, db: AsyncSession, member, admin_headers, member_headers
):
    feat = await create_feature(db, created_by=member.id)
    await create_vote(db, feature_id=feat.id, user_id=member.id)
    await db.commit()

    forbidden = await client.delete(f"/api/admin/features/{feat.id}", headers=member_headers)
    assert forbidden.status_code == 403

    resp = await client.delete(f"/api/admin/features/{feat.id}", headers=admin_headers)
    assert resp.status_code == 200

    again = await client.delete(f"/api/admin/features/{feat.id}", headers=admin_headers)
    assert again.status_code == 404

    listed = await client.get("/api/features", headers=member_headers)
    assert listed.json() == []


async def test_admin_delete_all_features(
    client: AsyncClient, db: AsyncSession, member, admin_headers, member_headers
):
    for i in range(2):
        feat = await create_feature(db, title=f"F{i}", created_by=member.id)
        await create_vote(db, feature_id=feat.id, user_id=member.id)
    await db.commit()

    resp = await client.delete("/api/admin/features", headers=admin_headers)
    assert resp.status_code == 200
    assert "2 removed" in resp.json()["message"]

    listed = await client.get("/api/features", headers=member_headers)
    assert listed.json() == []


async def test_admin_list_users(client: AsyncClient, admin_headers, member):
    resp = await client.get("/api/admin/users", headers=admin_headers)
    assert resp.status_code == 200
    flags = {u["email"]: u["is_admin"] for u in resp.json()}
    assert flags == {"admin@example.com": True, "member@example.com": False}


async def test_admin_delete_user(client: AsyncClient, admin, admin_headers, member):
    resp = await client.delete(f"/api/admin/users/{member.id}", headers=admin_headers)
    assert resp.status_code == 200

    users = await client.get("/api/admin/users", headers=admin_headers)
    assert [u["email"] for u in users.json()] == ["admin@example.com"]

    missing = await client.delete(f"/api/admin/users/{member.id}", headers=admin_headers)
    assert missing.status_code == 404


async def test_admin_cannot_delete_admin(client: AsyncClient, admin, admin_headers):
    resp = await client.delete(f"/api/admin/users/{admin.id}", headers=admin_headers)
    assert resp.status_code == 403


async def test_admin_delete_user_with_content_conflicts(
    client: AsyncClient, db: AsyncSession, member, admin_headers
):
    """The default orphan policy refuses to delete users who own content."""
    await create_feature(db, created_by=member.id)
    await db.commit()

    resp = await client.delete(f"/api/admin/users/{member.id}", headers=admin_headers)
    assert resp.status_code == 409


async def test_admin_delete_all_users(client: AsyncClient, db: AsyncSession, admin_headers):
    await create_user(db, email="one@example.com")
    await create_user(db, email="two@example.com")
    await db.commit()

    resp = await client.delete("/api/admin/users", headers=admin_headers)
    assert resp.status_code == 200
    assert "2 removed" in resp.json()["message"]

    users = await client.get("/api/admin/users", headers=admin_headers)
    assert [u["email"] for u in users.json()] == ["admin@example.com"]


async def test_admin_delete_user_requires_identity(client: AsyncClient, member):
    resp = await client.delete(f"/api/admin/users/{member.id}")
    assert resp.status_code == 401
