"""Tests for the self-service profile page."""

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from soloflow.services import profile_service
from soloflow.db.models import User


@pytest.mark.asyncio
async def test_profile_page_read_only_for_new_clients(authed_client: AsyncClient, test_user):
    response = await authed_client.get("/profile")

    assert response.status_code == 200
    assert test_user.email in response.text
    assert "Save profile" not in response.text


@pytest.mark.asyncio
async def test_profile_update_with_permission(authed_client: AsyncClient, db: Session, test_user):
    user = db.get(User, test_user.id)
    user.permissions = [*user.permissions, "settings.edit"]
    db.commit()

    response = await authed_client.post(
        "/profile",
        data={"full_name": "Pat Updated", "bio": "Building things"},
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/profile?saved=true"
    db.expire_all()
    profile = profile_service.get_profile(db, test_user.id)
    assert profile.full_name == "Pat Updated"
    assert profile.bio == "Building things"

    response = await authed_client.get("/profile?saved=true")
    assert "Profile saved." in response.text
    assert "Save profile" in response.text


@pytest.mark.asyncio
async def test_admin_can_edit_own_profile(admin_client: AsyncClient, db: Session, test_admin):
    response = await admin_client.post("/profile", data={"full_name": "Admin Person"})

    assert response.status_code == 303
    assert profile_service.get_profile(db, test_admin.id).full_name == "Admin Person"
