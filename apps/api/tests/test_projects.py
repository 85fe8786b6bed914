"""Tests for project and service pages."""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from soloflow.db.models import Activity, Project, Service
from soloflow.schemas.project import ProjectCreate, ServiceCreate
from soloflow.db.enums import ServiceType
from soloflow.services import project_service


def _success_count(db: Session, user_id, action: str | None = None) -> int:
    query = db.query(Activity).filter(Activity.user_id == user_id, Activity.status == "success")
    if action:
        query = query.filter(Activity.action == action)
    return query.count()


@pytest.mark.asyncio
async def test_create_project_logs_exactly_one_activity(authed_client: AsyncClient, db: Session, test_user):
    before = _success_count(db, test_user.id)

    response = await authed_client.post(
        "/dashboard/projects",
        data={"name": "Launch site", "description": "Marketing site"},
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard/client"
    project = db.query(Project).filter(Project.user_id == test_user.id).one()
    assert project.name == "Launch site"
    assert project.status == "active"

    assert _success_count(db, test_user.id) == before + 1
    activity = db.query(Activity).filter(Activity.action == "project_created").one()
    assert activity.resource_id == str(project.id)


@pytest.mark.asyncio
async def test_create_project_requires_name(authed_client: AsyncClient, db: Session, test_user):
    response = await authed_client.post("/dashboard/projects", data={"name": ""})
    assert response.status_code == 422
    assert db.query(Project).count() == 0


@pytest.mark.asyncio
async def test_client_dashboard_renders_projects(authed_client: AsyncClient, db: Session, test_user):
    project = project_service.create_project(db, ProjectCreate(name="Visible Project", user_id=test_user.id))
    project_service.create_service(
        db, ServiceCreate(name="api-gw", type=ServiceType.API, status="running", project_id=project.id)
    )

    response = await authed_client.get("/dashboard/client")

    assert response.status_code == 200
    assert "Visible Project" in response.text
    assert "api-gw" in response.text
    assert "soloflow_csrf" in response.headers["set-cookie"]


@pytest.mark.asyncio
async def test_update_project_status(authed_client: AsyncClient, db: Session, test_user):
    project = project_service.create_project(db, ProjectCreate(name="P", user_id=test_user.id))

    response = await authed_client.post(f"/dashboard/projects/{project.id}/status", data={"status": "archived"})

    assert response.status_code == 303
    db.expire_all()
    assert db.get(Project, project.id).status == "archived"
    assert _success_count(db, test_user.id, "project_status_changed") == 1


@pytest.mark.asyncio
async def test_cannot_touch_another_users_project(authed_client: AsyncClient, db: Session, test_admin):
    other = project_service.create_project(db, ProjectCreate(name="Not yours", user_id=test_admin.id))

    response = await authed_client.post(f"/dashboard/projects/{other.id}/status", data={"status": "archived"})
    assert response.status_code == 404

    response = await authed_client.post(
        f"/dashboard/projects/{other.id}/services", data={"name": "x", "type": "web"}
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_service_and_set_free_form_status(authed_client: AsyncClient, db: Session, test_user):
    project = project_service.create_project(db, ProjectCreate(name="P", user_id=test_user.id))

    response = await authed_client.post(
        f"/dashboard/projects/{project.id}/services", data={"name": "db", "type": "database"}
    )
    assert response.status_code == 303
    service = db.query(Service).filter(Service.project_id == project.id).one()
    assert service.status == "stopped"
    assert _success_count(db, test_user.id, "service_created") == 1

    response = await authed_client.post(f"/dashboard/services/{service.id}/status", data={"status": "deploying"})
    assert response.status_code == 303
    db.expire_all()
    assert db.get(Service, service.id).status == "deploying"


@pytest.mark.asyncio
async def test_unknown_service_returns_404(authed_client: AsyncClient):
    response = await authed_client.post(f"/dashboard/services/{uuid.uuid4()}/status", data={"status": "running"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_unavailable_user_shows_error_card(authed_client: AsyncClient, monkeypatch):
    from soloflow.services import user_service

    monkeypatch.setattr(user_service, "ensure_user", lambda db, identity, admin_emails=None: None)

    response = await authed_client.get("/dashboard/client")
    assert response.status_code == 503
    assert "could not be loaded" in response.text
