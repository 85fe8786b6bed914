"""Client dashboard: overview, projects and services."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session, sessionmaker

from soloflow.core.deps import (
    CLIENT_DASHBOARD_PATH,
    get_current_user,
    get_db,
    get_session_factory,
    require_csrf,
)
from soloflow.db.enums import ProjectStatus, Role, ServiceStatus, ServiceType
from soloflow.schemas.project import ProjectCreate, ServiceCreate
from soloflow.services import activity_service, billing_service, dashboard_service, project_service
from soloflow.templating import render, render_error

router = APIRouter(prefix="/dashboard", tags=["dashboard"])
logger = logging.getLogger(__name__)

ADMIN_DASHBOARD_PATH = "/dashboard/admin"


@router.get("")
def dashboard_home(user=Depends(get_current_user)):
    """Send admins to the admin dashboard and everyone else to the client one."""
    if user.role == Role.ADMIN.value:
        return RedirectResponse(url=ADMIN_DASHBOARD_PATH, status_code=303)
    return RedirectResponse(url=CLIENT_DASHBOARD_PATH, status_code=303)


@router.get("/client")
async def client_dashboard(
    request: Request,
    user=Depends(get_current_user),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    data = await dashboard_service.get_dashboard_data(session_factory, user.provider_subject)
    if data is None:
        return render_error(request, "Your dashboard could not be loaded. Please try again later.")

    return render(
        request,
        "dashboard_client.html",
        {
            "user": data.user,
            "data": data,
            "plan": billing_service.get_effective_plan(data.user),
            "project_statuses": list(ProjectStatus),
            "service_types": list(ServiceType),
            "service_statuses": list(ServiceStatus),
        },
    )


# =============================================================================
# Projects
# =============================================================================

@router.post("/projects", dependencies=[Depends(require_csrf)])
def create_project(
    request: Request,
    name: str = Form(..., min_length=1, max_length=255),
    description: str | None = Form(None),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = project_service.create_project(
        db,
        ProjectCreate(name=name.strip(), description=description or None, user_id=user.id),
    )
    if project is None:
        return render_error(request, "The project could not be created. Please try again later.")

    activity_service.log_success(
        db,
        user_id=user.id,
        action=activity_service.PROJECT_CREATED,
        resource_type="project",
        resource_id=project.id,
        details={"name": project.name},
    )
    return RedirectResponse(url=CLIENT_DASHBOARD_PATH, status_code=303)


@router.post("/projects/{project_id}/status", dependencies=[Depends(require_csrf)])
def update_project_status(
    project_id: UUID,
    status: ProjectStatus = Form(...),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = project_service.update_project_status(db, project_id, user.id, status)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")

    activity_service.log_success(
        db,
        user_id=user.id,
        action=activity_service.PROJECT_STATUS_CHANGED,
        resource_type="project",
        resource_id=project.id,
        details={"status": status.value},
    )
    return RedirectResponse(url=CLIENT_DASHBOARD_PATH, status_code=303)


# =============================================================================
# Services
# =============================================================================

@router.post("/projects/{project_id}/services", dependencies=[Depends(require_csrf)])
def create_service(
    request: Request,
    project_id: UUID,
    name: str = Form(..., min_length=1, max_length=255),
    type: ServiceType = Form(...),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = project_service.get_project(db, project_id, user.id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")

    service = project_service.create_service(
        db, ServiceCreate(name=name.strip(), type=type, project_id=project.id)
    )
    if service is None:
        return render_error(request, "The service could not be created. Please try again later.")

    activity_service.log_success(
        db,
        user_id=user.id,
        action=activity_service.SERVICE_CREATED,
        resource_type="service",
        resource_id=service.id,
        details={"project_id": str(project.id), "type": type.value},
    )
    return RedirectResponse(url=CLIENT_DASHBOARD_PATH, status_code=303)


@router.post("/services/{service_id}/status", dependencies=[Depends(require_csrf)])
def update_service_status(
    service_id: UUID,
    status: str = Form(..., min_length=1, max_length=50),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = project_service.update_service_status(db, service_id, user.id, status.strip())
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")

    activity_service.log_success(
        db,
        user_id=user.id,
        action=activity_service.SERVICE_STATUS_CHANGED,
        resource_type="service",
        resource_id=service.id,
        details={"status": service.status},
    )
    return RedirectResponse(url=CLIENT_DASHBOARD_PATH, status_code=303)
