"""Admin dashboard and user management (admin role only)."""

import logging
from itertools import groupby
from uuid import UUID

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session, sessionmaker

from soloflow.core.deps import get_db, get_session_factory, require_admin, require_csrf
from soloflow.db.enums import Role
from soloflow.schemas.user import UserAccessUpdate
from soloflow.services import activity_service, dashboard_service, profile_service, user_service
from soloflow.templating import render, render_error

router = APIRouter(prefix="/dashboard/admin", tags=["admin"])
logger = logging.getLogger(__name__)

USERS_PATH = "/dashboard/admin/users"


def _permission_groups() -> list[tuple[str, list[tuple[str, str, str]]]]:
    ordered = sorted(user_service.AVAILABLE_PERMISSIONS, key=lambda p: p[2])
    return [(category, list(items)) for category, items in groupby(ordered, key=lambda p: p[2])]


@router.get("")
async def admin_dashboard(
    request: Request,
    admin=Depends(require_admin),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    data = await dashboard_service.get_admin_dashboard_data(session_factory)

    with session_factory() as db:
        activity_service.log_success(
            db,
            user_id=admin.id,
            action=activity_service.ADMIN_DASHBOARD_ACCESS,
            resource_type="dashboard",
            resource_id="admin",
        )

    return render(request, "dashboard_admin.html", {"user": admin, "data": data})


@router.get("/users")
def manage_users(
    request: Request,
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
):
    users = user_service.get_all_users(db)
    profiles = profile_service.get_profiles_by_user_ids(db, [u.id for u in users])
    return render(
        request,
        "admin_users.html",
        {
            "user": admin,
            "users": users,
            "profiles": profiles,
            "roles": list(Role),
            "permission_groups": _permission_groups(),
        },
    )


@router.post("/users/{user_id}", dependencies=[Depends(require_csrf)])
def update_user(
    user_id: UUID,
    role: Role = Form(...),
    permissions: list[str] = Form([]),
    full_name: str | None = Form(None, max_length=255),
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
):
    updated = user_service.update_user_access(
        db,
        user_id,
        UserAccessUpdate(role=role, permissions=permissions, full_name=full_name),
    )
    if updated is None:
        raise HTTPException(status_code=404, detail="User not found")

    activity_service.log_success(
        db,
        user_id=admin.id,
        action=activity_service.USER_UPDATED,
        resource_type="user",
        resource_id=updated.id,
        details={"role": updated.role, "permissions": updated.permissions},
    )
    logger.info("Admin=%s updated user=%s role=%s", admin.id, updated.id, updated.role)
    return RedirectResponse(url=USERS_PATH, status_code=303)


@router.post("/users/{user_id}/delete", dependencies=[Depends(require_csrf)])
def delete_user(
    request: Request,
    user_id: UUID,
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
):
    if user_id == admin.id:
        return render_error(
            request,
            "You cannot delete your own account.",
            status_code=403,
            title="Access denied",
        )

    if not user_service.delete_user(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")

    activity_service.log_success(
        db,
        user_id=admin.id,
        action=activity_service.USER_DELETED,
        resource_type="user",
        resource_id=user_id,
    )
    logger.info("Admin=%s deleted user=%s", admin.id, user_id)
    return RedirectResponse(url=USERS_PATH, status_code=303)
