"""Self-service profile page."""

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from soloflow.core.deps import get_db, require_csrf, require_permission
from soloflow.schemas.user import ProfileUpdate
from soloflow.services import profile_service, user_service
from soloflow.templating import render, render_error

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("")
def profile_page(
    request: Request,
    saved: bool = False,
    user=Depends(require_permission("settings.view")),
    db: Session = Depends(get_db),
):
    return render(
        request,
        "profile.html",
        {
            "user": user,
            "profile": profile_service.get_profile(db, user.id),
            "can_edit": user_service.has_permission(user, "settings.edit"),
            "saved": saved,
        },
    )


@router.post("", dependencies=[Depends(require_csrf)])
def update_profile(
    request: Request,
    full_name: str | None = Form(None, max_length=255),
    avatar_url: str | None = Form(None, max_length=500),
    bio: str | None = Form(None),
    user=Depends(require_permission("settings.edit")),
    db: Session = Depends(get_db),
):
    profile = profile_service.update_profile(
        db,
        user.id,
        ProfileUpdate(
            full_name=full_name or None,
            avatar_url=avatar_url or None,
            bio=bio or None,
        ),
    )
    if profile is None:
        return render_error(request, "Your profile could not be saved. Please try again later.")
    return RedirectResponse(url="/profile?saved=true", status_code=303)
