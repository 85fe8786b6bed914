"""Development-only endpoints for testing without Google."""

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from soloflow.core.config import settings
from soloflow.core.deps import get_db
from soloflow.core.security import create_session_token
from soloflow.routers.auth import set_session_cookie
from soloflow.schemas.auth import Identity
from soloflow.services import user_service

router = APIRouter()


class DevLoginRequest(BaseModel):
    email: str
    name: str = ""


def _verify_dev_secret(x_dev_secret: str = Header(...)):
    """
    Verify dev secret header.

    Provides an extra layer of protection for dev endpoints
    beyond just the ENV check.
    """
    if x_dev_secret != settings.DEV_SECRET:
        raise HTTPException(status_code=403, detail="Invalid dev secret")


@router.post("/login", dependencies=[Depends(_verify_dev_secret)])
def dev_login(body: DevLoginRequest, db: Session = Depends(get_db)):
    """
    Bypass OAuth and directly set a session cookie for the given email.

    The user is created on first use like a normal Google sign-in.
    """
    email = body.email.strip().lower()
    identity = Identity(subject=f"dev-{email}", email=email, name=body.name)
    user = user_service.ensure_user(db, identity, admin_emails=settings.admin_emails_list)
    if user is None:
        raise HTTPException(status_code=503, detail="User could not be created")

    response = JSONResponse({
        "status": "logged_in",
        "user_id": str(user.id),
        "email": user.email,
        "role": user.role,
    })
    set_session_cookie(response, create_session_token(identity))
    return response
