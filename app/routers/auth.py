from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from app.core.security import SESSION_MAX_AGE, create_session_cookie
from app.deps import SESSION_COOKIE_NAME, get_current_user
from app.models.user import User
from app.services import users as user_service

router = APIRouter()


class SignupRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


def _user_out(user: User) -> dict:
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "createdAt": user.created_at,
    }


def _set_session(response: Response, user: User) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=create_session_cookie(user_service.session_payload_for_user(user)),
        max_age=SESSION_MAX_AGE,
        httponly=True,
        secure=False,  # set True in prod with HTTPS
        samesite="lax",
        path="/",
    )


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest, response: Response):
    """Create an account and start a session."""
    user = await user_service.signup(body.name, body.email, body.password)
    _set_session(response, user)
    return _user_out(user)


@router.post("/login")
async def login(body: LoginRequest, response: Response):
    user = await user_service.authenticate(body.email, body.password)
    _set_session(response, user)
    return _user_out(user)


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    """Return current user. Requires session cookie."""
    return _user_out(user)


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return {"status": "ok"}
