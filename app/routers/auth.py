from datetime import datetime
from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel
from sqlmodel import Session

from ..config import SESSION_COOKIE_NAME, SESSION_EXPIRE_DAYS
from ..database import get_session
from ..errors import Unauthorized
from ..models.enums import UserRole
from ..services.auth import authenticate_user, create_session, create_user, delete_session

router = APIRouter(prefix="/auth", tags=["auth"])


class SignupRequest(BaseModel):
    email: str
    password: str
    name: str


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    """Public view of an account; never includes the password hash."""
    id: int
    email: str
    name: str
    role: UserRole
    created_at: datetime
    updated_at: datetime


def _set_session_cookie(response: Response, session_token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_token,
        httponly=True,
        max_age=SESSION_EXPIRE_DAYS * 24 * 60 * 60,
        samesite="lax"
    )


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    response: Response,
    db: Session = Depends(get_session)
):
    """Register a REGULAR account and log it in."""
    user = create_user(db, payload.email, payload.password, payload.name)
    _set_session_cookie(response, create_session(db, user.id))
    return user


@router.post("/login", response_model=UserResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_session)
):
    user = authenticate_user(db, payload.email, payload.password)
    if not user:
        raise Unauthorized("Invalid email or password")

    _set_session_cookie(response, create_session(db, user.id))
    return user


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_session)
):
    session_token = request.cookies.get(SESSION_COOKIE_NAME)
    if session_token:
        delete_session(db, session_token)

    response.delete_cookie(key=SESSION_COOKIE_NAME)
    return {"status": "logged_out"}
