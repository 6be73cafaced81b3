from fastapi import APIRouter, Depends, Response, status

import auth
import schemas
from config import settings
from dependencies import get_current_user, get_session_id, get_sessions, get_storage

router = APIRouter(prefix="/api", tags=["auth"])


async def _start_session(response: Response, sessions, user: dict):
    sid = await sessions.create(user["id"])
    response.set_cookie(
        key=settings.session_cookie_name,
        value=auth.sign_session_id(sid, settings.session_secret, settings.session_max_age),
        max_age=settings.session_max_age,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )


@router.post("/register", response_model=schemas.UserPublic, status_code=status.HTTP_201_CREATED)
async def register(
    data: schemas.RegisterRequest,
    response: Response,
    storage=Depends(get_storage),
    sessions=Depends(get_sessions),
):
    user = await auth.register_user(
        storage,
        username=data.username,
        password=data.password,
        role=data.role,
        security_code=data.security_code,
        expected_security_code=settings.admin_security_code,
    )
    await _start_session(response, sessions, user)
    return auth.public_user(user)


@router.post("/login", response_model=schemas.UserPublic)
async def login(
    data: schemas.LoginRequest,
    response: Response,
    storage=Depends(get_storage),
    sessions=Depends(get_sessions),
):
    user = await auth.authenticate_user(
        storage,
        username=data.username,
        password=data.password,
        security_code=data.security_code,
        admin_username=settings.admin_username,
        expected_security_code=settings.admin_security_code,
    )
    await _start_session(response, sessions, user)
    return auth.public_user(user)


@router.post("/logout", response_model=schemas.MessageResponse)
async def logout(
    response: Response,
    current_user=Depends(get_current_user),
    sid=Depends(get_session_id),
    sessions=Depends(get_sessions),
):
    await sessions.destroy(sid)
    response.delete_cookie(settings.session_cookie_name)
    return {"message": "Successfully logged out"}


@router.get("/user", response_model=schemas.UserPublic)
async def read_current_user(current_user=Depends(get_current_user)):
    return auth.public_user(current_user)
