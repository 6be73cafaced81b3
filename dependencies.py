from fastapi import Depends, HTTPException, Request, status

from auth import unsign_session_id
from config import settings
from storage import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_sessions(request: Request):
    return request.app.state.sessions


async def get_session_id(request: Request):
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    return unsign_session_id(token, settings.session_secret)


async def get_current_user(
    sid=Depends(get_session_id),
    storage: Storage = Depends(get_storage),
    sessions=Depends(get_sessions),
):
    if sid is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user_id = await sessions.get_user_id(sid)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired")

    user = await storage.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


async def get_current_admin(current_user=Depends(get_current_user)):
    """Ensure the session belongs to an admin"""
    if current_user["role"] != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
    return current_user
