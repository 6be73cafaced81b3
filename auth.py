import hashlib
import hmac
import secrets
import time
from datetime import datetime, timedelta
from typing import Optional

import jwt
from fastapi import HTTPException, status
from databases import Database
from sqlalchemy import select, delete

from models import Session

ALGORITHM = "HS256"

# ========== PASSWORD HASHING ==========
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LENGTH = 64


def _scrypt(password: str, salt: str) -> str:
    return hashlib.scrypt(
        password.encode(),
        salt=salt.encode(),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=KEY_LENGTH,
    ).hex()


def get_password_hash(password: str) -> str:
    """Hash password with scrypt and a random salt, stored as ``<hash>.<salt>``"""
    salt = secrets.token_hex(16)
    return f"{_scrypt(password, salt)}.{salt}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password by re-hashing with the stored salt"""
    if not hashed_password or "." not in hashed_password:
        return False
    hashed, salt = hashed_password.split(".", 1)
    return hmac.compare_digest(_scrypt(plain_password, salt), hashed)


def security_code_matches(supplied: Optional[str], expected: str) -> bool:
    if not supplied:
        return False
    return hmac.compare_digest(supplied.encode(), expected.encode())


def public_user(user: dict) -> dict:
    """Strip password and security code before a user leaves the server."""
    return {"id": user["id"], "username": user["username"], "role": user["role"]}


# ========== SESSION COOKIE ==========
def sign_session_id(sid: str, secret: str, max_age: int) -> str:
    payload = {"sid": sid, "exp": datetime.utcnow() + timedelta(seconds=max_age)}
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def unsign_session_id(token: str, secret: str) -> Optional[str]:
    """Return the session id carried by a cookie, or None if it is forged or expired."""
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) else None


# ========== SESSION STORES ==========
class MemorySessionStore:
    """In-process session table with expiry and a periodic sweep of dead entries."""

    def __init__(self, max_age: int, sweep_interval: int = 60 * 15, clock=time.monotonic):
        self.max_age = max_age
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._sessions = {}
        self._next_sweep = clock() + sweep_interval

    def _maybe_sweep(self, now: float):
        if now < self._next_sweep:
            return
        expired = [sid for sid, (_, expires) in self._sessions.items() if expires <= now]
        for sid in expired:
            del self._sessions[sid]
        self._next_sweep = now + self.sweep_interval

    async def create(self, user_id: int) -> str:
        now = self._clock()
        self._maybe_sweep(now)
        sid = secrets.token_urlsafe(32)
        self._sessions[sid] = (user_id, now + self.max_age)
        return sid

    async def get_user_id(self, sid: str) -> Optional[int]:
        now = self._clock()
        self._maybe_sweep(now)
        entry = self._sessions.get(sid)
        if entry is None:
            return None
        user_id, expires = entry
        if expires <= now:
            del self._sessions[sid]
            return None
        return user_id

    async def destroy(self, sid: str):
        self._sessions.pop(sid, None)

    def __len__(self):
        return len(self._sessions)


class DatabaseSessionStore:
    """Sessions persisted in the ``sessions`` table."""

    def __init__(self, db: Database, max_age: int):
        self.db = db
        self.max_age = max_age

    async def create(self, user_id: int) -> str:
        sid = secrets.token_urlsafe(32)
        query = Session.__table__.insert().values(
            sid=sid,
            user_id=user_id,
            expires_at=datetime.utcnow() + timedelta(seconds=self.max_age),
        )
        await self.db.execute(query)
        return sid

    async def get_user_id(self, sid: str) -> Optional[int]:
        query = select(Session.__table__).where(Session.__table__.c.sid == sid)
        result = await self.db.fetch_one(query)
        if not result:
            return None
        row = dict(result._mapping)
        expires_at = row["expires_at"]
        if isinstance(expires_at, str):
            expires_at = datetime.fromisoformat(expires_at)
        if expires_at <= datetime.utcnow():
            await self.destroy(sid)
            return None
        return row["user_id"]

    async def destroy(self, sid: str):
        query = delete(Session.__table__).where(Session.__table__.c.sid == sid)
        await self.db.execute(query)

    async def sweep(self) -> None:
        query = delete(Session.__table__).where(Session.__table__.c.expires_at <= datetime.utcnow())
        await self.db.execute(query)


# ========== REGISTER / LOGIN ==========
async def register_user(storage, username: str, password: str, role: str,
                        security_code: Optional[str], expected_security_code: str) -> dict:
    """Create an account; admin role (or any security code) needs the shared code."""
    # imported here so the storage module can reuse the hashing helpers above
    from storage import UsernameTakenError

    if role == "admin" or security_code:
        if not security_code_matches(security_code, expected_security_code):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid security code"
            )

    try:
        return await storage.create_user({
            "username": username,
            "password": get_password_hash(password),
            "role": role,
            "security_code": security_code,
        })
    except UsernameTakenError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already exists"
        )


async def authenticate_user(storage, username: str, password: str,
                            security_code: Optional[str], admin_username: str,
                            expected_security_code: str) -> dict:
    """Check credentials; the admin account must also present the security code."""
    if username == admin_username:
        if not security_code_matches(security_code, expected_security_code):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid security code"
            )

    user = await storage.get_user_by_username(username)
    if not user or not verify_password(password, user["password"]):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password"
        )
    return user
