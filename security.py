"""
Password hashing and the JWT session shared by the API and the pages.

A session token is accepted from ``Authorization: Bearer ...`` or from the
http-only cookie set at sign-in; the header wins when both are present.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import timedelta
from typing import Optional

import bcrypt
from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from database import User, get_db, utcnow
from settings import get_settings

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)

SESSION_TOKEN = "session"
RESET_TOKEN = "reset"


class AuthError(Exception):
    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


# ---------- Passwords ----------
def _pw_prehash(pw: str) -> bytes:
    # bcrypt only reads 72 bytes; sha256 first so long passwords still count in full
    return hashlib.sha256(pw.encode("utf-8")).digest()


def hash_password(pw: str) -> str:
    return bcrypt.hashpw(_pw_prehash(pw), bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)).decode("utf-8")


def verify_password(pw: str, pw_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_pw_prehash(pw), pw_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


# ---------- Tokens ----------
def _encode(claims: dict, ttl: timedelta) -> str:
    s = get_settings()
    payload = dict(claims)
    payload["exp"] = utcnow() + ttl
    return jwt.encode(payload, s.jwt_secret, algorithm=s.jwt_algorithm)


def _decode(token: str, expected_type: str) -> dict:
    s = get_settings()
    try:
        payload = jwt.decode(token, s.jwt_secret, algorithms=[s.jwt_algorithm])
    except JWTError as exc:
        raise AuthError("Invalid token") from exc
    if payload.get("type") != expected_type or not payload.get("sub"):
        raise AuthError("Invalid token")
    return payload


def create_session_token(user: User) -> str:
    return _encode(
        {"sub": str(user.id), "type": SESSION_TOKEN, "role": user.role, "email": user.email},
        timedelta(days=get_settings().jwt_ttl_days),
    )


def create_reset_token(user_id: int) -> str:
    return _encode(
        {"sub": str(user_id), "type": RESET_TOKEN},
        timedelta(minutes=get_settings().reset_ttl_minutes),
    )


def decode_session_token(token: str) -> int:
    return int(_decode(token, SESSION_TOKEN)["sub"])


def verify_reset_token(token: str) -> int:
    try:
        return int(_decode(token, RESET_TOKEN)["sub"])
    except AuthError as exc:
        raise AuthError("Invalid or expired reset token") from exc


def resolve_user(db: Session, token: str) -> User:
    user = db.get(User, decode_session_token(token))
    if user is None:
        raise AuthError("User not found")
    return user


# ---------- Cookie ----------
def set_auth_cookie(response: Response, token: str) -> None:
    s = get_settings()
    response.set_cookie(
        key=s.cookie_name,
        value=token,
        max_age=s.jwt_ttl_days * 86400,
        httponly=True,
        samesite="lax",
        secure=s.cookie_secure,
        path="/",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=get_settings().cookie_name, path="/")


# ---------- Dependencies ----------
def require_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    token = creds.credentials if creds and creds.credentials else None
    if not token:
        token = request.cookies.get(get_settings().cookie_name)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        return resolve_user(db, token)
    except AuthError as exc:
        logger.info("rejected session on %s: %s", request.url.path, exc.detail)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.detail)


def page_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """Cookie-only lookup for HTML pages; None instead of 401."""
    token = request.cookies.get(get_settings().cookie_name)
    if not token:
        return None
    try:
        return resolve_user(db, token)
    except AuthError:
        return None
