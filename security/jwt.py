from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from core.config import settings
from core.errors import Unauthenticated


@dataclass(frozen=True)
class Principal:
    id: int
    email: str
    role: str


def _encode(payload: Dict[str, Any], secret: str, minutes: int) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=minutes)
    to_encode = {"iat": int(now.timestamp()), "exp": int(exp.timestamp()), **payload}
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALG)


def create_access_token(user_id: int, email: str, role: str) -> str:
    payload = {"sub": str(user_id), "id": user_id, "email": email, "role": role}
    return _encode(payload, settings.JWT_SECRET, settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def decode_access(token: str) -> Dict[str, Any]:
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])


def verify(token: str) -> Principal:
    """Validate a bearer token and return the identity it carries."""
    try:
        payload = decode_access(token)
    except jwt.PyJWTError:
        raise Unauthenticated("Invalid or expired token")
    try:
        return Principal(id=int(payload["id"]), email=payload["email"], role=payload.get("role") or "user")
    except (KeyError, TypeError, ValueError):
        raise Unauthenticated("Invalid or expired token")
