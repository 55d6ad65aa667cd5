import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import Forbidden, Unauthenticated
from models.user import User
from schemas.auth import LoginData, LoginRequest
from schemas.common import Envelope
from security import jwt as jwt_utils
from security.jwt import Principal
from security.password import hash_password, needs_rehash, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def get_current_principal(authorization: Optional[str] = Header(default=None, alias="Authorization")) -> Principal:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise Unauthenticated("Token not provided")
    return jwt_utils.verify(authorization.split(" ", 1)[1])


@router.post("/login", response_model=Envelope[LoginData])
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email).one_or_none()
    if not user or not verify_password(data.password, user.password):
        logger.warning("Failed login for %s", data.email)
        raise Unauthenticated("Invalid credentials")
    if not user.is_admin:
        logger.warning("Non-admin login attempt for %s", data.email)
        raise Forbidden("Access denied. Administrator role required")

    if needs_rehash(user.password):
        user.password = hash_password(data.password)
        db.commit()

    token = jwt_utils.create_access_token(user.id, user.email, user.role or "user")
    return {"success": True, "data": {"token": token, "user": user}}
