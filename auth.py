import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from fastapi import APIRouter, Header

import database
from config import settings
from errors import AppError, ForbiddenError, UnauthorizedError
from schemas import AdminCredentials
from utils import success

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _secret() -> str:
    if not settings.JWT_ADMIN_SECRET:
        raise AppError("JWT secret is not defined", 500)
    return settings.JWT_ADMIN_SECRET


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def check_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def generate_token(payload: Dict[str, Any], expires_in: Optional[timedelta] = None) -> str:
    expires_in = expires_in or timedelta(days=settings.JWT_EXPIRE_DAYS)
    claims = {**payload, "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(claims, _secret(), algorithm=ALGORITHM)


def verify_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, _secret(), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid or expired token")


def require_admin(authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("No token provided")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise UnauthorizedError("No token provided")
    claims = verify_token(token)
    if claims.get("role") != "admin":
        raise ForbiddenError("Admin access required")
    return claims


@router.post("/login")
def login(payload: AdminCredentials):
    admins = database.get_collection("admin")
    admin = admins.find_one({"email": payload.email.lower()})
    if not admin:
        raise UnauthorizedError("Invalid email or password")
    if not admin.get("is_active", True):
        raise UnauthorizedError("Admin account is inactive")
    if not check_password(payload.password, admin["password"]):
        raise UnauthorizedError("Invalid email or password")

    admins.update_one({"_id": admin["_id"]}, {"$set": {"last_login": datetime.now(timezone.utc)}})

    admin_id = str(admin["_id"])
    token = generate_token({"id": admin_id, "email": admin["email"], "role": "admin"})
    logger.info("Admin %s logged in", admin["email"])
    return success("Login successful", {
        "token": token,
        "admin": {
            "id": admin_id,
            "admin_id": admin.get("admin_id"),
            "name": admin.get("name"),
            "email": admin["email"],
            "role": admin.get("role", "admin"),
        },
    })
