# src/marketdesk/interfaces/api/security/auth.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt
from passlib.context import CryptContext

from marketdesk.config import settings
from marketdesk.domain.entities import UserRole

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)

def _encode(subject: str, token_type: str, expire_min: int, role: Optional[UserRole] = None) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=expire_min)
    payload = {
        "sub": subject,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if role is not None:
        payload["role"] = role.value
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def create_access_token(subject: str, role: Optional[UserRole] = None) -> str:
    return _encode(subject, ACCESS_TOKEN_TYPE, settings.JWT_EXPIRE_MIN, role)

def create_refresh_token(subject: str) -> str:
    return _encode(subject, REFRESH_TOKEN_TYPE, settings.JWT_REFRESH_EXPIRE_MIN)

def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
