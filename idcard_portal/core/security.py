from __future__ import annotations

from passlib.context import CryptContext
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from idcard_portal.core.config import settings

# pure-python scheme: no native bcrypt build needed for a mock account store
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Signed cookie for session (stateless)
serializer = URLSafeTimedSerializer(settings.SECRET_KEY, salt="idcard_portal_sid")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # unknown or corrupt hash
        return False


def sign_session(payload: dict) -> str:
    return serializer.dumps(payload)


def verify_session(token: str, max_age_seconds: int | None = None) -> dict | None:
    try:
        return serializer.loads(token, max_age=max_age_seconds or settings.SESSION_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired):
        return None
