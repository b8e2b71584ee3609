# bistro/utils/security.py
from datetime import datetime, timedelta, timezone

import jwt
from werkzeug.security import generate_password_hash, check_password_hash

from bistro.utils.settings import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRES_DAYS


def hash_password(password: str) -> str:
    #sol generowana per haslo, zapisana w samym hashu
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "iat": now,
        "exp": now + (expires_delta or timedelta(days=JWT_EXPIRES_DAYS)),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """
    Zwraca id usera z tokena.
    Rzuca jwt.ExpiredSignatureError albo jwt.InvalidTokenError.
    """
    payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    user_id = payload.get("id")
    if not isinstance(user_id, int):
        raise jwt.InvalidTokenError("Token bez id uzytkownika")
    return user_id
