# storefront/utils/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from storefront.utils.settings import ACCESS_TOKEN_TTL_MINUTES, APP_SECRET

JWT_ALG = "HS256"

pwd = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(p: str) -> str:
    return pwd.hash(p)


def verify_password(p: str, h: str) -> bool:
    return pwd.verify(p, h)


def create_access_token(user_id: int) -> str:
    exp = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_TTL_MINUTES)
    payload = {"sub": str(user_id), "exp": exp}
    return jwt.encode(payload, APP_SECRET, algorithm=JWT_ALG)


def decode_access_token(token: str) -> Optional[int]:
    try:
        data = jwt.decode(token, APP_SECRET, algorithms=[JWT_ALG])
        return int(data.get("sub"))
    except (JWTError, TypeError, ValueError):
        return None
