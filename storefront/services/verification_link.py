# storefront/services/verification_link.py
from datetime import datetime, timedelta, timezone
from urllib.parse import quote, urlencode

from jose import JWTError, jwt

from storefront.utils.logging import get_logger
from storefront.utils.settings import APP_SECRET, APP_URL, VERIFICATION_TTL_HOURS

logger = get_logger(__name__)

_ALG = "HS256"


class VerificationLinkSigner:
    """
    Podpisany, czasowy link weryfikacyjny.
    Podpis (JWT) ma wlasny exp niezalezny od token_expires_at w bazie,
    oba musza byc wazne.
    """

    def __init__(self, secret: str | None = None, base_url: str | None = None, ttl_hours: int | None = None):
        self.secret = secret or APP_SECRET
        self.base_url = (base_url or APP_URL).rstrip("/")
        self.ttl = timedelta(hours=ttl_hours or VERIFICATION_TTL_HOURS)

    def sign(self, token: str, email: str, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        claims = {"sub": email, "tok": token, "exp": now + self.ttl}
        return jwt.encode(claims, self.secret, algorithm=_ALG)

    def build_url(self, token: str, email: str) -> str:
        signature = self.sign(token, email)
        path = f"/verify-email/{quote(token, safe='')}/{quote(email, safe='@')}"
        return f"{self.base_url}{path}?{urlencode({'signature': signature})}"

    def is_valid(self, token: str, email: str, signature: str | None) -> bool:
        if not signature:
            return False
        try:
            claims = jwt.decode(signature, self.secret, algorithms=[_ALG])
        except JWTError as e:
            logger.info(f"Verification link signature rejected for {email}: {e}")
            return False
        return claims.get("sub") == email and claims.get("tok") == token
