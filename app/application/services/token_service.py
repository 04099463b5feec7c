"""Token service — signed, stateless session tokens (JWT via python-jose)."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt

from app.core.exceptions import ExpiredTokenException, InvalidTokenException
from app.domain.schemas.auth import TokenClaims


class TokenService:
    """Issues and verifies bearer tokens carrying ``{userId, email, role}``.

    Nothing is stored server side, so a token stays valid until it expires or
    the signing secret changes.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", ttl: timedelta = timedelta(minutes=60)):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, claims: TokenClaims, ttl: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        to_encode = {
            "sub": claims.user_id,
            "email": claims.email,
            "role": claims.role,
            "iat": now,
            "exp": now + (ttl if ttl is not None else self.ttl),
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as exc:
            raise ExpiredTokenException() from exc
        except JWTError as exc:
            raise InvalidTokenException() from exc

        user_id = payload.get("sub")
        email = payload.get("email")
        role = payload.get("role")
        if not user_id or not email or not role:
            raise InvalidTokenException()
        return TokenClaims(user_id=user_id, email=email, role=role)

    def refresh(self, token: str) -> str:
        """Re-issue the same claims with a fresh expiry."""
        return self.issue(self.verify(token))
