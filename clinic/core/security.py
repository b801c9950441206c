from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional, Union
from jose import JWTError, jws, jwt
from jose.exceptions import JWSError
from passlib.context import CryptContext
from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from pydantic import BaseModel, ValidationError
from enum import Enum

from .config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer credentials; a missing header is reported by the token gate, not here
security = HTTPBearer(auto_error=False)

class Role(str, Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"

    @classmethod
    def parse(cls, value: Union["Role", str, None]) -> Optional["Role"]:
        """Case-insensitive lookup; unknown names give None."""
        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

class TokenReason(str, Enum):
    MALFORMED = "malformed"
    MISSING_TOKEN = "missing_token"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    SUBJECT_MISSING = "subject_missing"
    NO_MATCHING_IDENTITY = "no_matching_identity"

class TokenError(Exception):
    """Raised by the codec when a token cannot be accepted."""

    def __init__(self, reason: TokenReason):
        self.reason = reason
        super().__init__(reason.value)

class Token(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int

class TokenClaims(BaseModel):
    sub: Optional[str] = None
    iat: Optional[int] = None
    exp: int

# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)

class TokenCodec:
    """
    Issues and parses signed session tokens.

    The secret, algorithm and lifetime are fixed at construction. Parsing is
    purely structural and cryptographic: it knows nothing about roles or
    whether the subject still exists.

    Checks run in a fixed order and the first failure wins:
    missing token, framing, signature, claims structure, expiry.
    """

    def __init__(self, secret_key: str, algorithm: str, expires_delta: timedelta):
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expires_delta = expires_delta

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return int(self._expires_delta.total_seconds())

    def issue(
        self,
        subject: str,
        expires_delta: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Create a signed token for ``subject`` expiring a fixed time from now."""
        issued_at = now or datetime.now(timezone.utc)
        expire = issued_at + (expires_delta if expires_delta is not None else self._expires_delta)

        to_encode = {
            "sub": subject,
            "iat": int(issued_at.timestamp()),
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

    def parse(self, token: Optional[str], now: Optional[datetime] = None) -> TokenClaims:
        """Verify ``token`` and return its claims, or raise TokenError."""
        if not isinstance(token, str) or not token.strip():
            raise TokenError(TokenReason.MISSING_TOKEN)
        token = token.strip()

        try:
            header = jwt.get_unverified_header(token)
        except JWTError:
            raise TokenError(TokenReason.MALFORMED)

        # Anything not signed with the configured algorithm is unsupported ("none" included)
        if header.get("alg") != self._algorithm:
            raise TokenError(TokenReason.MALFORMED)

        try:
            jws.verify(token, self._secret_key, algorithms=[self._algorithm])
        except JWSError:
            raise TokenError(TokenReason.INVALID_SIGNATURE)

        try:
            claims = TokenClaims.model_validate(jwt.get_unverified_claims(token))
        except (JWTError, ValidationError):
            raise TokenError(TokenReason.MALFORMED)

        verified_at = now or datetime.now(timezone.utc)
        if claims.exp <= verified_at.timestamp():
            raise TokenError(TokenReason.EXPIRED)

        return claims

@lru_cache()
def get_token_codec() -> TokenCodec:
    """Process-wide codec built once from settings."""
    return TokenCodec(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )

def create_access_token(subject: str) -> Token:
    """Issue a token for a subject whose credentials were already checked."""
    codec = get_token_codec()
    return Token(token=codec.issue(subject), expires_in=codec.expires_in)

# Security exceptions
class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Invalid or expired token"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )
