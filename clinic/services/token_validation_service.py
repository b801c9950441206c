"""
Authorization gate.

``TokenValidationService.validate`` is the pre-condition of every protected
operation. It never raises for a bad token: every rejection comes back as a
``Rejected`` value carrying one reason. Database errors are not caught and
propagate to the caller.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union
from sqlalchemy.orm import Session
import logging

from ..core.security import Role, TokenCodec, TokenError, TokenReason, get_token_codec
from .identity_service import IdentityService

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Valid:
    role: Role
    subject: str

    @property
    def valid(self) -> bool:
        return True

    @property
    def reason(self) -> None:
        return None

@dataclass(frozen=True)
class Rejected:
    reason: TokenReason

    @property
    def valid(self) -> bool:
        return False

ValidationOutcome = Union[Valid, Rejected]

class TokenValidationService:
    def __init__(self, db: Session, codec: Optional[TokenCodec] = None):
        self.identities = IdentityService(db)
        self.codec = codec or get_token_codec()

    def validate(
        self,
        token: Optional[str],
        role: Union[Role, str, None],
        now: Optional[datetime] = None,
    ) -> ValidationOutcome:
        try:
            claims = self.codec.parse(token, now=now)
        except TokenError as e:
            return self._reject(e.reason, role)

        subject = claims.sub
        if not subject or not subject.strip():
            return self._reject(TokenReason.SUBJECT_MISSING, role)

        if not self.identities.exists(role, subject):
            return self._reject(TokenReason.NO_MATCHING_IDENTITY, role)

        return Valid(role=Role.parse(role), subject=subject)

    def _reject(self, reason: TokenReason, role) -> Rejected:
        logger.info(f"Token rejected for role {role!r}: {reason.value}")
        return Rejected(reason=reason)
