from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import security, AuthenticationError, AuthorizationError, Role, get_token_codec
from ..models.admin import Admin
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..services.identity_service import IdentityService
from ..services.token_validation_service import TokenValidationService, Valid

logger = logging.getLogger(__name__)

def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[str]:
    """Bearer token from the Authorization header, if any."""
    return credentials.credentials if credentials else None

def get_token_validation_service(db: Session = Depends(get_db)) -> TokenValidationService:
    return TokenValidationService(db, get_token_codec())

def authorize(gate: TokenValidationService, token: Optional[str], role) -> Valid:
    outcome = gate.validate(token, role)
    if not outcome.valid:
        # Same message for every reason; the reason itself is only logged
        raise AuthenticationError()
    return outcome

# Role-based access control dependencies
def require_role(role: Role):
    """Create a dependency that validates the bearer token for one role."""
    async def role_checker(
        token: Optional[str] = Depends(get_token),
        gate: TokenValidationService = Depends(get_token_validation_service)
    ) -> Valid:
        return authorize(gate, token, role)

    return role_checker

def path_role(role: str) -> str:
    """
    Role taken from the URL. Unknown names pass through to the gate, which
    rejects them as having no matching identity, unless REJECT_UNKNOWN_ROLES is on.
    """
    if Role.parse(role) is None:
        logger.warning(f"Request for unrecognized role {role!r}")
        if settings.REJECT_UNKNOWN_ROLES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unsupported role"
            )
    return role

def require_path_role_of(*roles: Role):
    """Validate the token for the role named in the URL, limited to `roles`."""
    async def path_role_checker(
        role: str = Depends(path_role),
        token: Optional[str] = Depends(get_token),
        gate: TokenValidationService = Depends(get_token_validation_service)
    ) -> Valid:
        principal = authorize(gate, token, role)
        if principal.role not in roles:
            raise AuthorizationError(f"Role {principal.role.value} cannot use this endpoint")
        return principal

    return path_role_checker

require_path_role = require_path_role_of(*Role)

def load_identity(db: Session, principal: Valid):
    identity = IdentityService(db).get_by_email(principal.role, principal.subject)
    if identity is None:
        # Deleted between validation and lookup
        raise AuthenticationError()
    return identity

async def get_current_admin(
    principal: Valid = Depends(require_role(Role.ADMIN)),
    db: Session = Depends(get_db)
) -> Admin:
    return load_identity(db, principal)

async def get_current_doctor(
    principal: Valid = Depends(require_role(Role.DOCTOR)),
    db: Session = Depends(get_db)
) -> Doctor:
    return load_identity(db, principal)

async def get_current_patient(
    principal: Valid = Depends(require_role(Role.PATIENT)),
    db: Session = Depends(get_db)
) -> Patient:
    return load_identity(db, principal)

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Basic per-client rate limiting for signup."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
    else:
        if int(current_requests) >= settings.RATE_LIMIT_MAX_REQUESTS:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
