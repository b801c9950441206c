from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import Role
from ...api.deps import require_path_role
from ...services.auth_service import AuthService
from ...services.token_validation_service import Valid
from ...schemas.auth import LoginRequest, TokenResponse, TokenVerification

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/{role}/login", response_model=TokenResponse)
async def login(
    role: Role,
    login_data: LoginRequest,
    db: Session = Depends(get_db)
):
    """Authenticate an admin, doctor or patient and return a session token."""
    auth_service = AuthService(db)
    return auth_service.login(role, login_data)

@router.post("/verify-token/{role}", response_model=TokenVerification)
async def verify_token_endpoint(
    principal: Valid = Depends(require_path_role)
):
    """Verify that the bearer token belongs to an existing identity of ``role``."""
    return TokenVerification(
        valid=True,
        role=principal.role,
        subject=principal.subject
    )
