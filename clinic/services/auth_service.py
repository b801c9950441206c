from sqlalchemy.orm import Session
from fastapi import HTTPException, status
import logging

from ..core.security import Role, verify_password, create_access_token
from ..schemas.auth import LoginRequest, TokenResponse
from .identity_service import IdentityService

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.identities = IdentityService(db)

    def login(self, role: Role, login_data: LoginRequest) -> TokenResponse:
        """Check credentials against the role's own table and issue a token."""
        identity = self.identities.get_by_email(role, login_data.email)

        if not identity or not verify_password(login_data.password, identity.password_hash):
            logger.info(f"Failed {role.value} login for {login_data.email}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        token = create_access_token(identity.email)
        logger.info(f"{role.value.capitalize()} {identity.id} logged in")

        return TokenResponse(
            token=token.token,
            token_type=token.token_type,
            expires_in=token.expires_in,
        )
