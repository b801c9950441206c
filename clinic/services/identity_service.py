from sqlalchemy.orm import Session
from typing import Dict, Optional, Type, Union
import logging

from ..core.database import Base
from ..core.security import Role
from ..models.admin import Admin
from ..models.doctor import Doctor
from ..models.patient import Patient

logger = logging.getLogger(__name__)

# One identity table per role
IDENTITY_MODELS: Dict[Role, Type[Base]] = {
    Role.ADMIN: Admin,
    Role.DOCTOR: Doctor,
    Role.PATIENT: Patient,
}

def exists_by_email(db: Session, model: Type[Base], email: str) -> bool:
    return db.query(model.id).filter(model.email == email).first() is not None

class IdentityService:
    """Answers whether an identity of a given role exists, one table per lookup."""

    def __init__(self, db: Session):
        self.db = db

    def exists(self, role: Union[Role, str, None], subject: str) -> bool:
        resolved = Role.parse(role)
        if resolved is None:
            logger.warning(f"Unrecognized role {role!r}; treating identity as absent")
            return False
        return exists_by_email(self.db, IDENTITY_MODELS[resolved], subject)

    def get_by_email(self, role: Role, email: str) -> Optional[Base]:
        model = IDENTITY_MODELS[role]
        return self.db.query(model).filter(model.email == email).first()
