from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import Role, AuthorizationError
from ...api.deps import get_current_patient, load_identity, rate_limit_check, require_path_role_of
from ...models.patient import Patient
from ...services.patient_service import PatientService
from ...services.token_validation_service import Valid
from ...schemas.appointment import AppointmentResponse
from ...schemas.patient import PatientCreate, PatientResponse

router = APIRouter(prefix="/patients", tags=["Patients"])

@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def register_patient(
    patient_data: PatientCreate,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Patient signup."""
    return PatientService(db).register_patient(patient_data)

@router.get("/me", response_model=PatientResponse)
async def get_me(current_patient: Patient = Depends(get_current_patient)):
    """The calling patient's profile."""
    return current_patient

@router.get("/me/appointments/filter", response_model=List[AppointmentResponse])
async def filter_my_appointments(
    condition: Optional[str] = None,
    doctor_name: Optional[str] = None,
    current_patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    """Filter the calling patient's appointments by condition and doctor name."""
    return PatientService(db).filter_appointments(current_patient, condition, doctor_name)

@router.get("/{patient_id}/appointments/{role}", response_model=List[AppointmentResponse])
async def patient_appointments(
    patient_id: int,
    principal: Valid = Depends(require_path_role_of(Role.PATIENT, Role.DOCTOR)),
    db: Session = Depends(get_db)
):
    """
    Appointments of a patient. A patient sees only their own; a doctor sees
    the ones booked with them.
    """
    service = PatientService(db)
    patient = service.get_patient(patient_id)

    if principal.role == Role.PATIENT:
        if patient.email != principal.subject:
            raise AuthorizationError("Patients can only view their own appointments")
        return service.get_patient_appointments(patient.id)

    doctor = load_identity(db, principal)
    return service.get_patient_appointments(patient.id, doctor_id=doctor.id)
