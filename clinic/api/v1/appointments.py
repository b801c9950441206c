from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_doctor, get_current_patient
from ...models.doctor import Doctor
from ...models.patient import Patient
from ...services.appointment_service import AppointmentService
from ...schemas.appointment import (
    AppointmentCreate, AppointmentResponse, AppointmentStatusUpdate, AppointmentUpdate
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    appointment_data: AppointmentCreate,
    current_patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    """Book an appointment for the calling patient."""
    return AppointmentService(db).book_appointment(current_patient, appointment_data)

@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    appointment_data: AppointmentUpdate,
    current_patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    """Reschedule one of the calling patient's appointments."""
    return AppointmentService(db).update_appointment(current_patient, appointment_id, appointment_data)

@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    status_data: AppointmentStatusUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """Mark an appointment scheduled (0) or completed (1); owning doctor only."""
    return AppointmentService(db).update_status(current_doctor, appointment_id, status_data.status)

@router.delete("/{appointment_id}")
async def cancel_appointment(
    appointment_id: int,
    current_patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    """Cancel one of the calling patient's appointments."""
    AppointmentService(db).cancel_appointment(current_patient, appointment_id)
    return {"message": "Appointment cancelled successfully"}
