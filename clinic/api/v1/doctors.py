from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import Role
from ...api.deps import get_current_admin, get_current_doctor, require_path_role_of
from ...models.admin import Admin
from ...models.doctor import Doctor
from ...services.appointment_service import AppointmentService
from ...services.doctor_service import DoctorService
from ...services.token_validation_service import Valid
from ...schemas.appointment import AppointmentResponse
from ...schemas.doctor import AvailabilityResponse, DoctorCreate, DoctorResponse, DoctorUpdate

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("", response_model=List[DoctorResponse])
async def list_doctors(db: Session = Depends(get_db)):
    """List all doctors."""
    return DoctorService(db).list_doctors()

@router.get("/filter", response_model=List[DoctorResponse])
async def filter_doctors(
    name: Optional[str] = None,
    time: Optional[str] = None,
    specialty: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Filter doctors by name, time of day (AM/PM) and specialty."""
    return DoctorService(db).filter_doctors(name=name, time=time, specialty=specialty)

@router.get("/me/appointments", response_model=List[AppointmentResponse])
async def my_appointments(
    day: date = Query(..., alias="date"),
    patient_name: Optional[str] = None,
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """The calling doctor's appointments for one day."""
    return AppointmentService(db).get_doctor_appointments(current_doctor, day, patient_name)

@router.post("", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
async def create_doctor(
    doctor_data: DoctorCreate,
    _: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Create a doctor (admin only)."""
    return DoctorService(db).create_doctor(doctor_data)

@router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    return DoctorService(db).get_doctor(doctor_id)

@router.put("/{doctor_id}", response_model=DoctorResponse)
async def update_doctor(
    doctor_id: int,
    doctor_data: DoctorUpdate,
    _: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Update a doctor (admin only)."""
    return DoctorService(db).update_doctor(doctor_id, doctor_data)

@router.delete("/{doctor_id}")
async def delete_doctor(
    doctor_id: int,
    _: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Delete a doctor and their appointments (admin only)."""
    DoctorService(db).delete_doctor(doctor_id)
    return {"message": "Doctor deleted successfully"}

@router.get("/{doctor_id}/availability/{role}/{day}", response_model=AvailabilityResponse)
async def doctor_availability(
    doctor_id: int,
    day: date,
    _: Valid = Depends(require_path_role_of(Role.PATIENT, Role.DOCTOR)),
    db: Session = Depends(get_db)
):
    """Bookable slots of a doctor on one day, for a patient or doctor token."""
    slots = DoctorService(db).get_available_slots(doctor_id, day)
    return AvailabilityResponse(
        doctor_id=doctor_id,
        date=day.isoformat(),
        available_times=slots
    )
