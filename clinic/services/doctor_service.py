from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
import logging

from ..core.security import get_password_hash
from ..models.doctor import Doctor
from ..schemas.doctor import DoctorCreate, DoctorUpdate
from .appointment_service import AppointmentService
from .identity_service import exists_by_email
from .scheduling import compute_available_slots, day_bounds, slots_in_period

logger = logging.getLogger(__name__)

class DoctorService:
    def __init__(self, db: Session):
        self.db = db

    def list_doctors(self) -> List[Doctor]:
        return self.db.query(Doctor).order_by(Doctor.name).all()

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.db.query(Doctor).filter(Doctor.id == doctor_id).first()
        if not doctor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )
        return doctor

    def get_by_email(self, email: str) -> Optional[Doctor]:
        return self.db.query(Doctor).filter(Doctor.email == email).first()

    def filter_doctors(
        self,
        name: Optional[str] = None,
        time: Optional[str] = None,
        specialty: Optional[str] = None
    ) -> List[Doctor]:
        """
        Filter doctors by partial name, exact specialty (both case-insensitive)
        and by having at least one slot in the given half of the day.
        """
        query = self.db.query(Doctor)

        if name:
            query = query.filter(Doctor.name.ilike(f"%{name}%"))
        if specialty:
            query = query.filter(Doctor.specialty.ilike(specialty))

        doctors = query.order_by(Doctor.name).all()

        if time:
            if time.strip().upper() not in ("AM", "PM"):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Time filter must be AM or PM"
                )
            doctors = [d for d in doctors if slots_in_period(d.available_times, time)]

        return doctors

    def create_doctor(self, doctor_data: DoctorCreate) -> Doctor:
        if exists_by_email(self.db, Doctor, doctor_data.email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Doctor already exists"
            )

        doctor = Doctor(
            name=doctor_data.name,
            specialty=doctor_data.specialty,
            email=doctor_data.email,
            phone=doctor_data.phone,
            available_times=list(doctor_data.available_times),
            password_hash=get_password_hash(doctor_data.password)
        )

        self.db.add(doctor)
        self.db.commit()
        self.db.refresh(doctor)

        logger.info(f"Doctor {doctor.id} created")
        return doctor

    def update_doctor(self, doctor_id: int, doctor_data: DoctorUpdate) -> Doctor:
        doctor = self.get_doctor(doctor_id)
        update_data = doctor_data.model_dump(exclude_unset=True)

        new_email = update_data.get("email")
        if new_email and new_email != doctor.email and exists_by_email(self.db, Doctor, new_email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already used by another doctor"
            )

        password = update_data.pop("password", None)
        if password:
            doctor.password_hash = get_password_hash(password)

        for field, value in update_data.items():
            if value is not None:
                setattr(doctor, field, value)

        self.db.commit()
        self.db.refresh(doctor)

        logger.info(f"Doctor {doctor.id} updated")
        return doctor

    def delete_doctor(self, doctor_id: int) -> None:
        """Delete a doctor together with all of their appointments."""
        doctor = self.get_doctor(doctor_id)
        appointment_count = len(doctor.appointments)

        self.db.delete(doctor)
        self.db.commit()

        logger.info(f"Doctor {doctor_id} deleted with {appointment_count} appointments")

    def get_available_time_labels(self, doctor_id: int) -> List[str]:
        return list(self.get_doctor(doctor_id).available_times or [])

    def get_available_slots(self, doctor_id: int, day: date) -> List[str]:
        """Configured slots not yet taken by an appointment on ``day``."""
        configured = self.get_available_time_labels(doctor_id)

        start, end = day_bounds(day)
        booked = AppointmentService(self.db).find_by_doctor_and_range(doctor_id, start, end)

        return compute_available_slots(configured, [a.appointment_time for a in booked])
