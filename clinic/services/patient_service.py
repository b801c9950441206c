from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
import logging

from ..core.security import get_password_hash
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..schemas.patient import PatientCreate

logger = logging.getLogger(__name__)

# Appointment list filter conditions
CONDITIONS = {
    "past": AppointmentStatus.COMPLETED,
    "future": AppointmentStatus.SCHEDULED,
}

class PatientService:
    def __init__(self, db: Session):
        self.db = db

    def register_patient(self, patient_data: PatientCreate) -> Patient:
        """Create a patient account; email and phone must both be unused."""
        existing = self.db.query(Patient).filter(
            or_(Patient.email == patient_data.email, Patient.phone == patient_data.phone)
        ).first()

        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Patient with this email or phone already exists"
            )

        patient = Patient(
            name=patient_data.name,
            email=patient_data.email,
            phone=patient_data.phone,
            address=patient_data.address,
            password_hash=get_password_hash(patient_data.password)
        )

        self.db.add(patient)
        self.db.commit()
        self.db.refresh(patient)

        logger.info(f"Patient {patient.id} registered")
        return patient

    def get_patient(self, patient_id: int) -> Patient:
        patient = self.db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient not found"
            )
        return patient

    def get_by_email(self, email: str) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.email == email).first()

    def get_patient_appointments(
        self, patient_id: int, doctor_id: Optional[int] = None
    ) -> List[Appointment]:
        query = self.db.query(Appointment).filter(Appointment.patient_id == patient_id)
        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)
        return query.order_by(Appointment.appointment_time).all()

    def filter_appointments(
        self,
        patient: Patient,
        condition: Optional[str] = None,
        doctor_name: Optional[str] = None
    ) -> List[Appointment]:
        """Filter by condition ("past" or "future") and partial doctor name."""
        query = self.db.query(Appointment).filter(Appointment.patient_id == patient.id)

        if condition:
            appointment_status = CONDITIONS.get(condition.strip().lower())
            if appointment_status is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Condition must be 'past' or 'future'"
                )
            query = query.filter(Appointment.status == appointment_status.value)

        if doctor_name:
            query = query.join(Doctor).filter(Doctor.name.ilike(f"%{doctor_name}%"))

        return query.order_by(Appointment.appointment_time).all()
