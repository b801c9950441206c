from datetime import date, datetime
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
import logging

from ..models.appointment import APPOINTMENT_DURATION, Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..schemas.appointment import AppointmentCreate, AppointmentUpdate
from .scheduling import (
    AppointmentValidationError, day_bounds, validate_appointment_timing,
    validate_new_status, validate_status
)

logger = logging.getLogger(__name__)

class AppointmentService:
    def __init__(self, db: Session):
        self.db = db

    def find_by_doctor_and_range(
        self, doctor_id: int, start: datetime, end: datetime
    ) -> List[Appointment]:
        """Appointments of one doctor in the half-open range [start, end)."""
        return self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_time >= start,
            Appointment.appointment_time < end
        ).order_by(Appointment.appointment_time).all()

    def book_appointment(self, patient: Patient, data: AppointmentCreate) -> Appointment:
        """Patient-initiated booking; always starts scheduled."""
        try:
            appointment_time = validate_appointment_timing(data.appointment_time)
            initial_status = validate_new_status(data.status)
        except AppointmentValidationError as e:
            raise self._invalid(e)

        doctor = self.db.query(Doctor).filter(Doctor.id == data.doctor_id).first()
        if not doctor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )

        self._ensure_slot_free(doctor.id, appointment_time)

        appointment = Appointment(
            doctor=doctor,
            patient=patient,
            appointment_time=appointment_time,
            status=initial_status.value
        )
        self.db.add(appointment)
        self._commit_booking()
        self.db.refresh(appointment)

        logger.info(
            f"Appointment {appointment.id} booked: patient {patient.id} "
            f"with doctor {doctor.id} at {appointment_time}"
        )
        return appointment

    def update_appointment(
        self, patient: Patient, appointment_id: int, data: AppointmentUpdate
    ) -> Appointment:
        """Reschedule one of the patient's own appointments."""
        appointment = self._get_for_patient(patient, appointment_id)

        if appointment.status != AppointmentStatus.SCHEDULED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only scheduled appointments can be changed"
            )

        try:
            appointment_time = validate_appointment_timing(data.appointment_time)
        except AppointmentValidationError as e:
            raise self._invalid(e)

        self._ensure_slot_free(appointment.doctor_id, appointment_time, exclude_id=appointment.id)

        appointment.appointment_time = appointment_time
        self._commit_booking()
        self.db.refresh(appointment)

        logger.info(f"Appointment {appointment.id} moved to {appointment_time}")
        return appointment

    def update_status(self, doctor: Doctor, appointment_id: int, new_status: int) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if appointment.doctor_id != doctor.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Appointment belongs to another doctor"
            )

        try:
            appointment.status = validate_status(new_status).value
        except AppointmentValidationError as e:
            raise self._invalid(e)

        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Appointment {appointment.id} status set to {appointment.status}")
        return appointment

    def cancel_appointment(self, patient: Patient, appointment_id: int) -> None:
        appointment = self._get_for_patient(patient, appointment_id)
        self.db.delete(appointment)
        self.db.commit()
        logger.info(f"Appointment {appointment_id} cancelled by patient {patient.id}")

    def get_doctor_appointments(
        self, doctor: Doctor, day: date, patient_name: Optional[str] = None
    ) -> List[Appointment]:
        """A doctor's appointments for one day, optionally by patient name."""
        start, end = day_bounds(day)
        query = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor.id,
            Appointment.appointment_time >= start,
            Appointment.appointment_time < end
        )

        if patient_name:
            query = query.join(Patient).filter(Patient.name.ilike(f"%{patient_name}%"))

        return query.order_by(Appointment.appointment_time).all()

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).first()

        if not appointment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Appointment not found"
            )
        return appointment

    def _get_for_patient(self, patient: Patient, appointment_id: int) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if appointment.patient_id != patient.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Appointment belongs to another patient"
            )
        return appointment

    def _ensure_slot_free(
        self, doctor_id: int, appointment_time: datetime, exclude_id: Optional[int] = None
    ):
        """Reject a booking that overlaps another one-hour booking of the doctor."""
        query = self.db.query(Appointment.id).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_time > appointment_time - APPOINTMENT_DURATION,
            Appointment.appointment_time < appointment_time + APPOINTMENT_DURATION
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)

        if query.first() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Doctor is not available at that time"
            )

    def _commit_booking(self):
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race for the same doctor and start time
            self.db.rollback()
            logger.warning("Booking conflict detected on commit")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Doctor is not available at that time"
            )

    @staticmethod
    def _invalid(error: AppointmentValidationError) -> HTTPException:
        logger.info(f"Appointment rejected: {error.reason.value}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(error)
        )
