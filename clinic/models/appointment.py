from datetime import date, datetime, time, timedelta
from typing import Optional
from sqlalchemy import Column, Integer, ForeignKey, DateTime, CheckConstraint, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

# Every appointment occupies one fixed-length slot
APPOINTMENT_DURATION = timedelta(hours=1)

class AppointmentStatus(enum.IntEnum):
    SCHEDULED = 0
    COMPLETED = 1

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("status IN (0, 1)", name="ck_appointments_status"),
        UniqueConstraint("doctor_id", "appointment_time", name="uq_appointments_doctor_time"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)

    # Appointment details
    appointment_time = Column(DateTime, nullable=False, index=True)
    status = Column(Integer, nullable=False, default=AppointmentStatus.SCHEDULED.value)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    doctor = relationship("Doctor", back_populates="appointments")
    patient = relationship("Patient", back_populates="appointments")

    @property
    def end_time(self) -> Optional[datetime]:
        if self.appointment_time is None:
            return None
        return self.appointment_time + APPOINTMENT_DURATION

    @property
    def appointment_date(self) -> Optional[date]:
        if self.appointment_time is None:
            return None
        return self.appointment_time.date()

    @property
    def appointment_time_only(self) -> Optional[time]:
        if self.appointment_time is None:
            return None
        return self.appointment_time.time()

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, time='{self.appointment_time}')>"
