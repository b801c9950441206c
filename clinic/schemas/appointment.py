from datetime import date, datetime, time
from typing import Optional
from pydantic import BaseModel, ConfigDict

from .doctor import DoctorSummary
from .patient import PatientSummary

class AppointmentCreate(BaseModel):
    doctor_id: int
    appointment_time: datetime
    # Bookings always start scheduled; anything else is rejected by the service
    status: Optional[int] = None

class AppointmentUpdate(BaseModel):
    appointment_time: datetime

class AppointmentStatusUpdate(BaseModel):
    status: int

class AppointmentResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    appointment_time: datetime
    status: int
    end_time: datetime
    appointment_date: date
    appointment_time_only: time
    doctor: DoctorSummary
    patient: PatientSummary

    model_config = ConfigDict(from_attributes=True)
