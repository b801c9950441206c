from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

def _unique_slots(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return value
    cleaned = [label.strip() for label in value]
    if any(not label for label in cleaned):
        raise ValueError("Time slot labels must not be blank")
    if len(set(cleaned)) != len(cleaned):
        raise ValueError("Time slot labels must be unique")
    return cleaned

class DoctorBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    specialty: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    phone: str = Field(..., pattern=r"^\d{10}$")
    available_times: List[str] = Field(default_factory=list)

    @field_validator("available_times")
    @classmethod
    def validate_available_times(cls, value):
        return _unique_slots(value)

class DoctorCreate(DoctorBase):
    password: str = Field(..., min_length=6)

class DoctorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    specialty: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=r"^\d{10}$")
    password: Optional[str] = Field(None, min_length=6)
    available_times: Optional[List[str]] = None

    @field_validator("available_times")
    @classmethod
    def validate_available_times(cls, value):
        return _unique_slots(value)

class DoctorResponse(DoctorBase):
    id: int

    model_config = ConfigDict(from_attributes=True)

class DoctorSummary(BaseModel):
    id: int
    name: str
    specialty: str

    model_config = ConfigDict(from_attributes=True)

class AvailabilityResponse(BaseModel):
    doctor_id: int
    date: str
    available_times: List[str]
