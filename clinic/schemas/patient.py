from pydantic import BaseModel, ConfigDict, EmailStr, Field

class PatientCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: str = Field(..., pattern=r"^\d{10}$")
    address: str = Field(..., min_length=1, max_length=255)

class PatientResponse(BaseModel):
    id: int
    name: str
    email: EmailStr
    phone: str
    address: str

    model_config = ConfigDict(from_attributes=True)

class PatientSummary(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)
