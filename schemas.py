# schemas.py
from datetime import date, datetime
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Annotated, List, Literal, Optional

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
HHMM_PATTERN = r"^([01][0-9]|2[0-3]):[0-5][0-9]$"

AppointmentStatus = Literal["pending", "confirmed", "completed", "cancelled"]


class ApiModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _check_iso_date(value: str) -> str:
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValueError("must be an ISO date (YYYY-MM-DD)")
    return value


IsoDate = Annotated[str, AfterValidator(_check_iso_date)]


# === Users ===

class UserResponse(ApiModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None


class ConversationResponse(UserResponse):
    last_message: str
    last_message_time: datetime


# === Doctors ===

class DoctorCreate(ApiModel):
    user_id: str = Field(min_length=1)
    specialty: str = Field(min_length=1)
    license_number: str = Field(min_length=1)
    years_of_experience: int = Field(ge=0)
    bio: Optional[str] = None
    consultation_fee: int = Field(ge=0)
    available_days: List[str] = Field(min_length=1)
    start_time: str = Field(pattern=HHMM_PATTERN)
    end_time: str = Field(pattern=HHMM_PATTERN)

    @field_validator("available_days")
    @classmethod
    def _weekdays(cls, days: List[str]) -> List[str]:
        seen = []
        for day in days:
            name = day.strip().capitalize()
            if name not in WEEKDAYS:
                raise ValueError(f"unknown weekday '{day}'")
            if name in seen:
                raise ValueError(f"duplicate weekday '{name}'")
            seen.append(name)
        return seen

    @model_validator(mode="after")
    def _working_hours(self):
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be later than startTime")
        return self


class DoctorResponse(ApiModel):
    id: int
    user_id: str
    specialty: str
    license_number: str
    years_of_experience: int
    bio: Optional[str] = None
    consultation_fee: int
    available_days: List[str]
    start_time: str
    end_time: str
    created_at: Optional[datetime] = None


class DoctorWithUser(DoctorResponse):
    user: UserResponse


# === Patients ===

class PatientCreate(ApiModel):
    user_id: str = Field(min_length=1)
    date_of_birth: IsoDate
    gender: str = Field(min_length=1)
    blood_type: Optional[str] = None
    allergies: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    address: Optional[str] = None


class PatientResponse(ApiModel):
    id: int
    user_id: str
    date_of_birth: str
    gender: str
    blood_type: Optional[str] = None
    allergies: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None


class PatientWithUser(PatientResponse):
    user: UserResponse


# === Appointments ===

class AppointmentCreate(ApiModel):
    # status is not accepted here; new bookings are always "pending"
    patient_id: int
    doctor_id: int
    date: IsoDate
    time: str = Field(pattern=HHMM_PATTERN)
    reason: str = Field(min_length=1)
    notes: Optional[str] = None


class AppointmentStatusUpdate(ApiModel):
    status: AppointmentStatus
    notes: Optional[str] = None


class AppointmentResponse(ApiModel):
    id: int
    patient_id: int
    doctor_id: int
    date: str
    time: str
    status: AppointmentStatus
    reason: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class AppointmentView(AppointmentResponse):
    # Only the counterpart of the caller is embedded; the other key is left unset
    doctor: Optional[DoctorWithUser] = None
    patient: Optional[PatientWithUser] = None


# === Messages ===

class MessageCreate(ApiModel):
    sender_id: str = Field(min_length=1)
    receiver_id: str = Field(min_length=1)
    content: str = Field(min_length=1)


class MessageResponse(ApiModel):
    id: int
    sender_id: str
    receiver_id: str
    content: str
    is_read: bool
    created_at: datetime


class MessagesReadResponse(ApiModel):
    updated: int


# === Medical records ===

class MedicalRecordCreate(ApiModel):
    patient_id: int
    doctor_id: int
    diagnosis: str = Field(min_length=1)
    prescription: str = Field(min_length=1)
    test_results: Optional[str] = None
    treatment_plan: Optional[str] = None


class MedicalRecordResponse(ApiModel):
    id: int
    patient_id: int
    doctor_id: int
    diagnosis: str
    prescription: str
    test_results: Optional[str] = None
    treatment_plan: Optional[str] = None
    visit_date: datetime
    created_at: Optional[datetime] = None


class MedicalRecordWithDoctor(MedicalRecordResponse):
    doctor: DoctorWithUser
