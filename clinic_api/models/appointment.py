from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import EmailStr, Field, field_validator

from clinic_api.models.common import (
    CamelModel,
    Priority,
    as_datetime,
    format_long_date,
    strip_time_part,
    unique_tags,
)

PHONE_PATTERN = r"^\+?[\d\s\-()]+$"


class AppointmentStatus(str, Enum):
    """Appointment status enum"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no-show"


class TreatmentType(str, Enum):
    ACNE_TREATMENT = "Acne Treatment"
    ANTI_AGING_TREATMENT = "Anti-Aging Treatment"
    CHEMICAL_PEELS = "Chemical Peels"
    PIGMENTATION_TREATMENT = "Pigmentation Treatment"
    HAIR_TRANSPLANT = "Hair Transplant"
    PRP_HAIR_THERAPY = "PRP Hair Therapy"
    HAIR_LOSS_TREATMENT = "Hair Loss Treatment"
    SCALP_TREATMENT = "Scalp Treatment"
    LASER_HAIR_REMOVAL = "Laser Hair Removal"
    LASER_SKIN_RESURFACING = "Laser Skin Resurfacing"
    LASER_TATTOO_REMOVAL = "Laser Tattoo Removal"
    LASER_PIGMENTATION_REMOVAL = "Laser Pigmentation Removal"
    GENERAL_CONSULTATION = "General Consultation"


class TimeSlot(str, Enum):
    """Bookable time slots"""
    NINE_AM = "9:00 AM"
    TEN_AM = "10:00 AM"
    ELEVEN_AM = "11:00 AM"
    NOON = "12:00 PM"
    TWO_PM = "2:00 PM"
    THREE_PM = "3:00 PM"
    FOUR_PM = "4:00 PM"
    FIVE_PM = "5:00 PM"
    SIX_PM = "6:00 PM"


TREATMENTS = [treatment.value for treatment in TreatmentType]
TIME_SLOTS = [slot.value for slot in TimeSlot]


def reference_id(appointment_id: str) -> str:
    """Short booking reference shown to patients, e.g. APT-5F3A9C21"""
    return f"APT-{appointment_id[-8:].upper()}"


class AppointmentCreate(CamelModel):
    """Model for booking an appointment"""
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=10, max_length=20, pattern=PHONE_PATTERN)
    treatment_type: TreatmentType
    preferred_date: date
    preferred_time: TimeSlot
    message: Optional[str] = Field(None, max_length=1000)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("preferred_date", mode="before")
    @classmethod
    def drop_time_part(cls, value: Any) -> Any:
        return strip_time_part(value)

    def to_document(self) -> Dict[str, Any]:
        document = self.model_dump(by_alias=True, exclude_none=True)
        document["preferredDate"] = as_datetime(self.preferred_date)
        # slot position, so a day's bookings sort by time of day
        document["preferredSlot"] = TIME_SLOTS.index(self.preferred_time)
        document.update(
            status=AppointmentStatus.PENDING.value,
            priority=Priority.MEDIUM.value,
            duration=60,
            tags=[],
            reminderSent=False,
        )
        return document


class AppointmentUpdate(CamelModel):
    """Fields an admin may change; anything else in the body is ignored"""
    status: Optional[AppointmentStatus] = None
    priority: Optional[Priority] = None
    confirmed_date: Optional[date] = None
    confirmed_time: Optional[TimeSlot] = None
    duration: Optional[int] = Field(None, ge=15, le=480)
    notes: Optional[str] = Field(None, max_length=1000)
    assigned_to: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    cancelled_reason: Optional[str] = Field(None, max_length=500)

    @field_validator("confirmed_date", mode="before")
    @classmethod
    def drop_time_part(cls, value: Any) -> Any:
        return strip_time_part(value)

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return unique_tags(value)

    def to_changes(self) -> Dict[str, Any]:
        """Only the fields present in the request, keyed as stored"""
        changes = self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
        if "confirmedDate" in changes:
            changes["confirmedDate"] = as_datetime(self.confirmed_date)
        return changes


class ConfirmRequest(CamelModel):
    """Optional overrides when confirming; preferred values fill the gaps"""
    confirmed_date: Optional[date] = None
    confirmed_time: Optional[TimeSlot] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("confirmed_date", mode="before")
    @classmethod
    def drop_time_part(cls, value: Any) -> Any:
        return strip_time_part(value)

    def to_changes(self) -> Dict[str, Any]:
        changes: Dict[str, Any] = {"status": AppointmentStatus.CONFIRMED.value}
        if self.confirmed_date is not None:
            changes["confirmedDate"] = as_datetime(self.confirmed_date)
        if self.confirmed_time is not None:
            changes["confirmedTime"] = self.confirmed_time
        if self.notes is not None:
            changes["notes"] = self.notes
        return changes


class AppointmentInDB(CamelModel):
    """Appointment model as stored in database"""
    id: str
    name: str
    email: str
    phone: str
    treatment_type: str
    preferred_date: datetime
    preferred_time: str
    message: Optional[str] = None
    status: AppointmentStatus = AppointmentStatus.PENDING
    priority: Priority = Priority.MEDIUM
    confirmed_date: Optional[datetime] = None
    confirmed_time: Optional[str] = None
    actual_date: Optional[datetime] = None
    actual_time: Optional[str] = None
    duration: int = 60
    notes: Optional[str] = None
    assigned_to: Optional[str] = None
    tags: List[str] = []
    reminder_sent: bool = False
    reminder_sent_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "AppointmentInDB":
        return cls.model_validate({**document, "id": str(document["_id"])})

    @property
    def reference_id(self) -> str:
        return reference_id(self.id)

    def to_public(self) -> Dict[str, Any]:
        """Full record for admin responses, with display-only fields"""
        data = self.model_dump(by_alias=True, mode="json")
        data["referenceId"] = self.reference_id
        data["formattedPreferredDate"] = format_long_date(self.preferred_date)
        data["formattedConfirmedDate"] = format_long_date(self.confirmed_date)
        return data

    def notification_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "treatment_type": self.treatment_type,
            "preferred_date": self.preferred_date,
            "preferred_time": self.preferred_time,
            "message": self.message,
            "reference_id": self.reference_id,
        }


class AppointmentPublic(CamelModel):
    """Appointment summary returned to the patient after booking"""
    id: str
    reference_id: str
    name: str
    email: str
    treatment_type: str
    preferred_date: datetime
    preferred_time: str
    status: AppointmentStatus
    created_at: datetime

    @classmethod
    def from_appointment(cls, appointment: AppointmentInDB) -> "AppointmentPublic":
        return cls(
            id=appointment.id,
            reference_id=appointment.reference_id,
            name=appointment.name,
            email=appointment.email,
            treatment_type=appointment.treatment_type,
            preferred_date=appointment.preferred_date,
            preferred_time=appointment.preferred_time,
            status=appointment.status,
            created_at=appointment.created_at,
        )
