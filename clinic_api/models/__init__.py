"""
Data models for the application
All Pydantic models for request/response validation
"""

from .common import (
    CamelModel,
    Pagination,
    Priority,
)

from .appointment import (
    AppointmentStatus,
    TreatmentType,
    TimeSlot,
    TREATMENTS,
    TIME_SLOTS,
    AppointmentCreate,
    AppointmentUpdate,
    ConfirmRequest,
    AppointmentInDB,
    AppointmentPublic,
)

from .contact import (
    ContactStatus,
    ContactCreate,
    ContactUpdate,
    ContactInDB,
    ContactPublic,
)

from .blog import (
    BlogStatus,
    BlogSection,
    BlogCreate,
    BlogUpdate,
    BlogInDB,
)

from .subscriber import (
    SubscriberCreate,
    SubscriberInDB,
)


__all__ = [
    # Shared
    "CamelModel",
    "Pagination",
    "Priority",

    # Appointment models
    "AppointmentStatus",
    "TreatmentType",
    "TimeSlot",
    "TREATMENTS",
    "TIME_SLOTS",
    "AppointmentCreate",
    "AppointmentUpdate",
    "ConfirmRequest",
    "AppointmentInDB",
    "AppointmentPublic",

    # Contact models
    "ContactStatus",
    "ContactCreate",
    "ContactUpdate",
    "ContactInDB",
    "ContactPublic",

    # Blog models
    "BlogStatus",
    "BlogSection",
    "BlogCreate",
    "BlogUpdate",
    "BlogInDB",

    # Subscriber models
    "SubscriberCreate",
    "SubscriberInDB",
]
