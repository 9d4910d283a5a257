from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import EmailStr, Field, field_validator

from clinic_api.models.common import CamelModel, Priority, unique_tags


class ContactStatus(str, Enum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"
    ARCHIVED = "archived"


class ContactCreate(CamelModel):
    """Contact form submission"""
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    subject: str = Field(..., min_length=5, max_length=200)
    message: str = Field(..., min_length=10, max_length=2000)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()

    def to_document(self) -> Dict[str, Any]:
        document = self.model_dump(by_alias=True)
        document.update(status=ContactStatus.NEW.value, priority=Priority.MEDIUM.value, tags=[])
        return document


class ContactUpdate(CamelModel):
    status: Optional[ContactStatus] = None
    priority: Optional[Priority] = None
    tags: Optional[List[str]] = None
    assigned_to: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return unique_tags(value)

    def to_changes(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)


class ContactInDB(CamelModel):
    """Contact message as stored in database"""
    id: str
    name: str
    email: str
    subject: str
    message: str
    status: ContactStatus = ContactStatus.NEW
    priority: Priority = Priority.MEDIUM
    tags: List[str] = []
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "ContactInDB":
        return cls.model_validate({**document, "id": str(document["_id"])})

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    def notification_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "subject": self.subject,
            "message": self.message,
        }


class ContactPublic(CamelModel):
    """Acknowledgement returned to the sender"""
    id: str
    name: str
    email: str
    subject: str
    status: ContactStatus
    created_at: datetime
