from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import EmailStr, Field, field_validator

from clinic_api.models.common import CamelModel


class SubscriberCreate(CamelModel):
    """Newsletter signup"""
    email: EmailStr
    source: Optional[str] = Field(None, max_length=50)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class SubscriberInDB(CamelModel):
    id: str
    email: str
    source: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "SubscriberInDB":
        return cls.model_validate({**document, "id": str(document["_id"])})

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
