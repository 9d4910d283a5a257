from datetime import date, datetime, time, timezone
from enum import Enum
from math import ceil
from typing import Any, List, Optional, Union

import pytz
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: snake_case in Python, camelCase on the wire and in MongoDB"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        str_strip_whitespace = True
        use_enum_values = True


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Pagination(CamelModel):
    """Pagination metadata returned by every list endpoint"""
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = ceil(total / limit) if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            items_per_page=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


def utcnow() -> datetime:
    """Naive UTC timestamp at millisecond precision, the form MongoDB hands back"""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def clinic_today(timezone_name: str) -> date:
    """Calendar date at the clinic, used for the no-past-bookings rule"""
    tz = pytz.timezone(timezone_name)
    return datetime.now(tz).date()


def as_datetime(value: Optional[Union[date, datetime]]) -> Optional[datetime]:
    """MongoDB has no date type; dates are stored as midnight datetimes"""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def strip_time_part(value: Any) -> Any:
    """Accept full ISO-8601 timestamps where a calendar date is expected"""
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    if isinstance(value, datetime):
        return value.date()
    return value


def format_long_date(value: Optional[Union[date, datetime]]) -> Optional[str]:
    """Monday, October 19, 2026"""
    if value is None:
        return None
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


def unique_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    seen = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen
