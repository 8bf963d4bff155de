# agenda/schemas.py

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from enum import Enum
from datetime import datetime, date
from decimal import Decimal
from typing import List, Optional

from agenda.core import HHMM_PATTERN, SLUG_PATTERN, parse_hhmm, to_naive


class RequestModel(BaseModel):
    # camelCase on the wire, unknown fields rejected
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


class ResponseModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# --- auth ---

class UserRegister(RequestModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    name: str = Field(min_length=1, max_length=120)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class UserLogin(RequestModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=72)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class UserPublic(ResponseModel):
    id: int
    email: str
    name: str
    email_verified: bool


class AuthResponse(ResponseModel):
    user: UserPublic
    message: Optional[str] = None
    verification_sent: Optional[bool] = None


class VerifyEmailRequest(RequestModel):
    email: EmailStr
    code: str = Field(min_length=1, max_length=16)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class VerifyEmailResponse(ResponseModel):
    message: str
    user_id: int


class ResendVerificationRequest(RequestModel):
    user_id: int
    email: EmailStr
    name: str = Field(min_length=1, max_length=120)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class MessageResponse(ResponseModel):
    message: str


# --- provider ---

class ProviderCreate(RequestModel):
    business_name: str = Field(min_length=1, max_length=120)
    slug: Optional[str] = Field(default=None, max_length=80, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    category: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_active: bool = True

    @field_validator("slug", mode="before")
    @classmethod
    def blank_slug(cls, v):
        return _blank_to_none(v)


class ProviderUpdate(RequestModel):
    business_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    slug: Optional[str] = Field(default=None, max_length=80, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    category: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_active: Optional[bool] = None


class ProviderOut(ResponseModel):
    id: int
    user_id: int
    business_name: str
    slug: str
    description: Optional[str] = None
    category: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ProviderPublic(ResponseModel):
    """Fields safe to show on the public booking page."""

    id: int
    business_name: str
    slug: str
    description: Optional[str] = None
    category: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    profile_image_url: Optional[str] = None


# --- services ---

class ServiceCreate(RequestModel):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    duration: int = Field(gt=0, le=24 * 60)
    is_active: bool = True


class ServiceUpdate(RequestModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    duration: Optional[int] = Field(default=None, gt=0, le=24 * 60)
    is_active: Optional[bool] = None


class ServiceOut(ResponseModel):
    id: int
    provider_id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    duration: int
    is_active: bool


# --- weekly availability ---

class AvailabilityCreate(RequestModel):
    day_of_week: int = Field(ge=0, le=6)  # 0=Sun, 1=Mon....
    start_time: str = Field(pattern=HHMM_PATTERN)
    end_time: str = Field(pattern=HHMM_PATTERN)
    is_enabled: bool = True

    @model_validator(mode="after")
    def check_window(self):
        if parse_hhmm(self.start_time) >= parse_hhmm(self.end_time):
            raise ValueError("startTime must be before endTime")
        return self


class AvailabilityUpdate(RequestModel):
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    start_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    is_enabled: Optional[bool] = None


class AvailabilityOut(ResponseModel):
    id: int
    provider_id: int
    day_of_week: int
    start_time: str
    end_time: str
    is_enabled: bool


# --- date blocks ---

class DateBlockCreate(RequestModel):
    title: str = Field(min_length=1, max_length=120)
    start_date: datetime
    end_date: datetime
    is_all_day: bool = True

    @field_validator("start_date", "end_date")
    @classmethod
    def naive(cls, v: datetime) -> datetime:
        return to_naive(v)

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("endDate cannot be before startDate")
        return self


class DateBlockUpdate(RequestModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=120)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_all_day: Optional[bool] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def naive(cls, v):
        return to_naive(v) if v is not None else v


class DateBlockOut(ResponseModel):
    id: int
    provider_id: int
    title: str
    start_date: datetime
    end_date: datetime
    is_all_day: bool


# --- appointments ---

class BookingRequest(RequestModel):
    service_id: int
    client_name: str = Field(min_length=1, max_length=120)
    client_phone: str = Field(min_length=1, max_length=40)
    client_email: Optional[EmailStr] = None
    appointment_date: datetime
    notes: Optional[str] = Field(default=None, max_length=2000)

    # Sent by the booking page; the service record is authoritative.
    price: Optional[Decimal] = Field(default=None, exclude=True)
    duration: Optional[int] = Field(default=None, exclude=True)

    @field_validator("client_email", mode="before")
    @classmethod
    def blank_email(cls, v):
        return _blank_to_none(v)

    @field_validator("appointment_date")
    @classmethod
    def naive(cls, v: datetime) -> datetime:
        return to_naive(v)


class AppointmentCreate(BookingRequest):
    status: AppointmentStatus = AppointmentStatus.pending


class AppointmentUpdate(RequestModel):
    status: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    client_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    client_phone: Optional[str] = Field(default=None, min_length=1, max_length=40)
    client_email: Optional[EmailStr] = None
    appointment_date: Optional[datetime] = None

    @field_validator("client_email", mode="before")
    @classmethod
    def blank_email(cls, v):
        return _blank_to_none(v)

    @field_validator("appointment_date")
    @classmethod
    def naive(cls, v):
        return to_naive(v) if v is not None else v


class AppointmentOut(ResponseModel):
    id: int
    provider_id: int
    service_id: int
    client_name: str
    client_phone: str
    client_email: Optional[str] = None
    appointment_date: datetime
    duration: int
    price: Decimal
    status: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AppointmentStats(ResponseModel):
    today: int
    this_week: int
    pending: int
    month_revenue: Decimal


class AvailableSlotsResponse(ResponseModel):
    slug: str
    date: date
    service_id: int
    duration: int
    available_starts: List[str]
