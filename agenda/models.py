# agenda/models.py

from typing import Optional
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Index, text
from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    name: str
    email_verified: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class VerificationCode(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    email: str = Field(index=True)
    code: str
    expires_at: datetime
    used: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class LoginSession(SQLModel, table=True):
    sid: str = Field(primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    expires_at: datetime
    created_at: datetime = Field(default_factory=datetime.now)


class Provider(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", unique=True)  # one provider per user
    business_name: str
    slug: str = Field(index=True, unique=True)
    description: Optional[str] = None
    category: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    provider_id: int = Field(foreign_key="provider.id", index=True)
    name: str
    description: Optional[str] = None
    price: Decimal = Field(max_digits=10, decimal_places=2)
    duration: int  # minutes
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class Availability(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    provider_id: int = Field(foreign_key="provider.id", index=True)
    day_of_week: int  # 0=Sun, 1=Mon....
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    is_enabled: bool = True
    created_at: datetime = Field(default_factory=datetime.now)


class DateBlock(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    provider_id: int = Field(foreign_key="provider.id", index=True)
    title: str
    start_date: datetime
    end_date: datetime
    is_all_day: bool = True
    created_at: datetime = Field(default_factory=datetime.now)


class Appointment(SQLModel, table=True):
    # at most one live booking per provider and start time
    __table_args__ = (
        Index(
            "uq_provider_start_active",
            "provider_id",
            "appointment_date",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    provider_id: int = Field(foreign_key="provider.id", index=True)
    service_id: int = Field(foreign_key="service.id")

    client_name: str
    client_phone: str
    client_email: Optional[str] = None

    appointment_date: datetime
    duration: int  # snapshot of Service.duration
    price: Decimal = Field(max_digits=10, decimal_places=2)  # snapshot of Service.price
    status: str = "pending"
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
