# agenda/storage.py
"""Persistence service - CRUD per entity over a SQLModel session, no business rules"""

from datetime import datetime
from typing import Iterable, Optional

from sqlmodel import Session, select

from agenda.models import (
    Appointment,
    Availability,
    DateBlock,
    Provider,
    Service,
    User,
    VerificationCode,
)


class Storage:
    def __init__(self, session: Session):
        self.session = session

    def _save(self, obj, commit: bool = True):
        self.session.add(obj)
        if commit:
            self.session.commit()
            self.session.refresh(obj)
        else:
            self.session.flush()
        return obj

    def _update(self, obj, values: dict, touch: bool = True):
        for key, value in values.items():
            setattr(obj, key, value)
        if touch and hasattr(obj, "updated_at"):
            obj.updated_at = datetime.now()
        return self._save(obj)

    def _delete(self, obj) -> None:
        self.session.delete(obj)
        self.session.commit()

    # --- users ---

    def get_user(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.email == email.lower())).first()

    def create_user(self, email: str, password_hash: str, name: str) -> User:
        return self._save(User(email=email.lower(), password_hash=password_hash, name=name))

    def mark_user_verified(self, user_id: int, commit: bool = True) -> None:
        user = self.session.get(User, user_id)
        if user is not None:
            user.email_verified = True
            user.updated_at = datetime.now()
            self._save(user, commit=commit)

    # --- verification codes ---

    def create_verification_code(self, code: VerificationCode) -> VerificationCode:
        return self._save(code)

    def latest_verification_code(self, email: str) -> Optional[VerificationCode]:
        return self.session.exec(
            select(VerificationCode)
            .where(VerificationCode.email == email.lower())
            .order_by(VerificationCode.created_at.desc(), VerificationCode.id.desc())
        ).first()

    def mark_verification_code_used(self, code: VerificationCode, commit: bool = True) -> None:
        code.used = True
        self._save(code, commit=commit)

    def invalidate_verification_codes(self, user_id: int) -> int:
        codes = self.session.exec(
            select(VerificationCode)
            .where(VerificationCode.user_id == user_id)
            .where(VerificationCode.used == False)  # noqa: E712
        ).all()
        for code in codes:
            code.used = True
            self.session.add(code)
        self.session.commit()
        return len(codes)

    # --- providers ---

    def get_provider(self, provider_id: int) -> Optional[Provider]:
        return self.session.get(Provider, provider_id)

    def get_provider_by_user_id(self, user_id: int) -> Optional[Provider]:
        return self.session.exec(select(Provider).where(Provider.user_id == user_id)).first()

    def get_provider_by_slug(self, slug: str) -> Optional[Provider]:
        return self.session.exec(select(Provider).where(Provider.slug == slug)).first()

    def lock_provider(self, provider_id: int) -> Optional[Provider]:
        # row lock where FOR UPDATE exists; on SQLite the BEGIN IMMEDIATE from db.py already holds the write lock
        return self.session.exec(
            select(Provider).where(Provider.id == provider_id).with_for_update()
        ).first()

    def create_provider(self, **values) -> Provider:
        return self._save(Provider(**values))

    def update_provider(self, provider: Provider, values: dict) -> Provider:
        return self._update(provider, values)

    # --- services ---

    def list_services(self, provider_id: int, active_only: bool = False) -> list[Service]:
        stmt = select(Service).where(Service.provider_id == provider_id)
        if active_only:
            stmt = stmt.where(Service.is_active == True)  # noqa: E712
        return list(self.session.exec(stmt.order_by(Service.created_at, Service.id)).all())

    def get_service(self, service_id: int) -> Optional[Service]:
        return self.session.get(Service, service_id)

    def create_service(self, provider_id: int, **values) -> Service:
        return self._save(Service(provider_id=provider_id, **values))

    def update_service(self, service: Service, values: dict) -> Service:
        return self._update(service, values)

    def delete_service(self, service: Service) -> None:
        self._delete(service)

    def service_has_appointments(self, service_id: int) -> bool:
        return self.session.exec(
            select(Appointment.id).where(Appointment.service_id == service_id)
        ).first() is not None

    # --- weekly availability ---

    def list_availability(self, provider_id: int) -> list[Availability]:
        return list(
            self.session.exec(
                select(Availability)
                .where(Availability.provider_id == provider_id)
                .order_by(Availability.day_of_week, Availability.start_time)
            ).all()
        )

    def list_enabled_availability(self, provider_id: int, day_of_week: int) -> list[Availability]:
        return list(
            self.session.exec(
                select(Availability)
                .where(Availability.provider_id == provider_id)
                .where(Availability.day_of_week == day_of_week)
                .where(Availability.is_enabled == True)  # noqa: E712
                .order_by(Availability.start_time)
            ).all()
        )

    def get_availability(self, availability_id: int) -> Optional[Availability]:
        return self.session.get(Availability, availability_id)

    def create_availability(self, provider_id: int, **values) -> Availability:
        return self._save(Availability(provider_id=provider_id, **values))

    def update_availability(self, availability: Availability, values: dict) -> Availability:
        return self._update(availability, values, touch=False)

    def delete_availability(self, availability: Availability) -> None:
        self._delete(availability)

    # --- date blocks ---

    def list_date_blocks(self, provider_id: int) -> list[DateBlock]:
        return list(
            self.session.exec(
                select(DateBlock)
                .where(DateBlock.provider_id == provider_id)
                .order_by(DateBlock.start_date)
            ).all()
        )

    def date_blocks_between(self, provider_id: int, start: datetime, end: datetime) -> list[DateBlock]:
        """Blocks whose [start_date, end_date] touches [start, end]."""
        return list(
            self.session.exec(
                select(DateBlock)
                .where(DateBlock.provider_id == provider_id)
                .where(DateBlock.start_date <= end)
                .where(DateBlock.end_date >= start)
            ).all()
        )

    def get_date_block(self, block_id: int) -> Optional[DateBlock]:
        return self.session.get(DateBlock, block_id)

    def create_date_block(self, provider_id: int, **values) -> DateBlock:
        return self._save(DateBlock(provider_id=provider_id, **values))

    def update_date_block(self, block: DateBlock, values: dict) -> DateBlock:
        return self._update(block, values, touch=False)

    def delete_date_block(self, block: DateBlock) -> None:
        self._delete(block)

    # --- appointments ---

    def list_appointments(
        self,
        provider_id: int,
        statuses: Optional[Iterable[str]] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Appointment]:
        stmt = select(Appointment).where(Appointment.provider_id == provider_id)
        if statuses:
            stmt = stmt.where(Appointment.status.in_(list(statuses)))
        if start is not None:
            stmt = stmt.where(Appointment.appointment_date >= start)
        if end is not None:
            stmt = stmt.where(Appointment.appointment_date < end)
        stmt = stmt.order_by(Appointment.appointment_date.desc())
        return list(self.session.exec(stmt).all())

    def appointments_between(
        self,
        provider_id: int,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> list[Appointment]:
        """Live (non-cancelled) appointments starting in [start, end), ascending."""
        stmt = (
            select(Appointment)
            .where(Appointment.provider_id == provider_id)
            .where(Appointment.status != "cancelled")
            .where(Appointment.appointment_date >= start)
            .where(Appointment.appointment_date < end)
        )
        if exclude_id is not None:
            stmt = stmt.where(Appointment.id != exclude_id)
        return list(self.session.exec(stmt.order_by(Appointment.appointment_date)).all())

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        return self.session.get(Appointment, appointment_id)

    def create_appointment(self, appointment: Appointment) -> Appointment:
        return self._save(appointment)

    def update_appointment(self, appointment: Appointment, values: dict) -> Appointment:
        return self._update(appointment, values)
