# agenda/errors.py
"""Domain exceptions raised by the services and rendered by main.py."""

from typing import Optional


class AgendaError(Exception):
    status_code = 500
    code = "InternalError"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail()
        super().__init__(self.detail)

    @classmethod
    def default_detail(cls) -> str:
        return "Internal server error"

    def to_dict(self) -> dict:
        return {"detail": self.detail, "code": self.code}


class InternalError(AgendaError):
    pass


class ValidationError(AgendaError):
    status_code = 400
    code = "ValidationError"

    @classmethod
    def default_detail(cls) -> str:
        return "Invalid request data"


class NotFound(AgendaError):
    status_code = 404
    code = "NotFound"

    @classmethod
    def default_detail(cls) -> str:
        return "Not found"


class UserNotFound(NotFound):
    @classmethod
    def default_detail(cls) -> str:
        return "User not found"


class ProviderNotFound(NotFound):
    code = "ProviderNotFound"

    @classmethod
    def default_detail(cls) -> str:
        return "Provider not found"


class SlugNotFound(NotFound):
    code = "SlugNotFound"

    @classmethod
    def default_detail(cls) -> str:
        return "Provider not found"


class ServiceNotFound(NotFound):
    code = "ServiceNotFound"

    @classmethod
    def default_detail(cls) -> str:
        return "Service not found"


class AppointmentNotFound(NotFound):
    @classmethod
    def default_detail(cls) -> str:
        return "Appointment not found"


class Unauthorized(AgendaError):
    status_code = 401
    code = "Unauthorized"

    @classmethod
    def default_detail(cls) -> str:
        return "Unauthorized"


class Conflict(AgendaError):
    status_code = 409
    code = "Conflict"

    @classmethod
    def default_detail(cls) -> str:
        return "Conflict"


class SlotUnavailable(Conflict):
    code = "SlotUnavailable"

    def __init__(self, detail: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(detail)
        self.reason = reason

    @classmethod
    def default_detail(cls) -> str:
        return "The requested time slot is not available"

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.reason:
            data["reason"] = self.reason
        return data


class InvalidTransition(Conflict):
    code = "InvalidTransition"

    @classmethod
    def default_detail(cls) -> str:
        return "Invalid status transition"


class VerificationFailed(ValidationError):
    code = "VerificationFailed"

    def __init__(self, detail: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(detail)
        self.reason = reason

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.reason:
            data["reason"] = self.reason
        return data
