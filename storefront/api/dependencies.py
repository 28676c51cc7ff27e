# storefront/api/dependencies.py
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError

from storefront.domain.errors import ValidationError
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService


def get_lock_service() -> LockService:
    return LockService()


def get_notification_service() -> NotificationService:
    return NotificationService()


def validation_http_error(e: ValidationError) -> HTTPException:
    """Bledy walidacji/stanu jako komunikaty per pole (product_id, quantity, cart, stock)."""
    return HTTPException(status_code=422, detail={"errors": e.errors})


def request_validation_errors(exc: RequestValidationError) -> dict:
    """Bledy schematu (brak pola, zly typ) w tym samym ksztalcie: pierwszy komunikat per pole."""
    errors = {}
    for err in exc.errors():
        loc = [str(part) for part in err["loc"] if part not in ("body", "query", "path")]
        field = loc[-1] if loc else "body"
        errors.setdefault(field, err["msg"])
    return {"errors": errors}
