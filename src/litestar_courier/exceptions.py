"""Exceptions and exception handling for litestar-courier."""

from __future__ import annotations

from litestar import Request, Response


class CourierError(Exception):
    """Base class for all courier errors."""


class ValidationError(CourierError):
    """Input is malformed or out of range."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class AuthorizationError(CourierError):
    """Caller lacks the required role or ownership."""

    def __init__(self, message: str = "This action is unauthorized.") -> None:
        super().__init__(message)


class AuthenticationRequiredError(AuthorizationError):
    """No actor could be resolved for the request."""

    def __init__(self) -> None:
        super().__init__("Authentication required.")


class NotFoundError(CourierError):
    """Referenced entity does not exist."""

    field: str | None = None


class ShipmentNotFoundError(NotFoundError):
    """Shipment with given ID was not found."""

    def __init__(self, shipment_id: int) -> None:
        self.shipment_id = shipment_id
        super().__init__(f"Shipment {shipment_id!r} not found")


class TrackingNotFoundError(NotFoundError):
    """No shipment carries the given tracking ID."""

    field = "tracking_id"

    def __init__(self, tracking_id: str) -> None:
        self.tracking_id = tracking_id
        super().__init__(
            "No shipment found with this tracking ID. "
            "Please check your tracking ID and try again."
        )


class NotificationNotFoundError(NotFoundError):
    def __init__(self, notification_id: int) -> None:
        self.notification_id = notification_id
        super().__init__(f"Notification {notification_id!r} not found")


class LocationNotFoundError(NotFoundError):
    def __init__(self, location_id: int) -> None:
        self.location_id = location_id
        super().__init__(f"Location {location_id!r} not found")


class PaymentRecordNotFoundError(NotFoundError):
    def __init__(self, record_id: int | str) -> None:
        self.record_id = record_id
        super().__init__(f"Payment record {record_id!r} not found")


class PaymentStateError(CourierError):
    """Payment operation conflicts with the current payment state."""


class ConfigurationError(CourierError):
    """A required component is not configured."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


def _error_response(
    request: Request,
    detail: str,
    code: str,
    status_code: int,
    field: str | None = None,
) -> Response:
    content = {"detail": detail, "code": code}
    if field is not None:
        content["field"] = field
    return Response(content=content, status_code=status_code)


def handle_validation_error(
    request: Request, exc: ValidationError
) -> Response:
    """Map ValidationError to 422."""
    return _error_response(
        request, str(exc), "validation_error", 422, field=exc.field
    )


def handle_authentication_required(
    request: Request, exc: AuthenticationRequiredError
) -> Response:
    """Map AuthenticationRequiredError to 401."""
    return _error_response(request, str(exc), "authentication_required", 401)


def handle_authorization_error(
    request: Request, exc: AuthorizationError
) -> Response:
    """Map AuthorizationError to 403."""
    return _error_response(request, str(exc), "forbidden", 403)


def handle_not_found(request: Request, exc: NotFoundError) -> Response:
    """Map NotFoundError to 404."""
    return _error_response(request, str(exc), "not_found", 404, field=exc.field)


def handle_payment_state_error(
    request: Request, exc: PaymentStateError
) -> Response:
    """Map PaymentStateError to 409."""
    return _error_response(request, str(exc), "payment_state", 409)


def handle_configuration_error(
    request: Request, exc: ConfigurationError
) -> Response:
    """Map ConfigurationError to 500."""
    return _error_response(request, str(exc), "configuration_error", 500)


def handle_courier_error(request: Request, exc: CourierError) -> Response:
    """Map generic CourierError to 400."""
    return _error_response(request, str(exc), "courier_error", 400)


EXCEPTION_HANDLERS = {
    ValidationError: handle_validation_error,
    AuthenticationRequiredError: handle_authentication_required,
    AuthorizationError: handle_authorization_error,
    NotFoundError: handle_not_found,
    PaymentStateError: handle_payment_state_error,
    ConfigurationError: handle_configuration_error,
    CourierError: handle_courier_error,
}
