"""Domain errors mapped to HTTP responses by the app exception handler."""

from __future__ import annotations


class GarageHubError(Exception):
    """Base class for expected, client-facing failures."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailedError(GarageHubError):
    status_code = 400


class AuthenticationError(GarageHubError):
    status_code = 401


class InsufficientFundsError(GarageHubError):
    status_code = 402

    def __init__(self, message: str = "Insufficient wallet balance"):
        super().__init__(message)


class PermissionDeniedError(GarageHubError):
    status_code = 403

    def __init__(self, message: str = "Not allowed"):
        super().__init__(message)


class NotFoundError(GarageHubError):
    status_code = 404

    def __init__(self, resource: str, resource_id: object = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} {resource_id} not found"
        super().__init__(message)
        self.resource = resource


class ConflictError(GarageHubError):
    status_code = 409


class InvalidStatusTransitionError(ConflictError):
    """Raised when a workflow status change is not in the transition table."""

    def __init__(self, current_status: str, new_status: str, entity: str = "record"):
        super().__init__(
            f"Cannot move {entity} from '{current_status}' to '{new_status}'"
        )
        self.current_status = current_status
        self.new_status = new_status


class QRNotFoundError(GarageHubError):
    status_code = 404

    def __init__(self):
        super().__init__("QR code not recognised")


class QRExpiredError(GarageHubError):
    status_code = 410

    def __init__(self):
        super().__init__("QR code has expired")


class QRAlreadyScannedError(ConflictError):
    def __init__(self):
        super().__init__("QR code was already scanned")


class RateLimitedError(GarageHubError):
    status_code = 429
