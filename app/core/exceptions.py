"""Application exceptions raised by the service layer."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class AuthenticationError(AppException):
    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message, status_code=401)


class ValidationError(AppException):
    """Bad input shape or content."""

    def __init__(self, message: str = "Validation error"):
        super().__init__(message, status_code=400)


class PermissionDeniedError(AppException):
    """Caller's role in the group is insufficient."""

    def __init__(self, message: str = "Insufficient role for this action"):
        super().__init__(message, status_code=403)


class NotFoundError(AppException):
    """Referenced entity does not exist."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class InvalidStateError(AppException):
    """Entity is not in a state that allows the operation."""

    def __init__(self, message: str = "Invalid state"):
        super().__init__(message, status_code=409)


class EmailMismatchError(AppException):
    def __init__(self, message: str = "This invitation was issued for a different email address"):
        super().__init__(message, status_code=403)


class ExhaustedError(AppException):
    def __init__(self, message: str = "This invitation has reached its maximum number of uses"):
        super().__init__(message, status_code=410)


class GeocodingError(AppException, LookupError):
    """Address could not be resolved to coordinates."""

    def __init__(self, message: str = "Address lookup failed"):
        super().__init__(message, status_code=422)


class StorageError(AppException):
    """Backend call failed."""

    def __init__(self, message: str = "Storage backend error", code: str = None):
        self.code = code
        super().__init__(message, status_code=502)


class AlreadyMemberError(StorageError):
    def __init__(self, message: str = "User is already a member of this group"):
        super().__init__(message, code="23505")
        self.status_code = 409
