# bistro/domain/errors.py
"""
Wyjatki domenowe. Kazdy niesie status HTTP, handlery w bistro.api.errors
zamieniaja je na odpowiedz {"success": false, "message": ...}.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(ServiceError):
    status_code = 400


class UnauthenticatedError(ServiceError):
    status_code = 401


class AccessDeniedError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class PaymentDeclinedError(ServiceError):
    status_code = 400


class GatewayError(ServiceError):
    status_code = 500

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code
