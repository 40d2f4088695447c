"""Error taxonomy shared by the store, the orchestrator and the auth gateway.

Every error carries an HTTP status and a stable machine-readable ``kind``.
Extra keyword arguments are echoed in the JSON body next to the message.
"""
from __future__ import annotations

from typing import Any, Dict

from fastapi import status


class ServiceError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "internal"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "kind": self.kind, **self.extra}


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "validation_error"
    default_message = "Invalid request"


class Conflict(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "conflict"
    default_message = "Resource already exists"


class SetupAlreadyDone(Conflict):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "setup_complete"
    default_message = "Admin already exists. Setup is not allowed."


class AuthError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "unauthenticated"
    default_message = "Access denied. No token provided."


class Unauthenticated(AuthError):
    pass


class TokenExpired(AuthError):
    kind = "token_expired"
    default_message = "Token expired. Please login again."


class InvalidToken(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "invalid_token"
    default_message = "Invalid token."


class UserNotFound(AuthError):
    kind = "user_not_found"
    default_message = "Invalid token. User not found."


class InvalidCredentials(AuthError):
    kind = "invalid_credentials"
    default_message = "Invalid username or password"


class NotVerified(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "not_verified"
    default_message = "Please verify your account first"


class Forbidden(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "forbidden"
    default_message = "Access denied. Admin privileges required."


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"
    default_message = "User not found"


class DomainError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "domain_error"
    default_message = "Request cannot be completed"


class AlreadyVerified(DomainError):
    kind = "already_verified"
    default_message = "Account already verified"


class NoChallenge(DomainError):
    kind = "no_challenge"
    default_message = "No verification code pending. Please request a new one."


class OTPInvalid(DomainError):
    kind = "otp_invalid"
    default_message = "Invalid OTP"


class OTPExpired(DomainError):
    kind = "otp_expired"
    default_message = "OTP expired. Please request a new one."


class TooManyRequests(ServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    kind = "rate_limited"
    default_message = "Please wait before requesting new code."


class Internal(ServiceError):
    pass
