from __future__ import annotations


class AuthFlowError(Exception):
    """
    Base class for registration / verification / login failures.
    Routes turn these into HTTPException; the message is safe to show to clients.
    """

    status_code = 400
    code = "AUTH_ERROR"
    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0])


class DuplicateUsername(AuthFlowError):
    code = "DUPLICATE_USERNAME"
    default_message = "Username is already taken."


class DuplicateEmail(AuthFlowError):
    code = "DUPLICATE_EMAIL"
    default_message = "Email is already registered."


class EmailDeliveryFailed(AuthFlowError):
    status_code = 500
    code = "EMAIL_DELIVERY_FAILED"
    default_message = "Could not send the verification email. Please try again."


class UnknownAccount(AuthFlowError):
    code = "UNKNOWN_ACCOUNT"
    default_message = "Account not found."


class InvalidOrExpiredCode(AuthFlowError):
    code = "INVALID_OR_EXPIRED_CODE"
    default_message = "Invalid or expired code."


class AlreadyVerified(AuthFlowError):
    code = "ALREADY_VERIFIED"
    default_message = "Email is already verified. Please log in."


class InvalidCredentials(AuthFlowError):
    status_code = 401
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid username or password."


class EmailNotVerified(AuthFlowError):
    status_code = 401
    code = "EMAIL_NOT_VERIFIED"
    default_message = "Please verify your email before logging in."
