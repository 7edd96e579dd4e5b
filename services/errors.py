"""
Domain errors raised by the auth service.

Each carries the machine-readable code, HTTP status and client-safe
message the API layer renders; api.errors maps them to responses.
"""


class AuthError(Exception):
    code = "AUTH_ERROR"
    status = 400
    message = "Authentication error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidCredentials(AuthError):
    # same message for unknown email and wrong password
    code = "INVALID_CREDENTIALS"
    status = 401
    message = "Invalid credentials"


class UserNotActive(AuthError):
    code = "USER_NOT_ACTIVE"
    status = 401
    message = "User is not active"


class InvalidRefreshToken(AuthError):
    code = "INVALID_REFRESH_TOKEN"
    status = 401
    message = "Invalid or expired refresh token"


class EmailAlreadyExists(AuthError):
    code = "EMAIL_ALREADY_EXISTS"
    status = 409
    message = "Email already registered"


class InvalidVerifyCode(AuthError):
    code = "INVALID_VERIFY_CODE"
    status = 400
    message = "Invalid verification code"


class UserNotFound(AuthError):
    code = "USER_NOT_FOUND"
    status = 404
    message = "User not found"


class MailDeliveryError(AuthError):
    code = "MAIL_DELIVERY_FAILED"
    status = 502
    message = "Failed to deliver email"
