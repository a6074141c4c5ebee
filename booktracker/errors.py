"""
Error taxonomy for the booktracker API.

HTTP-facing errors subclass ``HTTPException`` so route code can simply
``raise`` them; the application renders every one of them as
``{"message": ...}``. Token errors are raised by ``auth.TokenService`` and
know nothing about HTTP.
"""

from fastapi import HTTPException, status


class ApiError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error."

    def __init__(self, message: str | None = None):
        super().__init__(status_code=self.status_code, detail=message or self.default_message)


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."


class Conflict(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists."


class InvalidCredentials(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password."


class Unauthenticated(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication token required."


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invalid or expired token."


class NotFoundOrForbidden(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Book not found or unauthorized."


class InternalError(ApiError):
    pass


class TokenError(Exception):
    pass


class InvalidSignature(TokenError):
    pass


class TokenExpired(TokenError):
    pass
