# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error taxonomy of the academic service.

Every error raised by a service or the authorization gate derives from
AcademicServiceError and knows its HTTP status and envelope code. The API
layer renders them with a single exception handler.

Example:
    >>> raise NotFoundError("School not found")
"""

from typing import Any, Optional

from academic_service.core.constants import ResponseCode, ResponseMessage


class ConfigurationError(Exception):
    """Raised when routes, policies or settings are wired incorrectly.

    Detected at declaration or boot time. Never rendered to a client; the
    application refuses to start instead.
    """

    pass


class AcademicServiceError(Exception):
    """Base exception for errors rendered as a response envelope.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status of the response.
        code: Envelope code of the response.
    """

    status_code: int = 500
    code: ResponseCode = ResponseCode.INTERNAL_SERVER_ERROR
    default_message: ResponseMessage = ResponseMessage.INTERNAL_SERVER_ERROR

    def __init__(self, message: Optional[str] = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error description. Defaults to the
                standard message of the error's response code.
        """
        self.message = message or self.default_message.value
        super().__init__(self.message)

    def response_body(self) -> dict[str, Any]:
        """Build the response envelope for this error."""
        return {"code": int(self.code), "message": self.message}


class UnauthorizedError(AcademicServiceError):
    """Raised when the caller is not authenticated."""

    status_code = 401
    code = ResponseCode.UNAUTHORIZED
    default_message = ResponseMessage.UNAUTHORIZED


class ForbiddenError(AcademicServiceError):
    """Raised when authorization is denied or a role assignment is disallowed."""

    status_code = 403
    code = ResponseCode.FORBIDDEN
    default_message = ResponseMessage.FORBIDDEN


class NotFoundError(AcademicServiceError):
    """Raised when an entity or role does not exist."""

    status_code = 404
    code = ResponseCode.NOT_FOUND
    default_message = ResponseMessage.NOT_FOUND


class ConflictError(AcademicServiceError):
    """Raised when cross-referenced ids or states do not match."""

    status_code = 409
    code = ResponseCode.CONFLICT
    default_message = ResponseMessage.CONFLICT


class BadRequestError(AcademicServiceError):
    """Raised for malformed input that passed schema validation."""

    status_code = 400
    code = ResponseCode.BAD_REQUEST
    default_message = ResponseMessage.BAD_REQUEST


class ValidationError(AcademicServiceError):
    """Raised with per-field validation details.

    Attributes:
        errors: List of {code, message, path} issues.
    """

    status_code = 400
    code = ResponseCode.VALIDATION_ERROR
    default_message = ResponseMessage.VALIDATION_ERROR

    def __init__(self, errors: list[dict[str, Any]], message: Optional[str] = None) -> None:
        super().__init__(message)
        self.errors = errors

    def response_body(self) -> dict[str, Any]:
        body = super().response_body()
        body["error"] = self.errors
        return body


class ServiceResponseError(AcademicServiceError):
    """Raised when a collaborator violates its response contract.

    The client only sees a generic internal error; service, operation and
    details are kept for the error log.

    Attributes:
        service: Name of the collaborator.
        operation: Operation that failed.
        description: What went wrong.
        details: Raw response or extra diagnostic data.
    """

    def __init__(
        self,
        service: str,
        operation: str,
        description: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__()
        self.service = service
        self.operation = operation
        self.description = description
        self.details = details

    def __str__(self) -> str:
        text = f"{self.service}.{self.operation} failed"
        if self.description:
            text = f"{text}: {self.description}"
        return text


class ServiceUnavailableError(AcademicServiceError):
    """Raised when a collaborator cannot be reached.

    Attributes:
        service: Name of the unreachable collaborator.
        original_error: The underlying transport error.
    """

    status_code = 503
    code = ResponseCode.SERVICE_UNAVAILABLE
    default_message = ResponseMessage.SERVICE_UNAVAILABLE

    def __init__(self, service: str, original_error: Optional[Exception] = None) -> None:
        super().__init__()
        self.service = service
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.service} unavailable: {self.original_error}"
        return f"{self.service} unavailable"
