from typing import Any


class ServiceError(Exception):
    """Base class for failures rendered as ``{"error", "details"}`` responses."""

    status_code = 500

    def __init__(self, message: str, details: Any = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(ServiceError):
    status_code = 500


class ExchangeError(ServiceError):
    status_code = 400


class OAuthStateError(ServiceError):
    status_code = 400


class AuthError(ServiceError):
    status_code = 401


class NotConnectedError(ServiceError):
    status_code = 401


class CallerIdError(ServiceError):
    status_code = 400


class ProviderError(ServiceError):
    """Non-2xx answer from Dialpad or another upstream relay."""

    status_code = 502

    def __init__(self, message: str, provider_status: int | None = None, body: str | None = None):
        super().__init__(message, details=body)
        self.provider_status = provider_status
        self.body = body


class CallNotFoundError(ServiceError):
    status_code = 404


class NoTranscriptError(ServiceError):
    status_code = 400


class SummaryError(ServiceError):
    status_code = 500


class ReportNotFoundError(ServiceError):
    status_code = 404
