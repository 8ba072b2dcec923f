"""Domain-specific exceptions shared by adapters, services and the API."""

from __future__ import annotations


class DomainError(Exception):
    """Base class for domain errors."""

    error: str = "domain_error"
    status_code: int = 400

    def __init__(self, message: str, *, error: str | None = None, status_code: int | None = None):
        super().__init__(message)
        if error:
            self.error = error
        if status_code:
            self.status_code = status_code


class ValidationError(DomainError):
    error = "validation_error"
    status_code = 400


class UnsupportedProviderError(ValidationError):
    error = "unsupported_provider"


class InvalidAssetUrlError(ValidationError):
    error = "invalid_url"


class HostNotAllowedError(ValidationError):
    error = "host_not_allowed"

    def __init__(self, host: str, *, component: str = "egress"):
        super().__init__(f"{component} disallows host '{host}'")
        self.host = host


class TooManyRedirectsError(ValidationError):
    error = "too_many_redirects"


class ProviderNotConfiguredError(DomainError):
    error = "provider_not_configured"
    status_code = 503


class VendorSubmissionError(DomainError):
    """Vendor rejected a submission; the message is the vendor's own."""

    error = "vendor_submission_failed"
    status_code = 502

    def __init__(self, message: str, *, provider: str, http_status: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.http_status = http_status


class VendorNetworkError(DomainError):
    error = "vendor_network_error"
    status_code = 502


class SubmissionTimeoutError(DomainError):
    error = "request_timed_out"
    status_code = 504

    def __init__(self, message: str = "request timed out"):
        super().__init__(message)


class VendorPollError(DomainError):
    """Non-transient status-check failure (e.g. 401/404 from the vendor)."""

    error = "vendor_poll_failed"
    status_code = 502

    def __init__(self, message: str, *, provider: str, http_status: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.http_status = http_status


class UpstreamFetchError(DomainError):
    error = "upstream_fetch_failed"
    status_code = 503


class StorageError(DomainError):
    error = "storage_error"
    status_code = 503


__all__ = [
    "DomainError",
    "ValidationError",
    "UnsupportedProviderError",
    "InvalidAssetUrlError",
    "HostNotAllowedError",
    "TooManyRedirectsError",
    "ProviderNotConfiguredError",
    "VendorSubmissionError",
    "VendorNetworkError",
    "SubmissionTimeoutError",
    "VendorPollError",
    "UpstreamFetchError",
    "StorageError",
]
