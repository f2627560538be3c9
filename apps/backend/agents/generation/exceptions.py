"""
Exception hierarchy for the slide image pipeline.

Provider errors are raised inside the generation client and converted to a
``GenerationFailure`` at its boundary; nothing here escapes to the caller
of the scheduler.
"""

from typing import Optional, Dict, Any

from agents.domain.models import FailureReason


class GenerationError(Exception):
    """Base exception for all generation errors"""

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.cause = cause
        self.context = context or {}

    def __str__(self):
        parts = [super().__str__()]
        if self.cause:
            parts.append(f" (caused by: {type(self.cause).__name__}: {str(self.cause)})")
        if self.context:
            parts.append(f" Context: {self.context}")
        return "".join(parts)


# === Provider exceptions ===

class ProviderError(GenerationError):
    """Image provider call failed"""
    reason = FailureReason.UNAVAILABLE

    def __init__(self, message: str, status: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status = status
        if status is not None:
            self.context.setdefault('status', status)


class ProviderAuthenticationError(ProviderError):
    """Missing or rejected credentials (HTTP 401/403)"""
    reason = FailureReason.AUTHENTICATION


class ProviderValidationError(ProviderError):
    """Provider rejected the request parameters (HTTP 400/404/422)"""
    reason = FailureReason.VALIDATION


class ProviderRateLimitError(ProviderError):
    """Provider rate limit exceeded (HTTP 429)"""
    reason = FailureReason.RATE_LIMITED


class ProviderUnavailableError(ProviderError):
    """Timeout, network failure or provider-side error"""
    reason = FailureReason.UNAVAILABLE


class ProviderResponseError(ProviderError):
    """Provider answered but the body had no usable image"""
    reason = FailureReason.MALFORMED_RESPONSE


def error_for_status(status: int, message: str) -> ProviderError:
    """Map a non-2xx HTTP status onto the provider error taxonomy."""
    if status in (401, 403):
        return ProviderAuthenticationError(message, status=status)
    if status in (400, 404, 422):
        return ProviderValidationError(message, status=status)
    if status == 429:
        return ProviderRateLimitError(message, status=status)
    if status == 408 or status >= 500:
        return ProviderUnavailableError(message, status=status)
    return ProviderResponseError(message, status=status)


# === Pipeline exceptions ===

class SlideImageError(GenerationError):
    """Slide cannot be turned into a generation request at all"""

    def __init__(self, slide_id: Any, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.slide_id = slide_id
        self.context.update({'slide_id': slide_id})


# === Configuration exceptions ===

class ConfigurationError(GenerationError):
    """Configuration error"""
    pass


class InvalidConfigError(ConfigurationError):
    """Invalid configuration value"""
    pass


class MissingConfigError(ConfigurationError):
    """Required configuration missing"""
    pass


# === Recovery helpers ===

def is_retryable(reason: FailureReason) -> bool:
    """Only rate limiting earns a retry; auth and validation problems will not fix themselves."""
    return reason == FailureReason.RATE_LIMITED


def get_retry_delay(reason: FailureReason, attempt: int, base_delay: float = 10.0) -> float:
    """Get retry delay for a failure"""
    if reason == FailureReason.RATE_LIMITED:
        return min(60.0, base_delay * (2 ** attempt))
    return 0.0
