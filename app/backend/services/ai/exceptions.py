"""
Shared exceptions for AI service modules.
"""


class AIServiceError(Exception):
    """Raised when AI service operations fail."""

    pass


class ProviderError(AIServiceError):
    """Raised for inference failures that fail the request (network, API status, bad JSON)."""

    pass


class ProviderQuotaError(AIServiceError):
    """Raised when the provider reports quota exhaustion or rate limiting."""

    pass
