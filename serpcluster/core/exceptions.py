"""Custom exception classes for the application."""

from typing import Any


class SerpClusterError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Validation Errors
class ValidationError(SerpClusterError):
    """Data validation failed."""

    pass


# Clustering Errors
class ClusteringError(SerpClusterError):
    """Base class for clustering errors."""

    pass


class InvalidThresholdError(ClusteringError):
    """Overlap threshold outside the accepted 1-10 range."""

    def __init__(self, threshold: object) -> None:
        self.threshold = threshold
        super().__init__(
            f"Threshold must be an integer between 1 and 10, got {threshold!r}",
            {"threshold": threshold},
        )


# External API Errors
class ExternalAPIError(SerpClusterError):
    """Error calling external API."""

    def __init__(self, api_name: str, message: str) -> None:
        self.api_name = api_name
        super().__init__(f"{api_name} API error: {message}")


class APIKeyMissingError(ExternalAPIError):
    """API key not configured."""

    def __init__(self, api_name: str) -> None:
        super().__init__(api_name, "API key not configured")


class SimilarityProviderError(ExternalAPIError):
    """Similarity provider could not score a pair of texts."""

    def __init__(self, provider_name: str, message: str) -> None:
        super().__init__(provider_name, message)
