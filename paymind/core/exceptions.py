"""Custom exceptions for the PayMind application."""


class PayMindException(Exception):
    """Base exception for PayMind application."""

    pass


class ValidationError(PayMindException):
    """Raised when a request payload or precondition is invalid."""

    pass


class NotFoundError(PayMindException):
    """Raised when a resource is not found."""

    pass


class DatabaseError(PayMindException):
    """Raised when a database operation fails."""

    pass


class ServiceError(PayMindException):
    """Raised when a service operation fails."""

    pass


class GenerationError(ServiceError):
    """Raised when a text-generation provider call fails."""

    def __init__(self, message: str, provider: str | None = None, model: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.model = model


class EmptyContentError(GenerationError):
    """Raised when a provider call succeeds but returns no usable text."""

    pass


class ConfigurationError(PayMindException):
    """Raised when configuration is invalid."""

    pass


class MissingAPIKeyError(ConfigurationError):
    """Raised when no API key is available for a provider call."""

    pass
