"""Core module - chat proxy building blocks and the application error taxonomy."""

from .errors import (
    AppError,
    RateLimitedError,
    InvalidInputError,
    MessageTooLongError,
    UnauthenticatedError,
    NotFoundError,
    UpstreamUnavailableError,
    UpstreamMalformedError,
    ConfigurationError,
    PersistenceError,
)

__all__ = [
    'AppError', 'RateLimitedError', 'InvalidInputError', 'MessageTooLongError',
    'UnauthenticatedError', 'NotFoundError', 'UpstreamUnavailableError',
    'UpstreamMalformedError', 'ConfigurationError', 'PersistenceError',
]
