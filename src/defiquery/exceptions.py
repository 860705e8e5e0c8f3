"""
Custom exceptions for the defiquery pipeline.

This module defines a hierarchy of exceptions that separates upstream
transport failures from query interpretation failures. Every exception
carries a short, user-facing message; nothing in here ever embeds a raw
upstream payload or a traceback.
"""

from typing import Optional, Any, Dict


class DefiQueryError(Exception):
    """
    Base exception for all defiquery errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        context: Additional context information
    """

    def __init__(self,
                 message: str,
                 error_code: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# Transport Related Errors

class TransportError(DefiQueryError):
    """Base class for failures talking to the upstream market-data API."""

    def __init__(self,
                 message: str,
                 status_code: Optional[int] = None,
                 path: Optional[str] = None,
                 cause: Optional[Exception] = None):
        context: Dict[str, Any] = {}
        if status_code is not None:
            context["status_code"] = status_code
        if path:
            context["path"] = path
        super().__init__(message, context=context, cause=cause)
        self.status_code = status_code
        self.path = path


class RateLimitedError(TransportError):
    """Raised when the upstream API answers HTTP 429."""

    def __init__(self, path: Optional[str] = None, cause: Optional[Exception] = None):
        super().__init__(
            "Rate limit exceeded. Please wait a moment and try again.",
            status_code=429,
            path=path,
            cause=cause,
        )


class NotFoundError(TransportError):
    """Raised when the upstream API answers HTTP 404."""

    def __init__(self, path: Optional[str] = None, cause: Optional[Exception] = None):
        super().__init__(
            "Resource not found. Please verify the pool or token address.",
            status_code=404,
            path=path,
            cause=cause,
        )


class BadRequestError(TransportError):
    """Raised when the upstream API answers HTTP 400."""

    def __init__(self,
                 detail: Optional[str] = None,
                 path: Optional[str] = None,
                 cause: Optional[Exception] = None):
        super().__init__(
            f"Invalid request: {detail or 'Check your parameters.'}",
            status_code=400,
            path=path,
            cause=cause,
        )
        self.detail = detail


class UpstreamError(TransportError):
    """Raised for any other non-2xx upstream answer."""

    def __init__(self,
                 status_code: int,
                 detail: Optional[str] = None,
                 path: Optional[str] = None,
                 cause: Optional[Exception] = None):
        super().__init__(
            f"API Error ({status_code}): {detail or 'Unknown error'}",
            status_code=status_code,
            path=path,
            cause=cause,
        )
        self.detail = detail


class NetworkError(TransportError):
    """Raised when no usable response was received (connection, timeout, bad body)."""

    def __init__(self, path: Optional[str] = None, cause: Optional[Exception] = None):
        super().__init__(
            "Network error. Please check your connection.",
            path=path,
            cause=cause,
        )


# Query Related Errors

class QueryError(DefiQueryError):
    """Base class for errors interpreting a question."""
    pass


class UnrecognizedQueryError(QueryError):
    """Raised when a question maps to no supported operation."""

    def __init__(self, kind: Optional[str] = None):
        super().__init__(
            "I couldn't understand that query. Try asking about top pools, "
            "trending pools, specific pools, or token prices.",
            context={"kind": kind} if kind else {},
        )


class MissingParameterError(QueryError):
    """Raised when an operation needs a value the question did not resolve."""

    def __init__(self, parameter: str, message: str, original_text: Optional[str] = None):
        context: Dict[str, Any] = {"parameter": parameter}
        if original_text is not None:
            context["original_text"] = original_text
        super().__init__(message, context=context)
        self.parameter = parameter
        self.original_text = original_text

    @classmethod
    def unrecognized_token(cls, token: Optional[str]) -> "MissingParameterError":
        """Build the error raised when a token symbol has no configured address."""
        label = (token or "").upper() or "UNKNOWN"
        return cls(
            parameter="token_address",
            message=f"Token {label} not recognized. Provide its contract address.",
            original_text=token,
        )


class InvalidQuestionError(QueryError):
    """Raised when the incoming question is empty or too long."""
    pass
