"""Response Builder Utilities
===========================

Standardized construction of ``ResponseEnvelope`` objects so every success
and failure reaching the presentation layer has the same shape.
"""

from typing import Any, Dict, Optional

from defiquery.exceptions import DefiQueryError
from defiquery.types import ErrorInfo, ResponseEnvelope, Visualization

__all__ = ["ResponseBuilder", "GENERIC_ERROR_MESSAGE"]

GENERIC_ERROR_MESSAGE = "An error occurred while processing your request."


class ResponseBuilder:
    """Builds success and failure envelopes."""

    def success_response(
        self,
        data: Any,
        visualization: Visualization,
        title: Optional[str] = None,
        message: Optional[str] = None,
        summary: Optional[Dict[str, float]] = None,
        highlight_field: Optional[str] = None,
    ) -> ResponseEnvelope:
        """Create a successful envelope.

        Args:
            data: Presentation-ready payload, shape-consistent with ``visualization``
            visualization: "table", "card" or "chart"
            title: Short heading
            message: Human-readable digest
            summary: Aggregated numeric metrics
            highlight_field: Which field the question focused on

        Returns:
            ResponseEnvelope with ``success=True``
        """
        return ResponseEnvelope(
            success=True,
            title=title,
            message=message,
            summary=summary,
            data=data,
            visualization=visualization,
            highlight_field=highlight_field,
        )

    def error_response(
        self,
        message: Optional[str] = None,
        error: Optional[ErrorInfo] = None,
    ) -> ResponseEnvelope:
        """Create a failed envelope; ``data`` is always absent."""
        return ResponseEnvelope(
            success=False,
            message=message or GENERIC_ERROR_MESSAGE,
            error=error,
        )

    def exception_response(self, exc: BaseException) -> ResponseEnvelope:
        """Convert any exception into a failed envelope.

        Domain errors keep their short message; anything else gets the generic
        fallback so internal details never reach the user.
        """
        if isinstance(exc, DefiQueryError):
            return self.error_response(
                message=exc.message,
                error=ErrorInfo(**exc.to_dict()),
            )

        return self.error_response(
            message=GENERIC_ERROR_MESSAGE,
            error=ErrorInfo(
                error_type=type(exc).__name__,
                error_code="internal_error",
                message=GENERIC_ERROR_MESSAGE,
            ),
        )
