"""
Error Monitoring - Extraction Failure Sink

Classification and assembly failures are handed to an ErrorReporter as
(error, context) pairs. Reporting is fire-and-forget: public reporter
methods never raise and never change what the engine returns.

Messages and context are scrubbed before they are stored or logged:
UK postcodes, listing identities and credential-like context keys are
redacted.
"""

from __future__ import annotations

import logging
import re
import uuid
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Final, Optional


logger = logging.getLogger(__name__)


DEFAULT_HISTORY_SIZE: Final[int] = 50

_POSTCODE_REGEX: Final = re.compile(r"\b[A-Z]{1,2}[0-9][A-Z0-9]? ?[0-9][A-Z]{2}\b")
_LISTING_ID_REGEX: Final = re.compile(
    r"\b(rightmove|zoopla|onthemarket|primelocation)-[A-Za-z0-9]+"
)
_SENSITIVE_KEY_REGEX: Final = re.compile(
    r"password|pass|secret|token|key|auth|credit|card|cvv|ssn|social|dob|birth",
    re.IGNORECASE,
)

_LOG_LEVELS: Final[dict[str, int]] = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
}


# =============================================================================
# Scrubbing
# =============================================================================


def scrub_text(text: str) -> str:
    """Redact postcodes and listing identities from free text."""
    text = _POSTCODE_REGEX.sub("[POSTCODE REDACTED]", text)
    return _LISTING_ID_REGEX.sub(r"\1-[ID REDACTED]", text)


def scrub_context(value: Any) -> Any:
    """
    Return a copy of a context structure with sensitive keys redacted.

    Strings are scrubbed with scrub_text; mappings and sequences are
    walked recursively. The input is never modified.
    """
    if isinstance(value, dict):
        scrubbed = {}
        for key, item in value.items():
            if isinstance(key, str) and _SENSITIVE_KEY_REGEX.search(key):
                scrubbed[key] = "[REDACTED]"
            else:
                scrubbed[key] = scrub_context(item)
        return scrubbed
    if isinstance(value, (list, tuple)):
        return [scrub_context(item) for item in value]
    if isinstance(value, str):
        return scrub_text(value)
    return value


# =============================================================================
# Error Events
# =============================================================================


@dataclass(frozen=True)
class ErrorEvent:
    """One scrubbed report held in the local history."""

    error_id: str
    message: str
    level: str
    category: Optional[str]
    context: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.error_id,
            "message": self.message,
            "level": self.level,
            "category": self.category,
            "context": self.context,
            "timestamp": self.occurred_at.isoformat(),
        }


# =============================================================================
# Reporter Interface
# =============================================================================


class ErrorReporter(ABC):
    """
    Abstract error-reporting sink.

    Subclasses implement _emit(); the public methods wrap it so a broken
    sink can never propagate into the caller.
    """

    def report_error(
        self,
        error: BaseException | str,
        context: Optional[dict[str, Any]] = None,
        level: str = "error",
    ) -> Optional[str]:
        """
        Report an error with context.

        Returns:
            The generated error id, or None if the sink itself failed
        """
        context = dict(context or {})
        message = str(error) if isinstance(error, BaseException) else error
        event = ErrorEvent(
            error_id=str(uuid.uuid4()),
            message=scrub_text(message or type(error).__name__),
            level=level,
            category=context.get("category"),
            context=scrub_context(context),
        )
        try:
            self._emit(event, error if isinstance(error, BaseException) else None)
        except Exception:
            logger.exception("Error reporter failed to record %s", event.error_id)
            return None
        return event.error_id

    def report_extraction_error(
        self,
        error: BaseException | str,
        context: Optional[dict[str, Any]] = None,
        level: str = "error",
    ) -> Optional[str]:
        """Report an error categorised as an extraction failure."""
        context = dict(context or {})
        context["category"] = "extraction_error"
        context.setdefault("extraction_method", "mcp")
        return self.report_error(error, context, level)

    def capture_message(
        self,
        message: str,
        context: Optional[dict[str, Any]] = None,
        level: str = "info",
    ) -> Optional[str]:
        """Record an informational event."""
        return self.report_error(message, context, level)

    @abstractmethod
    def _emit(self, event: ErrorEvent, exc: Optional[BaseException]) -> None:
        """Deliver a scrubbed event to the underlying sink."""
        ...


class LoggingErrorReporter(ErrorReporter):
    """
    Reporter backed by the logging module with a bounded local history.

    History is newest-first and capped at history_size events.
    """

    def __init__(
        self,
        history_size: int = DEFAULT_HISTORY_SIZE,
        logger_name: str = "portal_core.errors",
    ) -> None:
        if history_size < 0:
            raise ValueError("history_size cannot be negative")
        self._history: deque[ErrorEvent] = deque(maxlen=history_size)
        self._logger = logging.getLogger(logger_name)

    def _emit(self, event: ErrorEvent, exc: Optional[BaseException]) -> None:
        self._history.appendleft(event)
        self._logger.log(
            _LOG_LEVELS.get(event.level, logging.ERROR),
            "[%s] %s",
            event.error_id,
            event.message,
            extra={"error_context": event.context, "error_category": event.category},
        )

    def get_error_history(self, limit: int = 10) -> list[ErrorEvent]:
        """Most recent events first."""
        return list(self._history)[:max(limit, 0)]

    def clear_error_history(self) -> None:
        self._history.clear()
