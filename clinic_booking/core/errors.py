"""
Scheduling error taxonomy, HTTP translation, and error aggregation.
"""
import hashlib
import time
from collections import defaultdict
from enum import Enum
from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from clinic_booking.core.config import settings

logger = structlog.get_logger(__name__)


# ---------- Domain errors ----------

class SchedulingError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    code = "scheduling_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "error": self.code}
        if self.details:
            body.update(self.details)
        return body


class NotFoundError(SchedulingError):
    """Unknown id, unknown slug, or a disabled public booking page."""

    status_code = 404
    code = "not_found"


class ConflictError(SchedulingError):
    """Candidate interval overlaps an existing non-cancelled appointment."""

    status_code = 409
    code = "conflict"


class InvalidStateError(SchedulingError):
    """Transition attempted on a request that is no longer pending."""

    status_code = 400
    code = "invalid_state"


class ValidationError(SchedulingError):
    status_code = 422
    code = "validation_error"


# ---------- Aggregation ----------

class ErrorSeverity(Enum):
    """Error severity levels for log throttling."""
    LOW = "low"           # not found, conflicts, invalid transitions
    MEDIUM = "medium"     # unexpected but recoverable
    HIGH = "high"         # store failures
    CRITICAL = "critical"


class ErrorPattern:
    """Track error patterns to reduce duplicate logging."""

    def __init__(self, error_type: str, message: str, context: Dict[str, Any]):
        self.error_type = error_type
        self.message = message[:100]
        self.context = {k: v for k, v in context.items() if k in ["endpoint", "owner_id", "method"]}
        self.fingerprint = self._generate_fingerprint()
        self.first_seen = time.time()
        self.last_seen = self.first_seen
        self.count = 1

    def _generate_fingerprint(self) -> str:
        content = f"{self.error_type}:{self.message}:{self.context.get('endpoint', '')}"
        return hashlib.md5(content.encode(), usedforsecurity=False).hexdigest()[:8]

    def update(self):
        self.last_seen = time.time()
        self.count += 1


class ErrorAggregator:
    """Aggregate and deduplicate errors so repeated failures log sparsely."""

    def __init__(self, log_threshold: int = 10, time_window: int = 300):
        self.log_threshold = log_threshold  # Log every Nth occurrence
        self.time_window = time_window
        self.patterns: Dict[str, ErrorPattern] = {}

    def _determine_severity(self, error: Exception) -> ErrorSeverity:
        if isinstance(error, SchedulingError):
            return ErrorSeverity.LOW
        if isinstance(error, SQLAlchemyError):
            return ErrorSeverity.HIGH
        if isinstance(error, (TimeoutError, ConnectionError)):
            return ErrorSeverity.MEDIUM
        return ErrorSeverity.MEDIUM

    def should_log(self, pattern: ErrorPattern, severity: ErrorSeverity) -> bool:
        if severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL):
            return True
        if pattern.count == 1:
            return True
        if severity == ErrorSeverity.MEDIUM and pattern.count % self.log_threshold == 0:
            return True
        if severity == ErrorSeverity.LOW and pattern.count % (self.log_threshold * 5) == 0:
            return True
        return False

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None,
                  severity: Optional[ErrorSeverity] = None) -> str:
        """Record an error occurrence; returns its fingerprint."""
        context = context or {}
        if severity is None:
            severity = self._determine_severity(error)

        error_type = type(error).__name__
        message = str(error)

        pattern = ErrorPattern(error_type, message, context)
        fingerprint = pattern.fingerprint

        if fingerprint in self.patterns:
            self.patterns[fingerprint].update()
            pattern = self.patterns[fingerprint]
        else:
            self.patterns[fingerprint] = pattern

        if self.should_log(pattern, severity):
            log = logger.warning if severity == ErrorSeverity.LOW else logger.error
            log(
                "aggregated_error",
                error_hash=fingerprint,
                error_type=error_type,
                message=message[:200],
                count=pattern.count,
                severity=severity.value,
                **context,
            )

        return fingerprint

    def get_error_summary(self) -> Dict[str, Any]:
        now = time.time()
        recent = {
            fp: p for fp, p in self.patterns.items()
            if now - p.last_seen < self.time_window
        }

        by_type: Dict[str, int] = defaultdict(int)
        for p in recent.values():
            by_type[p.error_type] += p.count

        top = sorted(recent.values(), key=lambda p: p.count, reverse=True)[:5]
        return {
            "total_unique_errors": len(recent),
            "total_error_count": sum(p.count for p in recent.values()),
            "by_type": dict(by_type),
            "top_errors": [
                {"fingerprint": p.fingerprint, "type": p.error_type, "message": p.message, "count": p.count}
                for p in top
            ],
        }

    def cleanup_old_patterns(self):
        cutoff = time.time() - (self.time_window * 10)
        old = [fp for fp, p in self.patterns.items() if p.last_seen < cutoff]
        for fp in old:
            del self.patterns[fp]
        if old:
            logger.info("error_cleanup", removed_patterns=len(old))


# Global error aggregator instance
error_aggregator = ErrorAggregator(log_threshold=settings.ERROR_AGGREGATION_THRESHOLD)


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None,
              severity: Optional[ErrorSeverity] = None) -> str:
    """Convenience function to log errors through the global aggregator."""
    return error_aggregator.log_error(error, context, severity)


# ---------- HTTP translation ----------

async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    log_error(exc, {"endpoint": request.url.path, "method": request.method})
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log_error(exc, {"endpoint": request.url.path, "method": request.method}, ErrorSeverity.HIGH)
    return JSONResponse(
        {"detail": "Storage temporarily unavailable, please retry", "error": "store_error"},
        status_code=503,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SchedulingError, scheduling_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
