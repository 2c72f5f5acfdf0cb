"""
structlog configuration for the booking service.

Every line carries the request's correlation id plus whatever scheduling
context the request bound (owner, endpoint). Patient contact details are
masked before rendering: booking requests arrive from the public internet and
log sinks are not a patient record.
"""
import logging
import time
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog
from fastapi import Request

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
scheduling_context_var: ContextVar[Dict[str, Any]] = ContextVar("scheduling_context", default={})

CONTACT_FIELDS = frozenset({"email", "phone", "first_name", "last_name", "date_of_birth"})
CORRELATION_HEADER = "X-Correlation-ID"


def mask_contact(value: Any) -> str:
    """'sam@example.com' -> 's***@example.com', '+15875550123' -> '***0123'"""
    text = str(value)
    if "@" in text:
        local, _, domain = text.partition("@")
        return f"{local[:1]}***@{domain}"
    return f"***{text[-4:]}" if len(text) > 4 else "***"


class ContactRedactor:
    def __call__(self, logger, method_name, event_dict):
        for key in CONTACT_FIELDS.intersection(event_dict):
            if event_dict[key] is not None:
                event_dict[key] = mask_contact(event_dict[key])
        return event_dict


class TruncatingProcessor:
    """Cap free-text fields (messages, error strings) at max_length."""

    def __init__(self, max_length: int = 200):
        self.max_length = max_length

    def __call__(self, logger, method_name, event_dict):
        for key in ("message", "error", "detail", "reason"):
            value = event_dict.get(key)
            if isinstance(value, str) and len(value) > self.max_length:
                event_dict[key] = value[:self.max_length] + "..."
        return event_dict


class CorrelationProcessor:
    """Stamp the correlation id and bound scheduling context onto each event."""

    def __call__(self, logger, method_name, event_dict):
        cid = correlation_id_var.get()
        if cid:
            event_dict["correlation_id"] = cid
        for key, value in scheduling_context_var.get().items():
            event_dict.setdefault(key, value)
        return event_dict


def setup_logging(debug: bool = False, max_log_length: int = 200, level: str = "INFO"):
    """Configure structlog once at startup: console output in development, JSON elsewhere."""
    log_level = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        CorrelationProcessor(),
        ContactRedactor(),
        TruncatingProcessor(max_length=max_log_length),
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=log_level, format="%(message)s")
    logging.getLogger().setLevel(log_level)
    # SQL echo stays off unless explicitly debugging
    logging.getLogger("sqlalchemy.engine").setLevel(logging.DEBUG if debug else logging.WARNING)


def get_logger(name: str = __name__):
    return structlog.get_logger(name)


def bind_scheduling_context(owner_id: Optional[str] = None, **fields: Any) -> None:
    """Merge fields into the current request's log context."""
    ctx = dict(scheduling_context_var.get())
    if owner_id:
        ctx["owner_id"] = owner_id
    ctx.update({k: v for k, v in fields.items() if v is not None})
    scheduling_context_var.set(ctx)


def clear_context() -> None:
    correlation_id_var.set("")
    scheduling_context_var.set({})


class LoggingMiddleware:
    """
    Per-request correlation and timing. Reuses an inbound X-Correlation-ID when
    the caller sends one, echoes it on the response, and logs only slow or
    failed requests unless request/response logging is switched on.
    """

    def __init__(self, log_requests: bool = False, log_responses: bool = False,
                 slow_threshold: float = 2.0):
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.slow_threshold = slow_threshold
        self.logger = get_logger("clinic_booking.http")

    async def __call__(self, request: Request, call_next):
        cid = request.headers.get(CORRELATION_HEADER, "")[:64] or uuid.uuid4().hex[:8]
        correlation_id_var.set(cid)
        request.state.correlation_id = cid
        bind_scheduling_context(
            owner_id=request.query_params.get("owner_id"),
            endpoint=request.url.path,
            method=request.method,
        )

        started = time.perf_counter()
        if self.log_requests:
            self.logger.info("request_start", query=sorted(request.query_params.keys()))

        try:
            response = await call_next(request)
        except Exception as e:
            self.logger.error(
                "request_error",
                error=str(e),
                error_type=type(e).__name__,
                duration=round(time.perf_counter() - started, 3),
            )
            raise
        else:
            duration = time.perf_counter() - started
            slow = duration > self.slow_threshold
            if self.log_responses or slow or response.status_code >= 400:
                log = self.logger.warning if response.status_code >= 500 or slow else self.logger.info
                log("request_complete", status_code=response.status_code, duration=round(duration, 3), slow=slow)
            response.headers[CORRELATION_HEADER] = cid
            return response
        finally:
            clear_context()
