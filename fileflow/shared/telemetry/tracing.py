"""Tracing helpers for repository and service operations.

Uses only the OpenTelemetry API: spans are no-ops until the embedding
application installs an SDK tracer provider.
"""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

# Allowlist of kwarg names recorded as span attributes (case-insensitive).
# Anything else (passwords, credentials, file content) is never recorded.
_SAFE_SPAN_ATTR_KEYS = frozenset({
    "file_id", "file_ids", "owner_id", "user_id", "author_id", "viewer_id",
    "page", "page_size", "sort_field", "sort_direction", "term", "name",
    "collection", "record_id",
})


def _set_safe_span_attrs(span: trace.Span, kwargs: dict[str, Any]) -> None:
    for key, value in kwargs.items():
        if not key.startswith("_") and key.lower() in _SAFE_SPAN_ATTR_KEYS:
            span.set_attribute(f"arg.{key}", str(value))


async def _run_in_span_async(span: trace.Span, run: Callable[[], Any]) -> Any:
    """Await run(), set span status, and record exceptions."""
    try:
        result = await run()
    except Exception as e:
        span.set_status(Status(StatusCode.ERROR, str(e)))
        span.record_exception(e)
        raise
    else:
        span.set_status(Status(StatusCode.OK))
        return result


def traced(
    operation_name: str | None = None,
    attributes: dict[str, str | int | float | bool] | None = None,
) -> Callable:
    """Decorator that wraps an async function in a span.

    Args:
        operation_name: Span name (defaults to module.qualname).
        attributes: Optional static attributes to set on the span.

    Returns:
        Decorated coroutine function.
    """

    def decorator(func: Callable) -> Callable:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"traced() supports async functions only: {func.__qualname__}")
        tracer = trace.get_tracer(__name__)
        span_name = operation_name or f"{func.__module__}.{func.__qualname__}"

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(span_name) as span:
                for key, value in (attributes or {}).items():
                    span.set_attribute(key, value)
                _set_safe_span_attrs(span, kwargs)
                return await _run_in_span_async(span, lambda: func(*args, **kwargs))

        return wrapper

    return decorator


def add_span_event(name: str, attributes: dict[str, Any] | None = None) -> None:
    """Add an event to the current span (e.g. compensating delete)."""
    span = trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name, attributes=attributes or {})
