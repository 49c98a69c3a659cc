"""Composable instrumentation for public component methods.

``public_api_instrumented`` wraps one method with invocation/completion hooks.
Each hook (a "concern") is isolated: a concern that raises is logged and
skipped, it never changes the outcome of the wrapped call.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from functools import wraps
from time import perf_counter
from typing import Any, Callable, Mapping, Protocol, Sequence

from opentelemetry import trace as otel_trace
from opentelemetry.trace import Status, StatusCode

from . import fields
from .context import log_context

TRACER_NAME = "ark.public_api"


@dataclass(frozen=True)
class InvocationContext:
    """Structured metadata describing one public API invocation."""

    component_id: str
    api_name: str
    references: Mapping[str, str]


@dataclass(frozen=True)
class CompletionContext:
    """Structured metadata describing one completed public API invocation."""

    invocation: InvocationContext
    success: bool
    duration_ms: float
    errors: list[str]


class PublicApiInstrumentationConcern(Protocol):
    """Hook contract for one public API instrumentation concern."""

    def on_invocation(self, context: InvocationContext) -> None:
        """Handle invocation-start event for one method call."""

    def on_completion(self, context: CompletionContext) -> None:
        """Handle completion event for one method call."""


class PublicApiLoggingConcern:
    """Logging concern implementation for invocation/completion events."""

    def __init__(self, *, logger: Any) -> None:
        self._logger = logger

    def on_invocation(self, context: InvocationContext) -> None:
        """Emit structured invocation-start log at debug level."""
        with log_context(_invocation_log_context(context)):
            self._logger.debug("Public API invocation")

    def on_completion(self, context: CompletionContext) -> None:
        """Emit structured completion log."""
        payload = _invocation_log_context(context.invocation)
        payload.update(
            {
                fields.EVENT: fields.PUBLIC_API_COMPLETION_EVENT,
                fields.SUCCESS: context.success,
                fields.DURATION_MS: context.duration_ms,
                fields.ERRORS: context.errors,
            }
        )
        with log_context(payload):
            if context.success:
                self._logger.info("Public API completion")
            else:
                self._logger.warning("Public API completion")


class PublicApiTracingConcern:
    """OpenTelemetry span per public API invocation."""

    def __init__(self, *, tracer: Any) -> None:
        self._tracer = tracer
        self._active: ContextVar[list[tuple[Any, Any]]] = ContextVar(
            "public_api_tracing_scopes", default=[]
        )

    def on_invocation(self, context: InvocationContext) -> None:
        """Start one span for the current invocation and attach metadata."""
        manager = self._tracer.start_as_current_span(
            f"public_api.{context.component_id}.{context.api_name}"
        )
        span = manager.__enter__()
        span.set_attribute(fields.COMPONENT_ID, context.component_id)
        span.set_attribute(fields.API_NAME, context.api_name)
        for key, value in context.references.items():
            span.set_attribute(f"reference.{key}", value)
        self._active.set([*self._active.get(), (manager, span)])

    def on_completion(self, context: CompletionContext) -> None:
        """Finalize the innermost open span with completion metadata."""
        current = self._active.get()
        if len(current) == 0:
            return
        manager, span = current[-1]
        self._active.set(current[:-1])

        span.set_attribute(fields.SUCCESS, context.success)
        span.set_attribute(fields.DURATION_MS, context.duration_ms)
        span.set_attribute("errors.count", len(context.errors))
        if not context.success:
            span.set_status(Status(StatusCode.ERROR))
        manager.__exit__(None, None, None)


def public_api_instrumented(
    *,
    component_id: str,
    api_name: str | None = None,
    id_fields: tuple[str, ...] = (),
    concerns: Sequence[PublicApiInstrumentationConcern] | None = None,
    logger: Any | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorate one public API method with composable instrumentation concerns.

    Without explicit ``concerns`` the default OpenTelemetry tracing concern is
    used; passing ``logger`` adds the logging concern in front.
    """
    resolved: tuple[PublicApiInstrumentationConcern, ...] = (
        tuple(concerns)
        if concerns is not None
        else (PublicApiTracingConcern(tracer=otel_trace.get_tracer(TRACER_NAME)),)
    )
    if logger is not None:
        resolved = (PublicApiLoggingConcern(logger=logger), *resolved)
    if len(resolved) == 0:
        raise ValueError("public_api_instrumented requires at least one concern")

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        method_name = api_name or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            invocation = InvocationContext(
                component_id=component_id,
                api_name=method_name,
                references={
                    name: str(kwargs[name])
                    for name in id_fields
                    if kwargs.get(name) not in (None, "")
                },
            )
            _dispatch(resolved, "on_invocation", invocation, logger, invocation)

            started = perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:  # noqa: BLE001
                completion = CompletionContext(
                    invocation=invocation,
                    success=False,
                    duration_ms=_elapsed_ms(started),
                    errors=[f"{type(exc).__name__}: {exc}"],
                )
                _dispatch(resolved, "on_completion", completion, logger, invocation)
                raise

            success, errors = _result_summary(result)
            completion = CompletionContext(
                invocation=invocation,
                success=success,
                duration_ms=_elapsed_ms(started),
                errors=errors,
            )
            _dispatch(resolved, "on_completion", completion, logger, invocation)
            return result

        return wrapper

    return decorator


def _elapsed_ms(started: float) -> float:
    """Return elapsed wall time in milliseconds since ``started``."""
    return round((perf_counter() - started) * 1000.0, 3)


def _result_summary(result: object) -> tuple[bool, list[str]]:
    """Infer success and one-line error summaries from a result value."""
    errors_obj = getattr(result, "errors", [])
    summaries: list[str] = []
    if isinstance(errors_obj, list):
        for item in errors_obj:
            code = getattr(item, "code", None)
            message = getattr(item, "message", None)
            if message in (None, ""):
                continue
            summaries.append(str(message) if code in (None, "") else f"{code}: {message}")
    ok_value = getattr(result, "ok", None)
    if isinstance(ok_value, bool):
        return ok_value, summaries
    return len(summaries) == 0, summaries


def _invocation_log_context(context: InvocationContext) -> dict[str, object]:
    """Build common structured fields for one invocation event."""
    return {
        fields.EVENT: fields.PUBLIC_API_INVOCATION_EVENT,
        fields.COMPONENT_ID: context.component_id,
        fields.API_NAME: context.api_name,
        **context.references,
    }


def _dispatch(
    concerns: Sequence[PublicApiInstrumentationConcern],
    hook: str,
    context: object,
    logger: Any | None,
    invocation: InvocationContext,
) -> None:
    """Dispatch one hook to every concern with failure isolation."""
    for concern in concerns:
        try:
            getattr(concern, hook)(context)
        except Exception as exc:  # noqa: BLE001
            if logger is None:
                continue
            with log_context(
                {
                    fields.EVENT: fields.PUBLIC_API_INSTRUMENTATION_FAILURE_EVENT,
                    fields.COMPONENT_ID: invocation.component_id,
                    fields.API_NAME: invocation.api_name,
                    fields.STAGE: hook,
                    fields.CONCERN: type(concern).__name__,
                    fields.ERRORS: [f"{type(exc).__name__}: {exc}"],
                }
            ):
                logger.warning("Public API instrumentation concern failed")
