"""
Pluggable tracing for dualstore components.

Every component that traces takes ``tracer`` and ``enable_tracing``
arguments and resolves them once in ``__init__``:

    self._tracer = tracer or create_tracer(__name__, enable_tracing)

Three tracers are provided:

- OpenTelemetryTracer: spans from ``opentelemetry.trace``; they are only
  recorded when the application installs an SDK tracer provider
- NullTracer: yields ``None`` and records nothing
- MockTracer: keeps every span in memory so tests can assert on names
  and attributes, including attributes set after the span was opened

Span names follow ``dualstore.<component>.<operation>``, for example
``dualstore.migration_engine.insert_chunk``.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from opentelemetry import trace


@runtime_checkable
class Tracer(Protocol):
    """
    What a component needs from a tracer.

    ``span`` yields an object with ``set_attribute(key, value)``, or None
    when nothing is recorded; callers check before setting late attributes.
    """

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Any]: ...

    @property
    def enabled(self) -> bool: ...


class NullTracer:
    """Tracer used when tracing is turned off."""

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Iterator[None]:
        yield None

    @property
    def enabled(self) -> bool:
        return False


class OpenTelemetryTracer:
    """
    Tracer backed by the OpenTelemetry API.

    Args:
        tracer_name: Instrumentation scope, normally the module ``__name__``.
        tracer_provider: Provider to take the tracer from (default: the
            globally configured one).
    """

    def __init__(self, tracer_name: str, tracer_provider: Any = None) -> None:
        self._tracer = trace.get_tracer(tracer_name, tracer_provider=tracer_provider)

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Any]:
        """
        Start a span as the current span.

        Exceptions raised inside the block are recorded on the span and
        re-raised.
        """
        return self._tracer.start_as_current_span(name, attributes=attributes or {})

    @property
    def enabled(self) -> bool:
        return True


@dataclass
class RecordedSpan:
    """A span captured by MockTracer."""

    name: str
    attributes: dict[str, Any] = field(default_factory=dict)

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value


class MockTracer:
    """
    In-memory tracer for tests.

    Example:
        >>> tracer = MockTracer()
        >>> with tracer.span("dualstore.keyspace_enumerator.list_keyspaces") as span:
        ...     span.set_attribute("dualstore.keyspace.count", 3)
        >>> tracer.spans[0].attributes
        {'dualstore.keyspace.count': 3}
    """

    def __init__(self) -> None:
        self.spans: list[RecordedSpan] = []

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Iterator[RecordedSpan]:
        recorded = RecordedSpan(name, dict(attributes or {}))
        self.spans.append(recorded)
        yield recorded

    @property
    def enabled(self) -> bool:
        return True

    @property
    def span_names(self) -> list[str]:
        """Names of the recorded spans, in the order they were opened."""
        return [s.name for s in self.spans]

    def find(self, name: str) -> list[RecordedSpan]:
        """Recorded spans with the given name."""
        return [s for s in self.spans if s.name == name]

    def clear(self) -> None:
        self.spans.clear()


def create_tracer(name: str, enable_tracing: bool = True) -> Tracer:
    """
    Return an OpenTelemetryTracer, or a NullTracer when tracing is disabled.

    Args:
        name: Instrumentation scope, normally the module ``__name__``.
        enable_tracing: Whether spans should be created at all.
    """
    if enable_tracing:
        return OpenTelemetryTracer(name)
    return NullTracer()


__all__ = [
    "MockTracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "RecordedSpan",
    "Tracer",
    "create_tracer",
]
