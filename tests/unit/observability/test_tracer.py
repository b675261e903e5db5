"""
Unit tests for the tracer implementations.

Tests for:
- Tracer Protocol (runtime_checkable)
- NullTracer, OpenTelemetryTracer and MockTracer
- create_tracer() factory function
"""

from __future__ import annotations

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from dualstore.observability import (
    ATTR_KEYSPACE_COUNT,
    ATTR_OPERATION,
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    RecordedSpan,
    Tracer,
    create_tracer,
)


class TestTracerProtocol:
    """Tests for Tracer protocol."""

    @pytest.mark.parametrize(
        "tracer",
        [NullTracer(), OpenTelemetryTracer(__name__), MockTracer()],
        ids=["null", "otel", "mock"],
    )
    def test_implementations_match_protocol(self, tracer):
        """All implementations satisfy the protocol."""
        assert isinstance(tracer, Tracer)


class TestNullTracer:
    """Tests for NullTracer."""

    def test_span_is_noop(self):
        """Spans yield None and the tracer reports disabled."""
        tracer = NullTracer()
        with tracer.span("dualstore.test", {ATTR_OPERATION: "x"}) as span:
            assert span is None
        assert tracer.enabled is False

    def test_exceptions_propagate(self):
        """Errors inside a span are not swallowed."""
        with pytest.raises(ValueError), NullTracer().span("dualstore.test"):
            raise ValueError("boom")


class TestMockTracer:
    """Tests for MockTracer."""

    def test_records_spans(self):
        """Names and attributes are recorded in order."""
        tracer = MockTracer()
        with tracer.span("a", {"k": 1}):
            with tracer.span("b"):
                pass

        assert tracer.spans == [RecordedSpan("a", {"k": 1}), RecordedSpan("b")]
        assert tracer.span_names == ["a", "b"]

    def test_late_attributes(self):
        """Attributes set on the yielded span are kept."""
        tracer = MockTracer()
        with tracer.span("a") as span:
            span.set_attribute(ATTR_KEYSPACE_COUNT, 3)

        assert tracer.find("a")[0].attributes == {ATTR_KEYSPACE_COUNT: 3}
        assert tracer.find("missing") == []

    def test_clear(self):
        """clear() forgets recorded spans."""
        tracer = MockTracer()
        with tracer.span("a"):
            pass
        tracer.clear()
        assert tracer.spans == []


class TestOpenTelemetryTracer:
    """Tests for OpenTelemetryTracer with an SDK provider."""

    def test_spans_exported(self):
        """Spans and their attributes reach the given provider."""
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))

        tracer = OpenTelemetryTracer(__name__, tracer_provider=provider)
        with tracer.span("dualstore.shadow_dispatcher.read", {ATTR_OPERATION: "findFlights"}):
            pass

        (span,) = exporter.get_finished_spans()
        assert span.name == "dualstore.shadow_dispatcher.read"
        assert span.attributes[ATTR_OPERATION] == "findFlights"
        assert tracer.enabled is True
        provider.shutdown()

    def test_exception_recorded_and_raised(self):
        """Errors inside a span are recorded on it and re-raised."""
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        tracer = OpenTelemetryTracer(__name__, tracer_provider=provider)

        with pytest.raises(ValueError), tracer.span("dualstore.test"):
            raise ValueError("boom")

        (span,) = exporter.get_finished_spans()
        assert [event.name for event in span.events] == ["exception"]
        provider.shutdown()


class TestCreateTracer:
    """Tests for create_tracer()."""

    def test_enabled(self):
        """enable_tracing=True gives an OpenTelemetryTracer."""
        assert isinstance(create_tracer(__name__, True), OpenTelemetryTracer)

    def test_disabled(self):
        """enable_tracing=False gives a NullTracer."""
        assert isinstance(create_tracer(__name__, False), NullTracer)
