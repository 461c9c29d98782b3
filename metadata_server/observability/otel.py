"""OpenTelemetry + Prometheus fallback wiring for the metadata server."""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI

from metadata_server import config

logger = logging.getLogger("metadata.observability")


_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None
_fastapi_instrumentor: Any | None = None

_write_counter: Any | None = None
_write_latency_hist: Any | None = None

_prom_enabled = False
_prom_write_counter: Any | None = None
_prom_write_latency_hist: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def _labels(entity: str, result: str, project: str) -> dict[str, str]:
    return {
        "entity": (entity or "").strip() or "unknown",
        "result": (result or "").strip() or "unknown",
        "project": (project or "").strip() or "unknown",
    }


def initialize(app: FastAPI | None = None) -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider, _fastapi_instrumentor
    global _write_counter, _write_latency_hist
    global _prom_enabled, _prom_write_counter, _prom_write_latency_hist

    if _initialized:
        if _enabled and app and _fastapi_instrumentor:
            _fastapi_instrumentor.instrument_app(app)
        return

    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (METADATA_OTEL_ENABLED=false)")
        return

    from opentelemetry import metrics, trace
    from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    traces_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "metadata-server"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "metadata",
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=traces_endpoint or None)))
    trace.set_tracer_provider(trace_provider)

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("metadata.server")

    _write_counter = meter.create_counter(
        "metadata_writes_total",
        unit="1",
        description="Count of rows written by client submissions",
    )
    _write_latency_hist = meter.create_histogram(
        "metadata_write_latency_ms",
        unit="ms",
        description="Latency of client submission writes",
    )

    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = trace.get_tracer("metadata.server")
    _fastapi_instrumentor = FastAPIInstrumentor()
    _enabled = True

    if app:
        _fastapi_instrumentor.instrument_app(app)

    if config.PROM_PORT > 0:
        from prometheus_client import Counter, Histogram, start_http_server

        try:
            start_http_server(config.PROM_PORT)
        except OSError as exc:
            logger.warning("Prometheus fallback not started: %s", exc)
        else:
            _prom_enabled = True
            _prom_write_counter = Counter(
                "metadata_writes_total",
                "Count of rows written by client submissions",
                ["entity", "result", "project"],
            )
            _prom_write_latency_hist = Histogram(
                "metadata_write_latency_ms",
                "Latency of client submission writes",
                ["entity", "result", "project"],
            )
            logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)

    logger.info(
        "OpenTelemetry initialized (service=%s endpoint=%s)",
        service_name,
        config.OTEL_ENDPOINT,
    )


def shutdown(app: FastAPI | None = None) -> None:
    global _enabled
    if not _initialized or not _enabled:
        return
    if app and _fastapi_instrumentor:
        _fastapi_instrumentor.uninstrument_app(app)
    if _meter_provider is not None:
        _meter_provider.shutdown()
    if _trace_provider is not None:
        _trace_provider.shutdown()
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


@contextmanager
def track_write(entity: str, *, project: str = ""):
    """Span plus outcome/latency metrics around one client submission."""
    started = time.perf_counter()
    result = "error"
    with start_span(f"metadata.write.{entity}", {"metadata.project": project or None}):
        try:
            yield
            result = "success"
        finally:
            record_write(entity, result, (time.perf_counter() - started) * 1000, project=project)


def record_write(entity: str, result: str, duration_ms: float, *, project: str = "") -> None:
    labels = _labels(entity, result, project)
    latency = max(0.0, float(duration_ms))
    if _enabled and _write_counter is not None:
        _write_counter.add(1, labels)
    if _enabled and _write_latency_hist is not None:
        _write_latency_hist.record(latency, labels)
    if _prom_enabled and _prom_write_counter is not None:
        _prom_write_counter.labels(**labels).inc()
    if _prom_enabled and _prom_write_latency_hist is not None:
        _prom_write_latency_hist.labels(**labels).observe(latency)
