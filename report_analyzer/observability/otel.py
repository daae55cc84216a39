"""Optional telemetry for the analysis pipeline.

With ``CLAUDE_REPORT_OTEL_ENABLED`` set, spans and metrics go to an OTLP/HTTP
collector, and the same three metrics are also served for Prometheus
scraping when ``CLAUDE_REPORT_PROM_PORT`` is positive. Otherwise every
helper here is a no-op.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI

from report_analyzer import config

logger = logging.getLogger("claude_report.observability")

# name -> (kind, description, label names)
_METRICS: dict[str, tuple[str, str, tuple[str, ...]]] = {
    "claude_report_files_total": ("counter", "Session files processed by the pipeline", ("entity", "result")),
    "claude_report_file_latency_ms": ("histogram", "Time to parse and analyze one session file", ("entity", "result")),
    "claude_report_parser_failures_total": ("counter", "Skipped log lines and failed session files", ("parser",)),
}

_initialized = False
_tracer: Any | None = None
_providers: list[Any] = []
_instrumentor: Any | None = None
_otel_instruments: dict[str, Any] = {}
_prom_instruments: dict[str, Any] = {}


def _otlp_url(signal: str) -> str:
    base = config.OTEL_ENDPOINT.rstrip("/")
    if base.endswith("/v1"):
        base = base[:-3]
    return f"{base}/v1/{signal}"


def _start_prometheus() -> None:
    try:
        from prometheus_client import Counter, Histogram, start_http_server
    except ImportError as exc:
        logger.warning(f"prometheus_client unavailable, metrics endpoint disabled: {exc}")
        return
    kinds = {"counter": Counter, "histogram": Histogram}
    try:
        start_http_server(config.PROM_PORT)
    except OSError as exc:
        logger.warning(f"Prometheus metrics server not started on port {config.PROM_PORT}: {exc}")
        return
    for name, (kind, description, labels) in _METRICS.items():
        _prom_instruments[name] = kinds[kind](name, description, list(labels))
    logger.info(f"Prometheus metrics served on port {config.PROM_PORT}")


def initialize(app: FastAPI | None = None) -> None:
    global _initialized, _tracer, _instrumentor

    if _initialized:
        if app is not None and _instrumentor is not None:
            _instrumentor.instrument_app(app)
        return
    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("Telemetry disabled (CLAUDE_REPORT_OTEL_ENABLED is off)")
        return

    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning(f"OpenTelemetry packages missing, install the 'otel' extra: {exc}")
        return

    resource = Resource.create({"service.name": config.OTEL_SERVICE_NAME})

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=_otlp_url("traces"))))
    trace.set_tracer_provider(tracer_provider)

    reader = PeriodicExportingMetricReader(OTLPMetricExporter(endpoint=_otlp_url("metrics")))
    meter_provider = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(meter_provider)

    meter = metrics.get_meter("claude_report.pipeline")
    for name, (kind, description, _labels) in _METRICS.items():
        if kind == "counter":
            _otel_instruments[name] = meter.create_counter(name, unit="1", description=description)
        else:
            _otel_instruments[name] = meter.create_histogram(name, unit="ms", description=description)

    _providers.extend([meter_provider, tracer_provider])
    _tracer = trace.get_tracer("claude_report.pipeline")
    _instrumentor = FastAPIInstrumentor()
    if app is not None:
        _instrumentor.instrument_app(app)

    if config.PROM_PORT > 0:
        _start_prometheus()

    logger.info(f"Telemetry exporting to {config.OTEL_ENDPOINT} as {config.OTEL_SERVICE_NAME}")


def shutdown(app: FastAPI | None = None) -> None:
    global _tracer
    if app is not None and _instrumentor is not None:
        _instrumentor.uninstrument_app(app)
    while _providers:
        _providers.pop().shutdown()
    _tracer = None
    _otel_instruments.clear()


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        yield span


def _emit(name: str, value: float, **labels: str) -> None:
    labels = {key: (raw or "").strip() or "unknown" for key, raw in labels.items()}
    kind = _METRICS[name][0]
    otel = _otel_instruments.get(name)
    if otel is not None:
        if kind == "counter":
            otel.add(value, labels)
        else:
            otel.record(value, labels)
    prom = _prom_instruments.get(name)
    if prom is not None:
        bound = prom.labels(**labels)
        if kind == "counter":
            bound.inc(value)
        else:
            bound.observe(value)


def record_ingestion(entity: str, result: str, duration_ms: float) -> None:
    _emit("claude_report_files_total", 1, entity=entity, result=result)
    _emit("claude_report_file_latency_ms", max(0.0, float(duration_ms)), entity=entity, result=result)


def record_parser_failure(parser: str) -> None:
    _emit("claude_report_parser_failures_total", 1, parser=parser)
