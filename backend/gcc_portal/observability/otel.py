from __future__ import annotations

from fastapi import FastAPI

from ..settings import Settings
from .logging import get_logger


def configure_otel(settings: Settings) -> bool:
    """
    Optional OpenTelemetry setup, enabled with OTEL_ENABLED=true.

    The SDK ships in the `otel` extra. When it is missing we log once and keep
    serving without tracing. Without an OTLP endpoint spans go to the console.
    Returns True when a tracer provider was installed.
    """
    if not settings.otel_enabled:
        return False

    log = get_logger("otel")

    try:
        from opentelemetry import trace
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
    except ImportError:
        log.warning("otel_disabled_missing_deps")
        return False

    resource = Resource.create({"service.name": settings.otel_service_name})
    provider = TracerProvider(resource=resource)

    endpoint = str(settings.otel_exporter_otlp_endpoint or "").strip()
    if endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        log.info("otel_configured", exporter="otlp_http", endpoint=endpoint)
    else:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        log.info("otel_configured", exporter="console")

    trace.set_tracer_provider(provider)
    return True


def instrument_app(app: FastAPI) -> None:
    """
    Wire instrumentation for inbound HTTP and outbound DynamoDB calls.
    Only called once configure_otel() succeeded.
    """
    log = get_logger("otel")

    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(app)
        log.info("otel_instrumented", target="fastapi")
    except ImportError:
        log.warning("otel_instrument_failed", target="fastapi")

    try:
        from opentelemetry.instrumentation.botocore import BotocoreInstrumentor

        BotocoreInstrumentor().instrument()
        log.info("otel_instrumented", target="botocore")
    except ImportError:
        log.warning("otel_instrument_failed", target="botocore")
