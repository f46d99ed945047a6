# shelfpick/obs/otel.py
# OpenTelemetry tracing (optional extra "otel"; off unless OTEL_ENABLED)
from __future__ import annotations

import logging
import os
import socket

log = logging.getLogger("shelfpick.otel")


def resolve_otlp_endpoint() -> tuple[str, str]:
    """
    OTLP endpoint and protocol:
      1) OTEL_EXPORTER_OTLP_ENDPOINT / OTEL_EXPORTER_OTLP_PROTOCOL
      2) otel-collector:4317 on the compose network
      3) localhost:4317
    """
    ep = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    proto = os.getenv("OTEL_EXPORTER_OTLP_PROTOCOL", "").strip().lower()
    if ep:
        return ep, proto or "grpc"

    try:
        socket.getaddrinfo("otel-collector", 4317)
        return "http://otel-collector:4317", "grpc"
    except OSError:
        return "http://localhost:4317", "grpc"


def setup_tracing(app=None, sqlalchemy_engine=None, *, service_name: str = "shelfpick") -> bool:
    """
    Install a tracer provider with an OTLP exporter and instrument FastAPI,
    SQLAlchemy, httpx (ERP / e-commerce calls) and Celery.

    Returns False when the extra is not installed or the exporter can't be
    built; tracing never stops the service from starting.
    """
    try:
        from opentelemetry import trace
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter as GrpcExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter as HttpExporter
        from opentelemetry.instrumentation.celery import CeleryInstrumentor
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
        from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError:
        log.warning("OTEL_ENABLED set but the otel extra is not installed; tracing off")
        return False

    try:
        resource = Resource.create(
            {
                "service.name": os.getenv("OTEL_SERVICE_NAME", service_name),
                "service.version": os.getenv("GIT_SHA", "dev"),
                "deployment.environment": os.getenv("ENV", "local"),
            }
        )
        provider = TracerProvider(resource=resource)
        trace.set_tracer_provider(provider)

        endpoint, proto = resolve_otlp_endpoint()
        if proto.startswith("http"):
            if endpoint.endswith(":4317"):
                endpoint = endpoint.replace(":4317", ":4318")
            exporter = HttpExporter(endpoint=endpoint)
        else:
            exporter = GrpcExporter(endpoint=endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(exporter))

        if app is not None:
            FastAPIInstrumentor.instrument_app(app, excluded_urls="metrics,health")
        if sqlalchemy_engine is not None:
            SQLAlchemyInstrumentor().instrument(engine=sqlalchemy_engine)
        HTTPXClientInstrumentor().instrument()
        CeleryInstrumentor().instrument()
    except Exception:
        log.exception("tracing setup failed; continuing without it")
        return False

    log.info("tracing on: %s (%s)", endpoint, proto)
    return True
