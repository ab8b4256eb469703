"""Tracer bootstrap.

Spans are exported to stdout; the tracer is returned to the caller and passed
down explicitly rather than registered as a process global.
"""
from __future__ import annotations

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from userauth.config.settings import AppConfig

TRACER_NAME = "userauth"


def build_resource(cfg: AppConfig) -> Resource:
    """Service identity attached to every exported span."""
    attributes = {
        "service.name": cfg.service_name,
        "service.version": cfg.service_version,
        "deployment.environment": cfg.environment,
    }
    if cfg.hostname:
        attributes["host.name"] = cfg.hostname
    return Resource.create(attributes)


def build_tracer(cfg: AppConfig) -> tuple[trace.Tracer, TracerProvider | None]:
    """Return (tracer, provider).

    The provider is None when tracing is disabled; callers shut it down on exit
    otherwise so batched spans are flushed.
    """
    if not cfg.tracing_enabled:
        return trace.NoOpTracer(), None

    provider = TracerProvider(resource=build_resource(cfg))
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    return provider.get_tracer(TRACER_NAME), provider
