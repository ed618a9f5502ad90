from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor


def setup_tracing(service_name: str):
    """Registers a global tracer provider exporting spans over OTLP."""

    if getattr(setup_tracing, "has_run", False):
        return

    provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))

    trace.set_tracer_provider(provider)
    setup_tracing.has_run = True


def get_tracer(module_name: str):
    """Returns a tracer for the given module; a no-op tracer until setup_tracing runs."""
    return trace.get_tracer(module_name)
