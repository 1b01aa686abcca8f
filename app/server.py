from app.vars import (
    SERVICE_NAME,
    OTLP_ENDPOINT,
    OTLP_HEADERS,
    METRICS_PATH,
    DOMAIN_MAPPINGS_FILE,
)
from fastapi import FastAPI
from .routes import router
from .mirror import load_mapping_table
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

from prometheus_fastapi_instrumentator import Instrumentator
from prometheus_client import Info

# Every path belongs to the mirrored origins, so no docs or OpenAPI routes
app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

# Built once at process start, read-only afterwards
app.state.mapping_table = load_mapping_table(DOMAIN_MAPPINGS_FILE)

instrumentator = Instrumentator(excluded_handlers=[METRICS_PATH])
instrumentator.instrument(app).expose(app, endpoint=METRICS_PATH, include_in_schema=False)

trace.set_tracer_provider(
    TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
)
tracer_provider = trace.get_tracer_provider()
if OTLP_ENDPOINT:
    otlp_exporter = OTLPSpanExporter(
        endpoint=OTLP_ENDPOINT,
        headers=OTLP_HEADERS or None,
    )
    tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

FastAPIInstrumentor.instrument_app(
    app,
    excluded_urls=METRICS_PATH,
    server_request_hook=None,
    client_request_hook=None,
)

# Add app_name to the metrics
app_info = Info("fastapi_app_info", "Application Info")
app_info.info({"app_name": SERVICE_NAME})

app.include_router(router)
