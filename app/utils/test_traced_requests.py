import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
    InMemorySpanExporter,
)

from app.mirror.errors import UnmappedHostError
from app.utils import mask_value, redact_headers
from app.utils.traced_requests import annotate_context, traced_mirror_request


@pytest.fixture
def exporter():
    return InMemorySpanExporter()


@pytest.fixture
def tracer(exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return provider.get_tracer(__name__)


def test_span_attributes(tracer, exporter, resolved_context):
    with traced_mirror_request(
        tracer,
        operation="mirror_request",
        effective_host="nf-gh.example.com",
        method="GET",
        start_message="[Mirror] GET nf-gh.example.com/",
        extra_attrs={"mirror.path": "/o/r"},
    ) as span:
        annotate_context(span, resolved_context("nf-gh.example.com"))

    (finished,) = exporter.get_finished_spans()
    assert finished.name == "mirror_request"
    assert dict(finished.attributes) == {
        "mirror.effective_host": "nf-gh.example.com",
        "mirror.method": "GET",
        "mirror.path": "/o/r",
        "mirror.matched_prefix": "nf-gh.",
        "mirror.domain_suffix": "example.com",
        "mirror.target_host": "github.com",
    }


def test_error_recorded_and_reraised(tracer, exporter):
    with pytest.raises(UnmappedHostError):
        with traced_mirror_request(
            tracer,
            operation="mirror_request",
            effective_host="unknown.example.com",
            method="GET",
            start_message="[Mirror] GET unknown.example.com/",
        ):
            raise UnmappedHostError("unknown.example.com")

    (finished,) = exporter.get_finished_spans()
    assert finished.attributes["mirror.error"] == "UnmappedHostError"
    assert [event.name for event in finished.events] == ["exception"]


def test_start_message_logged(tracer, caplog):
    with caplog.at_level("INFO", logger="uvicorn.error"):
        with traced_mirror_request(
            tracer, "mirror_request", "nf-gh.example.com", "GET", "[Mirror] hello"
        ):
            pass

    assert "[Mirror] hello" in caplog.text


def test_redact_headers():
    headers = [
        ("Authorization", "Bearer secret-token"),
        ("Cookie", "session=abcdef"),
        ("set-cookie", ""),
        ("Accept", "text/html"),
    ]

    assert redact_headers(headers) == {
        "Authorization": "Bear****",
        "Cookie": "sess****",
        "set-cookie": "",
        "Accept": "text/html",
    }


def test_mask_value_none():
    assert mask_value(None) is None
