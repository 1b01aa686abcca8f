import logging
from typing import Optional, Dict
from contextlib import contextmanager

from opentelemetry.trace import Span, Tracer

from app.mirror.models import ResolvedRequestContext

logger = logging.getLogger("uvicorn.error")


@contextmanager
def traced_mirror_request(
    tracer: Tracer,
    operation: str,
    effective_host: str,
    method: str,
    start_message: str,
    extra_attrs: Optional[Dict] = None,
):
    """Context manager to create a span, set common attributes, and log a start message."""
    with tracer.start_as_current_span(operation) as span:
        span.set_attribute("mirror.effective_host", effective_host or "")
        span.set_attribute("mirror.method", method)
        if extra_attrs:
            for k, v in extra_attrs.items():
                span.set_attribute(k, v)
        logger.info(start_message)
        try:
            yield span
        except Exception as e:
            span.set_attribute("mirror.error", type(e).__name__)
            raise


def annotate_context(span: Span, context: ResolvedRequestContext) -> None:
    span.set_attribute("mirror.matched_prefix", context.matched_prefix)
    span.set_attribute("mirror.domain_suffix", context.domain_suffix)
    span.set_attribute("mirror.target_host", context.target_host)
