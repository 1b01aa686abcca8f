import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from app.mirror import MappingTable, ProxyResult, mirror_request
from app.mirror.errors import (
    ClientDisconnectedError,
    MirrorError,
    UnmappedHostError,
    UnresolvedTargetError,
    UpstreamError,
)
from app.models import ProxyErrorBody
from app.utils.exception_logging import (
    format_exception_message,
    format_exception_stack,
    log_exception_with_details,
)
from app.vars import ENVIRONMENT

router = APIRouter()

logger = logging.getLogger("uvicorn.error")

NOT_CONFIGURED_MESSAGE = "Domain not configured for proxy"

MIRRORED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def get_mapping_table(request: Request) -> MappingTable:
    return request.app.state.mapping_table


def to_response(result: ProxyResult) -> Response:
    response = Response(content=result.body, status_code=result.status_code)
    for name, value in result.headers:
        if name.lower() != "content-length":
            response.headers.append(name, value)
    # HEAD answers describe a body that is not sent
    content_length = result.header("content-length")
    if content_length is not None:
        response.headers["content-length"] = content_length
    return response


def error_response(exception: Exception, status_code: int) -> JSONResponse:
    if isinstance(exception, MirrorError):
        message = exception.message
    else:
        message = format_exception_message(exception)
    body = ProxyErrorBody(
        message=message,
        stack=(
            format_exception_stack(exception) if ENVIRONMENT == "development" else None
        ),
    )
    return JSONResponse(
        content=body.model_dump(exclude_none=True), status_code=status_code
    )


@router.api_route("/{path:path}", methods=MIRRORED_METHODS, include_in_schema=False)
async def mirror_all(
    request: Request,
    path: str,
    table: MappingTable = Depends(get_mapping_table),
):
    """Catch-all route: every path on every proxy hostname is mirrored."""
    try:
        result = await mirror_request(request, table)
    except (UnmappedHostError, UnresolvedTargetError) as e:
        logger.warning(f"[Mirror] {e.message}")
        return PlainTextResponse(NOT_CONFIGURED_MESSAGE, status_code=e.status_code)
    except ClientDisconnectedError as e:
        logger.info(f"[Mirror] {e.message}: {request.method} {request.url.path}")
        return Response(status_code=e.status_code)
    except UpstreamError as e:
        log_exception_with_details(logger, "[Mirror]", e)
        return error_response(e, e.status_code)
    except Exception as e:
        log_exception_with_details(logger, "[Mirror] Unexpected failure", e)
        return error_response(e, 502)
    return to_response(result)
