import logging
from typing import AsyncIterable, AsyncIterator, Dict

from starlette.responses import Response, StreamingResponse

from gql_fastapi.core.errors import HttpQueryError
from gql_fastapi.core.schemas import ExecutionOutcome, SingleResponse, StreamedResponse

# -----------------------------------------------------------------------------
# DISPATCH MODULE - Outcome -> HTTP response
# Purpose: Serialize a single result, a deferred (multipart) result or a
# protocol error onto one HTTP response
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)

# See: https://www.w3.org/Protocols/rfc1341/7_2_Multipart.html
MULTIPART_CONTENT_TYPE = 'multipart/mixed; boundary="-"'
PART_DELIMITER = "\r\n---\r\n"
CLOSE_DELIMITER = "\r\n---"


def without_content_length(headers: Dict[str, str]) -> Dict[str, str]:
    return {key: value for key, value in headers.items() if key.lower() != "content-length"}


def render_single(outcome: SingleResponse) -> Response:
    headers = dict(outcome.response_init.headers)
    status_code = outcome.response_init.status or 200

    if outcome.body is None:
        return Response(status_code=status_code, headers=headers)

    # Byte length, not character length
    body = outcome.body.encode("utf-8")
    headers = without_content_length(headers)
    headers["Content-Length"] = str(len(body))
    return Response(content=body, status_code=status_code, headers=headers)


async def close_patches(patches: AsyncIterable[str]) -> None:
    aclose = getattr(patches, "aclose", None)
    if aclose is not None:
        await aclose()


async def iter_multipart(patches: AsyncIterable[str]) -> AsyncIterator[str]:
    """
    Frame every patch as one part of the multipart body, in emission order.

    The source is consumed once. If writing stops early (client went away,
    source failed) the source is closed and the failure propagates.
    """
    completed = False
    try:
        async for patch in patches:
            # Write the boundary for sending multipart data
            yield patch + PART_DELIMITER
        completed = True
    finally:
        if not completed:
            logger.warning("Multipart response aborted before the last patch")
            await close_patches(patches)

    # Finish up multipart with the last encapsulation boundary
    yield CLOSE_DELIMITER


def render_stream(outcome: StreamedResponse) -> StreamingResponse:
    return StreamingResponse(
        iter_multipart(outcome.patches),
        headers={"Content-Type": MULTIPART_CONTENT_TYPE},
    )


def render_outcome(outcome: ExecutionOutcome) -> Response:
    if isinstance(outcome, SingleResponse):
        return render_single(outcome)
    if isinstance(outcome, StreamedResponse):
        # This is a deferred response, so send it as patches become ready
        return render_stream(outcome)
    raise TypeError(
        f"Expected SingleResponse or StreamedResponse, got {type(outcome).__name__}"
    )


def render_error(error: HttpQueryError) -> Response:
    headers = dict(error.headers or {})
    logger.info(f"GraphQL request rejected with {error.status_code}: {error.message}")
    return Response(content=error.message, status_code=error.status_code, headers=headers)
