import logging
from typing import Any, Awaitable, Callable

from fastapi import APIRouter
from starlette.requests import Request
from starlette.responses import Response

from gql_fastapi.core.dispatch import render_error, render_outcome
from gql_fastapi.core.engine import HttpQueryRequest, RunHttpQuery, run_http_query
from gql_fastapi.core.errors import ErrorKind, error_kind
from gql_fastapi.core.options import make_options_resolver
from gql_fastapi.core.request import normalize_request
from gql_fastapi.core.schemas import SingleResponse

logger = logging.getLogger(__name__)

GraphQLHandler = Callable[[Request], Awaitable[Response]]


def make_sub_response() -> Response:
    # Handed to the options function so it can set headers/cookies/status
    sub_response = Response()
    del sub_response.headers["content-length"]
    sub_response.status_code = None  # type: ignore[assignment]
    return sub_response


def merge_sub_response(
    response: Response, sub_response: Response, status_fixed: bool = False
) -> Response:
    # Headers and status of the rendered response win over the options function
    existing = {key for key, _ in response.headers.raw}
    for key, value in sub_response.headers.raw:
        if key in existing and key != b"set-cookie":
            continue
        response.headers.raw.append((key, value))
    if sub_response.status_code and not status_fixed:
        response.status_code = sub_response.status_code
    return response


def graphql_fastapi(
    options: Any, /, *, run_query: RunHttpQuery = run_http_query
) -> GraphQLHandler:
    """
    Build an endpoint that serves GraphQL over GET and POST.

    Args:
        options: GraphQLOptions (or a dict of them), or a function of
            (request, response) returning them, sync or async
        run_query: Execution engine, graphql-core based by default

    Raises:
        ConfigurationError: options is None
    """
    options_resolver = make_options_resolver(options)

    async def graphql_handler(request: Request) -> Response:
        sub_response = make_sub_response()

        try:
            descriptor = await normalize_request(request)
            outcome = await run_query(
                (request, sub_response),
                HttpQueryRequest(
                    method=descriptor.request.method,
                    options=options_resolver,
                    query=descriptor.query,
                    request=descriptor.request,
                ),
            )
        except Exception as error:
            if error_kind(error) is not ErrorKind.PROTOCOL:
                # Let the app's exception handlers answer, we must not write twice
                logger.debug(f"Forwarding {type(error).__name__} from {request.url.path}")
                raise
            return merge_sub_response(
                render_error(error), sub_response, status_fixed=True
            )

        status_fixed = (
            isinstance(outcome, SingleResponse)
            and outcome.response_init.status is not None
        )
        return merge_sub_response(
            render_outcome(outcome), sub_response, status_fixed=status_fixed
        )

    return graphql_handler


def graphql_router(
    options: Any,
    /,
    *,
    path: str = "/graphql",
    run_query: RunHttpQuery = run_http_query,
) -> APIRouter:
    router = APIRouter(tags=["GraphQL"])
    router.add_api_route(
        path,
        graphql_fastapi(options, run_query=run_query),
        methods=["GET", "POST"],
        include_in_schema=False,
    )
    return router
