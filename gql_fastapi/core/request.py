from typing import Any

from starlette.requests import Request

from gql_fastapi.core.errors import HttpQueryError
from gql_fastapi.core.schemas import HttpRequest, RequestDescriptor, RequestMethod


def convert_http_request(request: Request) -> HttpRequest:
    return HttpRequest(
        method=request.method,
        url=str(request.url),
        headers=dict(request.headers),
    )


async def read_json_body(request: Request) -> Any:
    body = await request.body()
    if not body:
        return None

    try:
        return await request.json()
    # JSONDecodeError and UnicodeDecodeError are both ValueErrors
    except ValueError:
        raise HttpQueryError(400, "POST body sent invalid JSON.")


async def normalize_request(request: Request) -> RequestDescriptor:
    """
    Build the canonical execution input for an inbound request.

    POST reads the query from the JSON body, any other method from the
    query string.
    """
    method = RequestMethod.from_http(request.method)

    if method is RequestMethod.POST:
        query = await read_json_body(request)
    else:
        query = dict(request.query_params)

    return RequestDescriptor(
        method=method, query=query, request=convert_http_request(request)
    )
