import json
import logging
from dataclasses import dataclass
from inspect import isawaitable
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from graphql import (
    ExecutionResult,
    GraphQLError,
    OperationType,
    execute,
    get_operation_ast,
    parse,
    specified_rules,
    validate,
)
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import Response

from gql_fastapi.core.errors import HttpQueryError
from gql_fastapi.core.options import OptionsResolver
from gql_fastapi.core.schemas import (
    ExecutionOutcome,
    GraphQLOptions,
    GraphQLRequestParams,
    HttpRequest,
    ResponseInit,
    SingleResponse,
)

# -----------------------------------------------------------------------------
# ENGINE MODULE - Default query execution
# Purpose: Turn a normalized request into an ExecutionOutcome using graphql-core
# Any callable with the same signature can replace it in graphql_fastapi()
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class HttpQueryRequest:
    method: str
    options: OptionsResolver
    query: Any
    request: HttpRequest


HandlerArgs = Tuple[Request, Response]
RunHttpQuery = Callable[[HandlerArgs, HttpQueryRequest], Awaitable[ExecutionOutcome]]


def to_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def format_error(error: GraphQLError, debug: bool = False) -> Dict[str, Any]:
    formatted = error.formatted
    if debug and error.original_error is not None:
        extensions = dict(formatted.get("extensions") or {})
        extensions["exception"] = {"type": type(error.original_error).__name__}
        formatted["extensions"] = extensions
    return formatted


def format_result(result: ExecutionResult, debug: bool = False) -> Dict[str, Any]:
    formatted: Dict[str, Any] = {"data": result.data}
    if result.errors:
        formatted["errors"] = [format_error(error, debug) for error in result.errors]
    if result.extensions:
        formatted["extensions"] = result.extensions
    return formatted


def graphql_errors(
    status_code: int, errors: Sequence[GraphQLError], debug: bool = False
) -> HttpQueryError:
    body = to_json({"errors": [format_error(error, debug) for error in errors]})
    return HttpQueryError(
        status_code, body, is_graphql_error=True, headers=dict(JSON_HEADERS)
    )


def coerce_options(options: Any) -> GraphQLOptions:
    if isinstance(options, GraphQLOptions):
        return options
    if isinstance(options, dict):
        return GraphQLOptions.model_validate(options)
    raise TypeError(
        f"GraphQL options must be GraphQLOptions or dict, got {type(options).__name__}"
    )


def decode_json_param(value: Any, message: str) -> Optional[Dict[str, Any]]:
    if not isinstance(value, str):
        return value
    try:
        decoded = json.loads(value)
    except ValueError:
        raise HttpQueryError(400, message)
    if decoded is not None and not isinstance(decoded, dict):
        raise HttpQueryError(400, message)
    return decoded


def parse_request_params(method: str, payload: Any) -> GraphQLRequestParams:
    if method == "POST" and not payload:
        raise HttpQueryError(400, "POST body missing.")
    if method == "GET" and not payload:
        raise HttpQueryError(400, "GET query missing.")
    if isinstance(payload, list):
        raise HttpQueryError(400, "Batched queries are not supported.")
    if not isinstance(payload, dict):
        raise HttpQueryError(400, "GraphQL queries must be sent as a JSON object.")

    try:
        params = GraphQLRequestParams.model_validate(payload)
    except ValidationError as error:
        raise HttpQueryError(400, f"Invalid GraphQL request: {error.errors()[0]['msg']}")

    if not params.query:
        raise HttpQueryError(400, "Must provide query string.")

    return params.model_copy(
        update={
            "variables": decode_json_param(
                params.variables, "Variables are invalid JSON."
            ),
            "extensions": decode_json_param(
                params.extensions, "Extensions are invalid JSON."
            ),
        }
    )


def assert_query_over_get(document, operation_name: Optional[str]) -> None:
    operation = get_operation_ast(document, operation_name)
    if operation is not None and operation.operation != OperationType.QUERY:
        raise HttpQueryError(
            405,
            f"Can only perform a {operation.operation.value} operation from a POST request.",
            headers={"Allow": "POST"},
        )


async def run_http_query(
    handler_args: HandlerArgs, query_request: HttpQueryRequest
) -> ExecutionOutcome:
    """
    Execute one GraphQL request with graphql-core.

    Raises HttpQueryError for anything that should be answered as an HTTP
    error (wrong method, missing query, syntax and validation errors).
    Failures of the options function are left to propagate untouched.

    Returns:
        SingleResponse with a JSON encoded execution result
    """
    method = query_request.method.upper()
    if method not in ("GET", "POST"):
        raise HttpQueryError(
            405,
            "GraphQL only supports GET and POST requests.",
            headers={"Allow": "GET, POST"},
        )

    options = coerce_options(await query_request.options.resolve(*handler_args))
    params = parse_request_params(method, query_request.query)

    try:
        document = parse(params.query)
    except GraphQLError as error:
        raise graphql_errors(400, [error], options.debug)

    # Custom rules run on top of the standard ones
    rules = [*specified_rules, *(options.validation_rules or [])]
    validation_errors: List[GraphQLError] = validate(options.schema, document, rules)
    if validation_errors:
        raise graphql_errors(400, validation_errors, options.debug)

    if method == "GET":
        assert_query_over_get(document, params.operation_name)

    result = execute(
        options.schema,
        document,
        root_value=options.root_value,
        context_value=options.context_value,
        variable_values=params.variables,
        operation_name=params.operation_name,
        field_resolver=options.field_resolver,
    )
    if isawaitable(result):
        result = await result

    if result.errors:
        logger.info(f"GraphQL execution finished with {len(result.errors)} error(s)")

    return SingleResponse(
        body=to_json(format_result(result, options.debug)),
        response_init=ResponseInit(headers=dict(JSON_HEADERS)),
    )
