import inspect
from typing import Any, Awaitable, Callable, Union

from starlette.requests import Request
from starlette.responses import Response

from gql_fastapi.core.errors import ConfigurationError
from gql_fastapi.core.schemas import GraphQLOptions

# Options can be computed per request, e.g. to put the user into the context
OptionsFunction = Callable[
    [Request, Response], Union[GraphQLOptions, Awaitable[GraphQLOptions]]
]


class StaticOptions:
    """Same options object for every request, shared read-only."""

    def __init__(self, value: Any):
        self.value = value

    async def resolve(self, request: Request, response: Response) -> Any:
        return self.value


class DynamicOptions:
    """Options computed from the current request/response pair."""

    def __init__(self, function: OptionsFunction):
        self.function = function

    async def resolve(self, request: Request, response: Response) -> Any:
        result = self.function(request, response)
        if inspect.isawaitable(result):
            result = await result
        return result


OptionsResolver = Union[StaticOptions, DynamicOptions]


def make_options_resolver(options: Any) -> OptionsResolver:
    if options is None:
        raise ConfigurationError("GraphQL server requires options.")

    # Decided once here, so requests never have to inspect the options again
    if callable(options):
        return DynamicOptions(options)
    return StaticOptions(options)
