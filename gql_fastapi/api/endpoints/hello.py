from starlette.requests import Request
from starlette.responses import Response

from gql_fastapi.api.graphql import graphql_router
from gql_fastapi.core import example_schema
from gql_fastapi.core.config import settings
from gql_fastapi.core.schemas import GraphQLOptions


# Options are computed per request so resolvers can see who is asking
async def get_graphql_options(request: Request, response: Response) -> GraphQLOptions:
    response.headers["Cache-Control"] = "no-store"
    return GraphQLOptions(
        schema=example_schema.schema,
        root_value=example_schema.root_value,
        context_value={
            "request": request,
            "user_agent": request.headers.get("user-agent"),
        },
        debug=settings.GRAPHQL_DEBUG,
    )


router = graphql_router(get_graphql_options, path=settings.GRAPHQL_PATH)
