import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from gql_fastapi.api.graphql import graphql_router
from gql_fastapi.core import example_schema
from gql_fastapi.core.schemas import GraphQLOptions
from gql_fastapi.main import app


def build_app(options, run_query=None) -> FastAPI:
    """Fresh app with the GraphQL route mounted at /graphql."""
    test_app = FastAPI()
    kwargs = {} if run_query is None else {"run_query": run_query}
    test_app.include_router(graphql_router(options, **kwargs))
    return test_app


def make_client(test_app: FastAPI, raise_app_exceptions: bool = True) -> AsyncClient:
    return AsyncClient(
        transport=ASGITransport(
            app=test_app, raise_app_exceptions=raise_app_exceptions
        ),
        base_url="http://test",
    )


# Static options for the example schema
@pytest.fixture
def hello_options():
    return GraphQLOptions(
        schema=example_schema.schema, root_value=example_schema.root_value
    )


# Client for the demo app
@pytest_asyncio.fixture(scope="function")
async def client():
    async with make_client(app) as ac:
        yield ac


# Factories, so each test can mount its own options and engine
@pytest.fixture
def app_factory():
    return build_app


@pytest.fixture
def client_factory():
    return make_client
