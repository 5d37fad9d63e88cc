import asyncio

import pytest

from gql_fastapi.api.graphql import graphql_fastapi, graphql_router
from gql_fastapi.core.errors import ConfigurationError, HttpQueryError
from gql_fastapi.core.options import DynamicOptions, StaticOptions, make_options_resolver
from gql_fastapi.core.schemas import ResponseInit, SingleResponse


def options_echo_engine():
    """Engine answering with whatever the options resolved to"""

    async def run_query(handler_args, query_request):
        options = await query_request.options.resolve(*handler_args)
        return SingleResponse(body=str(options["tag"]))

    return run_query


def test_missing_options_fail_at_setup():
    with pytest.raises(ConfigurationError, match="requires options"):
        graphql_fastapi(None)


def test_zero_arguments_fail_at_setup():
    with pytest.raises(TypeError):
        graphql_fastapi()


def test_two_arguments_fail_at_setup_naming_the_count(hello_options):
    with pytest.raises(TypeError, match="2 were given"):
        graphql_fastapi(hello_options, hello_options)


def test_three_arguments_fail_at_setup_naming_the_count(hello_options):
    with pytest.raises(TypeError, match="3 were given"):
        graphql_router(hello_options, hello_options, hello_options)


def test_options_must_be_positional(hello_options):
    with pytest.raises(TypeError):
        graphql_fastapi(options=hello_options)


def test_resolver_variant_is_picked_once(hello_options):
    assert isinstance(make_options_resolver(hello_options), StaticOptions)
    assert isinstance(make_options_resolver(lambda req, res: hello_options), DynamicOptions)


@pytest.mark.asyncio
async def test_static_options_are_shared(hello_options):
    resolver = make_options_resolver(hello_options)

    assert await resolver.resolve(None, None) is hello_options
    assert await resolver.resolve(None, None) is hello_options


@pytest.mark.asyncio
async def test_sync_options_function(app_factory, client_factory):
    calls = []

    def get_options(request, response):
        calls.append(request.url.path)
        return {"tag": "sync"}

    async with client_factory(app_factory(get_options, options_echo_engine())) as client:
        response = await client.post("/graphql", json={"query": "{ hello }"})

    assert response.text == "sync"
    assert calls == ["/graphql"]


@pytest.mark.asyncio
async def test_async_options_function(app_factory, client_factory):
    async def get_options(request, response):
        await asyncio.sleep(0)
        return {"tag": request.headers["x-tenant"]}

    async with client_factory(app_factory(get_options, options_echo_engine())) as client:
        first, second = await asyncio.gather(
            client.post("/graphql", json={"query": "{ hello }"}, headers={"x-tenant": "a"}),
            client.post("/graphql", json={"query": "{ hello }"}, headers={"x-tenant": "b"}),
        )

    assert first.text == "a"
    assert second.text == "b"


@pytest.mark.asyncio
async def test_options_function_failure_only_hits_that_request(
    app_factory, client_factory
):
    """A failing options function is a protocol error for that request alone"""

    def get_options(request, response):
        if request.headers.get("x-broken"):
            raise HttpQueryError(401, "No tenant")
        return {"tag": "ok"}

    async with client_factory(app_factory(get_options, options_echo_engine())) as client:
        broken = await client.post(
            "/graphql", json={"query": "{ hello }"}, headers={"x-broken": "1"}
        )
        healthy = await client.post("/graphql", json={"query": "{ hello }"})

    assert broken.status_code == 401
    assert broken.text == "No tenant"
    assert healthy.status_code == 200
    assert healthy.text == "ok"


@pytest.mark.asyncio
async def test_options_function_can_set_response_headers(app_factory, client_factory):
    def get_options(request, response):
        response.headers["X-Options"] = "computed"
        response.set_cookie("session", "abc")
        return {"tag": "ok"}

    async with client_factory(app_factory(get_options, options_echo_engine())) as client:
        response = await client.post("/graphql", json={"query": "{ hello }"})

    assert response.headers["x-options"] == "computed"
    assert "session=abc" in response.headers["set-cookie"]
    assert response.headers["content-length"] == "2"


def failing_engine(error):
    async def run_query(handler_args, query_request):
        await query_request.options.resolve(*handler_args)
        raise error

    return run_query


@pytest.mark.asyncio
async def test_options_status_does_not_override_protocol_error(
    app_factory, client_factory
):
    """The error's own status wins over one set by the options function"""

    def get_options(request, response):
        response.status_code = 202
        return {"tag": "ok"}

    engine = failing_engine(HttpQueryError(400, "bad"))
    async with client_factory(app_factory(get_options, engine)) as client:
        response = await client.post("/graphql", json={"query": "{ hello }"})

    assert response.status_code == 400
    assert response.text == "bad"


@pytest.mark.asyncio
async def test_options_status_does_not_override_explicit_single_status(
    app_factory, client_factory
):
    def get_options(request, response):
        response.status_code = 202
        return {"tag": "ok"}

    async def run_query(handler_args, query_request):
        await query_request.options.resolve(*handler_args)
        return SingleResponse(body="{}", response_init=ResponseInit(status=201))

    async with client_factory(app_factory(get_options, run_query)) as client:
        response = await client.post("/graphql", json={"query": "{ hello }"})

    assert response.status_code == 201


@pytest.mark.asyncio
async def test_options_status_applies_when_outcome_has_none(app_factory, client_factory):
    def get_options(request, response):
        response.status_code = 202
        return {"tag": "ok"}

    async with client_factory(app_factory(get_options, options_echo_engine())) as client:
        response = await client.post("/graphql", json={"query": "{ hello }"})

    assert response.status_code == 202
    assert response.text == "ok"


@pytest.mark.asyncio
async def test_outcome_headers_replace_options_headers(app_factory, client_factory):
    """A header set by both sides appears once, with the engine's value"""

    def get_options(request, response):
        response.headers["Content-Type"] = "text/plain"
        response.set_cookie("a", "1")
        return {"tag": "ok"}

    async def run_query(handler_args, query_request):
        await query_request.options.resolve(*handler_args)
        return SingleResponse(
            body="{}",
            response_init=ResponseInit(
                headers={"Content-Type": "application/json", "Set-Cookie": "b=2"}
            ),
        )

    async with client_factory(app_factory(get_options, run_query)) as client:
        response = await client.post("/graphql", json={"query": "{ hello }"})

    assert response.headers.get_list("content-type") == ["application/json"]
    cookies = response.headers.get_list("set-cookie")
    assert len(cookies) == 2
    assert any(cookie.startswith("a=1") for cookie in cookies)


@pytest.mark.asyncio
async def test_error_headers_replace_options_headers(app_factory, client_factory):
    def get_options(request, response):
        response.headers["Allow"] = "GET"
        return {"tag": "ok"}

    engine = failing_engine(HttpQueryError(405, "nope", headers={"Allow": "POST"}))
    async with client_factory(app_factory(get_options, engine)) as client:
        response = await client.post("/graphql", json={"query": "{ hello }"})

    assert response.headers.get_list("allow") == ["POST"]
