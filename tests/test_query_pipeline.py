"""Tests for the typed query pipeline."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from adapters.github_auth import TokenAuth
from adapters.http_client import HttpxRequestExecutor
from core.domain.models import Issue, Repository
from core.errors import (
    CharacterSetError,
    DecodingError,
    GraphqlClientError,
    HttpError,
    ResponseTooLargeError,
)
from core.services.query_pipeline import GithubGraphqlClient
from tests.helpers import (
    SingleConnectionTransport,
    StubExecutor,
    UnreadableStream,
    streamed_response,
)

GRAPHQL_URL = "https://api.github.com/graphql"


def _client(executor, **kwargs) -> GithubGraphqlClient:
    return GithubGraphqlClient(executor, graphql_url=GRAPHQL_URL, **kwargs)


class TestRequestConstruction:
    """The outgoing request carries only the rendered query document."""

    @pytest.mark.asyncio
    async def test_posts_query_envelope_to_graphql_endpoint(self):
        executor = StubExecutor(streamed_response(200, b'{"id":"R_123","name":"demo"}'))

        await _client(executor).query(Repository, "R_123")

        assert len(executor.requests) == 1
        request = executor.requests[0]
        assert request.method == "POST"
        assert str(request.url) == GRAPHQL_URL
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"query": Repository.graphql_query("R_123")}

    @pytest.mark.asyncio
    async def test_envelope_has_no_variables_or_operation_name(self):
        executor = StubExecutor(streamed_response(200, b'{"id":"R_1","name":"x"}'))

        await _client(executor).query(Repository, "R_1")

        assert set(json.loads(executor.requests[0].content)) == {"query"}


class TestSuccessPath:
    @pytest.mark.asyncio
    async def test_repository_scenario(self):
        executor = StubExecutor(streamed_response(200, b'{"id":"R_123","name":"demo"}'))

        result = await _client(executor).query(Repository, "R_123")

        assert result == Repository(id="R_123", name="demo")

    @pytest.mark.asyncio
    async def test_result_equals_direct_decode(self):
        body = json.dumps(
            {
                "data": {
                    "node": {
                        "id": "I_9",
                        "number": 12,
                        "title": "Crash on start",
                        "state": "OPEN",
                        "url": "https://github.com/o/r/issues/12",
                    }
                }
            }
        ).encode("utf-8")
        executor = StubExecutor(streamed_response(200, body))

        result = await _client(executor).query(Issue, "I_9")

        assert result == Issue.model_validate_json(body)
        assert result.number == 12


class TestHttpError:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [201, 204, 301, 401, 403, 404, 500, 502])
    async def test_non_ok_status_raises_without_reading_body(self, status_code):
        stream = UnreadableStream()
        response = httpx.Response(status_code, stream=stream)
        executor = StubExecutor(response)

        with pytest.raises(HttpError) as excinfo:
            await _client(executor).query(Repository, "R_123")

        assert excinfo.value.response is response
        assert excinfo.value.status_code == status_code
        assert not response.is_stream_consumed
        assert response.is_closed
        assert stream.closed

    @pytest.mark.asyncio
    async def test_not_found_scenario(self):
        response = httpx.Response(404, stream=UnreadableStream())
        executor = StubExecutor(response)

        with pytest.raises(HttpError) as excinfo:
            await _client(executor).query(Repository, "R_123")

        assert isinstance(excinfo.value, GraphqlClientError)
        assert excinfo.value.status_code == 404
        assert not response.is_stream_consumed


class TestDecodeFallback:
    @pytest.mark.asyncio
    async def test_graphql_errors_envelope_is_decoding_error_with_text(self):
        text = '{"errors":[{"message":"Could not resolve to a node with the global id of \'R_123\'"}]}'
        executor = StubExecutor(streamed_response(200, text.encode("utf-8")))

        with pytest.raises(DecodingError) as excinfo:
            await _client(executor).query(Repository, "R_123")

        assert excinfo.value.body == text

    @pytest.mark.asyncio
    async def test_null_node_is_decoding_error(self):
        text = '{"data":{"node":null}}'
        executor = StubExecutor(streamed_response(200, text.encode("utf-8")))

        with pytest.raises(DecodingError) as excinfo:
            await _client(executor).query(Repository, "R_404")

        assert excinfo.value.body == text

    @pytest.mark.asyncio
    async def test_non_json_text_is_decoding_error(self):
        text = "<html>rate limited</html>"
        executor = StubExecutor(streamed_response(200, text.encode("utf-8")))

        with pytest.raises(DecodingError) as excinfo:
            await _client(executor).query(Repository, "R_123")

        assert excinfo.value.body == text

    @pytest.mark.asyncio
    async def test_binary_body_is_character_set_error_with_bytes(self):
        body = b"\xff\xfe\x00\x81binary\xc3"
        executor = StubExecutor(streamed_response(200, body))

        with pytest.raises(CharacterSetError) as excinfo:
            await _client(executor).query(Repository, "R_123")

        assert excinfo.value.body == body

    @pytest.mark.asyncio
    async def test_empty_body_is_decoding_error(self):
        executor = StubExecutor(streamed_response(200, b""))

        with pytest.raises(DecodingError) as excinfo:
            await _client(executor).query(Repository, "R_123")

        assert excinfo.value.body == ""


class TestBodyLimit:
    @pytest.mark.asyncio
    async def test_body_over_default_cap_fails(self):
        payload = b'{"id":"R_1","name":"' + b"a" * (10 * 1024) + b'"}'
        executor = StubExecutor(streamed_response(200, payload))

        with pytest.raises(ResponseTooLargeError) as excinfo:
            await _client(executor).query(Repository, "R_1")

        assert excinfo.value.limit == 10 * 1024

    @pytest.mark.asyncio
    async def test_body_exactly_at_cap_is_decoded(self):
        prefix = b'{"id":"R_1","name":"demo"}'
        payload = prefix + b" " * (10 * 1024 - len(prefix))
        executor = StubExecutor(streamed_response(200, payload))

        result = await _client(executor).query(Repository, "R_1")

        assert result == Repository(id="R_1", name="demo")

    @pytest.mark.asyncio
    async def test_configured_cap_is_honoured(self):
        executor = StubExecutor(streamed_response(200, b'{"id":"R_1","name":"demo"}', chunk_size=4))

        with pytest.raises(ResponseTooLargeError):
            await _client(executor, max_response_bytes=8).query(Repository, "R_1")


class TestExecutorFailures:
    @pytest.mark.asyncio
    async def test_transport_errors_propagate_unchanged(self):
        error = httpx.ConnectError("connection refused")
        executor = StubExecutor(error=error)

        with pytest.raises(httpx.ConnectError) as excinfo:
            await _client(executor).query(Repository, "R_123")

        assert excinfo.value is error

    @pytest.mark.asyncio
    async def test_executor_cancellation_propagates_unchanged(self):
        error = asyncio.CancelledError()
        executor = StubExecutor(error=error)

        with pytest.raises(asyncio.CancelledError) as excinfo:
            await _client(executor).query(Repository, "R_123")

        assert excinfo.value is error

    @pytest.mark.asyncio
    async def test_cancelling_a_pending_query(self):
        started = asyncio.Event()

        class BlockingExecutor(StubExecutor):
            async def execute(self, request: httpx.Request) -> httpx.Response:
                self.requests.append(request)
                started.set()
                await asyncio.Event().wait()
                raise AssertionError("unreachable")  # pragma: no cover

        executor = BlockingExecutor()
        task = asyncio.create_task(_client(executor).query(Repository, "R_123"))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert task.cancelled()
        assert len(executor.requests) == 1


class TestWithHttpxExecutor:
    """End to end through HttpxRequestExecutor and httpx.MockTransport."""

    @pytest.mark.asyncio
    async def test_concurrent_queries_do_not_interfere(self):
        seen_auth: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen_auth.append(request.headers["Authorization"])
            document = json.loads(request.content)["query"]
            node_id = document.split('node(id: "', 1)[1].split('"', 1)[0]
            return httpx.Response(200, json={"data": {"node": {"id": node_id, "name": f"repo-{node_id}"}}})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), auth=TokenAuth("secret"))
        async with GithubGraphqlClient(HttpxRequestExecutor(client), graphql_url=GRAPHQL_URL) as gql:
            ids = [f"R_{n}" for n in range(10)]
            results = await asyncio.gather(*(gql.query(Repository, node_id) for node_id in ids))

        assert [r.id for r in results] == ids
        assert [r.name for r in results] == [f"repo-{node_id}" for node_id in ids]
        assert seen_auth == ["Bearer secret"] * 10
        assert client.is_closed

    @pytest.mark.asyncio
    async def test_http_error_response_is_closed_unread(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, stream=UnreadableStream())

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with GithubGraphqlClient(HttpxRequestExecutor(client), graphql_url=GRAPHQL_URL) as gql:
            with pytest.raises(HttpError) as excinfo:
                await gql.query(Repository, "R_1")

        assert excinfo.value.status_code == 502

    @pytest.mark.asyncio
    async def test_http_errors_release_the_pooled_connection(self):
        transport = SingleConnectionTransport(404, b'{"message":"Not Found"}')
        client = httpx.AsyncClient(transport=transport)

        async with GithubGraphqlClient(HttpxRequestExecutor(client), graphql_url=GRAPHQL_URL) as gql:
            with pytest.raises(HttpError) as first:
                await gql.query(Repository, "R_1")
            with pytest.raises(HttpError) as second:
                await gql.query(Repository, "R_2")

        assert first.value.response.is_closed
        assert first.value.response.headers["X-GitHub-Request-Id"] == "req-1"
        assert second.value.status_code == 404
        assert transport.requests == 2
        assert not transport.in_use

    @pytest.mark.asyncio
    async def test_successful_queries_release_the_pooled_connection(self):
        transport = SingleConnectionTransport(200, b'{"id":"R_1","name":"demo"}')
        client = httpx.AsyncClient(transport=transport)

        async with GithubGraphqlClient(HttpxRequestExecutor(client), graphql_url=GRAPHQL_URL) as gql:
            await gql.query(Repository, "R_1")
            await gql.query(Repository, "R_1")

        assert transport.requests == 2
        assert not transport.in_use
