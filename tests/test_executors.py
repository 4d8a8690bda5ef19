"""Tests for workflow executors.

Test coverage:
- FunctionExecutor with sync and async callables, prompt passing, mappers
- EndpointExecutor request body, output extraction and HTTP errors
- MockExecutor cycling and input mapping
"""

import json

import httpx
import pytest

from extract_evo.executors import EndpointExecutor, FunctionExecutor, MockExecutor
from extract_evo.executors.callable import positional_arity


class TestFunctionExecutor:
    """Tests for wrapping plain functions."""

    @pytest.mark.asyncio
    async def test_sync_function(self):
        """Sync functions run and their output is returned."""
        result = await FunctionExecutor(lambda x: x * 2).execute(3, "ignored")
        assert result.output == 6
        assert result.cost == 0.0

    @pytest.mark.asyncio
    async def test_async_function_receives_prompt(self):
        """Two-argument functions get the system prompt."""
        async def run(input, system_prompt):
            return {"input": input, "prompt": system_prompt}

        result = await FunctionExecutor(run).execute("doc", "extract dates")
        assert result.output == {"input": "doc", "prompt": "extract dates"}

    @pytest.mark.asyncio
    async def test_mappers(self):
        """Cost and additional context are read from the output."""
        executor = FunctionExecutor(
            lambda x: {"value": x, "usage": 0.3, "trace": ["step"]},
            map_cost=lambda out: out["usage"],
            map_additional_context=lambda out: out["trace"],
        )
        result = await executor.execute(1)

        assert result.cost == 0.3
        assert result.additional_context == ["step"]

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        """Executor errors are raised to the caller."""
        def fail(x):
            raise ValueError("nope")

        with pytest.raises(ValueError, match="nope"):
            await FunctionExecutor(fail).execute(1)

    def test_positional_arity(self):
        """Arity counts positional parameters; *args counts as two."""
        assert positional_arity(lambda x: x) == 1
        assert positional_arity(lambda x, prompt=None: x) == 2
        assert positional_arity(lambda *args: args) == 2
        assert positional_arity(lambda x, *, key=None: x) == 1


class TestEndpointExecutor:
    """Tests for calling a remote workflow over HTTP."""

    @staticmethod
    def executor(handler, **kwargs):
        return EndpointExecutor("https://workflow.test/run", transport=httpx.MockTransport(handler), **kwargs)

    @pytest.mark.asyncio
    async def test_body_and_output(self):
        """The input is sent with systemPrompt and `output` is read back."""
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            seen["method"] = request.method
            return httpx.Response(200, json={"output": {"total": 5}, "cost": 0.1})

        result = await self.executor(handler, map_cost=lambda data: data["cost"]).execute({"doc": "x"}, "be exact")

        assert seen["method"] == "POST"
        assert seen["body"] == {"doc": "x", "systemPrompt": "be exact"}
        assert result.output == {"total": 5}
        assert result.cost == 0.1

    @pytest.mark.asyncio
    async def test_non_object_input_is_wrapped(self):
        """Scalar inputs are sent under the `input` key."""
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=[1, 2])

        result = await self.executor(handler).execute("text")

        assert seen["body"] == {"input": "text", "systemPrompt": None}
        assert result.output == [1, 2]

    @pytest.mark.asyncio
    async def test_whole_response_without_output_key(self):
        """Responses without `output` are used as-is."""
        result = await self.executor(lambda r: httpx.Response(200, json={"total": 1})).execute({})
        assert result.output == {"total": 1}

    @pytest.mark.asyncio
    async def test_map_response(self):
        """A response mapper picks the output."""
        handler = lambda r: httpx.Response(200, json={"data": {"result": 7}})
        result = await self.executor(handler, map_response=lambda d: d["data"]["result"]).execute({})
        assert result.output == 7

    @pytest.mark.asyncio
    async def test_http_error(self):
        """Non-2xx responses raise with status and body."""
        handler = lambda r: httpx.Response(503, text="unavailable")
        with pytest.raises(RuntimeError, match="HTTP 503: unavailable"):
            await self.executor(handler).execute({})

    @pytest.mark.asyncio
    async def test_custom_headers(self):
        """Custom headers are sent alongside the JSON content type."""
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={})

        await self.executor(handler, headers={"Authorization": "Bearer t"}).execute({})
        assert seen["auth"] == "Bearer t"


class TestMockExecutor:
    """Tests for canned outputs."""

    @pytest.mark.asyncio
    async def test_cycles_outputs(self):
        """Outputs are returned in order and wrap around."""
        executor = MockExecutor(["a", "b"])
        outputs = [(await executor.execute(None)).output for _ in range(3)]

        assert outputs == ["a", "b", "a"]
        assert executor.calls == 3

    @pytest.mark.asyncio
    async def test_function_outputs(self):
        """A function maps input (and optionally prompt) to output."""
        assert (await MockExecutor(lambda x: x + 1).execute(1)).output == 2
        assert (await MockExecutor(lambda x, p: p).execute(1, "sp")).output == "sp"

    def test_empty_outputs_rejected(self):
        """At least one canned output is required."""
        with pytest.raises(ValueError):
            MockExecutor([])
