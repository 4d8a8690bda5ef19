"""HTTP 端点执行器 / HTTP endpoint executor"""

from collections.abc import Mapping
from typing import Any, Callable, Literal, Optional

import httpx

from extract_evo.executors.base import ExecutorResult, WorkflowExecutor

DEFAULT_ENDPOINT_TIMEOUT = 30.0


class EndpointExecutor(WorkflowExecutor):
    """
    调用远程工作流

    请求体为输入对象加上 systemPrompt 字段；非 2xx 响应抛出异常。
    默认从响应的 output 键读取输出，没有则使用整个响应。
    """

    def __init__(
        self,
        url: str,
        method: Literal["POST", "GET"] = "POST",
        headers: Optional[dict[str, str]] = None,
        timeout: float = DEFAULT_ENDPOINT_TIMEOUT,
        map_response: Optional[Callable[[Any], Any]] = None,
        map_cost: Optional[Callable[[Any], float]] = None,
        map_additional_context: Optional[Callable[[Any], Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.method = method
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self.timeout = timeout
        self.map_response = map_response
        self.map_cost = map_cost
        self.map_additional_context = map_additional_context
        self._transport = transport

    async def execute(self, input: Any, system_prompt: Optional[str] = None) -> ExecutorResult:
        body = dict(input) if isinstance(input, Mapping) else {"input": input}
        body["systemPrompt"] = system_prompt

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.request(self.method, self.url, json=body, headers=self.headers)

        if not resp.is_success:
            raise RuntimeError(f"HTTP {resp.status_code}: {resp.text}")

        data = resp.json()
        if self.map_response:
            output = self.map_response(data)
        elif isinstance(data, Mapping) and data.get("output") is not None:
            output = data["output"]
        else:
            output = data

        return ExecutorResult(
            output=output,
            cost=self.map_cost(data) if self.map_cost else 0.0,
            additional_context=self.map_additional_context(data) if self.map_additional_context else None,
        )
