"""函数执行器 / Function executor"""

import asyncio
import inspect
from functools import partial
from typing import Any, Callable, Optional

from extract_evo.executors.base import ExecutorResult, WorkflowExecutor


class FunctionExecutor(WorkflowExecutor):
    """
    通用函数执行器

    支持同步和异步函数；同步函数在线程池中运行。
    """

    def __init__(
        self,
        fn: Callable,
        map_cost: Optional[Callable[[Any], float]] = None,
        map_additional_context: Optional[Callable[[Any], Any]] = None,
    ):
        """
        Args:
            fn: 工作流入口，签名为 (input) 或 (input, system_prompt)
            map_cost: 从输出中提取成本
            map_additional_context: 从输出中提取附加上下文（用于优化提示）
        """
        self.fn = fn
        self.map_cost = map_cost
        self.map_additional_context = map_additional_context
        self._is_async = inspect.iscoroutinefunction(fn)
        self._takes_prompt = positional_arity(fn) >= 2

    async def execute(self, input: Any, system_prompt: Optional[str] = None) -> ExecutorResult:
        args = (input, system_prompt) if self._takes_prompt else (input,)

        if self._is_async:
            output = await self.fn(*args)
        else:
            loop = asyncio.get_running_loop()
            output = await loop.run_in_executor(None, partial(self.fn, *args))
            if inspect.isawaitable(output):
                output = await output

        return ExecutorResult(
            output=output,
            cost=self.map_cost(output) if self.map_cost else 0.0,
            additional_context=self.map_additional_context(output) if self.map_additional_context else None,
        )


def positional_arity(fn: Callable) -> int:
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return 2
    if any(p.kind == p.VAR_POSITIONAL for p in params):
        return 2
    return sum(1 for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD))
