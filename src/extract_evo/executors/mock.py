"""测试用执行器 / Mock executor"""

import inspect
from typing import Any, Callable, Optional, Union

from extract_evo.executors.base import ExecutorResult, WorkflowExecutor
from extract_evo.executors.callable import positional_arity


class MockExecutor(WorkflowExecutor):
    """按顺序循环返回固定输出，或按输入计算输出

    Returns canned outputs in sequence (cycling), or maps input via a function.
    """

    def __init__(self, outputs: Union[list[Any], Callable[..., Any]]):
        if not callable(outputs) and not outputs:
            raise ValueError("MockExecutor requires at least one output")
        self.outputs = outputs
        self.calls = 0

    async def execute(self, input: Any, system_prompt: Optional[str] = None) -> ExecutorResult:
        index = self.calls
        self.calls += 1

        if callable(self.outputs):
            args = (input, system_prompt) if positional_arity(self.outputs) >= 2 else (input,)
            output = self.outputs(*args)
            if inspect.isawaitable(output):
                output = await output
            return ExecutorResult(output=output)

        return ExecutorResult(output=self.outputs[index % len(self.outputs)])
