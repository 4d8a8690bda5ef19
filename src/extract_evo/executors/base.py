"""执行器基类 / Workflow executor base"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel


class ExecutorResult(BaseModel):
    """一次工作流执行的结果 / Result of one workflow execution"""
    output: Any = None
    cost: float = 0.0
    additional_context: Any = None


class WorkflowExecutor(ABC):
    """被测工作流的执行器 / Executor for the workflow under test

    执行器只负责调用工作流；业务异常直接抛出，由评测器按用例记录。
    """

    @abstractmethod
    async def execute(self, input: Any, system_prompt: Optional[str] = None) -> ExecutorResult:
        """
        执行工作流

        Args:
            input: 测试用例输入
            system_prompt: 当前系统提示词

        Returns:
            输出、成本与附加上下文
        """
        pass
