"""工作流执行器 / Workflow executors"""

from extract_evo.executors.base import ExecutorResult, WorkflowExecutor
from extract_evo.executors.callable import FunctionExecutor
from extract_evo.executors.endpoint import EndpointExecutor
from extract_evo.executors.mock import MockExecutor

__all__ = ["ExecutorResult", "WorkflowExecutor", "FunctionExecutor", "EndpointExecutor", "MockExecutor"]
