"""extract-evo - LLM 抽取工作流评测与提示词优化
extract-evo - evaluation and prompt optimization for LLM extraction workflows"""

__version__ = "0.1.0"

from extract_evo.core.comparators import (
    contains, custom, date, exact, llm_compare, name, numeric, numeric_nullable,
    one_of, presence, within,
)
from extract_evo.core.comparator_spec import unordered
from extract_evo.core.evaluator import Evaluator, evaluate
from extract_evo.core.optimizer import Optimizer, optimize
from extract_evo.executors import EndpointExecutor, FunctionExecutor, MockExecutor, WorkflowExecutor
from extract_evo.models import EvalConfig, EvalResult, LLMConfig, LLMProvider, OptimizeConfig, OptimizeResult, TestCase

__all__ = [
    "__version__",
    # 比较器 / Comparators
    "contains", "custom", "date", "exact", "llm_compare", "name", "numeric", "numeric_nullable",
    "one_of", "presence", "within", "unordered",
    # 评测与优化 / Evaluation and optimization
    "Evaluator", "evaluate", "Optimizer", "optimize",
    # 执行器 / Executors
    "EndpointExecutor", "FunctionExecutor", "MockExecutor", "WorkflowExecutor",
    # 模型 / Models
    "EvalConfig", "EvalResult", "LLMConfig", "LLMProvider", "OptimizeConfig", "OptimizeResult", "TestCase",
]
