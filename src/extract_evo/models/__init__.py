"""数据模型 / Data models"""

from extract_evo.models.test_case import TestCase, TestSuite
from extract_evo.models.config import (
    Config, LLMConfig, LLMProvider, EvalConfig,
    WorkflowConfig, EvalSettings, OptimizationSettings,
)
from extract_evo.models.comparison import ComparatorResult, ComparatorContext, FieldResult
from extract_evo.models.eval_result import TestCaseResult, EvalResult
from extract_evo.models.optimization import OptimizeConfig, IterationRecord, OptimizeResult

__all__ = [
    # 测试用例 / Test cases
    "TestCase", "TestSuite",
    # 配置 / Configuration
    "Config", "LLMConfig", "LLMProvider", "EvalConfig",
    "WorkflowConfig", "EvalSettings", "OptimizationSettings",
    # 比较 / Comparison
    "ComparatorResult", "ComparatorContext", "FieldResult",
    # 评测结果 / Evaluation results
    "TestCaseResult", "EvalResult",
    # 优化 / Optimization
    "OptimizeConfig", "IterationRecord", "OptimizeResult",
]
