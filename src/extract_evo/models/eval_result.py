"""评测结果模型 / Evaluation result models"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from extract_evo.models.comparison import FieldResult


# ─── 用例结果 / Per-case result ──────────────────────────

class TestCaseResult(BaseModel):
    """单个用例评测结果 / Result for one test case"""
    __test__ = False
    model_config = ConfigDict(frozen=True)

    # 输入输出 / Input and output
    input: Any = None
    expected: Any = None
    actual: Any = None
    additional_context: Any = None

    # 判定 / Verdict
    passed: bool = False
    fields: dict[str, FieldResult] = Field(default_factory=dict)
    passed_fields: int = 0
    total_fields: int = 0
    pass_rate: float = 0.0

    # 成本 / Cost
    cost: float = 0.0
    comparator_cost: float = 0.0

    error: Optional[str] = None

    def failed_fields(self) -> dict[str, FieldResult]:
        """未通过的字段 / Fields that did not pass"""
        return {path: f for path, f in self.fields.items() if not f.passed}


# ─── 评测报告 / Aggregate result ─────────────────────────

class EvalResult(BaseModel):
    """一次评测的汇总结果，用例按失败优先排序

    Aggregate of one evaluation. Test cases are sorted failing-first by
    ascending pass rate, fully-passing last.
    """
    model_config = ConfigDict(frozen=True)

    system_prompt: Optional[str] = None
    test_cases: list[TestCaseResult] = Field(default_factory=list)

    # 概览 / Overview
    passed: int = 0
    total: int = 0
    success_rate: float = 0.0

    # 字段维度 / Field level
    correct_fields: int = 0
    total_fields: int = 0
    accuracy: float = 0.0

    # 成本 / Cost
    cost: float = 0.0
    comparator_cost: float = 0.0

    duration_ms: int = 0
    log_folder: Optional[str] = None

    @property
    def total_cost(self) -> float:
        return self.cost + self.comparator_cost

    def failures(self) -> list[TestCaseResult]:
        """获取失败的用例 / Failing test cases"""
        return [r for r in self.test_cases if not r.passed]
