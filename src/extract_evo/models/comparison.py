"""比较结果模型 / Comparison result models"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from extract_evo.models.config import LLMConfig


class ComparatorResult(BaseModel):
    """比较器返回值 / Value returned by a comparator"""
    model_config = ConfigDict(frozen=True)

    passed: bool
    similarity: Optional[float] = Field(default=None, ge=0.0, le=1.0, description="0-1，用于匹配")
    rationale: Optional[str] = Field(default=None, description="判定理由（如 LLM 比较器）")
    cost: Optional[float] = Field(default=None, ge=0.0, description="本次比较的成本")

    @property
    def effective_similarity(self) -> float:
        """未给出 similarity 时按 passed 推导 / Derived from passed when absent"""
        if self.similarity is not None:
            return self.similarity
        return 1.0 if self.passed else 0.0


class ComparatorContext(BaseModel):
    """比较上下文：直接父对象，用于跨字段规则 / Immediate parents for cross-field rules"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    expected_parent: Any = None
    actual_parent: Any = None
    llm: Optional[LLMConfig] = None


class FieldResult(BaseModel):
    """单个字段的比较结果 / Result for one compared field"""
    model_config = ConfigDict(frozen=True)

    passed: bool
    expected: Any = None
    actual: Any = None
    similarity: Optional[float] = None
    rationale: Optional[str] = None
    cost: Optional[float] = None

    @classmethod
    def from_result(cls, result: ComparatorResult, expected: Any, actual: Any) -> "FieldResult":
        return cls(
            passed=result.passed,
            expected=expected,
            actual=actual,
            similarity=result.similarity,
            rationale=result.rationale,
            cost=result.cost,
        )

    @classmethod
    def failure(cls, expected: Any, actual: Any = None) -> "FieldResult":
        """结构不匹配或缺失项 / Structural mismatch or missing item"""
        return cls(passed=False, expected=expected, actual=actual, similarity=0.0)
