"""无序数组的最优配对 / Optimal pairing for unordered collections

构建 n×m 代价矩阵 cost[i][j] = 1 - similarity(expected[i], actual[j])，
用 Hungarian（Kuhn-Munkres）算法在较小维度上求最小代价匹配。
这里只负责配对，不做通过/失败判定，也不设相似度阈值。

Builds an n×m cost matrix and solves the assignment problem over the smaller
dimension. Every returned pair is accepted; no pass/fail decision here.
Unmatched expected indices are reported; unmatched actual items are ignored
by callers.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from munkres import Munkres

from extract_evo.core.comparator_spec import Nested, comparator_for, is_graded, item_scope
from extract_evo.core.comparators import Comparator, exact, invoke
from extract_evo.models.comparison import ComparatorContext
from extract_evo.models.config import LLMConfig


@dataclass(frozen=True)
class MatchResult:
    """配对结果 / Pairing result"""
    assignments: list[tuple[int, int]] = field(default_factory=list)  # (expected_idx, actual_idx)
    unmatched_expected: list[int] = field(default_factory=list)
    unmatched_actual: list[int] = field(default_factory=list)


def hungarian(cost: list[list[float]]) -> list[tuple[int, int]]:
    """最小代价分配，返回 (row, col) 对，按行排序

    矩形矩阵由 Munkres 补齐为方阵求解，只返回原始行列内的配对。
    """
    if not cost or not cost[0]:
        return []
    return sorted(Munkres().compute([list(row) for row in cost]))


class StructuralMatcher:
    """基于比较器相似度的结构化配对 / Pairing driven by comparator similarity

    相似度递归计算：
    - 数组：递归配对，已配对元素相似度之和 / max(len)，长度不一致会被惩罚
    - 对象：只在配置了比较器的字段上取平均；没有这类字段时视为 1.0
    - 基本类型（或类型不一致）：使用元素比较器，缺省 exact
    """

    def __init__(
        self,
        comparators: Optional[Nested] = None,
        item_comparator: Optional[Comparator] = None,
        llm: Optional[LLMConfig] = None,
    ):
        self.comparators = comparators or Nested()
        self.item_comparator = item_comparator
        self.llm = llm

    async def match(self, expected: list[Any], actual: list[Any]) -> MatchResult:
        return await self._match(expected, actual, self.comparators, self.item_comparator)

    async def similarity(self, expected: Any, actual: Any) -> float:
        return await self._similarity(expected, actual, self.comparators, self.item_comparator)

    async def _match(
        self,
        expected: list[Any],
        actual: list[Any],
        scope: Nested,
        item_comparator: Optional[Comparator],
    ) -> MatchResult:
        if not expected:
            return MatchResult(unmatched_actual=list(range(len(actual))))
        if not actual:
            return MatchResult(unmatched_expected=list(range(len(expected))))

        # 代价 = 1 - 相似度 / cost = 1 - similarity
        matrix = []
        for exp_item in expected:
            row = []
            for act_item in actual:
                sim = await self._similarity(exp_item, act_item, scope, item_comparator)
                row.append(1.0 - _clamp(sim))
            matrix.append(row)

        assignments = hungarian(matrix)
        matched_exp = {i for i, _ in assignments}
        matched_act = {j for _, j in assignments}
        return MatchResult(
            assignments=assignments,
            unmatched_expected=[i for i in range(len(expected)) if i not in matched_exp],
            unmatched_actual=[j for j in range(len(actual)) if j not in matched_act],
        )

    async def _similarity(
        self,
        expected: Any,
        actual: Any,
        scope: Nested,
        item_comparator: Optional[Comparator],
    ) -> float:
        if _is_array(expected) and _is_array(actual):
            if not expected and not actual:
                return 1.0
            if not expected or not actual:
                return 0.0
            result = await self._match(expected, actual, scope, item_comparator)
            total = 0.0
            for exp_idx, act_idx in result.assignments:
                total += await self._similarity(expected[exp_idx], actual[act_idx], scope, item_comparator)
            return total / max(len(expected), len(actual))

        if not isinstance(expected, Mapping) or not isinstance(actual, Mapping):
            comparator = item_comparator or exact
            result = await invoke(comparator, expected, actual, ComparatorContext(llm=self.llm))
            return result.effective_similarity

        graded = [key for key in expected if is_graded(scope.get(key))]
        # 没有可比较字段：不关心 / no graded fields: indifferent
        if not graded:
            return 1.0

        context = ComparatorContext(expected_parent=expected, actual_parent=actual, llm=self.llm)
        total = 0.0
        for key in graded:
            spec = scope.get(key)
            exp_value, act_value = expected[key], actual.get(key)
            if _is_array(exp_value) and _is_array(act_value):
                total += await self._similarity(
                    exp_value, act_value, item_scope(spec, scope), comparator_for(spec),
                )
            else:
                result = await invoke(comparator_for(spec), exp_value, act_value, context)
                total += result.effective_similarity
        return total / len(graded)


async def match_arrays(
    expected: list[Any],
    actual: list[Any],
    comparators: Optional[Nested] = None,
    item_comparator: Optional[Comparator] = None,
    llm: Optional[LLMConfig] = None,
) -> MatchResult:
    """便捷入口 / Convenience wrapper around StructuralMatcher"""
    return await StructuralMatcher(comparators, item_comparator, llm).match(expected, actual)


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _clamp(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return min(max(value, 0.0), 1.0)
