"""结构化 diff / Recursive field-level diff

对 expected 与 actual 递归比较，每个可寻址的叶子产生一个 FieldResult，
路径格式：对象键用点号，下标用方括号（`a.b[2].c`、`[0]`，根为 ""）。

- 数组：actual 不是数组时整体失败；expected 为空不产生字段；
  按位置或通过 StructuralMatcher 配对后递归，未配对的 expected 项产生失败占位
- 对象：只遍历 expected 中的键，actual 缺失的键按 None 继续比较
- 基本类型：按当前作用域中的字段名查找比较器；根路径缺省 exact，其余未配置字段跳过
"""

from collections.abc import Mapping
from typing import Any, Optional

from extract_evo.core.comparator_spec import (
    Leaf, Nested, Unordered, child_scope, comparator_for, item_scope, resolve_root,
)
from extract_evo.core.comparators import invoke
from extract_evo.core.matching import StructuralMatcher
from extract_evo.models.comparison import ComparatorContext, FieldResult
from extract_evo.models.config import LLMConfig


class DiffWalker:
    """字段级 diff / Field-level diff walker

    作用域（Nested）决定字段查找：Nested 配置为该键开新作用域，其他情况沿用上级。
    """

    def __init__(self, unordered_lists: bool = False, llm: Optional[LLMConfig] = None):
        self.unordered_lists = unordered_lists
        self.llm = llm

    async def walk(
        self,
        expected: Any,
        actual: Any,
        scope: Nested,
        path: str = "",
        field: str = "",
        expected_parent: Any = None,
        actual_parent: Any = None,
    ) -> dict[str, FieldResult]:
        if _is_array(expected):
            return await self._walk_array(expected, actual, scope, path, field, expected_parent, actual_parent)
        spec = scope.get(field)
        if isinstance(expected, Mapping):
            # 根数组配置了单个比较器时，元素整体比较 / whole-element grading under a root comparator
            if path and field == "" and isinstance(spec, Leaf):
                return await self._compare(spec, expected, actual, path, expected_parent, actual_parent)
            return await self._walk_object(expected, actual, scope, path)

        # 未配置的字段不计分，根路径除外 / unconfigured non-root fields are skipped
        if spec is None and field != "":
            return {}
        return await self._compare(spec, expected, actual, path, expected_parent, actual_parent)

    async def _compare(
        self,
        spec: Any,
        expected: Any,
        actual: Any,
        path: str,
        expected_parent: Any,
        actual_parent: Any,
    ) -> dict[str, FieldResult]:
        context = ComparatorContext(expected_parent=expected_parent, actual_parent=actual_parent, llm=self.llm)
        result = await invoke(comparator_for(spec), expected, actual, context)
        return {path: FieldResult.from_result(result, expected, actual)}

    async def _walk_object(self, expected: Mapping, actual: Any, scope: Nested, path: str) -> dict[str, FieldResult]:
        if not isinstance(actual, Mapping):
            return {path: FieldResult.failure(expected, actual)}

        fields: dict[str, FieldResult] = {}
        for key, exp_value in expected.items():
            key = str(key)
            fields.update(await self.walk(
                exp_value,
                actual.get(key),
                child_scope(scope.get(key), scope),
                path=_key_path(path, key),
                field=key,
                expected_parent=expected,
                actual_parent=actual,
            ))
        return fields

    async def _walk_array(
        self,
        expected: list,
        actual: Any,
        scope: Nested,
        path: str,
        field: str,
        expected_parent: Any,
        actual_parent: Any,
    ) -> dict[str, FieldResult]:
        if not _is_array(actual):
            return {path: FieldResult.failure(expected, actual)}
        if not expected:
            return {}

        spec = scope.get(field)
        items = item_scope(spec, scope)

        if self.unordered_lists or isinstance(spec, Unordered):
            matcher = StructuralMatcher(items, _item_comparator(spec), self.llm)
            pairs = (await matcher.match(expected, actual)).assignments
        else:
            pairs = [(i, i) for i in range(min(len(expected), len(actual)))]

        fields: dict[str, FieldResult] = {}
        for exp_idx, act_idx in pairs:
            fields.update(await self.walk(
                expected[exp_idx],
                actual[act_idx],
                items,
                path=_index_path(path, exp_idx),
                field=field,
                expected_parent=expected_parent,
                actual_parent=actual_parent,
            ))

        # 未配对的 expected 项：有比较器的键各产生一个失败占位
        matched = {exp_idx for exp_idx, _ in pairs}
        governed = spec is not None or field == ""
        whole_items = field == "" and isinstance(spec, Leaf)
        for idx, item in enumerate(expected):
            if idx in matched:
                continue
            item_path = _index_path(path, idx)
            if isinstance(item, Mapping) and not whole_items:
                for key, value in item.items():
                    if str(key) in items:
                        fields[_key_path(item_path, str(key))] = FieldResult.failure(value)
            elif governed:
                fields[item_path] = FieldResult.failure(item)
        return fields


async def compare_fields(
    expected: Any,
    actual: Any,
    comparators: Any = None,
    unordered_lists: bool = False,
    llm: Optional[LLMConfig] = None,
) -> dict[str, FieldResult]:
    """比较一个用例的输出，返回 path -> FieldResult

    comparators 可以是原始用户配置，也可以是已经归一化的 ComparatorSpec。
    """
    root = resolve_root(comparators)

    # 单个比较器作用于非数组根：整体比较 / single comparator on a non-array root
    if isinstance(root, Leaf) and not _is_array(expected):
        result = await invoke(root.comparator, expected, actual, ComparatorContext(llm=llm))
        return {"": FieldResult.from_result(result, expected, actual)}

    scope = root if isinstance(root, Nested) else Nested({"": root})
    return await DiffWalker(unordered_lists, llm).walk(expected, actual, scope)


async def compare_whole(
    comparator: Any,
    expected: Any,
    actual: Any,
    llm: Optional[LLMConfig] = None,
) -> dict[str, FieldResult]:
    """comparator_override：整体比较，产生一个根字段 / Whole-object comparison"""
    result = await invoke(comparator, expected, actual, ComparatorContext(llm=llm))
    return {"": FieldResult.from_result(result, expected, actual)}


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _item_comparator(spec: Any) -> Optional[Any]:
    if spec is None or isinstance(spec, Nested):
        return None
    return comparator_for(spec)


def _key_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _index_path(path: str, index: int) -> str:
    return f"{path}[{index}]"
