"""比较器配置的归一化表示 / Normalized comparator configuration

用户配置可以是单个比较器、unordered(...) 包装、字段映射（可嵌套），或不配置。
进入 diff 之前统一转换成三种变体之一，walker 只按变体分派：

    Leaf(comparator)                 叶子比较器
    Unordered(comparator, fields)    无序数组（Hungarian 匹配），可带元素比较器
    Nested(fields)                   嵌套作用域

User configuration is converted once into Leaf / Unordered / Nested; the diff
walker and matcher dispatch on these variants only.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from extract_evo.core.comparators import Comparator, exact


@dataclass(frozen=True)
class Leaf:
    comparator: Comparator


@dataclass(frozen=True)
class Nested:
    fields: Mapping[str, "ComparatorSpec"] = field(default_factory=dict)

    def get(self, key: str) -> Optional["ComparatorSpec"]:
        return self.fields.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.fields


@dataclass(frozen=True)
class Unordered:
    comparator: Optional[Comparator] = None
    fields: Optional[Nested] = None


ComparatorSpec = Union[Leaf, Nested, Unordered]


def unordered(config: Any = None) -> Unordered:
    """把数组字段标记为无序匹配 / Mark an array field for optimal unordered pairing

    config 可以是元素比较器（基本类型数组），也可以是元素的字段映射（对象数组）。
    """
    if config is None:
        return Unordered()
    spec = to_spec(config)
    if isinstance(spec, Leaf):
        return Unordered(comparator=spec.comparator)
    if isinstance(spec, Nested):
        return Unordered(fields=spec)
    return spec


def to_spec(config: Any) -> ComparatorSpec:
    """递归转换用户配置 / Convert user configuration recursively"""
    if isinstance(config, (Leaf, Nested, Unordered)):
        return config
    if isinstance(config, Mapping):
        return Nested({str(key): to_spec(value) for key, value in config.items()})
    if callable(config):
        return Leaf(config)
    raise TypeError(f"Unsupported comparator configuration: {config!r}")


def resolve_root(config: Any) -> ComparatorSpec:
    """顶层配置：None 视为空映射 / Top-level configuration, None means no fields"""
    if config is None:
        return Nested()
    return to_spec(config)


def child_scope(spec: Optional[ComparatorSpec], scope: Nested) -> Nested:
    """对象字段的下级作用域：Nested 开新作用域，否则沿用当前作用域"""
    if isinstance(spec, Nested):
        return spec
    return scope


def item_scope(spec: Optional[ComparatorSpec], scope: Nested) -> Nested:
    """数组元素的作用域 / Scope used for array items"""
    if isinstance(spec, Unordered) and spec.fields is not None:
        return spec.fields
    if isinstance(spec, Nested):
        return spec
    return scope


def comparator_for(spec: Optional[ComparatorSpec]) -> Comparator:
    """叶子位置实际使用的比较器，缺省为 exact / Comparator applied at a leaf"""
    if isinstance(spec, Leaf):
        return spec.comparator
    if isinstance(spec, Unordered) and spec.comparator is not None:
        return spec.comparator
    return exact


def is_graded(spec: Optional[ComparatorSpec]) -> bool:
    """字段是否直接挂了比较器（用于匹配相似度）/ Field carries a comparator"""
    return isinstance(spec, (Leaf, Unordered))
