"""内置比较器 / Built-in comparators

比较器签名：(expected, actual, context=None) -> ComparatorResult，可同步也可异步。
对其声明处理的输入（None、缺失、格式错误）不抛异常，而是返回 passed=False。

Comparator signature: (expected, actual, context=None) -> ComparatorResult,
sync or async. A comparator never raises for the null/absent/malformed values
it is meant to handle; it returns passed=False instead.

    contains   - 子串检查 / literal substring check
    custom     - 自定义布尔判定 / user predicate
    date       - 日期归一化比较 / normalized calendar-day comparison
    exact      - 深度相等（默认）/ deep equality (default)
    llm_compare- LLM 语义判定 / LLM-judged equivalence
    name       - 名称归一化比较 / normalized name comparison
    numeric    - 数值归一化比较（含 nullable 变体）/ normalized numbers
    one_of     - 枚举校验 / enum validation
    presence   - 存在性检查 / value presence
    within     - 数值容差 / numeric tolerance
"""

import inspect
import json
import logging
import math
import re
from collections.abc import Mapping
from datetime import date as date_type, datetime
from typing import Any, Awaitable, Callable, Literal, Optional, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta
from rapidfuzz.distance import Levenshtein

from extract_evo.models.comparison import ComparatorContext, ComparatorResult
from extract_evo.models.config import LLMConfig
from extract_evo.utils.llm import LLMClient

logger = logging.getLogger(__name__)

Comparator = Callable[..., Union[ComparatorResult, Awaitable[ComparatorResult]]]

# 至少保留一个词再去掉后缀 / at least one word must precede the suffix
NAME_SUFFIXES = re.compile(
    r"(?<=\S)\s*,?\s*\b(inc\.?|llc\.?|ltd\.?|l\.l\.c\.?|corp\.?|corporation|company|co\.?)$",
    re.IGNORECASE,
)

_RELATIVE_AGO = re.compile(r"^(\d+)\s+(day|week|month|year)s?\s+ago$")
_RELATIVE_IN = re.compile(r"^in\s+(\d+)\s+(day|week|month|year)s?$")
_LEADING_NUMBER = re.compile(r"-?(\d+\.?\d*|\.\d+)")


def _result(passed: bool) -> ComparatorResult:
    return ComparatorResult(passed=passed, similarity=1.0 if passed else 0.0)


# ─── 比较器 / Comparators ─────────────────────────────────

def contains(substring: str) -> Comparator:
    """实际值包含给定子串（非正则）/ Actual contains a literal substring"""

    def compare(expected: Any, actual: Any, context: Optional[ComparatorContext] = None) -> ComparatorResult:
        return _result(isinstance(actual, str) and substring in actual)

    return compare


def custom(compare: Callable[..., bool]) -> Comparator:
    """把布尔判定包装成比较器 / Wrap a boolean predicate

    判定函数可以接收 (expected, actual) 或 (expected, actual, context)。
    """
    params = inspect.signature(compare).parameters.values()
    takes_context = (
        sum(1 for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)) >= 3
        or any(p.kind == p.VAR_POSITIONAL for p in params)
    )

    def comparator(expected: Any, actual: Any, context: Optional[ComparatorContext] = None) -> ComparatorResult:
        if takes_context:
            return _result(bool(compare(expected, actual, context)))
        return _result(bool(compare(expected, actual)))

    return comparator


def date(expected: Any, actual: Any, context: Optional[ComparatorContext] = None) -> ComparatorResult:
    """按日历日比较，支持 ISO / 美式 / 无歧义欧式 / 文字 / 相对日期

    Exact-day match passes; similarity decays as exp(-|days|/30).
    """
    exp_day = normalize_date(expected)
    act_day = normalize_date(actual)

    if exp_day is None and act_day is None:
        return _result(True)
    if exp_day is None or act_day is None:
        return _result(False)

    days = abs((exp_day - act_day).days)
    return ComparatorResult(passed=days == 0, similarity=math.exp(-days / 30))


def exact(expected: Any, actual: Any, context: Optional[ComparatorContext] = None) -> ComparatorResult:
    """深度相等，可处理自引用结构 / Deep equality, safe on self-referential data"""
    return _result(_deep_equal(expected, actual, set()))


def name(expected: Any, actual: Any, context: Optional[ComparatorContext] = None) -> ComparatorResult:
    """名称比较：忽略大小写、空白和公司后缀（Inc/LLC/Ltd/Corp/Co）

    首尾词相同视为通过（容忍中间名），否则按 Levenshtein 相似度 >= 0.9 判定。
    """
    exp_name = normalize_name(expected)
    act_name = normalize_name(actual)

    if exp_name is None and act_name is None:
        return _result(True)
    if exp_name is None or act_name is None:
        return _result(False)
    if exp_name == act_name:
        return _result(True)

    exp_tokens = exp_name.split()
    act_tokens = act_name.split()
    if len(exp_tokens) >= 2 and len(act_tokens) >= 2:
        if exp_tokens[0] == act_tokens[0] and exp_tokens[-1] == act_tokens[-1]:
            return ComparatorResult(passed=True, similarity=0.95)

    similarity = Levenshtein.normalized_similarity(exp_name, act_name)
    return ComparatorResult(passed=similarity >= 0.9, similarity=similarity)


def numeric(expected: Any, actual: Any, context: Optional[ComparatorContext] = None) -> ComparatorResult:
    """去掉货币符号、千分位和会计括号后按数值比较 / Normalized numeric equality"""
    return _numeric_compare(expected, actual, nullable=False)


def numeric_nullable(expected: Any, actual: Any, context: Optional[ComparatorContext] = None) -> ComparatorResult:
    """同 numeric，但缺失值视为 0 / Like numeric, absent values count as 0"""
    return _numeric_compare(expected, actual, nullable=True)


numeric.nullable = numeric_nullable


def one_of(allowed_values: list[Any]) -> Comparator:
    """实际值在允许集合内且等于期望值 / Actual is allowed AND equals expected"""
    if not allowed_values:
        raise ValueError("one_of() requires at least one allowed value")
    allowed = tuple(allowed_values)

    def compare(expected: Any, actual: Any, context: Optional[ComparatorContext] = None) -> ComparatorResult:
        return _result(actual in allowed and expected == actual)

    return compare


def presence(expected: Any, actual: Any, context: Optional[ComparatorContext] = None) -> ComparatorResult:
    """期望有值时实际也要有值；从不惩罚多出的数据 / Never penalizes extra data"""
    expected_present = expected is not None and expected != ""
    actual_present = actual is not None and actual != ""
    return _result(not expected_present or actual_present)


def within(tolerance: float, mode: Literal["percentage", "absolute"] = "percentage") -> Comparator:
    """数值容差比较 / Numeric tolerance

    percentage: |Δ| <= |expected| * tolerance；absolute: |Δ| <= tolerance。
    similarity = exp(-ln2 * |Δ| / threshold)，完全相等为 1.0，边界约 0.5。
    """
    if tolerance < 0:
        raise ValueError("within() tolerance must be non-negative")
    if mode not in ("percentage", "absolute"):
        raise ValueError(f"within() mode must be 'percentage' or 'absolute', got {mode!r}")

    def compare(expected: Any, actual: Any, context: Optional[ComparatorContext] = None) -> ComparatorResult:
        exp_num = normalize_numeric(expected)
        act_num = normalize_numeric(actual)
        if exp_num is None and act_num is None:
            return _result(True)
        if exp_num is None or act_num is None:
            return _result(False)

        diff = abs(exp_num - act_num)
        threshold = tolerance if mode == "absolute" else abs(exp_num * tolerance)
        if threshold > 0:
            similarity = math.exp(-math.log(2) * diff / threshold)
        else:
            similarity = 1.0 if diff == 0 else 0.0
        return ComparatorResult(passed=diff <= threshold, similarity=similarity)

    return compare


LLM_COMPARE_PROMPT = """You are grading one field extracted by an AI workflow.
Decide whether the actual value is semantically equivalent to the expected value.
{rubric}
Expected:
{expected}

Actual:
{actual}

Return ONLY a JSON object: {{"passed": true|false, "similarity": <0.0-1.0>, "rationale": "<one sentence>"}}"""


def llm_compare(rubric: Optional[str] = None, llm: Optional[LLMConfig] = None) -> Comparator:
    """由 LLM 判定语义等价 / LLM-judged semantic equivalence

    未指定 llm 时使用评测级别的 llm 配置。LLM 调用失败时返回 passed=False，
    理由中带上错误信息。
    """
    async def compare(expected: Any, actual: Any, context: Optional[ComparatorContext] = None) -> ComparatorResult:
        llm_config = llm or (context.llm if context else None)
        if llm_config is None:
            return ComparatorResult(
                passed=False, similarity=0.0,
                rationale="llm_compare requires an LLM configuration",
            )

        prompt = LLM_COMPARE_PROMPT.format(
            rubric=f"\nGrading rubric: {rubric}\n" if rubric else "",
            expected=json.dumps(expected, indent=2, default=str),
            actual=json.dumps(actual, indent=2, default=str),
        )
        try:
            response = await LLMClient(llm_config).call(
                messages=[{"role": "user", "content": prompt}],
                json_mode=True,
            )
        except Exception as e:
            logger.warning("llm_compare call failed: %s", e)
            return ComparatorResult(passed=False, similarity=0.0, rationale=f"LLM comparison failed: {e}")

        verdict = _parse_verdict(response.text)
        if verdict is None:
            return ComparatorResult(
                passed=False, similarity=0.0, cost=response.cost,
                rationale="LLM returned an unparseable verdict",
            )
        passed = bool(verdict.get("passed", False))
        similarity = verdict.get("similarity")
        if not isinstance(similarity, (int, float)) or isinstance(similarity, bool):
            similarity = 1.0 if passed else 0.0
        return ComparatorResult(
            passed=passed,
            similarity=min(max(float(similarity), 0.0), 1.0),
            rationale=str(verdict.get("rationale", "")) or None,
            cost=response.cost,
        )

    return compare


async def invoke(
    comparator: Comparator,
    expected: Any,
    actual: Any,
    context: Optional[ComparatorContext] = None,
) -> ComparatorResult:
    """调用比较器，兼容同步/异步及布尔返回值 / Call a sync or async comparator"""
    result = comparator(expected, actual, context)
    if inspect.isawaitable(result):
        result = await result
    if isinstance(result, bool):
        return _result(result)
    return result


# ─── 归一化 / Normalization helpers ───────────────────────

def normalize_numeric(value: Any) -> Optional[float]:
    """'$1,234.50' -> 1234.5，'(500)' -> -500；无法解析返回 None"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)

    text = str(value).strip()
    if not text:
        return None
    negative_parens = text.startswith("(") and text.endswith(")")

    cleaned = re.sub(r"[^0-9.\-]", "", text)
    if negative_parens and not cleaned.startswith("-"):
        cleaned = "-" + cleaned

    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return None
    return float(match.group(0))


def normalize_date(value: Any) -> Optional[date_type]:
    """解析为日历日；无法解析返回 None / Parse to a calendar day"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip().lower()
    if not text:
        return None

    today = date_type.today()
    relative = {"today": 0, "now": 0, "yesterday": -1, "tomorrow": 1}
    if text in relative:
        return today + relativedelta(days=relative[text])

    for pattern, sign in ((_RELATIVE_AGO, -1), (_RELATIVE_IN, 1)):
        match = pattern.match(text)
        if match:
            amount, unit = int(match.group(1)) * sign, match.group(2)
            return today + relativedelta(**{f"{unit}s": amount})

    # 缺失的月/日取 1 号，不随当天日期变化 / missing month or day defaults to 1
    try:
        return date_parser.parse(value.strip(), default=datetime(today.year, 1, 1)).date()
    except (ValueError, OverflowError):
        return None


def normalize_name(value: Any) -> Optional[str]:
    """小写、合并空白、去掉公司后缀 / Lowercase, collapse spaces, drop legal suffix"""
    if value is None or value == "":
        return None
    text = " ".join(str(value).lower().split())
    text = NAME_SUFFIXES.sub("", text).strip()
    return text or None


def _numeric_compare(expected: Any, actual: Any, nullable: bool) -> ComparatorResult:
    exp_num = normalize_numeric(expected)
    act_num = normalize_numeric(actual)

    if nullable:
        exp_num = 0.0 if exp_num is None else exp_num
        act_num = 0.0 if act_num is None else act_num

    if exp_num is None and act_num is None:
        return _result(True)
    if exp_num is None or act_num is None:
        return _result(False)
    return _result(exp_num == act_num)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _deep_equal(a: Any, b: Any, visited: set[tuple[int, int]]) -> bool:
    """visited 记录正在比较的复合对象对，重复访问视为相等"""
    if a is b:
        return True
    if a is None or b is None:
        return False
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        pair = (id(a), id(b))
        if pair in visited:
            return True
        visited.add(pair)
        if len(a) != len(b):
            return False
        return all(key in b and _deep_equal(a[key], b[key], visited) for key in a)

    if _is_sequence(a) and _is_sequence(b):
        pair = (id(a), id(b))
        if pair in visited:
            return True
        visited.add(pair)
        if len(a) != len(b):
            return False
        return all(_deep_equal(x, y, visited) for x, y in zip(a, b))

    if isinstance(a, Mapping) or isinstance(b, Mapping) or _is_sequence(a) or _is_sequence(b):
        return False

    try:
        return bool(a == b)
    except Exception:
        return False


def _parse_verdict(text: str) -> Optional[dict]:
    match = re.search(r"\{.*\}", text, re.DOTALL)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None
