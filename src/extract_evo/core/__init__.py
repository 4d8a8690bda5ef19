"""核心模块 / Core modules"""

from extract_evo.core.config import load_config
from extract_evo.core.comparator_spec import Leaf, Nested, Unordered, unordered
from extract_evo.core.matching import MatchResult, StructuralMatcher, hungarian, match_arrays
from extract_evo.core.diff import DiffWalker, compare_fields
from extract_evo.core.evaluator import Evaluator, evaluate
from extract_evo.core.optimizer import Optimizer, optimize

__all__ = [
    "load_config",
    "Leaf", "Nested", "Unordered", "unordered",
    "MatchResult", "StructuralMatcher", "hungarian", "match_arrays",
    "DiffWalker", "compare_fields",
    "Evaluator", "evaluate",
    "Optimizer", "optimize",
]
