"""评测与优化日志持久化 / Persisted evaluation and optimization logs

写入失败只记录日志，不会中断评测或优化。
Write failures are logged and never raised.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from extract_evo.models import EvalResult, IterationRecord, OptimizeConfig, OptimizeResult, TestCaseResult

logger = logging.getLogger(__name__)

DEFAULT_LOG_ROOT = "extract-evo-logs"
EVAL_REPORT_FILE = "eval_report.json"
ITERATIONS_FILE = "iterations.jsonl"
PROMPTS_FILE = "prompts.md"
SUMMARY_FILE = "summary.json"


def resolve_log_folder(store_logs: Union[bool, str, None], prefix: str) -> Optional[Path]:
    """True 使用默认目录 ./extract-evo-logs/<prefix>_<ts>_<id>/，字符串为自定义目录"""
    if not store_logs:
        return None
    if isinstance(store_logs, str):
        return Path(store_logs)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Path(DEFAULT_LOG_ROOT) / f"{prefix}_{stamp}_{uuid.uuid4().hex[:8]}"


def _dumps(data: Any, indent: Optional[int] = 2) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=False, default=str)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ─── 评测报告 / Evaluation report ─────────────────────────

def case_to_dict(index: int, case: TestCaseResult) -> dict[str, Any]:
    return {
        "index": index,
        "passed": case.passed,
        "pass_rate": case.pass_rate,
        "input": case.input,
        "expected": case.expected,
        "actual": case.actual,
        "additional_context": case.additional_context,
        "executor_cost": case.cost,
        "comparator_cost": case.comparator_cost,
        "error": case.error,
        "fields": {path: f.model_dump() for path, f in case.fields.items()},
    }


def eval_report(result: EvalResult, per_test_threshold: float = 1.0) -> dict[str, Any]:
    """评测结果转为报告字典 / Build the eval report structure"""
    return {
        "metadata": {
            "timestamp": _now(),
            "system_prompt": result.system_prompt,
            "test_case_count": result.total,
            "per_test_threshold": per_test_threshold,
        },
        "summary": {
            "passed": result.passed,
            "total": result.total,
            "success_rate": result.success_rate,
            "correct_fields": result.correct_fields,
            "total_fields": result.total_fields,
            "accuracy": result.accuracy,
            "executor_cost": result.cost,
            "comparator_cost": result.comparator_cost,
            "total_cost": result.total_cost,
            "duration_ms": result.duration_ms,
        },
        "test_cases": [case_to_dict(i, case) for i, case in enumerate(result.test_cases)],
    }


def write_eval_report(folder: Path, result: EvalResult, per_test_threshold: float = 1.0) -> Optional[Path]:
    """写入 eval_report.json，失败返回 None / Write eval_report.json"""
    path = folder / EVAL_REPORT_FILE
    try:
        folder.mkdir(parents=True, exist_ok=True)
        path.write_text(_dumps(eval_report(result, per_test_threshold)), encoding="utf-8")
    except (OSError, TypeError, ValueError) as e:
        logger.error("Failed to write eval report to %s: %s", path, e)
        return None
    logger.info("Eval report written to %s", path)
    return path


def load_eval_report(path: Union[str, Path]) -> dict[str, Any]:
    """读取保存的评测报告 / Load a saved eval report"""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


# ─── 优化日志 / Optimization log ──────────────────────────

class OptimizationLogger:
    """逐轮追加优化记录 / Appends one record per optimization round

    iterations.jsonl  每轮一行 JSON
    prompts.md        每轮使用的提示词
    summary.json      最终汇总
    """

    def __init__(self, folder: Path, config: OptimizeConfig, per_test_threshold: float = 1.0):
        self.folder = folder
        self.config = config
        self.per_test_threshold = per_test_threshold
        self._enabled = True
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create optimization log folder %s: %s", folder, e)
            self._enabled = False

    def log_iteration(self, record: IterationRecord) -> None:
        if not self._enabled:
            return
        result = record.result
        entry = {
            "iteration": record.iteration,
            "success_rate": result.success_rate,
            "passed": result.passed,
            "total": result.total,
            "correct_fields": result.correct_fields,
            "total_fields": result.total_fields,
            "field_accuracy": result.accuracy,
            "cost": record.cost,
            "cumulative_cost": record.cumulative_cost,
            "duration_ms": record.duration_ms,
            "input_tokens": record.input_tokens,
            "output_tokens": record.output_tokens,
            "failures": [
                {
                    "test_index": i,
                    "input": case.input,
                    "expected": case.expected,
                    "actual": case.actual,
                    "additional_context": case.additional_context,
                    "error": case.error,
                    "fields": {
                        path: {"expected": f.expected, "actual": f.actual, "passed": f.passed}
                        for path, f in case.failed_fields().items()
                    },
                }
                for i, case in enumerate(result.test_cases) if not case.passed
            ],
        }
        section = f"## Iteration {record.iteration} ({result.passed}/{result.total} passed)\n\n{record.system_prompt}\n\n"
        try:
            with open(self.folder / ITERATIONS_FILE, "a", encoding="utf-8") as f:
                f.write(_dumps(entry, indent=None) + "\n")
            with open(self.folder / PROMPTS_FILE, "a", encoding="utf-8") as f:
                f.write(section)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to append iteration %d log: %s", record.iteration, e)

    def write_summary(self, result: OptimizeResult, duration_ms: int) -> None:
        if not self._enabled:
            return
        iterations = result.iterations
        best = max(iterations, key=lambda r: r.success_rate) if iterations else None
        summary = {
            "metadata": {
                "timestamp": _now(),
                "provider": self.config.llm.provider.value,
                "thinking": self.config.thinking,
                "target_success_rate": self.config.target_success_rate,
                "max_iterations": self.config.max_iterations,
                "max_cost": self.config.max_cost,
                "per_test_threshold": self.per_test_threshold,
            },
            "summary": {
                "total_iterations": len(iterations),
                "total_duration_ms": duration_ms,
                "total_cost": result.total_cost,
                "total_input_tokens": sum(r.input_tokens for r in iterations),
                "total_output_tokens": sum(r.output_tokens for r in iterations),
                "start_rate": iterations[0].success_rate if iterations else 0.0,
                "end_rate": iterations[-1].success_rate if iterations else 0.0,
                "target_met": result.success,
            },
            "best": None if best is None else {
                "iteration": best.iteration,
                "success_rate": best.success_rate,
                "passed": best.passed,
                "total": best.total,
                "field_accuracy": best.result.accuracy,
            },
            "final_prompt": result.final_prompt,
        }
        path = self.folder / SUMMARY_FILE
        try:
            path.write_text(_dumps(summary), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write optimization summary to %s: %s", path, e)
