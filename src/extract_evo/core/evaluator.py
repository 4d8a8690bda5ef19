"""用例评测引擎 / Test-case evaluator

对每个用例调用执行器，按比较器配置做字段级 diff，汇总通过率与成本。
单个用例出错只记录为失败用例，不会中断整批评测。
"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from extract_evo.core.comparator_spec import resolve_root
from extract_evo.core.diff import compare_fields, compare_whole
from extract_evo.core.reporter import resolve_log_folder, write_eval_report
from extract_evo.models import EvalConfig, EvalResult, FieldResult, TestCase, TestCaseResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class Evaluator:
    """用例评测引擎

    核心逻辑：
    1. 并发执行所有用例（可按批次执行并在批次间暂停，以适配外部限流）
    2. 对输出做字段级 diff，passed_fields / total_fields 得到 pass_rate
    3. pass_rate >= 阈值即通过；没有可评字段时视为通过
    4. 结果按失败优先、pass_rate 升序排序
    """

    def __init__(self, config: EvalConfig, on_progress: Optional[ProgressCallback] = None):
        self.config = config
        self.on_progress = on_progress
        # 比较器配置只归一化一次 / comparator config is normalized once
        self.comparators = None if config.comparator_override else resolve_root(config.comparators)

    # ── 单条用例 ─────────────────────────────────────────

    async def evaluate_case(self, case: TestCase) -> TestCaseResult:
        """执行并评测单条用例 / Run and grade one case"""
        try:
            run = self.config.executor.execute(case.input, self.config.system_prompt)
            if self.config.executor_timeout:
                execution = await asyncio.wait_for(run, self.config.executor_timeout)
            else:
                execution = await run
        except asyncio.TimeoutError:
            return self._error_result(case, f"Executor timed out after {self.config.executor_timeout}s")
        except Exception as e:
            logger.debug("Executor failed for input %r: %s", case.input, e)
            return self._error_result(case, str(e) or type(e).__name__)

        try:
            fields = await self.compare(case.expected, execution.output)
        except Exception as e:
            logger.warning("Comparison failed: %s", e)
            return self._error_result(
                case, f"Comparison failed: {e}", actual=execution.output,
                additional_context=execution.additional_context, cost=execution.cost,
            )

        total_fields = len(fields)
        passed_fields = sum(1 for f in fields.values() if f.passed)
        pass_rate = passed_fields / total_fields if total_fields else 1.0

        return TestCaseResult(
            input=case.input,
            expected=case.expected,
            actual=execution.output,
            additional_context=execution.additional_context,
            passed=pass_rate >= self.config.per_test_threshold,
            fields=fields,
            passed_fields=passed_fields,
            total_fields=total_fields,
            pass_rate=pass_rate,
            cost=execution.cost,
            comparator_cost=sum(f.cost or 0.0 for f in fields.values()),
        )

    async def compare(self, expected: Any, actual: Any) -> dict[str, FieldResult]:
        if self.config.comparator_override is not None:
            return await compare_whole(self.config.comparator_override, expected, actual, llm=self.config.llm)
        return await compare_fields(
            expected, actual, self.comparators,
            unordered_lists=self.config.unordered_lists, llm=self.config.llm,
        )

    def _error_result(self, case: TestCase, error: str, **kwargs: Any) -> TestCaseResult:
        return TestCaseResult(input=case.input, expected=case.expected, passed=False, pass_rate=0.0, error=error, **kwargs)

    # ── 批量评测 ─────────────────────────────────────────

    async def evaluate(self) -> EvalResult:
        """评测所有用例，生成汇总结果 / Evaluate every case and aggregate"""
        start = time.monotonic()
        cases = self.config.test_cases
        total = len(cases)
        completed = 0

        def tick(_: asyncio.Future) -> None:
            nonlocal completed
            completed += 1
            if self.on_progress:
                self.on_progress(completed, total)

        async def run_batch(batch: list[TestCase]) -> list[TestCaseResult]:
            tasks = [asyncio.ensure_future(self.evaluate_case(case)) for case in batch]
            for task in tasks:
                task.add_done_callback(tick)
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
            # evaluate_case 自身已捕获异常，这里只兜底取消等情况
            return [
                self._error_result(case, str(outcome)) if isinstance(outcome, BaseException) else outcome
                for case, outcome in zip(batch, outcomes)
            ]

        batch_size = self.config.rate_limit_batch
        results: list[TestCaseResult] = []
        if batch_size:
            for i in range(0, total, batch_size):
                results.extend(await run_batch(cases[i:i + batch_size]))
                pause = self.config.rate_limit_pause
                if pause and i + batch_size < total:
                    logger.debug("Rate limit pause: %.1fs", pause)
                    await asyncio.sleep(pause)
        else:
            results = await run_batch(cases)

        # 失败优先，pass_rate 升序，完全通过的排在最后
        results.sort(key=lambda r: (r.passed, r.pass_rate))

        passed = sum(1 for r in results if r.passed)
        correct_fields = sum(r.passed_fields for r in results)
        total_fields = sum(r.total_fields for r in results)
        duration_ms = int((time.monotonic() - start) * 1000)

        result = EvalResult(
            system_prompt=self.config.system_prompt,
            test_cases=results,
            passed=passed,
            total=total,
            success_rate=passed / total if total else 0.0,
            correct_fields=correct_fields,
            total_fields=total_fields,
            accuracy=correct_fields / total_fields if total_fields else 0.0,
            cost=sum(r.cost for r in results),
            comparator_cost=sum(r.comparator_cost for r in results),
            duration_ms=duration_ms,
        )
        logger.info(
            "Evaluated %d cases: %d passed (%.0f%%), field accuracy %.0f%%",
            total, passed, result.success_rate * 100, result.accuracy * 100,
        )

        folder = resolve_log_folder(self.config.store_logs, "eval")
        if folder is not None and write_eval_report(folder, result, self.config.per_test_threshold):
            result = result.model_copy(update={"log_folder": str(folder)})
        return result


async def evaluate(config: EvalConfig, on_progress: Optional[ProgressCallback] = None) -> EvalResult:
    """便捷入口 / Convenience wrapper around Evaluator"""
    return await Evaluator(config, on_progress).evaluate()
