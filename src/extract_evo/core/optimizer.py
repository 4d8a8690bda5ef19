"""提示词优化器 / Prompt optimizer

循环：评测 → 为每个失败用例生成 patch（并发）→ 合并为新提示词 → 再评测，
直到达到目标通过率、迭代次数用尽或成本达到上限。

Loop: evaluate → patch every failure concurrently → merge → evaluate again,
until the target success rate, the iteration cap or the cost ceiling is hit.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from extract_evo.core.evaluator import Evaluator, ProgressCallback
from extract_evo.core.prompts import build_merge_user_prompt, build_patch_user_prompt, load_prompt
from extract_evo.core.reporter import OptimizationLogger, resolve_log_folder
from extract_evo.models import (
    EvalConfig, EvalResult, IterationRecord, OptimizeConfig, OptimizeResult, TestCaseResult,
)
from extract_evo.utils.llm import LLMClient, LLMResult

logger = logging.getLogger(__name__)


@dataclass
class _RunState:
    """单次 optimize() 调用的状态，只在轮次之间更新 / Per-call accumulator"""
    current_prompt: str
    best_prompt: str
    best_rate: float = -1.0
    best_failures: list[TestCaseResult] = field(default_factory=list)
    cumulative_cost: float = 0.0
    previous_rate: Optional[float] = None
    history: list[IterationRecord] = field(default_factory=list)


@dataclass
class _RoundUsage:
    """本轮花费与 token / Spend and tokens of the round in progress"""
    started: float
    cost: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0

    def add(self, result: LLMResult) -> None:
        self.cost += result.cost
        self.input_tokens += result.input_tokens
        self.output_tokens += result.output_tokens


class Optimizer:
    """提示词优化器

    llm_client 可注入（测试时传入 mock），默认按配置创建 LLMClient。
    """

    def __init__(
        self,
        config: OptimizeConfig,
        llm_client: Optional[LLMClient] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.config = config
        self.llm = llm_client or LLMClient(config.llm)
        self.on_progress = on_progress
        self.patch_system_prompt = config.patch_system_prompt or load_prompt("patch")
        self.merge_system_prompt = config.merge_system_prompt or load_prompt("merge")

    async def optimize(self, eval_config: EvalConfig) -> OptimizeResult:
        """
        运行优化循环

        Args:
            eval_config: 评测配置，其中 system_prompt 会被每轮的提示词替换

        Returns:
            是否达标、最终提示词、每轮记录与累计成本
        """
        started = time.monotonic()
        state = _RunState(current_prompt=self.config.system_prompt, best_prompt=self.config.system_prompt)

        folder = resolve_log_folder(self.config.store_logs, "optimize")
        run_log = OptimizationLogger(folder, self.config, eval_config.per_test_threshold) if folder else None

        cap = self.config.iteration_cap
        target = self.config.target_success_rate
        iteration = 0

        while cap is None or iteration < cap:
            iteration += 1
            usage = _RoundUsage(started=time.monotonic())
            logger.info("Iteration %s", f"{iteration}/{cap}" if cap else iteration)

            # ── 评测 ──
            result = await Evaluator(
                eval_config.model_copy(update={"system_prompt": state.current_prompt}),
                self.on_progress,
            ).evaluate()
            usage.cost += result.total_cost
            state.cumulative_cost += result.total_cost

            regressed = iteration > 1 and result.success_rate <= state.best_rate
            if regressed:
                logger.warning(
                    "Regression: %.0f%% does not beat best %.0f%%",
                    result.success_rate * 100, state.best_rate * 100,
                )
            if result.success_rate > state.best_rate:
                state.best_rate = result.success_rate
                state.best_prompt = state.current_prompt
                state.best_failures = result.failures()

            if result.success_rate >= target:
                logger.info("Target %.0f%% reached", target * 100)
                self._record(state, run_log, iteration, result, usage)
                return self._finish(state, run_log, True, state.current_prompt, folder, started)

            if self._over_budget(state):
                self._record(state, run_log, iteration, result, usage)
                return self._finish(state, run_log, False, state.best_prompt, folder, started)

            # ── 生成 patch ──
            failures = result.failures()
            patches = await self._generate_patches(failures, state, regressed)
            for patch in patches:
                usage.add(patch)
                state.cumulative_cost += patch.cost

            if not patches:
                logger.warning("No patches generated, prompt unchanged this round")
                self._record(state, run_log, iteration, result, usage)
                state.previous_rate = result.success_rate
                continue

            if self._over_budget(state):
                self._record(state, run_log, iteration, result, usage)
                return self._finish(state, run_log, False, state.best_prompt, folder, started)

            # ── 合并 ──
            merged = await self._merge([p.text for p in patches], state.current_prompt)
            if merged is not None:
                usage.add(merged)
                state.cumulative_cost += merged.cost
            self._record(state, run_log, iteration, result, usage)

            if self._over_budget(state):
                return self._finish(state, run_log, False, state.best_prompt, folder, started)

            state.previous_rate = result.success_rate
            if merged is not None and merged.text.strip():
                state.current_prompt = merged.text.strip()
            else:
                logger.warning("Merge produced no prompt, prompt unchanged this round")

        return self._finish(state, run_log, False, state.best_prompt, folder, started)

    # ── LLM 调用 ─────────────────────────────────────────

    async def _call(self, system: str, user: str) -> LLMResult:
        return await self.llm.call(
            messages=[{"role": "system", "content": system}, {"role": "user", "content": user}],
            use_thinking=self.config.thinking,
        )

    async def _generate_patches(
        self,
        failures: list[TestCaseResult],
        state: _RunState,
        regressed: bool,
    ) -> list[LLMResult]:
        """每个失败用例一个独立请求，失败的请求直接丢弃"""
        best_prompt = state.best_prompt if regressed else None
        best_failures = state.best_failures if regressed else None

        outcomes = await asyncio.gather(
            *[
                self._call(
                    self.patch_system_prompt,
                    build_patch_user_prompt(failure, state.current_prompt, best_prompt, best_failures),
                )
                for failure in failures
            ],
            return_exceptions=True,
        )

        patches = [o for o in outcomes if not isinstance(o, BaseException)]
        errors = [o for o in outcomes if isinstance(o, BaseException)]
        if errors:
            logger.warning("%d/%d patch requests failed: %s", len(errors), len(failures), errors[0])
        return patches

    async def _merge(self, patches: list[str], current_prompt: str) -> Optional[LLMResult]:
        """合并失败视为空轮，提示词保持不变 / A failed merge leaves the prompt unchanged"""
        try:
            return await self._call(self.merge_system_prompt, build_merge_user_prompt(patches, current_prompt))
        except Exception as e:
            logger.error("Merge request failed: %s", e)
            return None

    # ── 状态与收尾 ───────────────────────────────────────

    def _over_budget(self, state: _RunState) -> bool:
        if self.config.max_cost is not None and state.cumulative_cost >= self.config.max_cost:
            logger.warning("Cost limit reached: $%.4f >= $%.4f", state.cumulative_cost, self.config.max_cost)
            return True
        return False

    def _record(
        self,
        state: _RunState,
        run_log: Optional[OptimizationLogger],
        iteration: int,
        result: EvalResult,
        usage: _RoundUsage,
    ) -> None:
        record = IterationRecord(
            iteration=iteration,
            system_prompt=state.current_prompt,
            result=result,
            cost=usage.cost,
            cumulative_cost=state.cumulative_cost,
            duration_ms=int((time.monotonic() - usage.started) * 1000),
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            previous_success_rate=state.previous_rate,
        )
        state.history.append(record)
        if run_log:
            run_log.log_iteration(record)

    def _finish(
        self,
        state: _RunState,
        run_log: Optional[OptimizationLogger],
        success: bool,
        final_prompt: str,
        folder,
        started: float,
    ) -> OptimizeResult:
        result = OptimizeResult(
            success=success,
            final_prompt=final_prompt,
            iterations=list(state.history),
            total_cost=state.cumulative_cost,
            log_folder=str(folder) if folder else None,
        )
        logger.info(
            "Optimization finished: best %.0f%% (target %.0f%%), total cost $%.4f",
            max(state.best_rate, 0.0) * 100, self.config.target_success_rate * 100, state.cumulative_cost,
        )
        if run_log:
            run_log.write_summary(result, int((time.monotonic() - started) * 1000))
        return result


async def optimize(
    eval_config: EvalConfig,
    config: OptimizeConfig,
    llm_client: Optional[LLMClient] = None,
) -> OptimizeResult:
    """便捷入口 / Convenience wrapper around Optimizer"""
    return await Optimizer(config, llm_client).optimize(eval_config)
