"""优化模型 / Optimization models"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from extract_evo.models.config import LLMConfig
from extract_evo.models.eval_result import EvalResult


class OptimizeConfig(BaseModel):
    """提示词优化配置 / Prompt optimization configuration"""
    system_prompt: str = Field(..., description="初始系统提示词")
    target_success_rate: float = Field(..., description="目标通过率 (0-1)")
    max_iterations: Optional[int] = Field(default=None, ge=1, description="最大迭代次数")
    max_cost: Optional[float] = Field(default=None, gt=0, description="成本上限")
    llm: LLMConfig = Field(..., description="生成 patch / merge 所用的 LLM")
    thinking: bool = Field(default=False, description="是否开启扩展思考")

    patch_system_prompt: Optional[str] = Field(default=None, description="自定义 patch 系统提示词")
    merge_system_prompt: Optional[str] = Field(default=None, description="自定义 merge 系统提示词")
    store_logs: Union[bool, str] = Field(default=False, description="True 使用默认目录，字符串为自定义目录")

    @field_validator("system_prompt")
    @classmethod
    def check_prompt(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("system_prompt is required")
        return v

    @field_validator("target_success_rate")
    @classmethod
    def check_target(cls, v: float) -> float:
        if v < 0 or v > 1:
            raise ValueError("target_success_rate must be between 0 and 1")
        return v

    @model_validator(mode="after")
    def check_api_key(self) -> "OptimizeConfig":
        """api_key 可省略，由提供商环境变量补上 / Key may come from the provider env var"""
        if not self.llm.resolved_api_key():
            raise ValueError(f"llm.api_key is required (or set {self.llm.provider.api_key_env})")
        return self

    @property
    def iteration_cap(self) -> Optional[int]:
        """未设上限时：有成本上限则不限次数，否则默认 5 次

        None means unbounded (only allowed when a cost ceiling is set).
        """
        if self.max_iterations is not None:
            return self.max_iterations
        if self.max_cost is not None:
            return None
        return 5


class IterationRecord(BaseModel):
    """一轮优化的记录 / Record of one optimization round"""
    model_config = ConfigDict(frozen=True)

    iteration: int
    system_prompt: str
    result: EvalResult

    cost: float = 0.0                  # 本轮花费 / this round's spend
    cumulative_cost: float = 0.0       # 累计花费 / cumulative spend
    duration_ms: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    previous_success_rate: Optional[float] = None

    @property
    def passed(self) -> int:
        return self.result.passed

    @property
    def total(self) -> int:
        return self.result.total

    @property
    def success_rate(self) -> float:
        return self.result.success_rate


class OptimizeResult(BaseModel):
    """优化结果 / Final optimization result"""
    model_config = ConfigDict(frozen=True)

    success: bool = False
    final_prompt: str
    iterations: list[IterationRecord] = Field(default_factory=list)
    total_cost: float = 0.0
    log_folder: Optional[str] = None
