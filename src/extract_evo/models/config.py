"""配置模型 / Configuration models"""

import os
import re
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from extract_evo.models.test_case import TestCase


class LLMProvider(str, Enum):
    """支持的 LLM 提供商 / Supported LLM providers"""
    ANTHROPIC_CLAUDE_OPUS = "anthropic_claude_opus"
    ANTHROPIC_CLAUDE_SONNET = "anthropic_claude_sonnet"
    ANTHROPIC_CLAUDE_HAIKU = "anthropic_claude_haiku"
    OPENAI_GPT5 = "openai_gpt5"
    OPENAI_GPT5_MINI = "openai_gpt5_mini"

    @property
    def vendor(self) -> str:
        return self.value.split("_", 1)[0]

    @property
    def api_key_env(self) -> str:
        """默认读取的环境变量 / Environment variable holding the key"""
        return f"{self.vendor.upper()}_API_KEY"


# 未被替换的 ${VAR} 占位符 / placeholder left by a missing environment variable
_UNRESOLVED_ENV = re.compile(r"\$\{[^}]+\}")


class LLMConfig(BaseModel):
    """LLM 配置 / LLM configuration"""
    provider: LLMProvider = Field(default=LLMProvider.ANTHROPIC_CLAUDE_SONNET, description="LLM 提供商")
    api_key: Optional[str] = Field(default=None, description="API Key，支持 ${ENV_VAR} 格式")
    base_url: Optional[str] = Field(default=None, description="API Base URL")
    timeout: Optional[float] = Field(default=None, gt=0, description="单次调用超时（秒）")

    def resolved_api_key(self) -> Optional[str]:
        """显式 api_key 优先，否则读取提供商环境变量；未解析的 ${VAR} 视为未配置"""
        key = self.api_key
        if key and _UNRESOLVED_ENV.search(key):
            key = None
        return key or os.environ.get(self.provider.api_key_env) or None


# ─── 运行时配置 / Runtime configuration ───────────────────

class EvalConfig(BaseModel):
    """单次评测配置 / Configuration of one evaluation run

    executor 可以是 WorkflowExecutor，也可以是普通函数（会被自动包装）。
    comparators 与 comparator_override 互斥。
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    executor: Any = Field(..., description="工作流执行器")
    test_cases: list[TestCase] = Field(..., description="测试用例")
    system_prompt: Optional[str] = Field(default=None, description="传给执行器的系统提示词")

    comparators: Any = Field(default=None, description="比较器配置：单个比较器 / 字段映射 / unordered(...)")
    comparator_override: Any = Field(default=None, description="整体比较器（跳过字段级比较）")
    unordered_lists: bool = Field(default=False, description="所有数组都按无序匹配")

    per_test_threshold: float = Field(default=1.0, ge=0.0, le=1.0, description="单用例通过阈值")
    rate_limit_batch: Optional[int] = Field(default=None, gt=0, description="每批并发执行的用例数")
    rate_limit_pause: Optional[float] = Field(default=None, ge=0, description="批次间暂停（秒）")
    executor_timeout: Optional[float] = Field(default=None, gt=0, description="单次执行超时（秒）")

    llm: Optional[LLMConfig] = Field(default=None, description="LLM 比较器的默认配置")
    store_logs: Union[bool, str] = Field(default=False, description="True 使用默认路径，字符串为自定义路径")

    @field_validator("test_cases")
    @classmethod
    def check_not_empty(cls, v: list[TestCase]) -> list[TestCase]:
        if not v:
            raise ValueError("test_cases cannot be empty")
        return v

    @field_validator("executor")
    @classmethod
    def wrap_executor(cls, v: Any) -> Any:
        """普通函数自动包装为 FunctionExecutor / Wrap plain callables"""
        from extract_evo.executors import FunctionExecutor, WorkflowExecutor

        if isinstance(v, WorkflowExecutor):
            return v
        if callable(v):
            return FunctionExecutor(v)
        raise ValueError("executor must be a WorkflowExecutor or a callable")

    @model_validator(mode="after")
    def check_comparator_mode(self) -> "EvalConfig":
        if self.comparators is not None and self.comparator_override is not None:
            raise ValueError("comparators and comparator_override are mutually exclusive")
        return self


# ─── YAML 项目配置 / YAML project configuration ──────────────

class WorkflowConfig(BaseModel):
    """被测工作流配置 / Workflow under test"""
    module: str = Field(..., description="工作流入口模块")
    function: str = Field(default="run", description="入口函数")
    comparators: Optional[str] = Field(default=None, description="模块中的比较器配置变量名")
    prompt_file: str = Field(..., description="系统提示词文件路径")


class EvalSettings(BaseModel):
    """评测配置 / Evaluation settings"""
    per_test_threshold: float = Field(default=1.0, ge=0.0, le=1.0)
    unordered_lists: bool = False
    rate_limit_batch: Optional[int] = Field(default=None, gt=0)
    rate_limit_pause: Optional[float] = Field(default=None, ge=0)
    executor_timeout: Optional[float] = Field(default=None, gt=0)
    store_logs: Union[bool, str] = False


class OptimizationSettings(BaseModel):
    """优化配置 / Optimization settings"""
    target_success_rate: float = Field(default=1.0, ge=0.0, le=1.0, description="目标通过率")
    max_iterations: Optional[int] = Field(default=None, ge=1, description="最大迭代次数")
    max_cost: Optional[float] = Field(default=None, gt=0, description="成本上限（美元）")
    thinking: bool = Field(default=False, description="是否开启扩展思考")
    store_logs: Union[bool, str] = False


class Config(BaseModel):
    """extract-evo 完整配置 / Full project configuration"""
    version: str = "1"
    workflow: WorkflowConfig
    test_cases: str = Field(default="./tests/*.yaml", description="测试用例路径，支持 glob")
    llm: LLMConfig = Field(default_factory=LLMConfig)
    eval: EvalSettings = Field(default_factory=EvalSettings)
    optimization: OptimizationSettings = Field(default_factory=OptimizationSettings)
    language: Literal["en", "zh"] = "en"
