"""LLM 调用封装 / LLM call wrapper

统一 Anthropic 与 OpenAI 的调用方式，返回文本、token 数与成本。
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from extract_evo.models.config import LLMConfig, LLMProvider

logger = logging.getLogger(__name__)

TOKENS_PER_MILLION = 1_000_000
ANTHROPIC_THINKING_BUDGET_TOKENS = 31999


@dataclass(frozen=True)
class ProviderSpec:
    """模型规格与价格（美元 / 百万 token）/ Model id, limits and pricing"""
    model: str
    max_tokens: int
    cost_per_million_input: float
    cost_per_million_output: float

    def cost(self, input_tokens: int, output_tokens: int) -> float:
        return (
            input_tokens * self.cost_per_million_input
            + output_tokens * self.cost_per_million_output
        ) / TOKENS_PER_MILLION


PROVIDER_SPECS: dict[LLMProvider, ProviderSpec] = {
    LLMProvider.ANTHROPIC_CLAUDE_OPUS: ProviderSpec("claude-opus-4-5-20251101", 64000, 5.00, 25.00),
    LLMProvider.ANTHROPIC_CLAUDE_SONNET: ProviderSpec("claude-sonnet-4-5-20251101", 64000, 3.00, 15.00),
    LLMProvider.ANTHROPIC_CLAUDE_HAIKU: ProviderSpec("claude-haiku-4-5-20251101", 64000, 1.00, 5.00),
    LLMProvider.OPENAI_GPT5: ProviderSpec("gpt-5.2", 32000, 1.75, 14.00),
    LLMProvider.OPENAI_GPT5_MINI: ProviderSpec("gpt-5-mini", 32000, 0.25, 2.00),
}


class LLMError(RuntimeError):
    """LLM 调用失败，消息中带模型 id / Provider failure, message carries the model id"""

    def __init__(self, model: str, message: str):
        super().__init__(f"LLM call failed ({model}): {message}")
        self.model = model


@dataclass(frozen=True)
class LLMResult:
    """一次调用的结果 / Result of one call"""
    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0


class LLMClient:
    """LLM 客户端 / LLM client"""

    def __init__(self, config: LLMConfig):
        self.config = config
        self.spec = PROVIDER_SPECS[config.provider]
        self._client = None

    def _get_client(self):
        """延迟初始化客户端 / Lazy-initialize the client"""
        if self._client is None:
            vendor = self.config.provider.vendor
            if vendor == "anthropic":
                from anthropic import AsyncAnthropic

                self._client = AsyncAnthropic(
                    api_key=self.config.resolved_api_key(),
                    base_url=self.config.base_url,
                    timeout=self.config.timeout,
                )
            elif vendor == "openai":
                from openai import AsyncOpenAI

                self._client = AsyncOpenAI(
                    api_key=self.config.resolved_api_key(),
                    base_url=self.config.base_url,
                    timeout=self.config.timeout,
                )
            else:
                raise ValueError(f"不支持的 LLM 提供商 / Unsupported LLM provider: {self.config.provider}")

        return self._client

    async def call(
        self,
        messages: list[dict[str, str]],
        use_thinking: bool = False,
        json_mode: bool = False,
    ) -> LLMResult:
        """
        发送消息并返回文本结果 / Send messages and return the text result

        Args:
            messages: 消息列表，可包含一条 system 消息 / Message list
            use_thinking: 开启扩展思考 / Enable extended thinking
            json_mode: 要求 JSON 输出（仅 OpenAI 有原生支持）/ Ask for JSON output

        Raises:
            LLMError: 任何提供商错误 / Any provider failure
        """
        try:
            if self.config.provider.vendor == "anthropic":
                return await self._call_anthropic(messages, use_thinking)
            return await self._call_openai(messages, use_thinking, json_mode)
        except LLMError:
            raise
        except Exception as e:
            raise LLMError(self.spec.model, str(e)) from e

    async def _call_anthropic(self, messages: list[dict[str, str]], use_thinking: bool) -> LLMResult:
        client = self._get_client()

        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        kwargs: dict[str, Any] = {
            "model": self.spec.model,
            "max_tokens": self.spec.max_tokens,
            "messages": [
                {"role": m["role"], "content": m["content"]}
                for m in messages if m["role"] != "system"
            ],
        }
        if system:
            kwargs["system"] = system
        if use_thinking:
            kwargs["thinking"] = {"type": "enabled", "budget_tokens": ANTHROPIC_THINKING_BUDGET_TOKENS}

        # 大 max_tokens 需要流式调用 / large max_tokens requires streaming
        async with client.messages.stream(**kwargs) as stream:
            message = await stream.get_final_message()

        text = " ".join(block.text for block in message.content if block.type == "text")
        input_tokens = message.usage.input_tokens
        output_tokens = message.usage.output_tokens
        logger.debug("%s: %d input / %d output tokens", self.spec.model, input_tokens, output_tokens)
        return LLMResult(
            text=text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=self.spec.cost(input_tokens, output_tokens),
        )

    async def _call_openai(
        self,
        messages: list[dict[str, str]],
        use_thinking: bool,
        json_mode: bool,
    ) -> LLMResult:
        client = self._get_client()

        kwargs: dict[str, Any] = {
            "model": self.spec.model,
            "messages": messages,
            "max_completion_tokens": self.spec.max_tokens,
        }
        if use_thinking:
            kwargs["reasoning_effort"] = "xhigh"
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await client.chat.completions.create(**kwargs)

        usage = response.usage
        input_tokens = usage.prompt_tokens if usage else 0
        output_tokens = usage.completion_tokens if usage else 0
        logger.debug("%s: %d input / %d output tokens", self.spec.model, input_tokens, output_tokens)
        return LLMResult(
            text=response.choices[0].message.content or "",
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=self.spec.cost(input_tokens, output_tokens),
        )
