"""工具模块 / Utilities"""

from extract_evo.utils.llm import LLMClient, LLMError, LLMResult, PROVIDER_SPECS
from extract_evo.utils.i18n import t, set_language, get_language

__all__ = ["LLMClient", "LLMError", "LLMResult", "PROVIDER_SPECS", "t", "set_language", "get_language"]
