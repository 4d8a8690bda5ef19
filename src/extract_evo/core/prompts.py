"""优化器提示词 / Optimizer prompts

patch / merge 的系统提示词从包内 prompts/*.md 加载，用户提示词在此拼装。
"""

import json
from pathlib import Path
from typing import Any, Optional

from extract_evo.models import TestCaseResult

PROMPT_DIR = Path(__file__).parent.parent / "prompts"

_FALLBACK_PROMPTS = {
    "patch": (
        "You are optimizing a system prompt for an LLM workflow. Analyze the failure and "
        "suggest a specific, focused change to improve the prompt. Do NOT overfit. Be generalizable."
    ),
    "merge": (
        "You are an expert LLM prompt editor. Merge the suggested improvements into the system "
        "prompt while keeping it clear and coherent. Output ONLY the new system prompt."
    ),
}


def load_prompt(name: str) -> str:
    """加载内置系统提示词 / Load a bundled system prompt"""
    prompt_file = PROMPT_DIR / f"{name}.md"
    if prompt_file.exists():
        return prompt_file.read_text(encoding="utf-8")
    return _FALLBACK_PROMPTS[name]


def _json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def format_failure(case: TestCaseResult) -> str:
    """把失败用例渲染为文本 / Render a failing case for the model"""
    lines = [
        f"Input: {_json(case.input)}",
        f"Expected: {_json(case.expected)}",
        f"Actual: {_json(case.actual)}",
    ]
    if case.additional_context:
        lines.append(f"Additional Context: {_json(case.additional_context)}")
    if case.error:
        lines.append(f"Error: {case.error}")

    lines.append("")
    lines.append("Field-level failures:")
    for path, result in case.failed_fields().items():
        lines.append(
            f"  {path or '(root)'}: expected {json.dumps(result.expected, default=str)}, "
            f"got {json.dumps(result.actual, default=str)}"
        )
    return "\n".join(lines)


def build_patch_user_prompt(
    failure: TestCaseResult,
    current_prompt: str,
    best_prompt: Optional[str] = None,
    best_failures: Optional[list[TestCaseResult]] = None,
) -> str:
    """为单个失败用例生成 patch 请求；发生回退时附带最佳提示词及其失败用例"""
    parts = [
        "Current system prompt:\n---\n" + current_prompt + "\n---",
        "A test case failed:\n" + format_failure(failure),
    ]

    if best_prompt is not None:
        if best_failures:
            failures_context = "\n\n".join(f"{i}. {format_failure(f)}" for i, f in enumerate(best_failures, 1))
        else:
            failures_context = "None recorded"
        parts.append(
            "Note: the current prompt is a REGRESSION from a better-performing version.\n"
            "Previous (better) prompt for reference:\n---\n" + best_prompt + "\n---\n\n"
            "The failures the better prompt had:\n" + failures_context + "\n\n"
            "The latest changes introduced new failures instead of fixing the ones above.\n"
            "Work out what changed between the two prompts that could explain the regression: "
            "which failures are new, which ones disappeared, and whether any earlier patch "
            "contradicts the new failures."
        )

    parts.append(
        "Suggest a specific change to the system prompt that would fix this failure.\n"
        "Be concise. Output ONLY the suggested patch, not the full prompt.\n"
        "DO NOT overfit the prompt to the test case. Generalize examples if you use any."
    )
    return "\n\n".join(parts)


def build_merge_user_prompt(patches: list[str], current_prompt: str) -> str:
    """合并所有 patch 的请求 / Request to merge patches into one prompt"""
    suggestions = "\n\n".join(f"{i}. {p}" for i, p in enumerate(patches, 1))
    return (
        "Current prompt:\n---\n" + current_prompt + "\n---\n\n"
        "Suggested improvements:\n" + suggestions + "\n\n"
        "Create a single improved system prompt that incorporates these suggestions.\n"
        "Be mindful of the size of the new prompt. If suggestions overlap, emphasize the point once "
        "instead of repeating it. Keep enumerated value sets verbatim.\n"
        "Output ONLY the new system prompt, nothing else."
    )
