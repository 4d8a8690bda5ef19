"""国际化支持 / Internationalization support

提供中英文 CLI 文案切换能力。
Provides Chinese/English CLI text switching.
"""

from typing import Literal

# 当前语言（默认英文）/ Current language (default English)
_current_lang: Literal["zh", "en"] = "en"


def set_language(lang: Literal["zh", "en"]) -> None:
    """设置当前语言 / Set current language"""
    global _current_lang
    _current_lang = lang


def get_language() -> Literal["zh", "en"]:
    """获取当前语言 / Get current language"""
    return _current_lang


def t(key: str) -> str:
    """根据 key 返回当前语言的文案 / Return text for current language by key"""
    entry = _TEXTS.get(key)
    if entry is None:
        return key
    return entry.get(_current_lang, entry.get("en", key))


# ── 文案映射表 / Text mapping table ──────────────────────────

_TEXTS: dict[str, dict[str, str]] = {
    # ── 通用 / General ──
    "total": {"zh": "总计", "en": "Total"},
    "passed": {"zh": "通过", "en": "Passed"},
    "duration": {"zh": "耗时", "en": "Duration"},
    "success_rate": {"zh": "通过率", "en": "Success Rate"},
    "field_accuracy": {"zh": "字段准确率", "en": "Field Accuracy"},
    "cost": {"zh": "成本", "en": "Cost"},
    "evaluating": {"zh": "评测中", "en": "Evaluating"},

    # ── eval 报告 / Eval report ──
    "eval_report_title": {"zh": "📊 评测报告", "en": "📊 Evaluation Report"},
    "detailed_results": {"zh": "详细结果:", "en": "Detailed Results:"},
    "field_failures": {"zh": "字段失败:", "en": "Field Failures:"},
    "report_saved": {"zh": "📄 报告已保存: {path}", "en": "📄 Report saved: {path}"},
    "logs_written": {"zh": "📁 日志目录: {path}", "en": "📁 Logs written to: {path}"},
    "eval_failed": {"zh": "❌ 评测失败: {msg}", "en": "❌ Evaluation failed: {msg}"},
    "loaded_cases": {"zh": "加载了 {n} 个测试用例", "en": "Loaded {n} test cases"},

    # ── optimize / 优化 ──
    "optimize_title": {"zh": "🔧 提示词优化", "en": "🔧 Prompt Optimization"},
    "optimize_target": {"zh": "目标通过率 {rate:.0%}", "en": "Target success rate {rate:.0%}"},
    "optimize_success": {"zh": "优化成功！迭代 {n} 次", "en": "Optimization succeeded! {n} iterations"},
    "optimize_exhausted": {
        "zh": "未达到目标，返回最佳提示词（迭代 {n} 次）",
        "en": "Target not reached, returning best prompt ({n} iterations)",
    },
    "optimize_failed": {"zh": "❌ 优化失败: {msg}", "en": "❌ Optimization failed: {msg}"},
    "prompt_written": {"zh": "✅ 提示词已写回 {path}", "en": "✅ Prompt written to {path}"},
    "final_prompt": {"zh": "最终提示词", "en": "Final Prompt"},
    "col_iteration": {"zh": "轮次", "en": "Iteration"},
    "col_cumulative": {"zh": "累计成本", "en": "Cumulative"},
    "col_tokens": {"zh": "Token（入/出）", "en": "Tokens (in/out)"},

    # ── 表头 / Table headers ──
    "col_index": {"zh": "#", "en": "#"},
    "col_status": {"zh": "状态", "en": "Status"},
    "col_fields": {"zh": "字段", "en": "Fields"},
    "col_pass_rate": {"zh": "字段通过率", "en": "Pass Rate"},
    "col_input": {"zh": "输入", "en": "Input"},
    "col_path": {"zh": "路径", "en": "Path"},
    "col_expected": {"zh": "期望", "en": "Expected"},
    "col_actual": {"zh": "实际", "en": "Actual"},

    # ── 状态显示 / Status display ──
    "status_passed": {"zh": "✅ 通过", "en": "✅ Passed"},
    "status_failed": {"zh": "❌ 失败", "en": "❌ Failed"},
    "status_error": {"zh": "⚠ 错误", "en": "⚠ Error"},

    # ── 错误信息 / Error messages ──
    "config_not_found": {
        "zh": "未找到配置文件 extract-evo.yaml，请指定配置文件路径。",
        "en": "Config file extract-evo.yaml not found, please specify the config path.",
    },
    "config_file_missing": {"zh": "文件不存在: {path}", "en": "File not found: {path}"},
    "workflow_load_fail": {
        "zh": "无法加载工作流: {path}\n请确保模块存在且函数已导出。\n错误: {err}",
        "en": "Cannot load workflow: {path}\nEnsure the module exists and the function is exported.\nError: {err}",
    },
    "no_test_cases": {"zh": "未找到测试用例", "en": "No test cases found"},
}
