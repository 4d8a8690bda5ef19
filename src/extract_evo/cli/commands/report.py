"""report 命令 / report command"""

import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from extract_evo.core.reporter import load_eval_report
from extract_evo.utils.i18n import t

console = Console()

MAX_FIELD_ROWS = 20


def show_report(input_file: str):
    """显示保存的评测报告 / Display a saved eval report"""
    input_path = Path(input_file)

    if not input_path.exists():
        console.print(f"[red]❌ {t('config_file_missing').format(path=input_file)}[/red]")
        raise SystemExit(1)

    try:
        data = load_eval_report(input_path)
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise SystemExit(1)

    render_report(data)


def _short(value: Any, width: int = 40) -> str:
    text = json.dumps(value, ensure_ascii=False, default=str)
    return text[:width] + "..." if len(text) > width else text


def _rate_color(rate: float) -> str:
    return "green" if rate >= 0.95 else "red" if rate < 0.7 else "yellow"


def render_report(data: dict):
    """在终端打印评测报告 / Print an eval report in the terminal"""
    summary = data.get("summary", {})
    cases = data.get("test_cases", [])

    console.print(f"\n[bold]{t('eval_report_title')}[/bold]\n")

    # 概览 / Overview
    rate = summary.get("success_rate", 0.0)
    color = _rate_color(rate)
    console.print(f"{t('success_rate')}: [{color}]{rate:.1%}[/{color}]")
    console.print(
        f"{t('total')}: {summary.get('total', 0)}  {t('passed')}: {summary.get('passed', 0)}  "
        f"{t('field_accuracy')}: {summary.get('accuracy', 0.0):.1%} "
        f"({summary.get('correct_fields', 0)}/{summary.get('total_fields', 0)})"
    )
    console.print(f"{t('cost')}: ${summary.get('total_cost', 0.0):.4f}  {t('duration')}: {summary.get('duration_ms', 0) / 1000:.2f}s")

    if not cases:
        return

    # 详细结果表格 / Detailed results table
    console.print(f"\n[bold]{t('detailed_results')}[/bold]\n")
    table = Table(show_header=True, header_style="bold")
    table.add_column(t("col_index"), style="cyan")
    table.add_column(t("col_status"))
    table.add_column(t("col_fields"))
    table.add_column(t("col_pass_rate"))
    table.add_column(t("col_input"), max_width=40)

    for case in cases:
        fields = case.get("fields", {})
        if case.get("error"):
            status = f"[yellow]{t('status_error')}[/yellow]"
        elif case.get("passed"):
            status = f"[green]{t('status_passed')}[/green]"
        else:
            status = f"[red]{t('status_failed')}[/red]"
        passed_fields = sum(1 for f in fields.values() if f.get("passed"))
        table.add_row(
            str(case.get("index", "")),
            status,
            f"{passed_fields}/{len(fields)}",
            f"{case.get('pass_rate', 0.0):.0%}",
            _short(case.get("input")),
        )
    console.print(table)

    # 失败字段 / Failing fields
    rows = [
        (case.get("index", ""), path or "(root)", f)
        for case in cases if not case.get("passed")
        for path, f in case.get("fields", {}).items() if not f.get("passed")
    ]
    errors = [(case.get("index", ""), case["error"]) for case in cases if case.get("error")]
    if not rows and not errors:
        return

    console.print(f"\n[bold]{t('field_failures')}[/bold]\n")
    for index, error in errors:
        console.print(f"  [yellow]#{index}[/yellow] {error}")
    if rows:
        failures = Table(show_header=True, header_style="bold")
        failures.add_column(t("col_index"), style="cyan")
        failures.add_column(t("col_path"))
        failures.add_column(t("col_expected"), max_width=30)
        failures.add_column(t("col_actual"), max_width=30)
        for index, path, f in rows[:MAX_FIELD_ROWS]:
            failures.add_row(str(index), path, _short(f.get("expected"), 30), _short(f.get("actual"), 30))
        console.print(failures)
        if len(rows) > MAX_FIELD_ROWS:
            console.print(f"  ... +{len(rows) - MAX_FIELD_ROWS}")
