"""eval 命令 / eval command"""

import json
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

from extract_evo.cli.commands.report import render_report
from extract_evo.core.config import build_eval_config, load_config
from extract_evo.core.evaluator import evaluate
from extract_evo.core.reporter import eval_report
from extract_evo.utils.i18n import t

console = Console()


def project_dir_for(config_path: Optional[str]) -> Path:
    return Path(config_path).resolve().parent if config_path else Path.cwd()


async def run_eval(config_path: Optional[str], output: Optional[str], strict: bool = False):
    """运行评测 / Run evaluation"""
    try:
        config = load_config(config_path)
        eval_config = build_eval_config(config, project_dir_for(config_path))
        console.print(t("loaded_cases").format(n=len(eval_config.test_cases)))

        with Progress(
            TextColumn("{task.description}"), BarColumn(), MofNCompleteColumn(),
            console=console, transient=True,
        ) as progress:
            task = progress.add_task(t("evaluating"), total=len(eval_config.test_cases))
            result = await evaluate(
                eval_config,
                on_progress=lambda done, total: progress.update(task, completed=done),
            )

        report = eval_report(result, eval_config.per_test_threshold)
        render_report(report)

        if result.log_folder:
            console.print(f"\n{t('logs_written').format(path=result.log_folder)}")

        # 保存报告 / Save report
        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(json.dumps(report, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
            console.print(f"\n{t('report_saved').format(path=output)}")

    except FileNotFoundError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise SystemExit(1)
    except Exception as e:
        console.print(f"[red]{t('eval_failed').format(msg=e)}[/red]")
        raise SystemExit(1)

    if strict and result.passed < result.total:
        raise SystemExit(1)
