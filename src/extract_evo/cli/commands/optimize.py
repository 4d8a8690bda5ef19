"""optimize 命令 / optimize command"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from extract_evo.cli.commands.eval import project_dir_for
from extract_evo.core.config import build_eval_config, build_optimize_config, load_config, read_prompt
from extract_evo.core.optimizer import Optimizer
from extract_evo.models import OptimizeResult
from extract_evo.utils.i18n import t

console = Console()


async def run_optimize(config_path: Optional[str], write: bool = False):
    """运行提示词优化 / Run prompt optimization"""
    try:
        config = load_config(config_path)
        project_dir = project_dir_for(config_path)
        prompt = read_prompt(config, project_dir)
        eval_config = build_eval_config(config, project_dir, system_prompt=prompt)
        optimize_config = build_optimize_config(config, prompt)

        console.print(f"\n[bold]{t('optimize_title')}[/bold]")
        console.print(t("optimize_target").format(rate=optimize_config.target_success_rate))
        console.print(t("loaded_cases").format(n=len(eval_config.test_cases)))

        result = await Optimizer(optimize_config).optimize(eval_config)
    except FileNotFoundError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise SystemExit(1)
    except Exception as e:
        console.print(f"[red]{t('optimize_failed').format(msg=e)}[/red]")
        raise SystemExit(1)

    _print_iterations(result)
    console.print(Panel(result.final_prompt, title=t("final_prompt")))

    if result.log_folder:
        console.print(t("logs_written").format(path=result.log_folder))

    if write:
        prompt_path = project_dir / config.workflow.prompt_file
        prompt_path.write_text(result.final_prompt, encoding="utf-8")
        console.print(t("prompt_written").format(path=prompt_path))

    if result.success:
        console.print(f"[green]{t('optimize_success').format(n=len(result.iterations))}[/green]")
    else:
        console.print(f"[yellow]{t('optimize_exhausted').format(n=len(result.iterations))}[/yellow]")
        raise SystemExit(1)


def _print_iterations(result: OptimizeResult):
    """打印每轮记录 / Print one row per iteration"""
    table = Table(show_header=True, header_style="bold")
    table.add_column(t("col_iteration"), style="cyan")
    table.add_column(t("success_rate"))
    table.add_column(t("field_accuracy"))
    table.add_column(t("cost"))
    table.add_column(t("col_cumulative"))
    table.add_column(t("col_tokens"))
    table.add_column(t("duration"))

    for record in result.iterations:
        rate = record.success_rate
        color = "green" if rate >= 0.95 else "red" if rate < 0.7 else "yellow"
        table.add_row(
            str(record.iteration),
            f"[{color}]{record.passed}/{record.total} ({rate:.0%})[/{color}]",
            f"{record.result.accuracy:.1%}",
            f"${record.cost:.4f}",
            f"${record.cumulative_cost:.4f}",
            f"{record.input_tokens}/{record.output_tokens}",
            f"{record.duration_ms / 1000:.1f}s",
        )
    console.print(table)
