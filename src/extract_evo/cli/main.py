"""extract-evo CLI 主入口"""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from extract_evo import __version__

app = typer.Typer(
    name="extract-evo",
    help="extract-evo - LLM 抽取工作流评测与提示词优化",
    add_completion=False,
)
console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"extract-evo version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", callback=version_callback, is_eager=True, help="显示版本号"),
    verbose: bool = typer.Option(False, "--verbose", help="输出调试日志"),
):
    """extract-evo - LLM 抽取工作流评测与提示词优化"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


@app.command(name="eval")
def eval_cmd(
    config: Optional[str] = typer.Option(None, "-c", "--config", help="配置文件路径"),
    output: Optional[str] = typer.Option(None, "-o", "--output", help="报告输出路径"),
    strict: bool = typer.Option(False, "--strict", help="存在失败用例时以状态码 1 退出"),
):
    """运行评测（不优化）"""
    from extract_evo.cli.commands.eval import run_eval
    asyncio.run(run_eval(config, output, strict))


@app.command()
def optimize(
    config: Optional[str] = typer.Option(None, "-c", "--config", help="配置文件路径"),
    write: bool = typer.Option(False, "--write", help="把最终提示词写回 prompt_file"),
):
    """运行提示词优化循环"""
    from extract_evo.cli.commands.optimize import run_optimize
    asyncio.run(run_optimize(config, write))


@app.command()
def report(
    input_file: str = typer.Argument(..., help="eval_report.json 路径"),
):
    """查看保存的评测报告"""
    from extract_evo.cli.commands.report import show_report
    show_report(input_file)


if __name__ == "__main__":
    app()
