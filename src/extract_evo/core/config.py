"""配置加载 / Configuration loader"""

import importlib
import os
import re
import sys
from glob import glob
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from extract_evo.models import Config, EvalConfig, OptimizeConfig, TestCase, TestSuite
from extract_evo.utils.i18n import set_language, t

DEFAULT_CONFIG_FILES = ["extract-evo.yaml", "extract-evo.yml", ".extract-evo.yaml"]


def _resolve_env_vars(value: str) -> str:
    """解析环境变量 ${VAR} 格式，未定义的保持原样 / Resolve ${VAR} references"""
    pattern = r'\$\{([^}]+)\}'

    def replace(match):
        return os.environ.get(match.group(1), match.group(0))

    return re.sub(pattern, replace, value)


def _resolve_config_env_vars(value: Any) -> Any:
    """递归解析配置中的环境变量 / Recursively resolve env vars in config"""
    if isinstance(value, str):
        return _resolve_env_vars(value)
    if isinstance(value, dict):
        return {key: _resolve_config_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_resolve_config_env_vars(item) for item in value]
    return value


def load_config(config_path: Optional[str] = None) -> Config:
    """
    加载配置文件 / Load configuration file

    Args:
        config_path: 配置文件路径，默认查找 extract-evo.yaml / Config file path

    Returns:
        Config 对象 / Config object
    """
    if config_path is None:
        for name in DEFAULT_CONFIG_FILES:
            if Path(name).exists():
                config_path = name
                break
        else:
            raise FileNotFoundError(t("config_not_found"))

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(t("config_file_missing").format(path=config_path))

    with open(config_file, "r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    config = Config(**_resolve_config_env_vars(config_dict))

    # 设置全局语言 / Set global language from config
    set_language(config.language)

    return config


# ─── 项目装配 / Project assembly ──────────────────────────

def load_test_cases(config: Config, project_dir: Path) -> list[TestCase]:
    """按 glob 加载所有 YAML 用例集 / Load every YAML suite matched by the glob"""
    pattern = project_dir / config.test_cases
    cases: list[TestCase] = []
    for file_path in sorted(glob(str(pattern), recursive=True)):
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if not data:
            continue
        cases.extend(TestSuite(**data).cases)
    return cases


def load_workflow(config: Config, project_dir: Path) -> tuple[Callable, Any]:
    """动态加载工作流函数及其比较器配置 / Import the workflow and its comparators"""
    module_path = config.workflow.module
    func_name = config.workflow.function

    if str(project_dir) not in sys.path:
        sys.path.insert(0, str(project_dir))
    try:
        module = importlib.import_module(module_path)
        func = getattr(module, func_name)
        comparators = getattr(module, config.workflow.comparators) if config.workflow.comparators else None
    except (ImportError, AttributeError) as e:
        raise RuntimeError(t("workflow_load_fail").format(path=f"{module_path}.{func_name}", err=e)) from e
    return func, comparators


def read_prompt(config: Config, project_dir: Path) -> str:
    prompt_file = project_dir / config.workflow.prompt_file
    if not prompt_file.exists():
        raise FileNotFoundError(t("config_file_missing").format(path=prompt_file))
    return prompt_file.read_text(encoding="utf-8")


def build_eval_config(config: Config, project_dir: Path, system_prompt: Optional[str] = None) -> EvalConfig:
    """由 YAML 配置组装 EvalConfig / Assemble the runtime EvalConfig"""
    func, comparators = load_workflow(config, project_dir)
    test_cases = load_test_cases(config, project_dir)
    if not test_cases:
        raise FileNotFoundError(f"{t('no_test_cases')}: {project_dir / config.test_cases}")

    settings = config.eval
    return EvalConfig(
        executor=func,
        test_cases=test_cases,
        system_prompt=system_prompt if system_prompt is not None else read_prompt(config, project_dir),
        comparators=comparators,
        unordered_lists=settings.unordered_lists,
        per_test_threshold=settings.per_test_threshold,
        rate_limit_batch=settings.rate_limit_batch,
        rate_limit_pause=settings.rate_limit_pause,
        executor_timeout=settings.executor_timeout,
        llm=config.llm,
        store_logs=settings.store_logs,
    )


def build_optimize_config(config: Config, system_prompt: str) -> OptimizeConfig:
    settings = config.optimization
    return OptimizeConfig(
        system_prompt=system_prompt,
        target_success_rate=settings.target_success_rate,
        max_iterations=settings.max_iterations,
        max_cost=settings.max_cost,
        llm=config.llm,
        thinking=settings.thinking,
        store_logs=settings.store_logs,
    )
