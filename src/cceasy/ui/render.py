"""Presentation helpers for cceasy CLI output."""

from __future__ import annotations

from typing import Iterable, List, Optional, TextIO

from rich import box
from rich.console import Console
from rich.table import Table

from cceasy.schema import AppConfig, ProjectEntry


def bilingual_text(zh: str, en: Optional[str] = None) -> str:
    if not en:
        return zh
    return "{0} ({1})".format(zh, en)


def render_notice(level: str, zh: str, en: Optional[str] = None) -> str:
    prefix_map = {
        "info": bilingual_text("提示", "Info"),
        "warn": bilingual_text("警告", "Warning"),
        "error": bilingual_text("错误", "Error"),
        "success": bilingual_text("成功", "Success"),
    }
    prefix = prefix_map.get(level, bilingual_text("提示", "Info"))
    return "{0}: {1}".format(prefix, bilingual_text(zh, en))


def mask_api_key(api_key: str) -> str:
    text = str(api_key or "")
    if not text:
        return "-"
    if len(text) <= 8:
        return "*" * len(text)
    return "{0}...{1}".format(text[:4], text[-4:])


def _is_tty(stream: TextIO, forced: Optional[bool]) -> bool:
    if forced is not None:
        return forced
    isatty = getattr(stream, "isatty", None)
    if callable(isatty):
        try:
            return bool(isatty())
        except Exception:
            return False
    return False


def config_lines(config: AppConfig) -> Iterable[str]:
    yield bilingual_text("模型", "Models")
    for model in config.models:
        marker = "*" if model.name == config.current_model else " "
        yield "{0} {1} url={2} key={3}{4}".format(
            marker,
            model.name,
            model.url or "-",
            mask_api_key(model.api_key),
            " custom" if model.is_custom else "",
        )
    yield bilingual_text("项目", "Projects")
    for project in config.projects:
        yield project_line(project, config.current_project)


def project_line(project: ProjectEntry, current_id: str) -> str:
    marker = "*" if project.id == current_id else " "
    return "{0} {1} name={2} path={3} yolo={4}".format(
        marker,
        project.id,
        project.name,
        project.path,
        "on" if project.yolo_mode else "off",
    )


def render_config(config: AppConfig, stream: TextIO, is_tty: Optional[bool] = None) -> None:
    if not _is_tty(stream, is_tty):
        lines: List[str] = list(config_lines(config))
        stream.write("\n".join(lines) + "\n")
        stream.flush()
        return

    console = Console(file=stream, highlight=False, soft_wrap=True)
    models = Table(title=bilingual_text("模型", "Models"), box=box.ROUNDED)
    models.add_column("")
    models.add_column(bilingual_text("名称", "Name"), style="cyan")
    models.add_column("URL")
    models.add_column("API Key")
    for model in config.models:
        models.add_row(
            "*" if model.name == config.current_model else "",
            model.name + (" (custom)" if model.is_custom else ""),
            model.url or "-",
            mask_api_key(model.api_key),
        )
    console.print(models)

    projects = Table(title=bilingual_text("项目", "Projects"), box=box.ROUNDED)
    projects.add_column("")
    projects.add_column("ID")
    projects.add_column(bilingual_text("名称", "Name"), style="cyan")
    projects.add_column(bilingual_text("路径", "Path"))
    projects.add_column("Yolo")
    for project in config.projects:
        projects.add_row(
            "*" if project.id == config.current_project else "",
            project.id,
            project.name,
            project.path,
            "on" if project.yolo_mode else "off",
        )
    console.print(projects)
