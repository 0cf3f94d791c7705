"""Typer CLI entrypoints for cceasy."""

from __future__ import annotations

import json
import sys
from typing import Callable, NoReturn, Optional

import typer

from cceasy.config import initialize_runtime_config, load_runtime_settings
from cceasy.editing import (
    add_project,
    delete_project,
    launch_arguments,
    rename_model,
    rename_project,
    set_api_key,
    set_model_url,
    set_project_path,
    set_yolo_mode,
    switch_model,
    switch_project,
)
from cceasy.errors import (
    CceasyError,
    ConfigPersistError,
    RecoverError,
    RuntimeSettingsError,
    SettingsSyncError,
    UnknownProjectError,
)
from cceasy.recover import recover_claude_state
from cceasy.schema import AppConfig
from cceasy.store import ConfigStore
from cceasy.ui.render import project_line, render_config, render_notice

app = typer.Typer(
    no_args_is_help=True,
    help="Claude Code 模型切换工具 (Claude Code provider switcher)",
)
project_app = typer.Typer(help="项目管理 (Project management)")
app.add_typer(project_app, name="project")

_IO_ERRORS = (SettingsSyncError, ConfigPersistError, RecoverError, RuntimeSettingsError)


def _build_store() -> ConfigStore:
    return ConfigStore(load_runtime_settings())


def _fail(exc: CceasyError) -> NoReturn:
    typer.echo(render_notice("error", str(exc)), err=True)
    raise typer.Exit(code=1 if isinstance(exc, _IO_ERRORS) else 2)


def _load(store: ConfigStore) -> AppConfig:
    try:
        return store.load()
    except CceasyError as exc:
        _fail(exc)


def _apply_edit(edit: Callable[[AppConfig], AppConfig]) -> AppConfig:
    store = _build_store()
    config = _load(store)
    try:
        updated = edit(config)
        store.save(updated)
    except CceasyError as exc:
        _fail(exc)
    return updated


@app.command("init")
def init_cmd(
    force: bool = typer.Option(False, "--force", help="覆盖已有运行配置 (Overwrite runtime config)"),
) -> None:
    """生成运行配置文件 (Write the runtime settings file)."""
    try:
        config_file = initialize_runtime_config(force=force)
    except RuntimeSettingsError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=2)
    typer.echo(
        render_notice(
            "success",
            "运行配置已生成：{0}".format(config_file),
            "Runtime settings written to: {0}".format(config_file),
        )
    )


@app.command("show")
def show_cmd(
    output_format: str = typer.Option("text", "--format", help="输出格式：json|text (Output format)"),
) -> None:
    """显示当前配置 (Show the current configuration)."""
    normalized_format = output_format.strip().lower()
    if normalized_format not in {"json", "text"}:
        typer.echo(
            render_notice(
                "error",
                "不支持的格式：{0}".format(output_format),
                "Unsupported format: {0}".format(output_format),
            ),
            err=True,
        )
        raise typer.Exit(code=2)

    config = _load(_build_store())
    if normalized_format == "json":
        typer.echo(json.dumps(config.to_dict(), ensure_ascii=False, indent=2))
        return
    render_config(config, stream=sys.stdout)


@app.command("use")
def use_cmd(model: str = typer.Argument(..., help="模型名称 (Model name)")) -> None:
    """切换当前模型并同步 (Switch the active model and sync)."""
    updated = _apply_edit(lambda config: switch_model(config, model))
    typer.echo(
        render_notice(
            "success",
            "已切换到：{0}".format(updated.current_model),
            "Switched to: {0}".format(updated.current_model),
        )
    )


@app.command("key")
def key_cmd(
    model: str = typer.Argument(..., help="模型名称 (Model name)"),
    api_key: str = typer.Argument(..., help="API Key"),
) -> None:
    """设置模型的 API Key (Set a model's API key)."""
    _apply_edit(lambda config: set_api_key(config, model, api_key))
    typer.echo(render_notice("success", "API Key 已保存：{0}".format(model), "API key saved: {0}".format(model)))


@app.command("url")
def url_cmd(
    model: str = typer.Argument(..., help="模型名称 (Model name)"),
    url: str = typer.Argument(..., help="Base URL"),
) -> None:
    """设置自定义模型的地址 (Set a model's base URL)."""
    _apply_edit(lambda config: set_model_url(config, model, url))
    typer.echo(render_notice("success", "地址已保存：{0}".format(model), "URL saved: {0}".format(model)))


@app.command("rename-model")
def rename_model_cmd(
    old_name: str = typer.Argument(..., help="原名称 (Current name)"),
    new_name: str = typer.Argument(..., help="新名称 (New name)"),
) -> None:
    """重命名自定义模型 (Rename a custom model)."""
    _apply_edit(lambda config: rename_model(config, old_name, new_name))
    typer.echo(
        render_notice(
            "success",
            "已重命名：{0} -> {1}".format(old_name, new_name),
            "Renamed: {0} -> {1}".format(old_name, new_name),
        )
    )


@app.command("sync")
def sync_cmd() -> None:
    """重新写入 Claude Code 配置与环境变量 (Re-apply settings to Claude Code)."""
    store = _build_store()
    config = _load(store)
    try:
        report = store.save(config)
    except CceasyError as exc:
        _fail(exc)
    for item in report.applied:
        typer.echo("applied {0} action={1} path={2}".format(item.sink, item.action, item.path or "-"))
    for note in report.notes:
        typer.echo("note={0}".format(note))
    typer.echo(
        render_notice(
            "success",
            "已同步：{0} {1}".format(report.model_name, report.base_url),
            "Synced: {0} {1}".format(report.model_name, report.base_url),
        )
    )


@app.command("recover")
def recover_cmd(
    yes: bool = typer.Option(False, "--yes", help="跳过确认 (Skip confirmation)"),
) -> None:
    """删除 ~/.claude 与 ~/.claude.json (Reset Claude Code local state)."""
    settings = load_runtime_settings()
    if not yes:
        confirmed = typer.confirm(
            "将删除 {0} 与 {1}，确定继续？ (This removes Claude Code local state. Continue?)".format(
                settings.claude_dir,
                settings.claude_state_file,
            ),
            default=False,
        )
        if not confirmed:
            typer.echo(render_notice("info", "已取消。", "Cancelled."))
            raise typer.Exit(code=0)
    try:
        recover_claude_state(settings.home, progress=typer.echo, log=settings.build_log_writer())
    except RecoverError as exc:
        _fail(exc)


@project_app.command("list")
def project_list_cmd() -> None:
    config = _load(_build_store())
    for project in config.projects:
        typer.echo(project_line(project, config.current_project))


@project_app.command("add")
def project_add_cmd(
    path: Optional[str] = typer.Option(None, "--path", help="项目目录，默认主目录 (Project directory)"),
) -> None:
    directory = path or str(load_runtime_settings().home)
    updated = _apply_edit(lambda config: add_project(config, directory))
    created = updated.projects[-1]
    typer.echo(
        render_notice(
            "success",
            "已添加项目：{0} ({1})".format(created.name, created.id),
            "Added project: {0} ({1})".format(created.name, created.id),
        )
    )


@project_app.command("use")
def project_use_cmd(project_ref: str = typer.Argument(..., help="项目 ID 或名称 (Project id or name)")) -> None:
    updated = _apply_edit(lambda config: switch_project(config, _resolve_project_ref(config, project_ref)))
    typer.echo(
        render_notice(
            "success",
            "当前项目：{0}".format(updated.current_project),
            "Current project: {0}".format(updated.current_project),
        )
    )


@project_app.command("remove")
def project_remove_cmd(project_ref: str = typer.Argument(..., help="项目 ID 或名称 (Project id or name)")) -> None:
    _apply_edit(lambda config: delete_project(config, _resolve_project_ref(config, project_ref)))
    typer.echo(render_notice("success", "已删除项目：{0}".format(project_ref), "Removed project: {0}".format(project_ref)))


@project_app.command("rename")
def project_rename_cmd(
    project_ref: str = typer.Argument(..., help="项目 ID 或名称 (Project id or name)"),
    name: str = typer.Argument(..., help="新名称 (New name)"),
) -> None:
    _apply_edit(lambda config: rename_project(config, _resolve_project_ref(config, project_ref), name))
    typer.echo(render_notice("success", "项目已重命名：{0}".format(name), "Project renamed: {0}".format(name)))


@project_app.command("path")
def project_path_cmd(path: str = typer.Argument(..., help="项目目录 (Project directory)")) -> None:
    """设置当前项目目录 (Set the current project's directory)."""
    _apply_edit(lambda config: set_project_path(config, path))
    typer.echo(render_notice("success", "项目目录已更新：{0}".format(path), "Project path updated: {0}".format(path)))


@project_app.command("yolo")
def project_yolo_cmd(
    enabled: bool = typer.Argument(..., help="on/off"),
) -> None:
    """切换当前项目的 Yolo 模式 (Toggle yolo mode for the current project)."""
    updated = _apply_edit(lambda config: set_yolo_mode(config, enabled))
    project = updated.current_project_entry() or updated.projects[0]
    typer.echo(
        render_notice(
            "success",
            "Yolo 模式：{0} ({1})".format("开启" if enabled else "关闭", project.name),
            "Yolo mode: {0} ({1})".format("on" if enabled else "off", project.name),
        )
    )
    typer.echo("launch: {0}".format(" ".join(launch_arguments(project))))


def _resolve_project_ref(config: AppConfig, project_ref: str) -> str:
    if config.find_project(project_ref) is not None:
        return project_ref
    for project in config.projects:
        if project.name == project_ref:
            return project.id
    raise UnknownProjectError(project_ref)


if __name__ == "__main__":
    app()
