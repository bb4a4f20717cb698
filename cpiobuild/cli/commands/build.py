"""
Build 命令实现

按归档清单构建 cpio 文件。
"""

import traceback
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ...config import load_config, ConfigError, ConfigValidationError
from ...utils.logging import set_log_level, set_log_file, OutputLevel


console = Console()


def build_command(
    config: str = typer.Option(..., "--config", "-c", help="清单文件路径"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="输出归档路径（默认使用清单中的 output）"),
    force: bool = typer.Option(False, "--force", "-f", help="强制覆盖已存在的输出文件"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """构建归档

    示例:
        cpiobuild build -c initrd.yaml -o initrd.cpio
    """
    from ...build import ManifestBuilder

    config_path = Path(config)

    set_log_level(OutputLevel.DEBUG if verbose else OutputLevel.INFO)

    if log_file:
        try:
            set_log_file(log_file)
        except OSError as e:
            console.print(f"[yellow]无法写入日志文件: {log_file} ({e})[/yellow]")

    try:
        console.print(f"[cyan]正在加载清单[/cyan]: {config_path}")
        manifest = load_config(config_path)
    except ConfigValidationError as e:
        console.print("[red]清单验证失败:[/red]")
        console.print(e.format_errors(), markup=False)
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]配置错误[/red]: {e}", markup=False)
        raise typer.Exit(1)

    if output is not None:
        output_path = Path(output)
    elif manifest.output is not None:
        output_path = Path(manifest.output)
    else:
        console.print("[red]未指定输出路径[/red]，请使用 --output 或在清单中设置 output")
        raise typer.Exit(1)

    if output_path.exists() and not force:
        console.print(f"[red]输出文件已存在: {output_path}[/red]")
        console.print("使用 --force 参数强制覆盖")
        raise typer.Exit(1)

    try:
        result = ManifestBuilder().build(manifest, output_path)
    except Exception as e:
        console.print(f"[red]✗ 构建过程中发生意外错误[/red]: {e}")
        if log_file:
            console.print(f"[yellow]详细错误信息:[/yellow]\n{traceback.format_exc()}", markup=False)
        raise typer.Exit(1)

    if not result.success:
        console.print(f"[red]✗ 构建失败[/red]: {result.error}")
        if log_file:
            console.print(f"[yellow]请检查日志文件 {log_file} 获取详细信息。[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]✓ 归档构建完成[/green]: {result.output_path}")
    console.print(f"[blue]条目数量[/blue]: {result.entry_count}")
    if result.output_size is not None:
        console.print(f"[blue]文件大小[/blue]: {result.output_size} 字节")
