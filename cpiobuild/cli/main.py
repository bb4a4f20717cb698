"""
cpiobuild CLI 主入口

提供命令行接口，支持 build/validate/transforms 等命令。
"""

import sys
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..utils import configure_logging, OutputLevel
from .commands import build, validate


app = typer.Typer(
    name="cpiobuild",
    help="cpiobuild - 增量构建 cpio 归档",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"cpiobuild v{__version__}")
        raise typer.Exit()


def verbose_callback(verbose: bool) -> None:
    """配置详细输出"""
    configure_logging(level=OutputLevel.DEBUG if verbose else OutputLevel.INFO)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        callback=verbose_callback,
        help="启用详细输出"
    )
) -> None:
    """cpiobuild - 增量构建 cpio 归档

    使用 --help 查看可用命令的详细信息。
    """
    pass


# 注册子命令
app.command("build", help="按清单构建归档")(build.build_command)
app.command("validate", help="验证清单文件")(validate.validate_command)


@app.command("transforms")
def transforms_command() -> None:
    """列出可用的内容变换"""
    from ..transforms import default_registry

    table = Table(title="内容变换")
    table.add_column("名称", style="cyan")
    table.add_column("后缀", style="green")
    table.add_column("实现", style="dim")

    for transform in default_registry.transforms():
        suffixes = ", ".join(transform.suffixes) or "-"
        table.add_row(transform.name, suffixes, type(transform).__name__)

    console.print(table)
    console.print(f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")


if __name__ == "__main__":
    app()
