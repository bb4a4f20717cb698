"""
路径工具

提供归档路径规范化和文件大小格式化等工具函数。
"""

import os
import posixpath
from pathlib import Path
from typing import Union


ROOT = "/"


def normalize_archive_path(path: Union[str, Path]) -> str:
    """规范化归档路径

    折叠 ``.``、``..`` 与多余的分隔符，并保证结果为以 ``/`` 开头的绝对路径。

    Args:
        path: 原始路径（可以是相对路径）

    Returns:
        str: 规范化后的归档路径
    """
    text = os.fspath(path).replace('\\', '/')
    normalized = posixpath.normpath(posixpath.join(ROOT, text))
    # POSIX 允许以两个斜杠开头的路径，归档中统一为一个
    if normalized.startswith('//'):
        normalized = '/' + normalized.lstrip('/')
    return normalized


def parent_of(path: str) -> str:
    """获取规范化归档路径的父目录"""
    return posixpath.dirname(normalize_archive_path(path))


def join_archive_path(prefix: Union[str, Path], relative: Union[str, Path]) -> str:
    """拼接归档前缀与相对路径"""
    return normalize_archive_path(posixpath.join(
        os.fspath(prefix).replace('\\', '/'),
        os.fspath(relative).replace('\\', '/'),
    ))


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    return f"{size:.1f} {units[unit_index]}"
