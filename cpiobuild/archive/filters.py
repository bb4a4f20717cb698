"""
遍历过滤器

过滤器是纯函数：给定规范化后的文件系统路径，返回 True 表示包含。
对目录返回 False 时整个子树都会被跳过。
"""

import fnmatch
import os
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union


Filter = Callable[[str], bool]


def _normalize_fs_path(path: Union[str, Path]) -> str:
    return os.path.normpath(os.fspath(path))


def include_all(path: str) -> bool:
    """包含所有路径"""
    return True


def exclude(path: Union[str, Path]) -> Filter:
    """排除恰好一个路径（例如归档输出文件本身）"""
    excluded = _normalize_fs_path(path)

    def _filter(candidate: str) -> bool:
        return _normalize_fs_path(candidate) != excluded

    return _filter


def all_of(*filters: Filter) -> Filter:
    """组合多个过滤器，全部通过才包含"""

    def _filter(candidate: str) -> bool:
        return all(f(candidate) for f in filters)

    return _filter


def exclude_patterns(patterns: Iterable[str], root: Optional[Union[str, Path]] = None) -> Filter:
    """按 glob 模式排除路径

    Args:
        patterns: 排除模式列表，支持 ``*.ext``、``dir/`` 以及带路径分隔符的模式
        root: 匹配基准目录；给出时按相对于 root 的路径匹配

    Returns:
        Filter: 过滤器
    """
    normalized: List[str] = [p.replace('\\', '/') for p in patterns]
    base = _normalize_fs_path(root) if root is not None else None

    def _filter(candidate: str) -> bool:
        path = _normalize_fs_path(candidate)
        if base is not None:
            if path == base:
                return True
            try:
                path = os.path.relpath(path, base)
            except ValueError:
                return True
        path = path.replace('\\', '/')
        return not any(match_pattern(path, pattern) for pattern in normalized)

    return _filter


def match_pattern(path: str, pattern: str) -> bool:
    """匹配单个模式

    Args:
        path: 以正斜杠分隔的路径
        pattern: glob 模式

    Returns:
        bool: 是否匹配
    """
    # 直接 glob 匹配
    if fnmatch.fnmatch(path, pattern):
        return True

    # 目录模式匹配（以 / 结尾）
    if pattern.endswith('/'):
        dir_pattern = pattern.rstrip('/')
        if fnmatch.fnmatch(path, dir_pattern):
            return True
        # 目录名出现在路径的任意一段
        if any(fnmatch.fnmatch(part, dir_pattern) for part in path.split('/')):
            return True
        return False

    # 扩展名匹配（以 *. 开头）
    if pattern.startswith('*.') and path.endswith(pattern[1:]):
        return True

    # 路径片段匹配（包含路径分隔符）
    if '/' in pattern:
        path_parts = path.split('/')
        pattern_parts = pattern.split('/')

        for i in range(len(path_parts) - len(pattern_parts) + 1):
            if all(
                fnmatch.fnmatch(path_parts[i + j], pattern_parts[j])
                for j in range(len(pattern_parts))
            ):
                return True
    else:
        # 不含分隔符的模式匹配文件名
        return fnmatch.fnmatch(path.rsplit('/', 1)[-1], pattern)

    return False
