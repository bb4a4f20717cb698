"""归档构建模块

提供 cpio 归档的增量构建：目录链补全、目录树复制和内容变换复制。
"""

from .builder import ArchiveBuilder, ArchiveStats, Transformer
from .errors import (
    ArchiveError,
    ArchiveWriteError,
    DuplicateEntryError,
    TransformError,
    UnsupportedNodeTypeError,
    WalkError,
)
from .filters import Filter, all_of, exclude, exclude_patterns, include_all
from .newc import CpioHeader, EntryType, NewcWriter
from .walker import NodeKind, TreeNode, walk_tree

__all__ = [
    # 构建器
    "ArchiveBuilder",
    "ArchiveStats",
    "Transformer",

    # 错误
    "ArchiveError",
    "ArchiveWriteError",
    "DuplicateEntryError",
    "TransformError",
    "UnsupportedNodeTypeError",
    "WalkError",

    # 过滤器
    "Filter",
    "all_of",
    "exclude",
    "exclude_patterns",
    "include_all",

    # 编码
    "CpioHeader",
    "EntryType",
    "NewcWriter",

    # 遍历
    "NodeKind",
    "TreeNode",
    "walk_tree",
]
