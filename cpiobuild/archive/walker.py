"""
文件系统遍历

按稳定顺序（先父目录后子项，同级按名称字典序）遍历目录树，
不跟随符号链接。过滤器对目录返回 False 时不再深入该目录。
"""

import os
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, Union

from ..config.schema import ErrorPolicy
from ..utils.logging import walk_logger
from .errors import WalkError
from .filters import Filter, include_all


class NodeKind(str, Enum):
    """节点类型"""
    DIRECTORY = "directory"
    REGULAR = "regular"
    SYMLINK = "symlink"
    OTHER = "other"


@dataclass
class TreeNode:
    """遍历得到的节点信息"""
    path: str  # 文件系统路径
    kind: NodeKind
    st_mode: int
    size: int  # 普通文件的字节数，其它类型为 0

    @property
    def mode(self) -> int:
        """去掉类型位后的权限位"""
        return stat.S_IMODE(self.st_mode)

    @classmethod
    def from_stat(cls, path: str, st: os.stat_result) -> 'TreeNode':
        if stat.S_ISDIR(st.st_mode):
            kind = NodeKind.DIRECTORY
        elif stat.S_ISREG(st.st_mode):
            kind = NodeKind.REGULAR
        elif stat.S_ISLNK(st.st_mode):
            kind = NodeKind.SYMLINK
        else:
            kind = NodeKind.OTHER

        return cls(
            path=path,
            kind=kind,
            st_mode=st.st_mode,
            size=st.st_size if kind == NodeKind.REGULAR else 0,
        )


def walk_tree(
    root: Union[str, Path],
    filter: Filter = include_all,
    on_error: ErrorPolicy = ErrorPolicy.ABORT,
) -> Iterator[TreeNode]:
    """遍历目录树

    Args:
        root: 遍历起点
        filter: 包含判定；对目录返回 False 时剪掉整个子树
        on_error: 遍历过程中文件系统错误的处理策略

    Yields:
        TreeNode: 通过过滤的节点

    Raises:
        WalkError: 起点不可访问，或在 abort 策略下遇到文件系统错误
    """
    root_path = os.path.normpath(os.fspath(root))

    try:
        root_stat = os.lstat(root_path)
    except OSError as e:
        raise WalkError(root_path, e) from e

    yield from _walk(TreeNode.from_stat(root_path, root_stat), filter, on_error)


def _walk(node: TreeNode, filter: Filter, on_error: ErrorPolicy) -> Iterator[TreeNode]:
    if not filter(node.path):
        if node.kind == NodeKind.DIRECTORY:
            walk_logger.debug(f"跳过目录及其子树: {node.path}")
        return

    yield node

    if node.kind != NodeKind.DIRECTORY:
        return

    try:
        names = sorted(os.listdir(node.path))
    except OSError as e:
        _handle_error(node.path, e, on_error)
        return

    for name in names:
        child_path = os.path.join(node.path, name)
        try:
            child_stat = os.lstat(child_path)
        except OSError as e:
            _handle_error(child_path, e, on_error)
            continue

        yield from _walk(TreeNode.from_stat(child_path, child_stat), filter, on_error)


def _handle_error(path: str, cause: OSError, on_error: ErrorPolicy) -> None:
    if on_error == ErrorPolicy.SKIP:
        walk_logger.warning(f"无法访问，已跳过: {path} ({cause.strerror or cause})")
        return
    raise WalkError(path, cause) from cause
