"""
归档错误定义

调用方误用（重复条目、不支持的节点类型）和 I/O 错误（写出失败、遍历失败）
统一继承自 ArchiveError，出错的操作不会做任何重试或静默恢复。
"""

import stat
from typing import Optional


class ArchiveError(Exception):
    """归档相关错误基类"""
    pass


class ArchiveWriteError(ArchiveError):
    """归档输出写入失败，或条目内容长度与头部声明不一致"""
    pass


class DuplicateEntryError(ArchiveError):
    """同一归档路径被写入了两个冲突的条目"""

    def __init__(self, path: str, existing: str):
        super().__init__(f"归档路径已存在 {existing} 条目: {path}")
        self.path = path
        self.existing = existing


class UnsupportedNodeTypeError(ArchiveError):
    """遍历时遇到无法表示为归档条目的节点（设备文件、套接字等）"""

    def __init__(self, path: str, st_mode: int):
        super().__init__(
            f"不支持的节点类型 {describe_mode(st_mode)}: {path}"
        )
        self.path = path
        self.st_mode = st_mode


class WalkError(ArchiveError):
    """遍历文件系统失败"""

    def __init__(self, path: str, cause: Optional[OSError] = None):
        message = f"遍历失败: {path}"
        if cause is not None:
            message = f"{message} ({cause.strerror or cause})"
        super().__init__(message)
        self.path = path
        self.cause = cause


def describe_mode(st_mode: int) -> str:
    """返回节点类型的可读名称"""
    if stat.S_ISCHR(st_mode):
        return "字符设备"
    if stat.S_ISBLK(st_mode):
        return "块设备"
    if stat.S_ISFIFO(st_mode):
        return "命名管道"
    if stat.S_ISSOCK(st_mode):
        return "套接字"
    return oct(stat.S_IFMT(st_mode))


class TransformError(ArchiveError):
    """内容变换失败，对应条目不会被写入"""
    pass
