"""
归档构建器

在一个输出流上增量构建 cpio 归档。任何条目写入之前，先保证其所在的目录链
已经以目录条目的形式出现在归档中（自根向叶，每个目录只写一次）。
条目在归档中的顺序就是调用顺序，外加在首个依赖条目之前补写的目录。
"""

import io
import os
import posixpath
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Optional, Set, Union

from ..config.schema import BuilderSettings, ErrorPolicy
from ..utils.logging import directory_logger, walk_logger, write_logger
from ..utils.paths import ROOT, join_archive_path, normalize_archive_path, parent_of
from .errors import (
    ArchiveWriteError,
    DuplicateEntryError,
    TransformError,
    UnsupportedNodeTypeError,
    WalkError,
)
from .filters import Filter, include_all
from .newc import CpioHeader, EntryType, NewcWriter
from .walker import NodeKind, TreeNode, walk_tree


# 内容变换：读取 src，把结果写入 dst，失败时抛出 TransformError
Transformer = Callable[[BinaryIO, BinaryIO], None]

PathLike = Union[str, Path]

_ENTRY_NAMES = {
    EntryType.DIRECTORY: "directory",
    EntryType.REGULAR: "file",
    EntryType.SYMLINK: "symlink",
    EntryType.CHAR_DEVICE: "chardev",
}


@dataclass
class ArchiveStats:
    """归档统计信息"""
    directories: int = 0
    files: int = 0
    symlinks: int = 0
    devices: int = 0
    payload_bytes: int = 0

    @property
    def total_entries(self) -> int:
        return self.directories + self.files + self.symlinks + self.devices

    def record(self, entry_type: EntryType, size: int = 0) -> None:
        if entry_type == EntryType.DIRECTORY:
            self.directories += 1
        elif entry_type == EntryType.REGULAR:
            self.files += 1
        elif entry_type == EntryType.SYMLINK:
            self.symlinks += 1
        elif entry_type == EntryType.CHAR_DEVICE:
            self.devices += 1
        self.payload_bytes += size

    def to_dict(self) -> Dict[str, int]:
        return {
            'directories': self.directories,
            'files': self.files,
            'symlinks': self.symlinks,
            'devices': self.devices,
            'total_entries': self.total_entries,
            'payload_bytes': self.payload_bytes,
        }


class ArchiveBuilder:
    """cpio 归档构建器

    绑定到单个输出流，在一次构建会话内累积条目。非线程安全：
    目录跟踪状态属于实例本身，多个实例可以独立共存。

    Args:
        stream: 二进制输出流，由构建器独占写入
        settings: 构建器设置，默认使用 BuilderSettings()
    """

    def __init__(self, stream: BinaryIO, settings: Optional[BuilderSettings] = None):
        self.settings = settings or BuilderSettings()
        self._writer = NewcWriter(stream)
        # 已作为目录条目写入的路径；单调增长，根目录预置且永不写出
        self.known_paths: Set[str] = {ROOT}
        # 已写入的非目录条目
        self._entries: Dict[str, EntryType] = {}
        self.stats = ArchiveStats()

    def __enter__(self) -> 'ArchiveBuilder':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        # 出错时归档本身已不可用，不再补写结尾记录
        if exc_type is None:
            self.close()

    @property
    def closed(self) -> bool:
        return self._writer.finished

    def close(self) -> None:
        """写入结尾记录并刷新输出流"""
        if self.closed:
            return
        self._writer.finish()
        write_logger.debug(
            f"归档结束: {self.stats.total_entries} 个条目，内容 {self.stats.payload_bytes} 字节"
        )

    # ------------------------------------------------------------------
    # 目录补全
    # ------------------------------------------------------------------

    def ensure_directory(self, path: PathLike) -> None:
        """保证目录及其所有祖先目录都已写入归档

        自根向叶逐级检查，缺失的目录以默认权限写入，每个目录最多写一次。

        Args:
            path: 归档路径

        Raises:
            DuplicateEntryError: 路径上某一级已被写成非目录条目
            ArchiveWriteError: 输出流写入失败
        """
        directory = normalize_archive_path(path)
        if directory in self.known_paths:
            return

        collector = ROOT
        for component in directory.strip('/').split('/'):
            collector = posixpath.join(collector, component)
            if collector in self.known_paths:
                continue

            directory_logger.debug(f"补全目录: {collector}")
            self._write_directory_entry(collector, self.settings.default_dir_mode)

    def _write_directory_entry(self, directory: str, mode: int) -> None:
        existing = self._entries.get(directory)
        if existing is not None:
            raise DuplicateEntryError(directory, _ENTRY_NAMES[existing])

        self._writer.write_header(self._header(directory, EntryType.DIRECTORY, mode))
        self.known_paths.add(directory)
        self.stats.record(EntryType.DIRECTORY)

    # ------------------------------------------------------------------
    # 显式条目
    # ------------------------------------------------------------------

    def write_directory(self, directory: PathLike, mode: int = 0o755) -> None:
        """写入目录条目

        先补全父目录，再写入目录本身。目录已存在时不重复写入。

        Args:
            directory: 归档路径
            mode: 权限位
        """
        path = normalize_archive_path(directory)
        if path in self.known_paths:
            directory_logger.debug(f"目录已存在，跳过: {path}")
            return

        existing = self._entries.get(path)
        if existing is not None:
            raise DuplicateEntryError(path, _ENTRY_NAMES[existing])

        self.ensure_directory(parent_of(path))
        self._write_directory_entry(path, mode)
        write_logger.debug(f"目录 {path} ({mode:04o})")

    def write_file(self, file: PathLike, content: Union[str, bytes], mode: int = 0o644) -> None:
        """写入普通文件，文本内容按 UTF-8 编码"""
        if isinstance(content, str):
            content = content.encode('utf-8')
        self.write_file_raw(file, content, mode)

    def write_file_raw(self, file: PathLike, data: bytes, mode: int = 0o644) -> None:
        """写入普通文件

        Args:
            file: 归档路径
            data: 文件内容
            mode: 权限位

        Raises:
            DuplicateEntryError: 路径已被写入
            ArchiveWriteError: 输出流写入失败
        """
        path = self._check_new_entry(file)
        self.ensure_directory(parent_of(path))

        self._writer.write_header(self._header(path, EntryType.REGULAR, mode, size=len(data)))
        self._writer.write(data)
        self._record_entry(path, EntryType.REGULAR, len(data))
        write_logger.debug(f"文件 {path} ({mode:04o}, {len(data)} 字节)")

    def write_symlink(self, target: str, link: PathLike, mode: int = 0o777) -> None:
        """写入符号链接，链接目标作为条目内容

        Args:
            target: 链接目标（原样保存，不做规范化）
            link: 链接的归档路径
            mode: 权限位
        """
        path = self._check_new_entry(link)
        self.ensure_directory(parent_of(path))

        content = os.fsencode(target)
        self._writer.write_header(self._header(path, EntryType.SYMLINK, mode, size=len(content)))
        self._writer.write(content)
        self._record_entry(path, EntryType.SYMLINK, len(content))
        write_logger.debug(f"符号链接 {path} -> {target}")

    def write_char_device(self, device: PathLike, major: int, minor: int, mode: int = 0o600) -> None:
        """写入字符设备节点，设备号保存在头部，没有内容"""
        path = self._check_new_entry(device)
        self.ensure_directory(parent_of(path))

        self._writer.write_header(self._header(
            path, EntryType.CHAR_DEVICE, mode, rdev_major=major, rdev_minor=minor
        ))
        self._record_entry(path, EntryType.CHAR_DEVICE)
        write_logger.debug(f"字符设备 {path} ({major}:{minor})")

    # ------------------------------------------------------------------
    # 文件复制
    # ------------------------------------------------------------------

    def copy_file(self, src: PathLike) -> None:
        """把文件复制到归档中同名路径"""
        self.copy_file_to(src, src)

    def copy_file_to(self, src: PathLike, dst: PathLike) -> None:
        """流式复制文件内容到归档，沿用源文件权限位

        Args:
            src: 源文件路径
            dst: 归档路径

        Raises:
            OSError: 源文件无法打开（此时不会写入任何内容）
            UnsupportedNodeTypeError: 源路径不是普通文件
            ArchiveWriteError: 复制中途读取失败或文件长度变化，条目已损坏
        """
        path = self._check_new_entry(dst)

        with open(src, 'rb') as f:
            st = os.fstat(f.fileno())
            if not stat.S_ISREG(st.st_mode):
                raise UnsupportedNodeTypeError(os.fspath(src), st.st_mode)

            mode = stat.S_IMODE(st.st_mode)
            size = st.st_size

            self.ensure_directory(parent_of(path))
            self._writer.write_header(self._header(path, EntryType.REGULAR, mode, size=size))

            remaining = size
            while remaining > 0:
                try:
                    chunk = f.read(min(self.settings.chunk_size, remaining))
                except OSError as e:
                    raise ArchiveWriteError(f"读取源文件失败，条目不完整: {src} ({e})") from e
                if not chunk:
                    raise ArchiveWriteError(
                        f"源文件在复制过程中变短，条目不完整: {src}（还差 {remaining} 字节）"
                    )
                self._writer.write(chunk)
                remaining -= len(chunk)

        self._record_entry(path, EntryType.REGULAR, size)
        write_logger.debug(f"复制文件 {src} -> {path} ({mode:04o}, {size} 字节)")

    def transform_file_to(self, src: PathLike, dst: PathLike, transform: Transformer) -> None:
        """把文件内容经过变换后写入归档

        变换先完整写入暂存缓冲区，成功后才补全目录并写入头部，
        因此变换失败不会在归档中留下任何内容。

        Args:
            src: 源文件路径
            dst: 归档路径
            transform: 内容变换

        Raises:
            OSError: 源文件无法打开
            TransformError: 变换失败
        """
        path = self._check_new_entry(dst)

        staging = io.BytesIO()
        with open(src, 'rb') as f:
            st = os.fstat(f.fileno())
            try:
                transform(staging, f)
            except TransformError:
                raise
            except (OSError, ValueError, EOFError) as e:
                raise TransformError(f"变换失败: {src} ({e})") from e

        data = staging.getvalue()
        mode = stat.S_IMODE(st.st_mode)

        self.ensure_directory(parent_of(path))
        self._writer.write_header(self._header(path, EntryType.REGULAR, mode, size=len(data)))
        self._writer.write(data)
        self._record_entry(path, EntryType.REGULAR, len(data))
        write_logger.debug(
            f"变换文件 {src} -> {path} ({st.st_size} -> {len(data)} 字节)"
        )

    # ------------------------------------------------------------------
    # 目录树复制
    # ------------------------------------------------------------------

    def copy_tree(self, root: PathLike, dest: Optional[PathLike] = None) -> None:
        """复制整个目录树"""
        self.copy_tree_with_filter(root, include_all, dest)

    def copy_tree_with_filter(
        self,
        root: PathLike,
        filter: Filter,
        dest: Optional[PathLike] = None,
    ) -> None:
        """按过滤器复制目录树

        Args:
            root: 源目录
            filter: 包含判定；对目录返回 False 时跳过整个子树
            dest: 归档中的目标前缀；为 None 时归档路径与文件系统路径相同

        Raises:
            WalkError: 遍历失败（abort 策略）
            UnsupportedNodeTypeError: 遇到无法表示的节点（abort 策略）
        """
        root_path = os.path.normpath(os.fspath(root))
        before = self.stats.total_entries

        for node in walk_tree(root_path, filter, self.settings.on_walk_error):
            archive_path = self._archive_path_for(node.path, root_path, dest)
            try:
                self._write_node(node, archive_path)
            except UnsupportedNodeTypeError as e:
                if self.settings.on_unsupported_node != ErrorPolicy.SKIP:
                    raise
                walk_logger.warning(f"{e}，已跳过")
            except WalkError as e:
                if self.settings.on_walk_error != ErrorPolicy.SKIP:
                    raise
                walk_logger.warning(f"{e}，已跳过")

        walk_logger.debug(
            f"复制目录树完成: {root_path}（新增 {self.stats.total_entries - before} 个条目）"
        )

    def _write_node(self, node: TreeNode, archive_path: str) -> None:
        if node.kind == NodeKind.DIRECTORY:
            self.write_directory(archive_path, node.mode)
        elif node.kind == NodeKind.REGULAR:
            try:
                self.copy_file_to(node.path, archive_path)
            except (FileNotFoundError, PermissionError) as e:
                # 遍历与复制之间节点消失或不可读，按遍历错误处理
                raise WalkError(node.path, e) from e
        elif node.kind == NodeKind.SYMLINK:
            try:
                target = os.readlink(node.path)
            except OSError as e:
                raise WalkError(node.path, e) from e
            self.write_symlink(target, archive_path, node.mode)
        else:
            raise UnsupportedNodeTypeError(node.path, node.st_mode)

    @staticmethod
    def _archive_path_for(node_path: str, root_path: str, dest: Optional[PathLike]) -> str:
        if dest is None:
            return normalize_archive_path(node_path)
        return join_archive_path(dest, os.path.relpath(node_path, root_path))

    # ------------------------------------------------------------------
    # 内部工具
    # ------------------------------------------------------------------

    def _check_new_entry(self, path: PathLike) -> str:
        """规范化非目录条目的路径并检查是否与已写入条目冲突"""
        normalized = normalize_archive_path(path)
        if normalized in self.known_paths:
            raise DuplicateEntryError(normalized, "directory")
        existing = self._entries.get(normalized)
        if existing is not None:
            raise DuplicateEntryError(normalized, _ENTRY_NAMES[existing])
        return normalized

    def _record_entry(self, path: str, entry_type: EntryType, size: int = 0) -> None:
        self._entries[path] = entry_type
        self.stats.record(entry_type, size)

    def _header(self, name: str, entry_type: EntryType, mode: int, size: int = 0,
                rdev_major: int = 0, rdev_minor: int = 0) -> CpioHeader:
        return CpioHeader(
            name=name,
            type=entry_type,
            mode=stat.S_IMODE(mode),
            size=size,
            uid=self.settings.uid,
            gid=self.settings.gid,
            mtime=self.settings.mtime,
            rdev_major=rdev_major,
            rdev_minor=rdev_minor,
        )
