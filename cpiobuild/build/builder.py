"""
清单构建器

按归档清单的条目顺序驱动 ArchiveBuilder，生成最终的 cpio 文件。
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from ..archive import ArchiveBuilder, all_of, exclude, exclude_patterns
from ..config.schema import (
    ArchiveManifest,
    CharDeviceEntry,
    DirectoryEntry,
    FileEntry,
    SymlinkEntry,
    TransformEntry,
    TreeEntry,
)
from ..transforms import TransformRegistry, default_registry
from ..utils import format_size
from ..utils.logging import LogStage, debug, error, info, success


class BuildError(Exception):
    """构建错误"""
    pass


@dataclass
class BuildResult:
    """构建结果"""
    success: bool
    output_path: Optional[Path] = None
    output_size: Optional[int] = None
    entry_count: int = 0
    build_time: Optional[float] = None
    stats: Dict[str, int] = field(default_factory=dict)
    error: Optional[str] = None


class ManifestBuilder:
    """清单构建器

    Args:
        registry: 变换注册表，默认使用内置注册表
    """

    def __init__(self, registry: Optional[TransformRegistry] = None):
        self.registry = registry or default_registry

    def build(self, manifest: ArchiveManifest, output_path: Optional[Path] = None) -> BuildResult:
        """构建归档

        失败时删除不完整的输出文件，并返回失败结果。

        Args:
            manifest: 归档清单
            output_path: 输出路径，缺省时使用清单中的 output

        Returns:
            BuildResult: 构建结果
        """
        start_time = time.time()

        try:
            output_path = self._resolve_output(manifest, output_path)
        except BuildError as e:
            error(str(e), stage=LogStage.BUILD)
            return BuildResult(success=False, error=str(e))

        info(f"开始构建归档: {output_path}", stage=LogStage.BUILD)
        debug(f"条目数: {len(manifest.entries)}, 设置: {manifest.settings.model_dump()}", stage=LogStage.BUILD)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'wb') as stream:
                with ArchiveBuilder(stream, manifest.settings) as archive:
                    for index, entry in enumerate(manifest.entries):
                        debug(f"条目[{index}]: {entry.type}", stage=LogStage.BUILD)
                        self._apply_entry(archive, entry, output_path)
                stats = archive.stats.to_dict()

        except Exception as e:
            error(f"构建失败: {e}", stage=LogStage.BUILD)
            output_path.unlink(missing_ok=True)
            return BuildResult(
                success=False,
                output_path=output_path,
                build_time=time.time() - start_time,
                error=str(e),
            )

        build_time = time.time() - start_time
        output_size = output_path.stat().st_size

        success(f"归档构建成功: {output_path}", stage=LogStage.BUILD)
        info(f"构建时间: {build_time:.1f}秒")
        info(f"条目数量: {stats['total_entries']}（目录 {stats['directories']}，文件 {stats['files']}，"
             f"链接 {stats['symlinks']}，设备 {stats['devices']}）")
        info(f"归档大小: {format_size(output_size)}")

        return BuildResult(
            success=True,
            output_path=output_path,
            output_size=output_size,
            entry_count=stats['total_entries'],
            build_time=build_time,
            stats=stats,
        )

    def _resolve_output(self, manifest: ArchiveManifest, output_path: Optional[Path]) -> Path:
        if output_path is not None:
            return Path(output_path).resolve()
        if manifest.output is not None:
            return Path(manifest.output).resolve()
        raise BuildError("未指定输出路径")

    def _apply_entry(self, archive: ArchiveBuilder, entry, output_path: Path) -> None:
        """把单个清单条目写入归档"""
        if isinstance(entry, DirectoryEntry):
            archive.write_directory(entry.path, entry.mode)

        elif isinstance(entry, FileEntry):
            if entry.content is not None:
                archive.write_file(entry.path, entry.content, 0o644 if entry.mode is None else entry.mode)
            elif entry.mode is None:
                archive.copy_file_to(entry.source, entry.path)
            else:
                # 指定权限时先读取内容再按指定权限写入
                archive.write_file_raw(entry.path, Path(entry.source).read_bytes(), entry.mode)

        elif isinstance(entry, SymlinkEntry):
            archive.write_symlink(entry.target, entry.path, entry.mode)

        elif isinstance(entry, CharDeviceEntry):
            archive.write_char_device(entry.path, entry.major, entry.minor, entry.mode)

        elif isinstance(entry, TreeEntry):
            # 输出文件可能位于被复制的目录中
            tree_filter = exclude(output_path)
            if entry.exclude:
                tree_filter = all_of(tree_filter, exclude_patterns(entry.exclude, root=entry.source))
            info(f"复制目录树: {entry.source}", stage=LogStage.WALK)
            archive.copy_tree_with_filter(entry.source, tree_filter, entry.dest)

        elif isinstance(entry, TransformEntry):
            transform = self.registry.resolve(entry.transform, entry.source)
            dest = entry.dest
            if dest is None:
                dest = self.registry.strip_suffix(str(entry.source))
            info(f"变换文件 ({transform.name}): {entry.source} -> {dest}", stage=LogStage.TRANSFORM)
            archive.transform_file_to(entry.source, dest, transform)

        else:
            raise BuildError(f"未知的清单条目: {entry!r}")
