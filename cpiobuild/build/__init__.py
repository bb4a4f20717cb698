"""构建服务模块

按归档清单生成 cpio 文件。
"""

from .builder import BuildError, BuildResult, ManifestBuilder

__all__ = [
    "BuildError",
    "BuildResult",
    "ManifestBuilder",
]
