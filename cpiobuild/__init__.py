"""
cpiobuild - 增量构建 cpio 归档

在写入任何条目之前自动补全其目录链，支持目录树复制与内容解压变换。
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .archive import ArchiveBuilder
from .transforms import get_transform

__all__ = ["ArchiveBuilder", "get_transform", "__version__"]
