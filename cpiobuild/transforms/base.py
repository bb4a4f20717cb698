"""
内容变换抽象接口

变换把一个可读字节流转换后写入另一个可写字节流，调用之间不保留任何状态。
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, Tuple

from ..archive.builder import Transformer
from ..archive.errors import TransformError

__all__ = ["Transform", "TransformError", "Transformer"]


class Transform(ABC):
    """内容变换抽象基类"""

    name: str = ""
    suffixes: Tuple[str, ...] = ()

    @abstractmethod
    def apply(self, dst: BinaryIO, src: BinaryIO) -> None:
        """读取 src 并把变换结果写入 dst

        Raises:
            TransformError: 输入数据无法变换
        """
        pass

    def __call__(self, dst: BinaryIO, src: BinaryIO) -> None:
        self.apply(dst, src)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
