"""
变换注册表

按名称或文件后缀查找内容变换。
"""

from pathlib import PurePosixPath
from typing import Dict, List, Tuple, Union

from ..utils.logging import transform_logger
from .base import Transform, TransformError
from .decompressors import GzipTransform, IdentityTransform, XzTransform, ZstdTransform


AUTO = "auto"


class TransformRegistry:
    """变换注册表"""

    def __init__(self):
        self._transforms: Dict[str, Transform] = {}

    def register(self, transform: Transform) -> None:
        """注册变换

        Raises:
            TransformError: 名称为空或已被注册
        """
        if not transform.name:
            raise TransformError(f"变换缺少名称: {transform!r}")
        if transform.name in self._transforms or transform.name == AUTO:
            raise TransformError(f"变换名称已被占用: {transform.name}")
        self._transforms[transform.name] = transform

    def get(self, name: str) -> Transform:
        """按名称获取变换

        Raises:
            TransformError: 未知的变换名称
        """
        try:
            return self._transforms[name]
        except KeyError:
            available = ", ".join(self.names())
            raise TransformError(f"未知的变换: {name}（可用: {available}）") from None

    def names(self) -> List[str]:
        """获取已注册的变换名称列表"""
        return list(self._transforms)

    def transforms(self) -> List[Transform]:
        return list(self._transforms.values())

    def for_path(self, path: Union[str, PurePosixPath]) -> Transform:
        """按文件后缀选择变换，未匹配时返回原样复制"""
        transform, _ = self._match_suffix(str(path))
        transform_logger.debug(f"按后缀选择变换 {transform.name}: {path}")
        return transform

    def strip_suffix(self, path: Union[str, PurePosixPath]) -> str:
        """去掉匹配到的压缩后缀，例如 ``a.ko.xz`` -> ``a.ko``"""
        text = str(path)
        _, suffix = self._match_suffix(text)
        return text[:-len(suffix)] if suffix else text

    def resolve(self, name: str, path: Union[str, PurePosixPath]) -> Transform:
        """解析清单中的变换名称，``auto`` 表示按后缀选择"""
        if name == AUTO:
            return self.for_path(path)
        return self.get(name)

    def _match_suffix(self, path: str) -> Tuple[Transform, str]:
        lowered = path.lower()
        for transform in self._transforms.values():
            for suffix in transform.suffixes:
                if lowered.endswith(suffix):
                    return transform, path[-len(suffix):]
        return self.get(IdentityTransform.name), ""


def create_default_registry() -> TransformRegistry:
    """创建包含全部内置变换的注册表"""
    registry = TransformRegistry()
    for transform in (IdentityTransform(), GzipTransform(), XzTransform(), ZstdTransform()):
        registry.register(transform)
    return registry


default_registry = create_default_registry()


def get_transform(name: str) -> Transform:
    """便捷函数：按名称获取变换"""
    return default_registry.get(name)


def transform_for_path(path: Union[str, PurePosixPath]) -> Transform:
    """便捷函数：按后缀获取变换"""
    return default_registry.for_path(path)
