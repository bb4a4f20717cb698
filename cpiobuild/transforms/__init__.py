"""内容变换模块

提供写入归档前对文件内容做解压等变换的能力。
"""

from .base import Transform, TransformError, Transformer
from .decompressors import GzipTransform, IdentityTransform, XzTransform, ZstdTransform
from .registry import (
    AUTO,
    TransformRegistry,
    create_default_registry,
    default_registry,
    get_transform,
    transform_for_path,
)

__all__ = [
    "Transform",
    "TransformError",
    "Transformer",

    "IdentityTransform",
    "GzipTransform",
    "XzTransform",
    "ZstdTransform",

    "AUTO",
    "TransformRegistry",
    "create_default_registry",
    "default_registry",
    "get_transform",
    "transform_for_path",
]
