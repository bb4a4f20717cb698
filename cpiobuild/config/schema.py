"""
配置 Schema 定义

使用 Pydantic 定义构建器设置与归档清单模型，支持验证和类型检查。
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class ErrorPolicy(str, Enum):
    """错误处理策略枚举"""
    ABORT = "abort"
    SKIP = "skip"


def parse_mode(value: Union[int, str]) -> int:
    """解析权限位

    接受整数或八进制字符串（``"0644"``、``"0o644"``、``"644"``）。

    Raises:
        ValueError: 格式错误或超出 0o7777
    """
    if isinstance(value, bool):
        raise ValueError("权限位不能是布尔值")
    if isinstance(value, str):
        text = value.strip().lower()
        if text.startswith('0o'):
            text = text[2:]
        try:
            value = int(text, 8)
        except ValueError:
            raise ValueError(f"权限位必须是八进制数字: {value}")
    if not 0 <= value <= 0o7777:
        raise ValueError(f"权限位超出范围: {oct(value)}")
    return value


class BuilderSettings(BaseModel):
    """归档构建器设置"""
    default_dir_mode: int = Field(0o755, description="自动补全目录的权限位")
    uid: int = Field(0, description="条目属主 uid", ge=0)
    gid: int = Field(0, description="条目属组 gid", ge=0)
    mtime: int = Field(0, description="条目修改时间（固定值保证输出可复现）", ge=0)
    chunk_size: int = Field(64 * 1024, description="流式复制的块大小", ge=512)
    on_walk_error: ErrorPolicy = Field(
        ErrorPolicy.ABORT,
        description="遍历时文件系统错误的处理策略"
    )
    on_unsupported_node: ErrorPolicy = Field(
        ErrorPolicy.ABORT,
        description="遍历时遇到设备文件、套接字等节点的处理策略"
    )

    model_config = {
        "extra": "forbid",
    }

    @field_validator('default_dir_mode', mode='before')
    @classmethod
    def validate_dir_mode(cls, v: Any) -> int:
        return parse_mode(v)


class _EntryModel(BaseModel):
    """清单条目基类"""
    model_config = {
        "extra": "forbid",
    }


class DirectoryEntry(_EntryModel):
    """显式目录"""
    type: Literal["directory"] = "directory"
    path: str = Field(..., min_length=1, description="归档路径")
    mode: int = Field(0o755, description="权限位")

    @field_validator('mode', mode='before')
    @classmethod
    def validate_mode(cls, v: Any) -> int:
        return parse_mode(v)


class FileEntry(_EntryModel):
    """普通文件，内容来自内联文本或源文件"""
    type: Literal["file"] = "file"
    path: str = Field(..., min_length=1, description="归档路径")
    mode: Optional[int] = Field(None, description="权限位；源文件默认沿用其权限，内联内容默认 0644")
    content: Optional[str] = Field(None, description="内联内容")
    source: Optional[Path] = Field(None, description="源文件路径")

    @field_validator('mode', mode='before')
    @classmethod
    def validate_mode(cls, v: Any) -> Optional[int]:
        return None if v is None else parse_mode(v)

    @model_validator(mode='after')
    def validate_content_source(self) -> 'FileEntry':
        if (self.content is None) == (self.source is None):
            raise ValueError("content 和 source 必须且只能指定一个")
        return self


class SymlinkEntry(_EntryModel):
    """符号链接"""
    type: Literal["symlink"] = "symlink"
    path: str = Field(..., min_length=1, description="链接的归档路径")
    target: str = Field(..., min_length=1, description="链接目标")
    mode: int = Field(0o777, description="权限位")

    @field_validator('mode', mode='before')
    @classmethod
    def validate_mode(cls, v: Any) -> int:
        return parse_mode(v)


class CharDeviceEntry(_EntryModel):
    """字符设备节点"""
    type: Literal["chardev"] = "chardev"
    path: str = Field(..., min_length=1, description="归档路径")
    major: int = Field(..., ge=0, description="主设备号")
    minor: int = Field(..., ge=0, description="次设备号")
    mode: int = Field(0o600, description="权限位")

    @field_validator('mode', mode='before')
    @classmethod
    def validate_mode(cls, v: Any) -> int:
        return parse_mode(v)


class TreeEntry(_EntryModel):
    """递归复制目录树"""
    type: Literal["tree"] = "tree"
    source: Path = Field(..., description="源目录")
    dest: Optional[str] = Field(None, description="归档中的目标前缀；默认与源路径相同")
    exclude: Optional[List[str]] = Field(None, description="排除模式列表（glob 格式）")


class TransformEntry(_EntryModel):
    """经内容变换（通常是解压）后写入的文件"""
    type: Literal["transform"] = "transform"
    source: Path = Field(..., description="源文件")
    dest: Optional[str] = Field(None, description="归档路径；默认为去掉压缩后缀的源路径")
    transform: str = Field("auto", min_length=1, description="变换名称，auto 表示按后缀选择")


ManifestEntry = Annotated[
    Union[DirectoryEntry, FileEntry, SymlinkEntry, CharDeviceEntry, TreeEntry, TransformEntry],
    Field(discriminator="type"),
]


class ConfigModel(BaseModel):
    """配置元信息模型"""
    version: int = Field(1, description="配置 schema 版本", ge=1)

    @field_validator('version')
    @classmethod
    def validate_config_version(cls, v: int) -> int:
        """验证配置版本"""
        SUPPORTED_VERSIONS = [1]
        if v not in SUPPORTED_VERSIONS:
            raise ValueError(f"不支持的配置版本 {v}，支持的版本: {SUPPORTED_VERSIONS}")
        return v


class ArchiveManifest(BaseModel):
    """归档清单主模型

    条目按列表顺序写入归档。
    """

    config: ConfigModel = Field(default_factory=ConfigModel, description="配置元信息")
    output: Optional[Path] = Field(None, description="默认输出路径")
    settings: BuilderSettings = Field(default_factory=BuilderSettings, description="构建器设置")
    entries: List[ManifestEntry] = Field(..., description="归档条目列表", min_length=1)

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
    }

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        data = self.model_dump(exclude_none=True)

        def convert_values(obj):
            if isinstance(obj, dict):
                return {k: convert_values(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_values(item) for item in obj]
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, Path):
                return str(obj)
            else:
                return obj

        return convert_values(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ArchiveManifest':
        """从字典创建清单实例"""
        return cls.model_validate(data)
