"""
配置加载器

负责从 YAML 文件加载归档清单并进行验证。
"""

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .schema import ArchiveManifest


class ConfigError(Exception):
    """配置错误基类"""
    pass


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.errors = errors

    def format_errors(self) -> str:
        """格式化错误信息为人类可读的格式"""
        formatted = []
        for error in self.errors:
            loc = " -> ".join(str(item) for item in error.get('loc', []))
            msg = error.get('msg', '未知错误')
            input_val = error.get('input', '')

            if loc:
                formatted.append(f"字段 '{loc}': {msg}")
                if input_val:
                    formatted.append(f"  输入值: {input_val}")
            else:
                formatted.append(f"根级别: {msg}")

        return "\n".join(formatted)

    def format_errors_json(self) -> str:
        """格式化错误信息为 JSON 格式"""
        return json.dumps(self.errors, ensure_ascii=False, indent=2, default=str)


@dataclass
class ValidationResult:
    """配置验证结果"""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    manifest: Optional[ArchiveManifest] = None


# 需要相对于清单目录解析的条目字段
_ENTRY_PATH_FIELDS = ('source',)


class ConfigLoader:
    """配置加载器"""

    def __init__(self):
        self.yaml = YAML()
        self.yaml.preserve_quotes = True
        self.yaml.width = 4096  # 避免长行自动换行

    def load_from_file(self, config_path: Union[str, Path]) -> ArchiveManifest:
        """从文件加载清单

        Args:
            config_path: 清单文件路径

        Returns:
            ArchiveManifest: 验证后的清单实例

        Raises:
            ConfigError: 清单加载或验证错误
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigError(f"配置文件不存在: {config_path}")

        if not config_path.is_file():
            raise ConfigError(f"配置路径不是文件: {config_path}")

        if config_path.suffix.lower() not in ['.yaml', '.yml']:
            raise ConfigError(f"配置文件必须是 .yaml 或 .yml 格式: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                raw_data = self.yaml.load(f)
        except YAMLError as e:
            raise ConfigError(f"YAML 解析错误: {e}") from e
        except OSError as e:
            raise ConfigError(f"文件读取错误: {e}") from e

        if raw_data is None:
            raise ConfigError("配置文件为空")

        if not isinstance(raw_data, dict):
            raise ConfigError("配置文件根级别必须是对象/字典格式")

        return self.load_from_dict(_to_plain(raw_data), base_path=config_path.parent)

    def load_from_dict(self, data: Dict[str, Any], base_path: Optional[Path] = None) -> ArchiveManifest:
        """从字典加载清单

        Args:
            data: 清单数据字典
            base_path: 相对路径的基准路径

        Returns:
            ArchiveManifest: 验证后的清单实例

        Raises:
            ConfigValidationError: 清单验证错误
        """
        if base_path:
            # 创建数据副本避免修改原数据
            data = copy.deepcopy(data)
            self._resolve_relative_paths(data, Path(base_path))

        try:
            return ArchiveManifest.from_dict(data)
        except ValidationError as e:
            raise ConfigValidationError("配置验证失败", list(e.errors())) from e

    def save_to_file(self, manifest: ArchiveManifest, output_path: Union[str, Path]) -> None:
        """保存清单到文件

        Raises:
            ConfigError: 保存错误
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                self.yaml.dump(manifest.to_dict(), f)
        except (OSError, YAMLError) as e:
            raise ConfigError(f"保存配置文件失败: {e}") from e

    def validate_file(self, config_path: Union[str, Path]) -> List[Dict[str, Any]]:
        """验证清单文件并返回错误列表

        Returns:
            List[Dict]: 错误列表，空列表表示验证通过
        """
        try:
            self.load_from_file(config_path)
            return []
        except ConfigValidationError as e:
            return e.errors
        except ConfigError as e:
            return [{
                'loc': [],
                'msg': str(e),
                'type': 'config_error'
            }]

    def _resolve_relative_paths(self, data: Dict[str, Any], base_path: Path) -> None:
        """把清单中的相对源路径解析为相对于清单所在目录的绝对路径"""
        output = data.get('output')
        if isinstance(output, str) and output and not Path(output).is_absolute():
            data['output'] = str((base_path / output).resolve())

        entries = data.get('entries')
        if not isinstance(entries, list):
            return

        for entry in entries:
            if not isinstance(entry, dict):
                continue
            for key in _ENTRY_PATH_FIELDS:
                value = entry.get(key)
                if isinstance(value, str) and value and not Path(value).is_absolute():
                    entry[key] = str((base_path / value).resolve())


def _to_plain(obj: Any) -> Any:
    """把 ruamel 的 CommentedMap/CommentedSeq 及标量子类转换为普通 Python 对象"""
    if isinstance(obj, dict):
        return {str(k): _to_plain(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_to_plain(item) for item in obj]
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, str):
        return str(obj)
    if isinstance(obj, int):
        return int(obj)
    return obj


# 全局加载器实例
config_loader = ConfigLoader()


def load_config(config_path: Union[str, Path]) -> ArchiveManifest:
    """便捷函数：加载清单文件"""
    return config_loader.load_from_file(config_path)


def validate_config(config_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """便捷函数：验证清单文件"""
    return config_loader.validate_file(config_path)


def validate_config_with_result(config_or_path: Union[ArchiveManifest, str, Path]) -> ValidationResult:
    """验证清单并返回详细结果"""
    try:
        if isinstance(config_or_path, (str, Path)):
            manifest = load_config(config_or_path)
        else:
            manifest = config_or_path
        return ValidationResult(is_valid=True, manifest=manifest)

    except ConfigValidationError as e:
        error_messages = []
        for error in e.errors:
            loc = " -> ".join(str(item) for item in error.get('loc', []))
            msg = error.get('msg', '未知错误')
            if loc:
                error_messages.append(f"字段 '{loc}': {msg}")
            else:
                error_messages.append(f"根级别: {msg}")
        return ValidationResult(is_valid=False, errors=error_messages)

    except ConfigError as e:
        return ValidationResult(is_valid=False, errors=[f"配置加载失败: {e}"])


def save_config(manifest: ArchiveManifest, output_path: Union[str, Path]) -> None:
    """便捷函数：保存清单文件"""
    config_loader.save_to_file(manifest, output_path)
