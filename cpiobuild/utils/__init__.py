"""通用工具模块"""

from .logging import (
    configure_logging,
    get_stage_logger,
    StageLogger,
    LogStage,
    OutputLevel,
    # 预定义日志器
    directory_logger,
    write_logger,
    walk_logger,
    transform_logger,
)

from .paths import (
    normalize_archive_path,
    parent_of,
    join_archive_path,
    format_size,
)

__all__ = [
    # 日志相关
    "configure_logging",
    "get_stage_logger",
    "StageLogger",
    "LogStage",
    "OutputLevel",
    "directory_logger",
    "write_logger",
    "walk_logger",
    "transform_logger",

    # 路径相关
    "normalize_archive_path",
    "parent_of",
    "join_archive_path",
    "format_size",
]
