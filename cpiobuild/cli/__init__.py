"""命令行接口"""

from .main import app

__all__ = ["app"]
