"""
解压变换实现

支持原样透传、gzip、xz 和 zstd。
"""

import gzip
import lzma
import shutil
import zlib
from typing import BinaryIO

import zstandard as zstd

from .base import Transform, TransformError


COPY_CHUNK_SIZE = 64 * 1024


class IdentityTransform(Transform):
    """原样复制"""

    name = "identity"

    def apply(self, dst: BinaryIO, src: BinaryIO) -> None:
        try:
            shutil.copyfileobj(src, dst, COPY_CHUNK_SIZE)
        except OSError as e:
            raise TransformError(f"复制内容失败: {e}") from e


class GzipTransform(Transform):
    """gzip 解压"""

    name = "gzip"
    suffixes = (".gz",)

    def apply(self, dst: BinaryIO, src: BinaryIO) -> None:
        try:
            with gzip.GzipFile(fileobj=src, mode='rb') as decompressor:
                shutil.copyfileobj(decompressor, dst, COPY_CHUNK_SIZE)
        except (OSError, EOFError, zlib.error) as e:
            # gzip.BadGzipFile 是 OSError 的子类
            raise TransformError(f"gzip 解压失败: {e}") from e


class XzTransform(Transform):
    """xz 解压"""

    name = "xz"
    suffixes = (".xz",)

    def apply(self, dst: BinaryIO, src: BinaryIO) -> None:
        try:
            with lzma.LZMAFile(src, mode='rb', format=lzma.FORMAT_XZ) as decompressor:
                shutil.copyfileobj(decompressor, dst, COPY_CHUNK_SIZE)
        except (lzma.LZMAError, EOFError, OSError) as e:
            raise TransformError(f"xz 解压失败: {e}") from e


class ZstdTransform(Transform):
    """zstd 解压

    支持多帧输入；输入在帧结束前终止时视为截断。
    """

    name = "zstd"
    suffixes = (".zst", ".zstd")

    def apply(self, dst: BinaryIO, src: BinaryIO) -> None:
        dctx = zstd.ZstdDecompressor()
        dobj = dctx.decompressobj()
        try:
            for chunk in iter(lambda: src.read(COPY_CHUNK_SIZE), b""):
                while chunk:
                    if dobj.eof:
                        dobj = dctx.decompressobj()
                    dst.write(dobj.decompress(chunk))
                    chunk = dobj.unused_data if dobj.eof else b""
        except (zstd.ZstdError, OSError) as e:
            raise TransformError(f"zstd 解压失败: {e}") from e

        if not dobj.eof:
            raise TransformError("zstd 解压失败: 输入在帧结束前终止")
