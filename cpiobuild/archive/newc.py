"""
CPIO newc 编码器

以 SVR4 'newc' 格式（ASCII 头部，magic "070701"，无 CRC）写出归档条目。
只提供"写头部 + 写内容字节"两个原语，路径跟踪与目录补全由 ArchiveBuilder 负责。

用法:
    with open("initrd.cpio", "wb") as f:
        writer = NewcWriter(f)
        writer.write_header(CpioHeader(name="/etc", type=EntryType.DIRECTORY, mode=0o755))
        writer.write_header(CpioHeader(name="/etc/hostname", type=EntryType.REGULAR,
                                       mode=0o644, size=4))
        writer.write(b"box\\n")
        writer.finish()
"""

import stat
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO

from .errors import ArchiveWriteError


MAGIC = b"070701"
HEADER_SIZE = 110
TRAILER_NAME = "TRAILER!!!"


class EntryType(int, Enum):
    """条目类型，取值为 stat 类型位"""
    DIRECTORY = stat.S_IFDIR
    REGULAR = stat.S_IFREG
    SYMLINK = stat.S_IFLNK
    CHAR_DEVICE = stat.S_IFCHR


@dataclass
class CpioHeader:
    """单个条目的头部信息"""
    name: str
    type: EntryType
    mode: int = 0  # 仅权限位，类型位由 type 提供
    size: int = 0
    uid: int = 0
    gid: int = 0
    mtime: int = 0
    rdev_major: int = 0
    rdev_minor: int = 0

    @property
    def nlink(self) -> int:
        return 2 if self.type == EntryType.DIRECTORY else 1

    @property
    def full_mode(self) -> int:
        """类型位与权限位合并后的 mode 字段"""
        return int(self.type) | (self.mode & 0o7777)


def _pad_to_4(size: int) -> int:
    """返回对齐到 4 字节边界所需的填充长度"""
    return (4 - (size % 4)) % 4


class NewcWriter:
    """newc 格式写入器

    头部与内容严格按调用顺序追加到输出流。
    """

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self._inode = 1
        self._remaining = 0  # 当前条目尚未写入的内容字节数
        self._pending_padding = 0
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def _raw_write(self, data: bytes) -> None:
        try:
            self.stream.write(data)
        except OSError as e:
            raise ArchiveWriteError(f"写入归档失败: {e}") from e

    def _check_entry_complete(self) -> None:
        if self._finished:
            raise ArchiveWriteError("归档已结束，不能继续写入")
        if self._remaining:
            raise ArchiveWriteError(
                f"上一个条目的内容不完整，还差 {self._remaining} 字节"
            )

    def _encode(self, name: str, inode: int, mode: int, uid: int = 0, gid: int = 0,
                nlink: int = 1, mtime: int = 0, size: int = 0,
                rdev_major: int = 0, rdev_minor: int = 0) -> bytes:
        """编码 110 字节 ASCII 头部、以 NUL 结尾的文件名及对齐填充"""
        # 文件系统中无法按 UTF-8 解码的名称以 surrogateescape 还原为原始字节
        name_bytes = name.encode("utf-8", "surrogateescape") + b"\x00"
        fields = (
            inode,
            mode,
            uid,
            gid,
            nlink,
            mtime,
            size,
            0,  # devmajor
            0,  # devminor
            rdev_major,
            rdev_minor,
            len(name_bytes),
            0,  # checksum，070701 不使用
        )
        for value in fields:
            if value < 0 or value > 0xFFFFFFFF:
                raise ArchiveWriteError(f"头部字段超出 newc 范围: {name} ({value})")

        encoded = MAGIC + "".join(f"{value:08X}" for value in fields).encode("ascii")
        encoded += name_bytes
        encoded += b"\x00" * _pad_to_4(HEADER_SIZE + len(name_bytes))
        return encoded

    def write_header(self, header: CpioHeader) -> None:
        """写入条目头部

        Args:
            header: 条目头部信息

        Raises:
            ArchiveWriteError: 上一个条目内容不完整，或输出流写入失败
        """
        self._check_entry_complete()

        self._raw_write(self._encode(
            header.name,
            self._inode,
            header.full_mode,
            uid=header.uid,
            gid=header.gid,
            nlink=header.nlink,
            mtime=header.mtime,
            size=header.size,
            rdev_major=header.rdev_major,
            rdev_minor=header.rdev_minor,
        ))
        self._inode += 1
        self._remaining = header.size
        self._pending_padding = _pad_to_4(header.size)

    def write(self, data: bytes) -> int:
        """写入当前条目的内容

        内容写满头部声明的长度后自动补齐 4 字节对齐。

        Raises:
            ArchiveWriteError: 写入超过声明长度，或输出流写入失败
        """
        if not data:
            return 0
        if len(data) > self._remaining:
            raise ArchiveWriteError(
                f"条目内容超出声明长度: 剩余 {self._remaining} 字节，尝试写入 {len(data)} 字节"
            )

        self._raw_write(data)
        self._remaining -= len(data)

        if self._remaining == 0 and self._pending_padding:
            self._raw_write(b"\x00" * self._pending_padding)
            self._pending_padding = 0

        return len(data)

    def finish(self) -> None:
        """写入 TRAILER!!! 记录并刷新输出流"""
        if self._finished:
            return
        self._check_entry_complete()

        self._raw_write(self._encode(TRAILER_NAME, 0, 0))
        self._finished = True
        try:
            self.stream.flush()
        except OSError as e:
            raise ArchiveWriteError(f"刷新归档输出失败: {e}") from e
