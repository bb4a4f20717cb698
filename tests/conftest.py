"""
测试公共夹具

提供一个仅用于测试的 newc 解析器，用来断言归档中的条目顺序与内容。
"""

import io
import stat
from dataclasses import dataclass
from typing import List

import pytest


@dataclass
class ParsedEntry:
    name: str
    mode: int
    uid: int
    gid: int
    nlink: int
    mtime: int
    size: int
    rdev_major: int
    rdev_minor: int
    data: bytes

    @property
    def raw_name(self) -> bytes:
        return self.name.encode("utf-8", "surrogateescape")

    @property
    def perm(self) -> int:
        return stat.S_IMODE(self.mode)

    @property
    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.mode)

    @property
    def is_reg(self) -> bool:
        return stat.S_ISREG(self.mode)

    @property
    def is_symlink(self) -> bool:
        return stat.S_ISLNK(self.mode)

    @property
    def is_chr(self) -> bool:
        return stat.S_ISCHR(self.mode)


def _align(n: int) -> int:
    return (4 - n % 4) % 4


def parse_newc(data: bytes, include_trailer: bool = False) -> List[ParsedEntry]:
    """解析 newc 字节流"""
    stream = io.BytesIO(data)
    entries = []
    while True:
        header = stream.read(110)
        if not header:
            break
        assert len(header) == 110, "头部被截断"
        assert header[:6] == b"070701"
        fields = [int(header[6 + i * 8:14 + i * 8], 16) for i in range(13)]
        (_ino, mode, uid, gid, nlink, mtime, size,
         _dev_major, _dev_minor, rdev_major, rdev_minor, namesize, _check) = fields

        name = stream.read(namesize)[:-1].decode("utf-8", "surrogateescape")
        stream.read(_align(110 + namesize))
        payload = stream.read(size)
        assert len(payload) == size, "内容被截断"
        stream.read(_align(size))

        if name == "TRAILER!!!":
            if include_trailer:
                entries.append(ParsedEntry(name, mode, uid, gid, nlink, mtime, size,
                                           rdev_major, rdev_minor, payload))
            break

        entries.append(ParsedEntry(name, mode, uid, gid, nlink, mtime, size,
                                   rdev_major, rdev_minor, payload))
    return entries


@pytest.fixture
def read_cpio():
    """返回解析 newc 字节的函数"""
    return parse_newc


@pytest.fixture
def names():
    """返回提取条目名称列表的函数"""
    def _names(entries):
        return [e.name for e in entries]
    return _names
