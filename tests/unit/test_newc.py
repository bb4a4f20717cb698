"""
newc 编码器单元测试

测试头部编码、对齐填充和内容长度校验。
"""

import io

import pytest

from cpiobuild.archive import ArchiveWriteError, CpioHeader, EntryType, NewcWriter


class FailingStream(io.RawIOBase):
    """写入总是失败的输出流"""

    def writable(self):
        return True

    def write(self, data):
        raise OSError("disk full")


class TestCpioHeader:
    """CpioHeader 测试"""

    def test_full_mode_combines_type(self):
        """测试 mode 字段合并类型位"""
        header = CpioHeader(name="/etc", type=EntryType.DIRECTORY, mode=0o755)
        assert header.full_mode == 0o040755
        assert header.nlink == 2

    def test_full_mode_masks_type_bits_from_mode(self):
        """测试权限位中的类型位被忽略"""
        header = CpioHeader(name="/f", type=EntryType.REGULAR, mode=0o100644)
        assert header.full_mode == 0o100644
        assert header.nlink == 1


class TestNewcWriter:
    """NewcWriter 测试"""

    def test_header_layout(self):
        """测试头部字段布局"""
        output = io.BytesIO()
        writer = NewcWriter(output)
        writer.write_header(CpioHeader(name="/a", type=EntryType.REGULAR, mode=0o644, size=3))
        writer.write(b"abc")

        data = output.getvalue()
        assert data[:6] == b"070701"
        assert data[6:14] == b"00000001"  # inode
        assert data[14:22] == b"000081A4"  # 0o100644
        assert data[54:62] == b"00000003"  # filesize
        assert data[94:102] == b"00000003"  # namesize，含结尾 NUL
        assert data[110:113] == b"/a\x00"
        # 110 + 3 填充到 116，内容 3 字节填充到 4 字节
        assert len(data) == 116 + 4
        assert data[116:119] == b"abc"

    def test_surrogate_escaped_name(self):
        """测试 surrogateescape 名称还原为原始字节"""
        output = io.BytesIO()
        writer = NewcWriter(output)
        writer.write_header(CpioHeader(name="/bad\udcff", type=EntryType.DIRECTORY))
        data = output.getvalue()
        assert data[94:102] == b"00000006"
        assert data[110:116] == b"/bad\xff\x00"

    def test_inode_increments(self):
        """测试 inode 自增"""
        output = io.BytesIO()
        writer = NewcWriter(output)
        writer.write_header(CpioHeader(name="/a", type=EntryType.DIRECTORY))
        position = len(output.getvalue())
        writer.write_header(CpioHeader(name="/b", type=EntryType.DIRECTORY))

        data = output.getvalue()
        assert data[position + 6:position + 14] == b"00000002"

    def test_char_device_rdev(self):
        """测试设备号写入 rdev 字段"""
        output = io.BytesIO()
        writer = NewcWriter(output)
        writer.write_header(CpioHeader(
            name="/dev/tty", type=EntryType.CHAR_DEVICE, mode=0o666, rdev_major=5, rdev_minor=0
        ))
        data = output.getvalue()
        assert data[78:86] == b"00000005"
        assert data[86:94] == b"00000000"

    def test_write_more_than_declared(self):
        """测试写入超过声明长度报错"""
        writer = NewcWriter(io.BytesIO())
        writer.write_header(CpioHeader(name="/a", type=EntryType.REGULAR, size=2))
        with pytest.raises(ArchiveWriteError):
            writer.write(b"abc")

    def test_header_before_payload_complete(self):
        """测试上一个条目内容不完整时不能写新头部"""
        writer = NewcWriter(io.BytesIO())
        writer.write_header(CpioHeader(name="/a", type=EntryType.REGULAR, size=4))
        writer.write(b"ab")
        with pytest.raises(ArchiveWriteError):
            writer.write_header(CpioHeader(name="/b", type=EntryType.REGULAR))
        with pytest.raises(ArchiveWriteError):
            writer.finish()

    def test_payload_in_pieces(self):
        """测试分块写入内容"""
        output = io.BytesIO()
        writer = NewcWriter(output)
        writer.write_header(CpioHeader(name="/a", type=EntryType.REGULAR, size=5))
        writer.write(b"ab")
        writer.write(b"cde")
        writer.finish()
        assert len(output.getvalue()) % 4 == 0
        assert b"abcde\x00\x00\x00" in output.getvalue()

    def test_finish_is_idempotent(self):
        """测试重复结束只写一次结尾记录"""
        output = io.BytesIO()
        writer = NewcWriter(output)
        writer.finish()
        writer.finish()
        assert output.getvalue().count(b"TRAILER!!!") == 1
        assert writer.finished

    def test_stream_error_wrapped(self):
        """测试输出流错误转换为 ArchiveWriteError"""
        writer = NewcWriter(FailingStream())
        with pytest.raises(ArchiveWriteError):
            writer.write_header(CpioHeader(name="/a", type=EntryType.DIRECTORY))

    def test_field_overflow(self):
        """测试超出 32 位的字段报错"""
        writer = NewcWriter(io.BytesIO())
        with pytest.raises(ArchiveWriteError):
            writer.write_header(CpioHeader(name="/big", type=EntryType.REGULAR, size=1 << 32))
