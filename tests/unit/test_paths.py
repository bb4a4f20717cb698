"""
路径工具单元测试
"""

from pathlib import Path

from cpiobuild.utils.paths import format_size, join_archive_path, normalize_archive_path, parent_of


class TestNormalizeArchivePath:

    def test_collapse(self):
        assert normalize_archive_path("/a/./b//c/../d") == "/a/b/d"

    def test_relative_becomes_absolute(self):
        assert normalize_archive_path("etc/hostname") == "/etc/hostname"

    def test_root(self):
        assert normalize_archive_path("/") == "/"
        assert normalize_archive_path("") == "/"
        assert normalize_archive_path("/..") == "/"

    def test_double_leading_slash(self):
        assert normalize_archive_path("//usr/lib") == "/usr/lib"

    def test_path_object(self):
        assert normalize_archive_path(Path("/usr") / "bin") == "/usr/bin"


def test_parent_of():
    assert parent_of("/a/b/c") == "/a/b"
    assert parent_of("/a") == "/"
    assert parent_of("/") == "/"


def test_join_archive_path():
    assert join_archive_path("/r", ".") == "/r"
    assert join_archive_path("/r", "sub/b.txt") == "/r/sub/b.txt"
    assert join_archive_path("r", "/abs") == "/abs"


def test_format_size():
    assert format_size(0) == "0 B"
    assert format_size(512) == "512 B"
    assert format_size(2048) == "2.0 KB"
