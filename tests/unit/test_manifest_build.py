"""
清单构建单元测试

测试 ManifestBuilder 按清单生成归档的完整流程。
"""

import lzma
import os

import pytest

from cpiobuild.build import ManifestBuilder
from cpiobuild.config import ArchiveManifest
from cpiobuild.transforms import Transform, create_default_registry


@pytest.fixture
def workdir(tmp_path):
    """准备源文件目录"""
    root = tmp_path.resolve()
    rootfs = root / "rootfs"
    (rootfs / "bin").mkdir(parents=True)
    (rootfs / "bin" / "busybox").write_bytes(b"\x7fELF")
    (rootfs / "bin" / "busybox").chmod(0o755)
    (rootfs / "cache.pyc").write_bytes(b"junk")
    (root / "e1000.ko.xz").write_bytes(lzma.compress(b"module", format=lzma.FORMAT_XZ))
    return root


class TestManifestBuilder:
    """ManifestBuilder 测试"""

    def test_build_all_entry_types(self, workdir, read_cpio, names):
        manifest = ArchiveManifest(
            settings={"mtime": 42},
            entries=[
                {"type": "directory", "path": "/proc", "mode": 0o555},
                {"type": "file", "path": "/etc/hostname", "content": "box\n"},
                {"type": "tree", "source": str(workdir / "rootfs"), "dest": "/", "exclude": ["*.pyc"]},
                {"type": "symlink", "path": "/bin/sh", "target": "busybox"},
                {"type": "chardev", "path": "/dev/console", "major": 5, "minor": 1},
                {"type": "transform", "source": str(workdir / "e1000.ko.xz"),
                 "dest": "/lib/modules/e1000.ko"},
            ],
        )
        output = workdir / "initrd.cpio"

        result = ManifestBuilder().build(manifest, output)

        assert result.success, result.error
        assert result.output_path == output
        assert result.output_size == output.stat().st_size

        entries = read_cpio(output.read_bytes())
        assert names(entries) == [
            "/proc",
            "/etc",
            "/etc/hostname",
            "/bin",
            "/bin/busybox",
            "/bin/sh",
            "/dev",
            "/dev/console",
            "/lib",
            "/lib/modules",
            "/lib/modules/e1000.ko",
        ]
        by_name = {e.name: e for e in entries}
        assert by_name["/proc"].perm == 0o555
        assert by_name["/bin/busybox"].perm == 0o755
        assert by_name["/lib/modules/e1000.ko"].data == b"module"
        assert all(e.mtime == 42 for e in entries)
        assert result.entry_count == len(entries)
        assert result.stats["devices"] == 1

    def test_file_source_with_mode(self, workdir, read_cpio):
        manifest = ArchiveManifest(entries=[
            {"type": "file", "path": "/init", "source": str(workdir / "rootfs" / "bin" / "busybox"),
             "mode": "0700"},
        ])
        output = workdir / "out.cpio"
        assert ManifestBuilder().build(manifest, output).success

        init = read_cpio(output.read_bytes())[-1]
        assert init.name == "/init"
        assert init.perm == 0o700
        assert init.data == b"\x7fELF"

    def test_transform_default_dest(self, workdir, read_cpio, names):
        """测试未指定 dest 时去掉压缩后缀"""
        manifest = ArchiveManifest(entries=[
            {"type": "transform", "source": str(workdir / "e1000.ko.xz")},
        ])
        output = workdir / "out.cpio"
        assert ManifestBuilder().build(manifest, output).success

        entries = read_cpio(output.read_bytes())
        assert names(entries)[-1] == str(workdir / "e1000.ko")
        assert entries[-1].data == b"module"

    def test_tree_excludes_output(self, workdir, names, read_cpio):
        """测试输出文件位于被复制目录中时不会被收入归档"""
        output = workdir / "rootfs" / "initrd.cpio"
        manifest = ArchiveManifest(entries=[
            {"type": "tree", "source": str(workdir / "rootfs"), "dest": "/"},
        ])

        assert ManifestBuilder().build(manifest, output).success
        assert "/initrd.cpio" not in names(read_cpio(output.read_bytes()))

    def test_output_from_manifest(self, workdir):
        output = workdir / "nested" / "dir" / "a.cpio"
        manifest = ArchiveManifest(
            output=output,
            entries=[{"type": "directory", "path": "/d"}],
        )
        result = ManifestBuilder().build(manifest)
        assert result.success
        assert output.exists()

    def test_missing_output(self):
        manifest = ArchiveManifest(entries=[{"type": "directory", "path": "/d"}])
        result = ManifestBuilder().build(manifest)
        assert not result.success
        assert "输出路径" in result.error

    def test_duplicate_removes_partial_output(self, workdir):
        """测试失败时删除不完整的输出文件"""
        manifest = ArchiveManifest(entries=[
            {"type": "file", "path": "/etc/a", "content": "1"},
            {"type": "symlink", "path": "/etc/a", "target": "b"},
        ])
        output = workdir / "dup.cpio"

        result = ManifestBuilder().build(manifest, output)

        assert not result.success
        assert "/etc/a" in result.error
        assert not output.exists()

    def test_missing_source(self, workdir):
        manifest = ArchiveManifest(entries=[
            {"type": "file", "path": "/init", "source": str(workdir / "missing")},
        ])
        output = workdir / "out.cpio"
        result = ManifestBuilder().build(manifest, output)
        assert not result.success
        assert not output.exists()

    def test_bad_transform_name(self, workdir):
        manifest = ArchiveManifest(entries=[
            {"type": "transform", "source": str(workdir / "e1000.ko.xz"), "transform": "brotli"},
        ])
        result = ManifestBuilder().build(manifest, workdir / "out.cpio")
        assert not result.success
        assert "brotli" in result.error

    def test_unexpected_error_removes_partial_output(self, workdir):
        """测试变换抛出任意异常时同样返回失败结果并删除输出"""

        class ExplodingTransform(Transform):
            name = "explode"

            def apply(self, dst, src):
                raise RuntimeError("transform exploded")

        registry = create_default_registry()
        registry.register(ExplodingTransform())
        manifest = ArchiveManifest(entries=[
            {"type": "file", "path": "/etc/a", "content": "1"},
            {"type": "transform", "source": str(workdir / "e1000.ko.xz"), "transform": "explode"},
        ])
        output = workdir / "out.cpio"

        result = ManifestBuilder(registry=registry).build(manifest, output)

        assert not result.success
        assert "transform exploded" in result.error
        assert not output.exists()

    def test_tree_with_non_utf8_name(self, workdir, read_cpio):
        try:
            with open(os.path.join(os.fsencode(workdir / "rootfs"), b"bad\xff.txt"), "wb") as f:
                f.write(b"raw")
        except OSError:
            pytest.skip("文件系统不支持非 UTF-8 文件名")

        manifest = ArchiveManifest(entries=[
            {"type": "tree", "source": str(workdir / "rootfs"), "dest": "/"},
        ])
        output = workdir / "out.cpio"

        assert ManifestBuilder().build(manifest, output).success
        raw_names = [e.raw_name for e in read_cpio(output.read_bytes())]
        assert b"/bad\xff.txt" in raw_names
