"""
命令行接口测试
"""

import json

import pytest
from typer.testing import CliRunner

from cpiobuild import __version__
from cpiobuild.cli import app


runner = CliRunner()


@pytest.fixture
def manifest_file(tmp_path):
    path = tmp_path / "initrd.yaml"
    path.write_text(
        "output: initrd.cpio\n"
        "entries:\n"
        "  - type: file\n"
        "    path: /etc/hostname\n"
        "    content: \"box\\n\"\n"
        "  - type: symlink\n"
        "    path: /bin/sh\n"
        "    target: busybox\n",
        encoding="utf-8",
    )
    return path


class TestCli:
    """CLI 测试"""

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_transforms(self):
        result = runner.invoke(app, ["transforms"])
        assert result.exit_code == 0
        for name in ("identity", "gzip", "xz", "zstd"):
            assert name in result.output

    def test_build(self, manifest_file, read_cpio, names):
        result = runner.invoke(app, ["build", "-c", str(manifest_file)])

        assert result.exit_code == 0, result.output
        output = manifest_file.parent / "initrd.cpio"
        assert names(read_cpio(output.read_bytes())) == ["/etc", "/etc/hostname", "/bin", "/bin/sh"]

    def test_build_refuses_overwrite(self, manifest_file, tmp_path):
        output = tmp_path / "exists.cpio"
        output.write_bytes(b"old")

        result = runner.invoke(app, ["build", "-c", str(manifest_file), "-o", str(output)])
        assert result.exit_code == 1
        assert output.read_bytes() == b"old"

        result = runner.invoke(app, ["build", "-c", str(manifest_file), "-o", str(output), "--force"])
        assert result.exit_code == 0, result.output
        assert output.read_bytes() != b"old"

    def test_build_failure(self, tmp_path):
        path = tmp_path / "dup.yaml"
        path.write_text(
            "entries:\n"
            "  - type: directory\n"
            "    path: /a\n"
            "  - type: file\n"
            "    path: /a\n"
            "    content: x\n"
        )
        output = tmp_path / "dup.cpio"

        result = runner.invoke(app, ["build", "-c", str(path), "-o", str(output)])

        assert result.exit_code == 1
        assert not output.exists()

    def test_validate_ok(self, manifest_file):
        result = runner.invoke(app, ["validate", "-c", str(manifest_file)])
        assert result.exit_code == 0
        assert "验证通过" in result.output

    def test_validate_errors_json(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("entries: []\n")

        result = runner.invoke(app, ["validate", "-c", str(path), "--json"])

        assert result.exit_code == 1
        data = json.loads(result.output[result.output.index("{"):])
        assert data["error_count"] == len(data["errors"]) >= 1

    def test_validate_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate", "-c", str(tmp_path / "none.yaml")])
        assert result.exit_code == 1
