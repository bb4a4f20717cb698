"""
过滤器单元测试
"""

from cpiobuild.archive.filters import all_of, exclude, exclude_patterns, include_all, match_pattern


class TestBasicFilters:
    """基础过滤器测试"""

    def test_include_all(self):
        assert include_all("/")
        assert include_all("/usr/lib")

    def test_exclude_exact_path(self):
        """测试只排除给定路径"""
        f = exclude("/work/out.cpio")
        assert not f("/work/out.cpio")
        assert not f("/work/./out.cpio")
        assert f("/work/out.cpio.bak")
        assert f("/work")

    def test_all_of(self):
        """测试组合过滤器"""
        f = all_of(exclude("/a"), exclude("/b"))
        assert not f("/a")
        assert not f("/b")
        assert f("/c")


class TestPatternFilters:
    """glob 模式过滤器测试"""

    def test_extension_pattern(self):
        f = exclude_patterns(["*.pyc"])
        assert not f("/src/pkg/mod.pyc")
        assert f("/src/pkg/mod.py")

    def test_directory_pattern(self):
        """测试以 / 结尾的目录模式"""
        f = exclude_patterns(["__pycache__/"])
        assert not f("/src/pkg/__pycache__")
        assert not f("/src/pkg/__pycache__/mod.pyc")
        assert f("/src/pkg/cache.py")

    def test_relative_to_root(self):
        """测试按相对于根目录的路径匹配"""
        f = exclude_patterns(["docs/*.md"], root="/src")
        assert not f("/src/docs/readme.md")
        assert f("/src/readme.md")
        # 根目录本身总是包含
        assert f("/src")

    def test_match_pattern_path_fragment(self):
        assert match_pattern("a/b/c/d.txt", "b/c")
        assert not match_pattern("a/b/c/d.txt", "c/b")

    def test_match_pattern_basename(self):
        assert match_pattern("lib/modules/vmlinuz", "vmlinu?")
        assert not match_pattern("lib/modules/initrd", "vmlinu?")
