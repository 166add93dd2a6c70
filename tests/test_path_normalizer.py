"""
Unit tests for Path Normalizer

Tests for separator cleanup, wrapper folder unwrapping and
whole-set root stripping.
"""

import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from services.path_normalizer import (
    PathNormalizer,
    archive_stem,
    common_root,
    strip_single_root,
)


@pytest.fixture
def normalizer():
    return PathNormalizer(
        wrapper_names=["project", "app", "main", "source"],
        export_wrappers=["replit"],
    )


class TestNormalize:
    """Test single path normalization"""

    def test_backslashes_become_slashes(self, normalizer):
        """Should convert Windows separators"""
        assert normalizer.normalize("src\\components\\Header.tsx") == "src/components/Header.tsx"

    def test_empty_segments_dropped(self, normalizer):
        """Should collapse doubled and leading/trailing slashes"""
        assert normalizer.normalize("/src//lib/utils.ts/") == "src/lib/utils.ts"

    def test_dot_segments_dropped(self, normalizer):
        """Should drop current-directory segments"""
        assert normalizer.normalize("./src/./index.ts") == "src/index.ts"

    def test_generic_wrapper_stripped_when_deep(self, normalizer):
        """Should unwrap a generic wrapper when more than two segments remain"""
        assert normalizer.normalize("project/src/index.ts") == "src/index.ts"
        assert normalizer.normalize("source/components/ui/Button.tsx") == "components/ui/Button.tsx"

    def test_generic_wrapper_kept_on_short_path(self, normalizer):
        """Should keep app/page.tsx unchanged"""
        assert normalizer.normalize("app/page.tsx") == "app/page.tsx"

    def test_wrapper_match_is_case_insensitive(self, normalizer):
        """Should match wrapper names regardless of case"""
        assert normalizer.normalize("Project/src/index.ts") == "src/index.ts"

    def test_export_wrapper_stripped(self, normalizer):
        """Should unwrap an export folder even on a two-segment path"""
        assert normalizer.normalize("replit/package.json") == "package.json"

    def test_export_wrapper_alone_is_a_file(self, normalizer):
        """Should not strip the only segment"""
        assert normalizer.normalize("replit") == "replit"

    def test_archive_name_unwrapped_when_deep(self):
        """Should unwrap the folder named after the archive like a generic wrapper"""
        normalizer = PathNormalizer(wrapper_names=[], export_wrappers=[], archive_name="my-site.zip")

        assert normalizer.normalize("my-site/src/index.html") == "src/index.html"
        assert normalizer.normalize("other/src/index.html") == "other/src/index.html"

    def test_archive_name_kept_on_short_path(self):
        """Should keep app/page.tsx when the upload is app.zip"""
        normalizer = PathNormalizer(wrapper_names=[], export_wrappers=["replit"], archive_name="app.zip")

        assert normalizer.normalize("app/page.tsx") == "app/page.tsx"
        assert normalizer.normalize("replit/page.tsx") == "page.tsx"

    def test_spaces_in_names_kept(self, normalizer):
        """Should only trim surrounding line breaks"""
        assert normalizer.normalize(" notes.md") == " notes.md"
        assert normalizer.normalize("docs/ draft .md\r\n") == "docs/ draft .md"

    @pytest.mark.parametrize("raw", ["", "/", "//", "\\\\", "./", None])
    def test_nothing_left_returns_none(self, normalizer, raw):
        """Should return None when no segments remain"""
        assert normalizer.normalize(raw) is None

    def test_parent_reference_rejected(self, normalizer):
        """Should refuse paths that climb out of the root"""
        assert normalizer.normalize("../etc/passwd") is None
        assert normalizer.normalize("src/../../secret.txt") is None

    def test_nul_byte_rejected(self, normalizer):
        """Should refuse paths containing NUL"""
        assert normalizer.normalize("src/a\x00.ts") is None

    def test_idempotent(self, normalizer):
        """Should leave an already clean path unchanged"""
        once = normalizer.normalize("project\\src\\\\lib\\utils.ts")

        assert normalizer.normalize(once) == once


class TestNormalizeAll:
    """Test batch normalization"""

    def test_dedupes_and_keeps_order(self, normalizer):
        """Should keep first-seen order and drop duplicates"""
        result = normalizer.normalize_all(
            ["b.ts", "a.ts", "./b.ts", "", "src\\c.ts"],
            strip_common_root=False,
        )

        assert result == ["b.ts", "a.ts", "src/c.ts"]

    def test_strip_common_root_mode(self, normalizer):
        """Should remove a folder shared by every path when enabled"""
        result = normalizer.normalize_all(
            ["my-repo/src/index.ts", "my-repo/package.json"],
            strip_common_root=True,
        )

        assert result == ["src/index.ts", "package.json"]

    def test_strip_common_root_off_by_request(self, normalizer):
        """Should keep the shared folder when disabled"""
        result = normalizer.normalize_all(["my-repo/package.json"], strip_common_root=False)

        assert result == ["my-repo/package.json"]


class TestRootHelpers:
    """Test common root detection"""

    def test_common_root_found(self):
        assert common_root(["web/a.ts", "web/b/c.ts"]) == "web"

    def test_common_root_none_for_mixed_roots(self):
        assert common_root(["web/a.ts", "api/b.ts"]) is None

    def test_common_root_none_for_top_level_file(self):
        """Should not treat a top-level file as a shared folder"""
        assert common_root(["web/a.ts", "README.md"]) is None

    def test_common_root_empty(self):
        assert common_root([]) is None

    def test_strip_single_root_without_root(self):
        paths = ["a.ts", "b/c.ts"]

        assert strip_single_root(paths) == paths


class TestArchiveStem:
    """Test archive base name detection"""

    @pytest.mark.parametrize("filename,expected", [
        ("replit.zip", "replit"),
        ("site.tar.gz", "site"),
        ("C:\\Users\\me\\export.tgz", "export"),
        ("notes.txt", "notes"),
        ("", None),
        (None, None),
    ])
    def test_archive_stem(self, filename, expected):
        assert archive_stem(filename) == expected
