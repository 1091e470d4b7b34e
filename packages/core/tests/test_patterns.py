"""Tests for glob matching and include/exclude decisions."""

from bbreview_core.utils.patterns import matches, should_include


class TestMatches:
    def test_exact_file_name(self):
        assert matches("file.ts", "file.ts") is True
        assert matches("file.ts", "other.ts") is False

    def test_single_star_stays_within_segment(self):
        assert matches("file.ts", "*.ts") is True
        assert matches("file.js", "*.ts") is False
        assert matches("src/file.ts", "*.ts") is False

    def test_globstar_spans_directories(self):
        assert matches("src/file.ts", "src/**") is True
        assert matches("src/nested/deep/file.ts", "src/**") is True
        assert matches("other/file.ts", "src/**") is False

    def test_globstar_with_extension(self):
        assert matches("src/file.ts", "**/*.ts") is True
        assert matches("src/nested/file.ts", "**/*.ts") is True
        assert matches("src/file.js", "**/*.ts") is False

    def test_question_mark_matches_one_character(self):
        assert matches("a1.py", "a?.py") is True
        assert matches("a12.py", "a?.py") is False
        assert matches("a/.py", "a?.py") is False

    def test_match_is_anchored(self):
        assert matches("vendor/lib/file.php", "lib/*.php") is False
        assert matches("composer.lock.bak", "*.lock") is False

    def test_dot_is_literal(self):
        assert matches("fileXts", "file.ts") is False

    def test_regex_metacharacters_are_literal(self):
        assert matches("src/(generated)+/a.ts", "src/(generated)+/*.ts") is True
        assert matches("a[1].txt", "a[1].txt") is True
        assert matches("a1.txt", "a[1].txt") is False

    def test_backslashes_normalized(self):
        assert matches("src\\nested\\file.ts", "src/**") is True
        assert matches("src/nested/file.ts", "src\\**") is True

    def test_lock_files(self):
        assert matches("composer.lock", "*.lock") is True
        assert matches("package-lock.json", "*.lock") is False
        assert matches("nested/composer.lock", "*.lock") is False


class TestShouldInclude:
    def test_everything_included_without_patterns(self):
        assert should_include("any/file.ts") is True
        assert should_include("vendor/file.php", [], []) is True

    def test_exclude_patterns(self):
        exclude = ["vendor/**", "*.lock"]
        assert should_include("vendor/package/file.php", None, exclude) is False
        assert should_include("composer.lock", None, exclude) is False
        assert should_include("src/file.ts", None, exclude) is True

    def test_include_patterns(self):
        include = ["src/**", "config/**"]
        assert should_include("src/file.ts", include) is True
        assert should_include("config/app.php", include) is True
        assert should_include("tests/file.ts", include) is False

    def test_exclude_wins_over_include(self):
        assert should_include("src/generated/x.ts", ["src/**"], ["src/generated/**"]) is False
        assert should_include("src/types.generated.ts", ["src/**"], ["**/*.generated.ts"]) is False
        assert should_include("src/types.ts", ["src/**"], ["**/*.generated.ts"]) is True
