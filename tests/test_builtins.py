"""
Tests for the built-in function registry.
"""

import io
import tempfile
from datetime import datetime, timezone
from pathlib import PurePosixPath, PureWindowsPath

import pytest

import taskscript.runtime.builtins as builtins_mod
from taskscript.errors import FunctionError, UnknownFunctionError
from taskscript.runtime import (
    BuiltinRegistry, PlatformFacts, display_width,
    int_val, text_val, wrap_values,
)

FAKE_PLATFORM = PlatformFacts(
    os="linux", family="unix", pointer_width="64", arch="x86_64", endian="little",
)
FIXED_NOW = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone.utc)


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def registry(output):
    return BuiltinRegistry(
        platform=FAKE_PLATFORM,
        path_flavor=PurePosixPath,
        clock=lambda: FIXED_NOW,
        output=output,
    )


@pytest.fixture
def win_registry():
    return BuiltinRegistry(platform=FAKE_PLATFORM, path_flavor=PureWindowsPath)


def call(reg, name, *args):
    return reg.invoke(name, wrap_values(args))


# --- Dispatch Tests ---

class TestDispatch:
    """Test name lookup."""

    def test_case_insensitive(self, registry):
        assert call(registry, "UPCASE", "ab") == text_val("AB")
        assert call(registry, "UpCase", "ab") == text_val("AB")

    @pytest.mark.parametrize("name", ["is_file", "is-file", "isfile", "IS-FILE"])
    def test_synonyms_share_function(self, registry, name):
        assert registry.get_function(name) is registry.get_function("is_file")

    def test_unknown_function(self, registry):
        with pytest.raises(UnknownFunctionError) as exc:
            call(registry, "NoSuchFunc")
        assert str(exc.value) == "function NoSuchFunc not found"
        assert exc.value.name == "NoSuchFunc"
        assert "E401" in exc.value.format()

    def test_contains(self, registry):
        assert "with-name" in registry
        assert "bogus" not in registry

    def test_error_records_called_name(self, registry):
        with pytest.raises(FunctionError) as exc:
            call(registry, "WITH-EXT")
        assert str(exc.value) == "path undefined"
        assert exc.value.function == "WITH-EXT"

    def test_functions_listed_once(self, registry):
        funcs = registry.functions()
        names = [f.name for f in funcs]
        assert len(names) == len(set(names))
        assert "with_filename" in names
        assert "with_name" not in names


# --- Platform Functions ---

class TestPlatformFunctions:
    """Test platform info built-ins."""

    @pytest.mark.parametrize("name, expected", [
        ("os", "linux"),
        ("family", "unix"),
        ("bit", "64"),
        ("arch", "x86_64"),
        ("endian", "little"),
    ])
    def test_facts(self, registry, name, expected):
        assert call(registry, name) == text_val(expected)


# --- Filesystem Functions ---

class TestFilesystem:
    """Test filesystem predicates against a temporary tree."""

    @pytest.fixture
    def tree(self, tmp_path):
        f = tmp_path / "file.txt"
        f.write_text("x")
        d = tmp_path / "sub"
        d.mkdir()
        return str(f), str(d), str(tmp_path / "missing")

    def test_is_file(self, registry, tree):
        f, d, missing = tree
        assert call(registry, "is_file", f) == int_val(1)
        assert call(registry, "is_file", f, d) == int_val(0)
        assert call(registry, "isfile", missing) == int_val(0)

    def test_is_dir(self, registry, tree):
        f, d, missing = tree
        assert call(registry, "is_dir", d) == int_val(1)
        assert call(registry, "is-dir", d, f) == int_val(0)

    def test_exists_all(self, registry, tree):
        f, d, missing = tree
        assert call(registry, "exists", f, d) == int_val(1)
        assert call(registry, "exists", f, missing) == int_val(0)

    @pytest.mark.parametrize("name", ["is_file", "is_dir", "exists"])
    def test_no_arguments_is_false(self, registry, name):
        assert call(registry, name) == int_val(0)

    def test_empty_path_does_not_exist(self, registry):
        assert call(registry, "exists", "") == int_val(0)

    @pytest.mark.parametrize("name", ["is_file", "is_dir", "exists"])
    def test_unusable_path_is_false(self, registry, name):
        assert call(registry, name, "x" * 300) == int_val(0)
        assert call(registry, name, "bad\0name") == int_val(0)


# --- Path Functions ---

class TestPathParts:
    """Test path decomposition."""

    def test_windows_parts(self, win_registry):
        p = "c:\\tmp\\file.abc"
        assert call(win_registry, "ext", p) == text_val("abc")
        assert call(win_registry, "stem", p) == text_val("file")
        assert call(win_registry, "filename", p) == text_val("file.abc")
        assert call(win_registry, "dir", p) == text_val("c:\\tmp")

    def test_posix_parts(self, registry):
        p = "/usr/lib/archive.tar.gz"
        assert call(registry, "ext", p) == text_val("gz")
        assert call(registry, "stem", p) == text_val("archive.tar")
        assert call(registry, "filename", p) == text_val("archive.tar.gz")
        assert call(registry, "dir", p) == text_val("/usr/lib")

    def test_stem_ext_filename_relation(self, registry):
        p = "src/module.abc"
        stem = call(registry, "stem", p).to_text()
        ext = call(registry, "ext", p).to_text()
        assert ext == "abc"
        assert stem + "." + ext == call(registry, "filename", p).to_text()

    def test_missing_parts_are_empty(self, registry):
        assert call(registry, "ext", "Makefile") == text_val("")
        assert call(registry, "ext", ".bashrc") == text_val("")
        assert call(registry, "stem", ".bashrc") == text_val(".bashrc")
        assert call(registry, "dir", "file.txt") == text_val("")
        assert call(registry, "filename", "/") == text_val("")
        assert call(registry, "dir", "/") == text_val("")

    @pytest.mark.parametrize("name", ["stem", "ext", "dir", "filename"])
    def test_no_arguments_sentinel(self, registry, name):
        assert call(registry, name) == int_val(0)

    def test_text_kept_as_written(self, registry):
        assert call(registry, "dir", "./foo.c") == text_val(".")
        assert call(registry, "dir", "a//b/c.txt") == text_val("a//b")
        assert call(registry, "filename", "./foo.c") == text_val("foo.c")
        assert call(registry, "dir", "/foo") == text_val("/")

    def test_dot_components(self, registry):
        assert call(registry, "filename", ".") == text_val("")
        assert call(registry, "filename", "a/..") == text_val("")
        assert call(registry, "filename", "a/b/.") == text_val("b")
        assert call(registry, "filename", "a/b/") == text_val("b")


class TestPathChanges:
    """Test path mutation built-ins."""

    def test_with_ext_windows(self, win_registry):
        p = "c:\\tmp\\file.abc"
        assert call(win_registry, "with_ext", p, "") == text_val("c:\\tmp\\file")
        assert call(win_registry, "with_ext", p, "def") == text_val("c:\\tmp\\file.def")
        assert call(win_registry, "with_ext", p) == text_val(p)

    def test_with_ext_clearing_is_idempotent(self, registry):
        once = call(registry, "with_ext", call(registry, "with_ext", "dir/file.abc", "x"), "")
        assert once == text_val("dir/file")
        assert call(registry, "ext", once) == text_val("")
        assert call(registry, "with_ext", once, "") == once

    def test_with_ext_requires_path(self, registry):
        with pytest.raises(FunctionError, match="path undefined"):
            call(registry, "with_ext")

    def test_with_ext_rejects_separator(self, registry):
        with pytest.raises(FunctionError):
            call(registry, "with_ext", "a/file.c", "x/y")

    def test_add_ext(self, win_registry):
        p = "c:\\tmp\\file.abc"
        assert call(win_registry, "add_ext", p, "") == text_val(p)
        assert call(win_registry, "add_ext", p, "def") == text_val("c:\\tmp\\file.abc.def")
        assert call(win_registry, "add-ext", p, ".def") == text_val("c:\\tmp\\file.abc.def")
        assert call(win_registry, "add_ext", p) == text_val(p)

    def test_add_ext_requires_path(self, registry):
        with pytest.raises(FunctionError, match="path undefined"):
            call(registry, "add_ext")

    def test_with_filename(self, win_registry):
        p = "c:\\tmp\\file.abc"
        assert call(win_registry, "with_filename", p, "") == text_val("c:\\tmp\\")
        assert call(win_registry, "with_name", p, "some.def") == text_val("c:\\tmp\\some.def")

    def test_with_filename_posix(self, registry):
        assert call(registry, "with-name", "a/b/c.txt", "d.md") == text_val("a/b/d.md")
        assert call(registry, "with-name", "c.txt", "d.md") == text_val("d.md")

    def test_with_filename_errors(self, registry):
        with pytest.raises(FunctionError, match="path undefined"):
            call(registry, "with_filename")
        with pytest.raises(FunctionError, match="new name undefined"):
            call(registry, "with_filename", "c.txt")

    def test_with_stem(self, win_registry):
        p = "c:\\tmp\\file.abc"
        assert call(win_registry, "with_stem", p, "some.def") == text_val("c:\\tmp\\some.def.abc")
        assert call(win_registry, "with_stem", p, "some") == text_val("c:\\tmp\\some.abc")

    def test_with_stem_without_extension(self, registry):
        assert call(registry, "with-stem", "bin/tool", "other") == text_val("bin/other")
        assert call(registry, "with-stem", "file.abc", "new") == text_val("new.abc")

    def test_with_stem_errors(self, registry):
        with pytest.raises(FunctionError, match="path undefined"):
            call(registry, "with_stem")
        with pytest.raises(FunctionError, match="new stem undefined"):
            call(registry, "with_stem", "c.txt")
        with pytest.raises(FunctionError, match="new stem undefined"):
            call(registry, "with_stem", "c.txt", "")

    def test_join(self, registry):
        assert call(registry, "join") == text_val("")
        assert call(registry, "join", "only") == text_val("only")
        assert call(registry, "join", "a", "b", "c.txt") == text_val("a/b/c.txt")

    def test_join_absolute_restarts(self, registry):
        assert call(registry, "join", "a", "/etc", "hosts") == text_val("/etc/hosts")

    def test_join_keeps_single_integer(self, registry):
        assert call(registry, "join", 5) == int_val(5)

    def test_join_windows(self, win_registry):
        assert call(win_registry, "join", "c:\\tmp", "x.txt") == text_val("c:\\tmp\\x.txt")

    def test_changes_keep_leading_dot(self, registry):
        assert call(registry, "with_ext", "./src/a.c", "o") == text_val("./src/a.o")
        assert call(registry, "join", "./build", "out") == text_val("./build/out")
        assert call(registry, "with_name", "./a.c", "b.c") == text_val("./b.c")
        assert call(registry, "with_stem", "./a.c", "b") == text_val("./b.c")
        assert call(registry, "with_ext", "./", "o") == text_val("./")

# --- Location Functions ---

class TestLocations:
    """Test user directory queries."""

    def test_temp(self, registry):
        assert call(registry, "temp") == text_val(tempfile.gettempdir())
        assert call(registry, "temp-dir") == text_val(tempfile.gettempdir())

    def test_home(self, registry, monkeypatch):
        monkeypatch.setattr(builtins_mod, "home_dir", lambda: "/home/user")
        assert call(registry, "home") == text_val("/home/user")
        assert call(registry, "user_dir") == text_val("/home/user")

    def test_home_unresolved(self, registry, monkeypatch):
        monkeypatch.setattr(builtins_mod, "home_dir", lambda: None)
        with pytest.raises(FunctionError, match="user home directory undefined"):
            call(registry, "home")

    def test_config(self, registry, monkeypatch):
        monkeypatch.setattr(builtins_mod, "config_dir", lambda: "/cfg")
        assert call(registry, "config_dir") == text_val("/cfg")
        monkeypatch.setattr(builtins_mod, "config_dir", lambda: None)
        with pytest.raises(FunctionError, match="configuration directory undefined"):
            call(registry, "config")

    def test_documents(self, registry, monkeypatch):
        monkeypatch.setattr(builtins_mod, "documents_dir", lambda: "/docs")
        assert call(registry, "docs-dir") == text_val("/docs")
        monkeypatch.setattr(builtins_mod, "documents_dir", lambda: None)
        with pytest.raises(FunctionError, match="document directory undefined"):
            call(registry, "documents")


# --- Output Functions ---

class TestOutput:
    """Test print and println."""

    def test_print(self, registry, output):
        assert call(registry, "print", "a", 1, "b") == int_val(1)
        assert output.getvalue() == "a 1 b"

    def test_println(self, registry, output):
        assert call(registry, "println", "x", "y") == int_val(1)
        assert call(registry, "println") == int_val(1)
        assert output.getvalue() == "x y\n\n"

    def test_default_stream_is_stdout(self, capsys):
        reg = BuiltinRegistry(platform=FAKE_PLATFORM)
        reg.invoke("println", [text_val("hello")])
        assert capsys.readouterr().out == "hello\n"


# --- Time Functions ---

class TestTime:
    """Test time formatting with a fixed clock."""

    def test_default_format(self, registry):
        assert call(registry, "time") == text_val("20240305-140709")

    def test_rfc2822(self, registry):
        expected = text_val("Tue, 05 Mar 2024 14:07:09 +0000")
        assert call(registry, "time", "2822") == expected
        assert call(registry, "format-time", "RFC2822") == expected

    def test_rfc3339(self, registry):
        expected = text_val("2024-03-05T14:07:09+00:00")
        assert call(registry, "time", "3339") == expected
        assert call(registry, "time_format", "Rfc3339") == expected

    def test_custom_pattern(self, registry):
        assert call(registry, "time", "%Y/%m/%d") == text_val("2024/03/05")
        assert call(registry, "time", "'%H:%M'") == text_val("14:07")


# --- String Functions ---

class TestTrim:
    """Test trimming."""

    def test_whitespace(self, registry):
        s = " \n abc\t   "
        assert call(registry, "trim", s) == text_val("abc")
        assert call(registry, "trim_left", s) == text_val("abc\t   ")
        assert call(registry, "trim_right", s) == text_val(" \n abc")

    def test_character(self, registry):
        assert call(registry, "trim", "++abc===", "+") == text_val("abc===")
        assert call(registry, "trim", "++abc===", "=") == text_val("++abc")
        assert call(registry, "trim-start", "++abc===", "+") == text_val("abc===")
        assert call(registry, "trim-end", "++abc===", "+") == text_val("++abc===")

    def test_only_first_character_counts(self, registry):
        assert call(registry, "trim", "xyyx", "xy") == text_val("yy")

    def test_empty_character_leaves_subject(self, registry):
        assert call(registry, "trim", "  a  ", "") == text_val("  a  ")

    def test_unicode_whitespace_only(self, registry):
        assert call(registry, "trim", "\u3000abc\xa0") == text_val("abc")
        assert call(registry, "trim", "\x1fabc\x1c") == text_val("\x1fabc\x1c")

    def test_no_arguments(self, registry):
        assert call(registry, "trim") == text_val("")


class TestMatching:
    """Test prefix, suffix, containment and regex checks."""

    def test_vacuous_true(self, registry):
        for name in ("starts-with", "ends-with", "contains", "match"):
            assert call(registry, name, "testabc") == int_val(1)
            assert call(registry, name) == int_val(1)

    def test_starts_ends(self, registry):
        assert call(registry, "starts_with", "testabc", "test") == int_val(1)
        assert call(registry, "ends_with", "testabc", "test") == int_val(0)
        assert call(registry, "starts-with", "testabc", "abc") == int_val(0)
        assert call(registry, "ends-with", "testabc", "abc") == int_val(1)
        assert call(registry, "starts-with", "testabc", "xxx") == int_val(0)
        assert call(registry, "starts-with", "testabc", "") == int_val(1)
        assert call(registry, "ends-with", "testabc", "") == int_val(1)

    def test_any_candidate(self, registry):
        assert call(registry, "starts-with", "testabc", "xxx", "test") == int_val(1)
        assert call(registry, "ends-with", "testabc", "test", "abc") == int_val(1)

    def test_contains(self, registry):
        assert call(registry, "contains", "aBc DeF", "Bc") == int_val(1)
        assert call(registry, "contains", "aBc DeF", "bc") == int_val(0)
        assert call(registry, "contains", "aBc DeF", "bc", "eF") == int_val(1)

    def test_match(self, registry):
        assert call(registry, "match", "abc def", "bc") == int_val(1)
        assert call(registry, "match", "abc def", "b.*e") == int_val(1)
        assert call(registry, "match", "abc def", "b.*g") == int_val(0)
        assert call(registry, "match", "abc def", "b.*g", "d[mge]+") == int_val(1)

    def test_match_invalid_pattern(self, registry):
        with pytest.raises(FunctionError, match="invalid regular expression"):
            call(registry, "match", "abc", "(")

    def test_match_invalid_pattern_stops_later_candidates(self, registry):
        with pytest.raises(FunctionError):
            call(registry, "match", "abc", "x", "(", "a")


class TestTransform:
    """Test case conversion and replace."""

    def test_case(self, registry):
        assert call(registry, "lowcase", "aBc DeF") == text_val("abc def")
        assert call(registry, "upcase", "aBc DeF") == text_val("ABC DEF")
        assert call(registry, "upcase", "straße") == text_val("STRASSE")
        assert call(registry, "lowcase") == text_val("")

    def test_replace(self, registry):
        assert call(registry, "replace", "abc def", "bc") == text_val("a def")
        assert call(registry, "replace", "abc def", "Bc") == text_val("abc def")
        assert call(registry, "replace", "abc def", "bc", "eFG") == text_val("aeFG def")
        assert call(registry, "replace", "aaaa", "aa", "b") == text_val("bb")

    def test_replace_requires_two_arguments(self, registry):
        with pytest.raises(FunctionError, match="requires two arguments"):
            call(registry, "replace", "aBc DeF")


# --- Padding Functions ---

class TestPad:
    """Test padding to a display width."""

    def test_argument_errors(self, registry):
        with pytest.raises(FunctionError, match="requires three arguments"):
            call(registry, "pad-center", "abc")
        with pytest.raises(FunctionError, match="requires three arguments"):
            call(registry, "pad-center", "abc", "+=")
        with pytest.raises(FunctionError, match="requires three arguments"):
            call(registry, "pad-left", "abc", "+=", 10, "x")
        with pytest.raises(FunctionError, match="pad string cannot be empty"):
            call(registry, "pad-center", "abc", "", 10)

    def test_zero_width_token(self, registry):
        with pytest.raises(FunctionError, match="pad string cannot be empty"):
            call(registry, "pad-left", "abc", "\u0301", 10)

    @pytest.mark.parametrize("width", ["aa", 0, 2, 5])
    def test_no_room(self, registry, width):
        assert call(registry, "pad-center", "abc", "+=", width) == text_val("abc")

    def test_negative_width(self, registry):
        assert call(registry, "pad-left", "abc", "+=", -4) == text_val("abc")

    def test_pad(self, registry):
        assert call(registry, "pad-center", "abc", "+=", 10) == text_val("+=+=abc+=")
        assert call(registry, "pad-left", "abc", "+=", 10) == text_val("+=+=+=abc")
        assert call(registry, "pad-right", "abc", "+=", 10) == text_val("abc+=+=+=")
        assert call(registry, "pad_center", "abc", "+=", 11) == text_val("+=+=abc+=+=")

    def test_width_as_text(self, registry):
        assert call(registry, "pad-right", "abc", "-", "6") == text_val("abc---")

    def test_wide_characters(self, registry):
        assert call(registry, "pad-left", "日本", "-", 8) == text_val("----日本")
        assert call(registry, "pad-right", "ab", "日", 8) == text_val("ab日日日")

    def test_display_width(self):
        assert display_width("abc") == 3
        assert display_width("日本") == 4
        assert display_width("e\u0301") == 1
        assert display_width("") == 0
