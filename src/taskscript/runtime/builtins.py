"""
Built-in function registry for the script evaluator.

Maps case-insensitive function names (and their hyphen/underscore synonyms)
to implementations over runtime values. Groups:

- platform: os, family, bit, arch, endian
- filesystem tests: is_file, is_dir, exists
- path parts: stem, ext, dir, filename
- path changes: with_ext, add_ext, with_filename, with_stem, join
- user locations: temp, home, config, documents
- output: print, println
- time: time
- strings: trim*, starts-with, ends-with, upcase, lowcase, contains,
  replace, match, pad-*

Most built-ins never fail on missing arguments; they return a sentinel
(0, 1 or empty text) instead. The ones that do fail raise FunctionError.
"""

from dataclasses import dataclass
from datetime import datetime
from email.utils import format_datetime
from pathlib import Path, PurePath, PureWindowsPath
from typing import Callable, Dict, List, Optional, Sequence, TextIO, Tuple, Type
import logging
import ntpath
import posixpath
import re
import sys
import tempfile

import platformdirs
from wcwidth import wcwidth

from .values import Value, int_val, text_val, bool_val
from .platform import PlatformFacts, host_platform
from ..errors import (
    FunctionError,
    error_unknown_function,
    error_missing_argument,
    error_argument_count,
    error_empty_pad,
    error_location_undefined,
    error_invalid_pattern,
    error_invalid_path,
)

logger = logging.getLogger(__name__)

DEFAULT_TIME_FORMAT = "%Y%m%d-%H%M%S"

# Unicode White_Space. str.strip() with no argument also drops \x1c-\x1f.
WHITESPACE = (
    "\t\n\x0b\x0c\r \x85\xa0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000"
)


def display_width(text: str) -> int:
    """Number of terminal columns `text` occupies; unprintables count 0."""
    return sum(max(wcwidth(ch), 0) for ch in text)


def _local_now() -> datetime:
    return datetime.now().astimezone()


# User locations, resolved on every call. Each returns None when the host
# has no answer.

def home_dir() -> Optional[str]:
    try:
        return str(Path.home())
    except RuntimeError:
        return None


def config_dir() -> Optional[str]:
    return platformdirs.user_config_dir() or None


def documents_dir() -> Optional[str]:
    return platformdirs.user_documents_dir() or None


@dataclass
class BuiltinFunction:
    """
    A built-in function and the names it answers to.

    The implementation takes the call's arguments positionally.
    """
    name: str
    implementation: Callable[..., Value]
    aliases: Tuple[str, ...] = ()
    category: str = ""
    doc: str = ""

    @property
    def names(self) -> Tuple[str, ...]:
        return (self.name,) + tuple(self.aliases)


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Host services the built-ins depend on can be replaced at construction:
    `platform` facts, the `path_flavor` used to pick paths apart, the
    `clock` and the `output` stream (standard output when None).
    """

    def __init__(
        self,
        platform: Optional[PlatformFacts] = None,
        path_flavor: Type[PurePath] = PurePath,
        clock: Callable[[], datetime] = _local_now,
        output: Optional[TextIO] = None,
    ):
        self.platform = platform if platform is not None else host_platform()
        # PurePath itself picks the host flavor on instantiation
        self.path_flavor = type(path_flavor()) if path_flavor is PurePath else path_flavor
        self.clock = clock
        self.output = output
        self._functions: Dict[str, BuiltinFunction] = {}
        self._register_all()
        logger.debug("registered %d built-in names", len(self._functions))

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by any of its names, ignoring case."""
        return self._functions.get(name.lower())

    def __contains__(self, name: str) -> bool:
        return self.get_function(name) is not None

    def register(self, func: BuiltinFunction) -> None:
        """Register a function under its name and every alias."""
        for name in func.names:
            self._functions[name.lower()] = func

    def functions(self) -> List[BuiltinFunction]:
        """All registered functions, each once, in registration order."""
        seen: List[BuiltinFunction] = []
        for func in self._functions.values():
            if not any(func is s for s in seen):
                seen.append(func)
        return seen

    def invoke(self, name: str, args: Sequence[Value]) -> Value:
        """
        Call a built-in function by name.

        Raises UnknownFunctionError if no function answers to `name`, and
        FunctionError if the function rejects its arguments.
        """
        func = self.get_function(name)
        if func is None:
            raise error_unknown_function(name)
        logger.debug("calling %s with %d argument(s)", func.name, len(args))
        try:
            return func.implementation(*args)
        except FunctionError as e:
            if not e.function:
                e.function = name
            raise

    @property
    def _pathmod(self):
        return ntpath if issubclass(self.path_flavor, PureWindowsPath) else posixpath

    @property
    def _seps(self) -> str:
        return "\\/" if issubclass(self.path_flavor, PureWindowsPath) else "/"

    def _register_all(self) -> None:
        """Register all built-in functions."""
        self._register_platform_functions()
        self._register_filesystem_functions()
        self._register_path_functions()
        self._register_location_functions()
        self._register_output_functions()
        self._register_time_functions()
        self._register_string_functions()
        self._register_padding_functions()

    # --- Platform Functions ---

    def _register_platform_functions(self) -> None:
        """Register zero-argument platform queries."""

        def _fact(attr: str) -> Callable[..., Value]:
            def impl(*args: Value) -> Value:
                return text_val(getattr(self.platform, attr))
            impl.__doc__ = f"Platform {attr}."
            return impl

        for name, attr in (
            ("os", "os"),
            ("family", "family"),
            ("bit", "pointer_width"),
            ("arch", "arch"),
            ("endian", "endian"),
        ):
            impl = _fact(attr)
            self.register(BuiltinFunction(name, impl, category="platform", doc=impl.__doc__))

    # --- Filesystem Functions ---

    def _register_filesystem_functions(self) -> None:
        """Register filesystem tests. All arguments must pass; no arguments never pass."""

        def _all_are(check: Callable[[Path], bool]) -> Callable[..., Value]:
            def impl(*args: Value) -> Value:
                if not args:
                    return int_val(0)
                for arg in args:
                    text = arg.to_text()
                    # Path("") means the current directory; an empty name is no path
                    if not text:
                        return int_val(0)
                    try:
                        ok = check(Path(text))
                    except (OSError, ValueError):
                        # Name too long, no permission, embedded NUL
                        ok = False
                    if not ok:
                        return int_val(0)
                return int_val(1)
            return impl

        fs_funcs = [
            ("is_file", ("is-file", "isfile"), Path.is_file),
            ("is_dir", ("is-dir", "isdir"), Path.is_dir),
            ("exists", (), Path.exists),
        ]
        for name, aliases, check in fs_funcs:
            self.register(BuiltinFunction(name, _all_are(check), aliases, "filesystem"))

    # --- Path Functions ---

    def _register_path_functions(self) -> None:
        """
        Register path decomposition and mutation functions.

        Results are spliced from the text as written: `./`, doubled
        separators and the like survive. The flavor only decides which
        characters separate components and what a drive looks like.
        """
        mod = self._pathmod
        seps = self._seps

        def _split(text: str) -> Tuple[str, str]:
            # (text before the last component, last component)
            drive, rest = mod.splitdrive(text)
            body = rest.rstrip(seps)
            # a trailing "." component names nothing
            while body.endswith(tuple(s + "." for s in seps)):
                body = body[:-2].rstrip(seps)
            cut = max(body.rfind(s) for s in seps) + 1
            return drive + body[:cut], body[cut:]

        def _file_name(text: str) -> str:
            last = _split(text)[1]
            return "" if last in (".", "..") else last

        def _stem_ext(name: str) -> Tuple[str, str]:
            # A leading dot starts a hidden name, not an extension
            dot = name.rfind(".")
            if dot <= 0:
                return name, ""
            return name[:dot], name[dot + 1:]

        def _parent(text: str) -> str:
            head, last = _split(text)
            if not last:
                return ""
            drive, rest = mod.splitdrive(head)
            stripped = rest.rstrip(seps)
            if not stripped:
                # keep the root of "/name"
                stripped = rest[:1]
            return drive + stripped

        def _stem(*args: Value) -> Value:
            """File name without its extension."""
            if not args:
                return int_val(0)
            return text_val(_stem_ext(_file_name(args[0].to_text()))[0])

        def _ext(*args: Value) -> Value:
            """Extension without the leading dot."""
            if not args:
                return int_val(0)
            return text_val(_stem_ext(_file_name(args[0].to_text()))[1])

        def _dir(*args: Value) -> Value:
            """Everything before the file name."""
            if not args:
                return int_val(0)
            return text_val(_parent(args[0].to_text()))

        def _filename(*args: Value) -> Value:
            """Last path component."""
            if not args:
                return int_val(0)
            return text_val(_file_name(args[0].to_text()))

        def _with_ext(*args: Value) -> Value:
            """Replace the extension; an empty one removes it."""
            if not args:
                raise error_missing_argument("path")
            if len(args) == 1:
                return args[0]
            text = args[0].to_text()
            name = _file_name(text)
            if not name:
                return text_val(text)
            ext = args[1].to_text()
            if any(s in ext for s in seps):
                raise error_invalid_path(f"invalid extension {ext!r}")
            stem = _stem_ext(name)[0]
            head = _split(text)[0]
            return text_val(head + stem + ("." + ext if ext else ""))

        def _add_ext(*args: Value) -> Value:
            """Append an extension to the full path text."""
            if not args:
                raise error_missing_argument("path")
            if len(args) == 1:
                return args[0]
            text = args[0].to_text()
            ext = args[1].to_text()
            if not ext:
                return text_val(text)
            if not ext.startswith("."):
                ext = "." + ext
            return text_val(text + ext)

        def _with_filename(*args: Value) -> Value:
            """Replace the last path component."""
            if not args:
                raise error_missing_argument("path")
            if len(args) == 1:
                raise error_missing_argument("new name")
            text = args[0].to_text()
            base = _parent(text) if _file_name(text) else text
            # An empty name leaves the directory with a trailing separator
            return text_val(mod.join(base, args[1].to_text()))

        def _with_stem(*args: Value) -> Value:
            """Replace the file name but keep the extension."""
            if not args:
                raise error_missing_argument("path")
            if len(args) == 1:
                raise error_missing_argument("new stem")
            text = args[0].to_text()
            stem = args[1].to_text()
            if not stem:
                raise error_missing_argument("new stem")
            ext = _stem_ext(_file_name(text))[1]
            fname = f"{stem}.{ext}" if ext else stem
            return text_val(mod.join(_parent(text), fname))

        def _join(*args: Value) -> Value:
            """Join path components; an absolute one restarts the path."""
            if not args:
                return text_val("")
            if len(args) == 1:
                return args[0]
            return text_val(mod.join(*(a.to_text() for a in args)))

        path_funcs = [
            ("stem", (), _stem),
            ("ext", (), _ext),
            ("dir", (), _dir),
            ("filename", (), _filename),
            ("add_ext", ("add-ext",), _add_ext),
            ("with_ext", ("with-ext",), _with_ext),
            ("with_filename", ("with-filename", "with_name", "with-name"), _with_filename),
            ("with_stem", ("with-stem",), _with_stem),
            ("join", (), _join),
        ]
        for name, aliases, impl in path_funcs:
            self.register(BuiltinFunction(name, impl, aliases, "path", impl.__doc__ or ""))

    # --- User Location Functions ---

    def _register_location_functions(self) -> None:
        """Register temp, home, config and documents directory queries."""

        def _location(resolve: Callable[[], Optional[str]], what: str) -> Callable[..., Value]:
            def impl(*args: Value) -> Value:
                path = resolve()
                if not path:
                    raise error_location_undefined(what)
                return text_val(path)
            return impl

        def _temp(*args: Value) -> Value:
            return text_val(tempfile.gettempdir())

        self.register(BuiltinFunction("temp", _temp, ("temp_dir", "temp-dir"), "location"))
        self.register(BuiltinFunction(
            "home",
            _location(lambda: home_dir(), "home"),
            ("home_dir", "home-dir", "user_dir", "user-dir"),
            "location",
        ))
        self.register(BuiltinFunction(
            "config",
            _location(lambda: config_dir(), "configuration"),
            ("config_dir", "config-dir"),
            "location",
        ))
        self.register(BuiltinFunction(
            "documents",
            _location(lambda: documents_dir(), "document"),
            ("docs_dir", "docs-dir"),
            "location",
        ))

    # --- Output Functions ---

    def _register_output_functions(self) -> None:
        """Register print and println."""

        def _print_all(args: Sequence[Value], newline: bool) -> Value:
            out = self.output if self.output is not None else sys.stdout
            out.write(" ".join(a.to_text() for a in args))
            if newline:
                out.write("\n")
            return int_val(1)

        def _print(*args: Value) -> Value:
            """Write arguments separated by spaces."""
            return _print_all(args, False)

        def _println(*args: Value) -> Value:
            """Write arguments separated by spaces, then a newline."""
            return _print_all(args, True)

        self.register(BuiltinFunction("print", _print, (), "output", _print.__doc__))
        self.register(BuiltinFunction("println", _println, (), "output", _println.__doc__))

    # --- Time Functions ---

    def _register_time_functions(self) -> None:
        """Register current time formatting."""

        def _time(*args: Value) -> Value:
            """Format the current local time."""
            now = self.clock()
            fmt = args[0].to_raw_text() if args else DEFAULT_TIME_FORMAT
            kind = fmt.lower()
            if kind in ("2822", "rfc2822"):
                return text_val(format_datetime(now))
            if kind in ("3339", "rfc3339"):
                return text_val(now.isoformat())
            try:
                return text_val(now.strftime(fmt))
            except ValueError as e:
                raise FunctionError(f"invalid time format '{fmt}': {e}")

        self.register(BuiltinFunction(
            "time",
            _time,
            ("format-time", "format_time", "time-format", "time_format"),
            "time",
            _time.__doc__,
        ))

    # --- String Functions ---

    def _register_string_functions(self) -> None:
        """Register string inspection and transformation functions."""

        def _trim(side: str) -> Callable[..., Value]:
            def impl(*args: Value) -> Value:
                if not args:
                    return text_val("")
                s = args[0].to_text()
                chars = WHITESPACE
                if len(args) > 1:
                    what = args[1].to_text()
                    if not what:
                        return text_val(s)
                    chars = what[0]
                if side == "left":
                    return text_val(s.lstrip(chars))
                if side == "right":
                    return text_val(s.rstrip(chars))
                return text_val(s.strip(chars))
            return impl

        def _any_candidate(test: Callable[[str, str], bool]) -> Callable[..., Value]:
            # Vacuously true with nothing to compare against
            def impl(*args: Value) -> Value:
                if len(args) < 2:
                    return int_val(1)
                s = args[0].to_text()
                return bool_val(any(test(s, a.to_text()) for a in args[1:]))
            return impl

        def _upcase(*args: Value) -> Value:
            if not args:
                return text_val("")
            return text_val(args[0].to_text().upper())

        def _lowcase(*args: Value) -> Value:
            if not args:
                return text_val("")
            return text_val(args[0].to_text().lower())

        def _replace(*args: Value) -> Value:
            """Replace every occurrence of the second argument by the third."""
            if len(args) < 2:
                raise error_argument_count("two")
            s = args[0].to_text()
            what = args[1].to_text()
            with_ = args[2].to_text() if len(args) > 2 else ""
            return text_val(s.replace(what, with_))

        def _match(*args: Value) -> Value:
            """True if any of the patterns is found in the subject."""
            if len(args) < 2:
                return int_val(1)
            s = args[0].to_text()
            for arg in args[1:]:
                pattern = arg.to_text()
                try:
                    rx = re.compile(pattern)
                except re.error as e:
                    raise error_invalid_pattern(pattern, str(e))
                if rx.search(s):
                    return int_val(1)
            return int_val(0)

        string_funcs = [
            ("trim", (), _trim("all")),
            ("trim_left", ("trim-left", "trim_start", "trim-start"), _trim("left")),
            ("trim_right", ("trim-right", "trim_end", "trim-end"), _trim("right")),
            ("starts-with", ("starts_with",), _any_candidate(str.startswith)),
            ("ends-with", ("ends_with",), _any_candidate(str.endswith)),
            ("lowcase", (), _lowcase),
            ("upcase", (), _upcase),
            ("contains", (), _any_candidate(lambda s, what: what in s)),
            ("replace", (), _replace),
            ("match", (), _match),
        ]
        for name, aliases, impl in string_funcs:
            self.register(BuiltinFunction(name, impl, aliases, "string", impl.__doc__ or ""))

    # --- Padding Functions ---

    def _register_padding_functions(self) -> None:
        """Register pad-center, pad-left and pad-right."""

        def _pad(where: str) -> Callable[..., Value]:
            def impl(*args: Value) -> Value:
                if len(args) != 3:
                    raise error_argument_count("three")
                patt = args[1].to_text()
                patt_width = display_width(patt)
                if patt_width == 0:
                    raise error_empty_pad()
                width = args[2].to_int()
                s = args[0].to_text()
                orig_width = display_width(s)

                if orig_width + patt_width >= width:
                    return text_val(s)

                cnt = (width - orig_width) // patt_width
                if where == "left":
                    return text_val(patt * cnt + s)
                if where == "right":
                    return text_val(s + patt * cnt)
                right = cnt // 2
                left = cnt - right
                return text_val(patt * left + s + patt * right)
            return impl

        for name, alias, where in (
            ("pad-center", "pad_center", "center"),
            ("pad-left", "pad_left", "left"),
            ("pad-right", "pad_right", "right"),
        ):
            self.register(BuiltinFunction(name, _pad(where), (alias,), "padding"))


# Global singleton registry
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global built-in function registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry


def call_builtin(name: str, args: Sequence[Value]) -> Value:
    """
    Call a built-in function by name on the global registry.

    Raises UnknownFunctionError if the function is not found.
    """
    return get_builtin_registry().invoke(name, args)
