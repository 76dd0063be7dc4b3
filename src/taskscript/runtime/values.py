"""
Runtime values for the script evaluator.

A script value is either an integer or a piece of text. Built-ins read values
through the projections `to_text`, `to_int` and `to_raw_text` rather than by
inspecting the tag.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Sequence
import re

# ASCII digits only; int() would also take "1_000" and other scripts' digits
DECIMAL_RE = re.compile(r"[+-]?[0-9]+")


class ValueKind(Enum):
    """Tag of a runtime value."""
    INT = "int"
    TEXT = "text"


@dataclass(frozen=True)
class Value:
    """
    A runtime value.

    The `data` field holds a Python `int` or `str`; `kind` says which.
    """
    data: Any
    kind: ValueKind

    def __repr__(self) -> str:
        return f"Value({self.data!r}, {self.kind.value})"

    @property
    def is_int(self) -> bool:
        return self.kind == ValueKind.INT

    def to_text(self) -> str:
        """Text form: the decimal digits of an integer, or the text itself."""
        if self.kind == ValueKind.INT:
            return str(self.data)
        return self.data

    def to_int(self) -> int:
        """
        Integer form.

        Text is parsed as a decimal integer after stripping whitespace;
        text that is not a number yields 0.
        """
        if self.kind == ValueKind.INT:
            return self.data
        text = self.data.strip()
        if not DECIMAL_RE.fullmatch(text):
            return 0
        return int(text)

    def to_raw_text(self) -> str:
        """Text form without one pair of enclosing quotes, if present."""
        text = self.to_text()
        if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
            return text[1:-1]
        return text


def int_val(n: int) -> Value:
    """Create an integer value."""
    return Value(int(n), ValueKind.INT)


def text_val(s: str) -> Value:
    """Create a text value."""
    return Value(str(s), ValueKind.TEXT)


def bool_val(b: bool) -> Value:
    """Create the integer 1 or 0 used for script truth values."""
    return int_val(1 if b else 0)


def wrap_value(data: Any) -> Value:
    """Wrap a Python object: ints (and bools) become INT, anything else TEXT."""
    if isinstance(data, Value):
        return data
    if isinstance(data, int):
        return int_val(data)
    return text_val(data)


def wrap_values(items: Sequence[Any]) -> List[Value]:
    """Wrap each item of a sequence."""
    return [wrap_value(item) for item in items]
