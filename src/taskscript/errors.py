"""
Evaluation exceptions and error factories.

Error code ranges:
- E4xx: Built-in function errors
- E5xx: Feature predicate errors
- E6xx: Configuration errors
"""

from typing import Optional


class EvaluationError(Exception):
    """Base exception for script evaluation errors."""

    code = "E400"

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)

    def __str__(self) -> str:
        return self.message

    def format(self) -> str:
        """Format the error for display."""
        return f"error[{self.code}]: {self.message}"


class UnknownFunctionError(EvaluationError):
    """A function-call expression names no registered built-in (E401)."""

    code = "E401"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"function {name} not found")


class FunctionError(EvaluationError):
    """A built-in rejected its arguments or the host refused a query (E402)."""

    code = "E402"

    def __init__(self, message: str, function: str = ""):
        self.function = function
        super().__init__(message)

    def format(self) -> str:
        if self.function:
            return f"error[{self.code}]: {self.function}: {self.message}"
        return super().format()


class UnknownPredicateError(EvaluationError):
    """A conditional directive uses an unrecognized predicate key (E501)."""

    code = "E501"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown feature predicate '{name}'")


class ConfigError(EvaluationError):
    """Malformed run options (E601)."""

    code = "E601"


# --- Built-in function errors ---

def error_unknown_function(name: str) -> UnknownFunctionError:
    """E401: Unknown function."""
    return UnknownFunctionError(name)


def error_missing_argument(role: str, function: str = "") -> FunctionError:
    """E402: Required argument missing, e.g. 'path undefined'."""
    return FunctionError(f"{role} undefined", function)


def error_argument_count(expected: str, function: str = "") -> FunctionError:
    """E402: Too few (or too many) arguments."""
    return FunctionError(f"requires {expected} arguments", function)


def error_empty_pad(function: str = "") -> FunctionError:
    """E402: Pad token has zero display width."""
    return FunctionError("pad string cannot be empty", function)


def error_location_undefined(what: str, function: str = "") -> FunctionError:
    """E402: The host cannot resolve a user directory."""
    return FunctionError(f"user {what} directory undefined", function)


def error_invalid_pattern(pattern: str, reason: str, function: str = "") -> FunctionError:
    """E402: Regular expression failed to compile."""
    return FunctionError(f"invalid regular expression '{pattern}': {reason}", function)


def error_invalid_path(reason: str, function: str = "") -> FunctionError:
    """E402: A path component cannot be applied."""
    return FunctionError(f"invalid path: {reason}", function)


# --- Feature predicate errors ---

def error_unknown_predicate(name: str) -> UnknownPredicateError:
    """E501: Unknown predicate key."""
    return UnknownPredicateError(name)
