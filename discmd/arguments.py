"""Parsing of prefix command arguments from the front of a raw argument string.

Every parser takes the remaining argument string and returns a tuple of the
string left over after parsing and the parsed value.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

# Characters with the Unicode White_Space property.
_WHITESPACE = frozenset(
    "\t\n\x0b\x0c\r \x85\xa0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000"
)


def _trim_start(text: str) -> str:
    return text.lstrip("".join(_WHITESPACE))


class EmptyArgs(ValueError):
    """Raised when a string parameter is parsed but the input is empty."""

    def __init__(self, message: str = "Not enough arguments were given") -> None:
        super().__init__(message)


class TooManyArguments(ValueError):
    """Raised when a user passes more arguments than a command accepts."""

    def __init__(self, message: str = "Too many arguments were passed") -> None:
        super().__init__(message)


class ArgumentParseError(ValueError):
    """Wraps the error that occurred while parsing one argument."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(f"Failed to parse argument: {error}")
        self.error = error
        self.__cause__ = error


class InvalidChoice(ValueError):
    """Raised when the user enters a string that matches no known choice."""

    def __init__(self, message: str = "You entered a non-existent choice") -> None:
        super().__init__(message)


class CodeBlockError(ValueError):
    """Base class for code block parsing failures."""


class CodeBlockMissing(CodeBlockError):
    """No starting backtick or triple backtick was found."""

    def __init__(self, message: str = "Missing code block") -> None:
        super().__init__(message)


class CodeBlockMalformed(CodeBlockError):
    """A code block was found but it was not properly formed."""

    def __init__(self, message: str = "Malformed code block") -> None:
        super().__init__(message)


def pop_string(args: str) -> tuple[str, str]:
    """Pop one whitespace-separated word, honouring double quotes and backslash escapes.

    Leading whitespace is not skipped and trailing whitespace is not consumed.
    """
    if not args:
        raise EmptyArgs()

    output: list[str] = []
    inside_string = False
    escaping = False
    end = len(args)

    for position, char in enumerate(args):
        if escaping:
            output.append(char)
            escaping = False
        elif not inside_string and char in _WHITESPACE:
            end = position
            break
        elif char == '"':
            inside_string = not inside_string
        elif char == "\\":
            escaping = True
        else:
            output.append(char)

    return args[end:], "".join(output)


def pop_argument(parser: Any, args: str) -> tuple[str, Any]:
    """Parse one argument with ``parser`` and strip whitespace before the next one.

    ``parser`` is either a type with a ``pop_from`` classmethod, or a callable that
    converts a single word (as popped by :func:`pop_string`) into a value.
    """
    pop_from = getattr(parser, "pop_from", None)
    if pop_from is not None:
        rest, value = pop_from(args)
    else:
        rest, word = pop_string(args)
        value = _convert(parser, word)
    return _trim_start(rest), value


def _convert(converter: Callable[[str], Any], word: str) -> Any:
    return converter(word)


@dataclass(frozen=True)
class CodeBlock:
    """A Discord code block: single-line with one backtick or multi-line with three."""

    code: str
    language: str | None = None

    def __str__(self) -> str:
        return f"```{self.language or ''}\n{self.code}\n```"

    @classmethod
    def pop_from(cls, args: str) -> tuple[str, CodeBlock]:
        """Parse a single-line or multi-line code block the way the Discord client renders it."""
        if args.startswith("```"):
            body = args[3:]
            end = body.find("```")
            if end < 0:
                raise CodeBlockMalformed()
            rest = body[end + 3:]
            block = body[:end]

            # A word directly after the backticks and followed by a newline is the language
            language = None
            first_newline = block.find("\n")
            if first_newline >= 0:
                first_line = block[:first_newline]
                if not any(char in _WHITESPACE for char in first_line):
                    language = first_line
                    block = block[first_newline + 1:]

            # Only truly empty lines are stripped from start and end
            code = block.strip("\n")
        elif args.startswith("`"):
            body = args[1:]
            end = body.find("`")
            if end < 0:
                raise CodeBlockMalformed()
            rest = body[end + 1:]
            code = body[:end]
            language = None
        else:
            raise CodeBlockMissing()

        if not code:
            raise CodeBlockMalformed()

        # Discord sometimes appends hair spaces to the end of code blocks
        return rest, cls(code=code.rstrip("\u200a"), language=language)


@dataclass
class KeyValueArgs:
    """Key-value arguments such as ``key1=value1 key2="value with spaces"``."""

    pairs: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        """Return the value for ``key``, or ``None`` if it was not given."""
        return self.pairs.get(key)

    @classmethod
    def pop_from(cls, args: str) -> tuple[str, KeyValueArgs]:
        """Pop as many ``key=value`` pairs as possible; never fails."""
        pairs: dict[str, str] = {}
        while (popped := _pop_key_value_pair(args)) is not None:
            args, key, value = popped
            pairs[key] = value
        return args, cls(pairs)


def _pop_key_value_pair(args: str) -> tuple[str, str, str] | None:
    if not args:
        return None

    text = _trim_start(args)
    key: list[str] = []
    inside_string = False
    escaping = False

    for position, char in enumerate(text):
        if escaping:
            key.append(char)
            escaping = False
        elif not inside_string and char in _WHITESPACE:
            return None
        elif char == '"':
            inside_string = not inside_string
        elif char == "\\":
            escaping = True
        elif not inside_string and char == "=":
            rest = text[position + 1:]
            break
        else:
            key.append(char)
    else:
        return None

    try:
        rest, value = pop_string(rest)
    except EmptyArgs:
        value = ""
    return rest, "".join(key), value