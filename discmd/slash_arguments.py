"""Extraction of slash command arguments from the JSON values Discord sends."""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


class SlashArgError(ValueError):
    """Base class for errors raised while parsing slash command arguments."""


class CommandStructureMismatch(SlashArgError):
    """The argument list did not have the shape the command expects.

    Usually the command was not registered again after it changed, so Discord
    still holds an outdated version of its parameters.
    """

    def __init__(self, detail: str) -> None:
        super().__init__(
            f"Bot author did not register their commands correctly ({detail})"
        )
        self.detail = detail


class SlashParseError(SlashArgError):
    """A string argument was found but could not be converted to the target type."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(f"Failed to parse argument: {error}")
        self.error = error
        self.__cause__ = error


class IntegerOutOfBounds(SlashArgError):
    """An integer argument did not fit into the target range."""

    def __init__(self) -> None:
        super().__init__("Integer out of bounds for target type")


class OptionType(enum.IntEnum):
    """Discord application command option types."""

    SUB_COMMAND = 1
    SUB_COMMAND_GROUP = 2
    STRING = 3
    INTEGER = 4
    BOOLEAN = 5
    USER = 6
    CHANNEL = 7
    ROLE = 8
    MENTIONABLE = 9
    NUMBER = 10


class ParameterKind(enum.Enum):
    """How a slash command parameter's value is extracted."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    USER = "user"
    CHANNEL = "channel"
    ROLE = "role"
    CUSTOM = "custom"


_OPTION_TYPES = {
    ParameterKind.STRING: OptionType.STRING,
    ParameterKind.INTEGER: OptionType.INTEGER,
    ParameterKind.FLOAT: OptionType.NUMBER,
    ParameterKind.BOOLEAN: OptionType.BOOLEAN,
    ParameterKind.USER: OptionType.USER,
    ParameterKind.CHANNEL: OptionType.CHANNEL,
    ParameterKind.ROLE: OptionType.ROLE,
}

_STRING_KINDS = frozenset(
    {ParameterKind.STRING, ParameterKind.USER, ParameterKind.CHANNEL, ParameterKind.ROLE}
)


def extract_string(value: Any) -> str:
    """Return ``value`` if it is a string."""
    if not isinstance(value, str):
        raise CommandStructureMismatch("expected string")
    return value


def extract_integer(
    value: Any, minimum: int | None = None, maximum: int | None = None
) -> int:
    """Return ``value`` as a 64-bit integer, checked against optional bounds."""
    if (
        isinstance(value, bool)
        or not isinstance(value, int)
        or not _I64_MIN <= value <= _I64_MAX
    ):
        raise CommandStructureMismatch("expected integer")
    if (minimum is not None and value < minimum) or (
        maximum is not None and value > maximum
    ):
        raise IntegerOutOfBounds()
    return value


def extract_float(value: Any) -> float:
    """Return any JSON number as a float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CommandStructureMismatch("expected float")
    return float(value)


def _extract_boolean(value: Any) -> bool:
    if not isinstance(value, bool):
        raise CommandStructureMismatch("expected boolean")
    return value


def _convert(converter: Callable[[Any], Any], value: Any) -> Any:
    try:
        return converter(value)
    except SlashArgError:
        raise
    except Exception as error:
        raise SlashParseError(error) from error


@dataclass(frozen=True)
class SlashParam:
    """Describes one slash command parameter and how to read its value.

    ``converter`` turns the raw string of string-like kinds into the target
    value, or the raw JSON value of ``CUSTOM`` parameters. ``optional`` yields
    ``None`` when the argument is absent, ``many`` yields a list of zero or one
    value, and ``flag`` yields ``False`` when absent.
    """

    name: str
    kind: ParameterKind = ParameterKind.STRING
    converter: Callable[[Any], Any] | None = None
    minimum: int | None = None
    maximum: int | None = None
    optional: bool = False
    many: bool = False
    flag: bool = False
    option_type: OptionType | None = None

    def __post_init__(self) -> None:
        if self.kind is ParameterKind.CUSTOM:
            if self.converter is None:
                raise ValueError("custom parameters need a converter")
            if self.option_type is None:
                raise ValueError("custom parameters need an option type")

    def extract(self, value: Any) -> Any:
        """Convert one raw JSON argument value into the parameter's value."""
        if self.kind in _STRING_KINDS:
            text = extract_string(value)
            return text if self.converter is None else _convert(self.converter, text)
        if self.kind is ParameterKind.INTEGER:
            return extract_integer(value, self.minimum, self.maximum)
        if self.kind is ParameterKind.FLOAT:
            return extract_float(value)
        if self.kind is ParameterKind.BOOLEAN:
            return _extract_boolean(value)
        return _convert(self.converter, value)

    def create(self) -> dict[str, Any]:
        """Return the type fields of the option that registers this parameter."""
        option_type = self.option_type or _OPTION_TYPES[self.kind]
        return {"type": int(option_type)}


def _find_value(args: Iterable[Mapping[str, Any]], name: str) -> tuple[bool, Any]:
    for arg in args:
        if arg.get("name") == name:
            value = arg.get("value")
            if value is None:
                raise CommandStructureMismatch("expected argument value")
            return True, value
    return False, None


def parse_slash_args(
    args: Iterable[Mapping[str, Any]], params: Iterable[SlashParam]
) -> tuple[Any, ...]:
    """Extract every parameter in ``params`` from the interaction's option list."""
    args = list(args)
    values = []
    for param in params:
        found, raw = _find_value(args, param.name)
        value = param.extract(raw) if found else None
        if param.flag:
            values.append(bool(value) if found else False)
        elif param.many:
            values.append([value] if found else [])
        elif param.optional:
            values.append(value)
        elif not found:
            raise CommandStructureMismatch("a required argument is missing")
        else:
            values.append(value)
    return tuple(values)