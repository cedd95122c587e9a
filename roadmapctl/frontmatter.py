"""Reader for the small YAML frontmatter subset used by legacy config files."""

from __future__ import annotations

import re
from typing import Any

__all__ = ["FrontmatterError", "parse_frontmatter", "parse_scalar", "int_value", "float_value"]


class FrontmatterError(ValueError):
    """The frontmatter block is missing or malformed."""


_FLOAT_PREFIX = re.compile(
    r"[+-]?(?:(?:nan|inf)|[0-9]*(?:\.[0-9]*)?(?:[eE][+-]?[0-9]*)?)",
    re.IGNORECASE,
)


def parse_frontmatter(data: bytes | str) -> dict[str, Any]:
    """Parse the ``---`` delimited block at the top of a document."""
    text = data.decode("utf-8") if isinstance(data, bytes) else data
    lines = text.replace("\r\n", "\n").split("\n")
    if lines[0].strip() != "---":
        raise FrontmatterError("missing YAML frontmatter")
    end = next((i for i, line in enumerate(lines[1:], start=1) if line.strip() == "---"), None)
    if end is None:
        raise FrontmatterError("unterminated YAML frontmatter")
    return _parse_yaml_lines(lines[1:end])


def _parse_yaml_lines(lines: list[str]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    current_map = ""
    for raw in lines:
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            continue
        indent = len(raw) - len(raw.lstrip(" "))
        key, sep, value = stripped.partition(":")
        if not sep:
            raise FrontmatterError(f'invalid YAML line "{raw}"')
        key = key.strip()
        value = value.strip()

        if indent == 0:
            current_map = ""
            if not value:
                result[key] = {}
                current_map = key
            else:
                result[key] = parse_scalar(value)
            continue

        if not current_map:
            raise FrontmatterError(f'nested value without parent: "{raw}"')
        child = result.get(current_map)
        if not isinstance(child, dict):
            raise FrontmatterError(f'parent "{current_map}" is not a map')
        child[key] = parse_scalar(value)
    return result


def parse_scalar(value: str) -> Any:
    """Interpret an inline list, boolean, number or (possibly quoted) string."""
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        return _parse_inline_string_list(value)
    if value == "true":
        return True
    if value == "false":
        return False
    number = _scan_float(value)
    if number is not None:
        return number
    return _unquote(value)


def _scan_float(value: str) -> float | None:
    match = _FLOAT_PREFIX.match(value)
    if match is None:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def _parse_inline_string_list(value: str) -> list[str]:
    inner = value.removeprefix("[").removesuffix("]").strip()
    if not inner:
        return []
    return [_unquote(part.strip()) for part in inner.split(",")]


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value


def int_value(value: Any) -> int | None:
    """Return ``value`` as an int (truncating floats), or None if it is not a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return None


def float_value(value: Any) -> float | None:
    """Return ``value`` as a float, or None if it is not a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None