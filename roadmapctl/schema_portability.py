"""Lint filename portability and compatibility of the effective schema."""

from __future__ import annotations

import os
import stat
from typing import Any

from roadmapctl.config import Config
from roadmapctl.diagnostics import (
    DIAGNOSTIC_LINT_FILENAME_CASE_COLLISION,
    DIAGNOSTIC_LINT_FILENAME_RESERVED,
    DIAGNOSTIC_LINT_SCHEMA_FIELD_MISSING,
    DIAGNOSTIC_LINT_SCHEMA_LINK_MISSING,
    DIAGNOSTIC_LINT_SCHEMA_OUTCOME_ESTADO_NON_EMPTY,
    DIAGNOSTIC_LINT_SCHEMA_OUTCOME_ESTADO_REQUIRED,
    Diagnostic,
    Severity,
)
from roadmapctl.task_table import rel_path, sort_diagnostics

__all__ = [
    "check_filename_portability",
    "check_schema_compatibility",
    "check_outcome_schema_compatibility",
    "reserved_windows_name",
    "array_value",
]

_WINDOWS_RESERVED_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{n}" for n in range(1, 10)]
    + [f"LPT{n}" for n in range(1, 10)]
)

_REQUIRED_SCHEMA_FIELDS = ("estado", "tipo")
_SCOPING_KEYS = ("match", "where", "when", "required_match")


def check_filename_portability(roadmap_root) -> list[Diagnostic]:
    """Report case collisions and Windows-reserved names below the roadmap root."""
    root = os.path.normpath(os.fspath(roadmap_root))
    found: list[Diagnostic] = []
    info = os.lstat(root)
    if stat.S_ISDIR(info.st_mode):
        _visit_dir(root, root, found)
    else:
        _check_file(root, root, os.path.basename(root), found)
    sort_diagnostics(found)
    return found


def _visit_dir(root: str, directory: str, found: list[Diagnostic]) -> None:
    with os.scandir(directory) as iterator:
        entries = sorted(iterator, key=lambda entry: entry.name)

    seen: dict[str, str] = {}
    for entry in entries:
        key = entry.name.lower()
        if key in seen:
            found.append(
                _name_diagnostic(
                    DIAGNOSTIC_LINT_FILENAME_CASE_COLLISION,
                    root,
                    os.path.join(directory, entry.name),
                    "roadmap entries collide on case-insensitive filesystems",
                    seen[key],
                )
            )
            continue
        seen[key] = entry.name

    if directory != root:
        reserved = reserved_windows_name(os.path.basename(directory))
        if reserved:
            found.append(
                _name_diagnostic(
                    DIAGNOSTIC_LINT_FILENAME_RESERVED,
                    root,
                    directory,
                    "roadmap directory name is reserved on Windows",
                    reserved,
                )
            )

    for entry in entries:
        path = os.path.join(directory, entry.name)
        if entry.is_dir(follow_symlinks=False):
            _visit_dir(root, path, found)
        else:
            _check_file(root, path, entry.name, found)


def _check_file(root: str, path: str, name: str, found: list[Diagnostic]) -> None:
    reserved = reserved_windows_name(name)
    if reserved:
        found.append(
            _name_diagnostic(
                DIAGNOSTIC_LINT_FILENAME_RESERVED,
                root,
                path,
                "roadmap filename is reserved on Windows",
                reserved,
            )
        )


def check_schema_compatibility(cfg: Config, describe: dict[str, Any]) -> list[Diagnostic]:
    """Require the core schema fields and the configured dependency link rule."""
    found: list[Diagnostic] = []
    schema = _map_value(describe.get("schema"))
    for name in _REQUIRED_SCHEMA_FIELDS:
        if name not in schema:
            found.append(
                _schema_diagnostic(
                    DIAGNOSTIC_LINT_SCHEMA_FIELD_MISSING,
                    "effective schema is missing a required field",
                    name,
                )
            )
    rules = _map_value(_map_value(describe.get("links")).get("rules"))
    link = cfg.fields.dependency_link
    if link not in rules:
        found.append(
            _schema_diagnostic(
                DIAGNOSTIC_LINT_SCHEMA_LINK_MISSING,
                f"effective schema is missing required {link} link rule",
                link,
            )
        )
    sort_diagnostics(found)
    return found


def check_outcome_schema_compatibility(describe: dict[str, Any]) -> list[Diagnostic]:
    """Report schema settings that would force outcome READMEs to carry estado."""
    found: list[Diagnostic] = []
    estado = _map_value(describe.get("schema")).get("estado")
    if isinstance(estado, dict):
        found.extend(_check_estado_schema(estado))
    found.extend(_check_estado_validate(describe))
    sort_diagnostics(found)
    return found


def _check_estado_schema(estado: dict[str, Any]) -> list[Diagnostic]:
    required = estado.get("required") is True
    required_match = estado.get("required_match")
    has_required_match = isinstance(required_match, dict)
    if required and not has_required_match:
        return [
            _schema_diagnostic(
                DIAGNOSTIC_LINT_SCHEMA_OUTCOME_ESTADO_REQUIRED,
                "effective schema requires estado globally; "
                "outcome README files must be able to omit estado",
                "estado.required",
            )
        ]
    if has_required_match and _patterns_include_outcome(required_match.get("patterns")):
        return [
            _schema_diagnostic(
                DIAGNOSTIC_LINT_SCHEMA_OUTCOME_ESTADO_REQUIRED,
                "effective schema requires estado for outcomes; "
                "outcome README files must be able to omit estado",
                "estado.required_match",
            )
        ]
    return []


def _check_estado_validate(describe: dict[str, Any]) -> list[Diagnostic]:
    found: list[Diagnostic] = []
    for rule in array_value(describe.get("validate")) or []:
        if not isinstance(rule, dict):
            continue
        if _string_value(rule.get("field")) != "estado":
            continue
        if _string_value(rule.get("rule")) != "non_empty":
            continue
        if any(key in rule for key in _SCOPING_KEYS):
            continue
        found.append(
            _schema_diagnostic(
                DIAGNOSTIC_LINT_SCHEMA_OUTCOME_ESTADO_NON_EMPTY,
                "effective schema has global estado non_empty validation; "
                "outcome README files must be able to omit estado",
                "validate.estado.non_empty",
            )
        )
    return found


def _patterns_include_outcome(value: Any) -> bool:
    return any(_string_value(pattern) == "O*" for pattern in array_value(value) or [])


def array_value(value: Any) -> list[Any] | None:
    """Return ``value`` as a list when it is a sequence, otherwise None."""
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


def _map_value(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _string_value(value: Any) -> str:
    return value if isinstance(value, str) else ""


def reserved_windows_name(name: str) -> str:
    """Return the upper-case reserved device name ``name`` maps to, or ``""``."""
    dot = name.rfind(".")
    base = name[:dot] if dot >= 0 else name
    upper = base.rstrip(" .").upper()
    return upper if upper in _WINDOWS_RESERVED_NAMES else ""


def _name_diagnostic(
    diagnostic_id: str, root: str, path: str, message: str, target: str
) -> Diagnostic:
    return Diagnostic(
        id=diagnostic_id,
        severity=Severity.ERROR,
        message=message,
        path=rel_path(root, path),
        details={"target": target},
    )


def _schema_diagnostic(diagnostic_id: str, message: str, target: str) -> Diagnostic:
    return Diagnostic(
        id=diagnostic_id,
        severity=Severity.ERROR,
        message=message,
        path=".stem",
        details={"target": target, "schema_key": target},
    )