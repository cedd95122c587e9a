"""Lint the ``## Tasks`` table of each outcome README against its task files."""

from __future__ import annotations

import os
import re
from pathlib import Path

from roadmapctl.diagnostics import (
    DIAGNOSTIC_LINT_TASK_TABLE_INVALID_LINK,
    DIAGNOSTIC_LINT_TASK_TABLE_MISSING_ROW,
    DIAGNOSTIC_LINT_TASK_TABLE_STALE_ROW,
    Diagnostic,
    Severity,
)
from roadmapctl.markdown_doc import parse_markdown

__all__ = [
    "TASK_FILENAME_PATTERN",
    "check_outcome_task_tables",
    "sort_diagnostics",
    "rel_path",
]

TASK_FILENAME_PATTERN = re.compile(r"T[0-9][0-9][0-9]-.+\.md")


def is_task_filename(name: str) -> bool:
    """Report whether ``name`` looks like a TXXX task markdown file."""
    return TASK_FILENAME_PATTERN.fullmatch(name) is not None


def _to_slash(path: str) -> str:
    return path if os.sep == "/" else path.replace(os.sep, "/")


def check_outcome_task_tables(roadmap_root) -> list[Diagnostic]:
    """Check every ``O*`` outcome directory's task table against its task files."""
    root = os.path.normpath(os.fspath(roadmap_root))
    found: list[Diagnostic] = []
    with os.scandir(root) as entries:
        outcomes = sorted(
            entry.name
            for entry in entries
            if entry.is_dir(follow_symlinks=False) and entry.name.startswith("O")
        )
    for name in outcomes:
        found.extend(_check_outcome_task_table(root, os.path.join(root, name)))
    return found


def _check_outcome_task_table(root: str, outcome_path: str) -> list[Diagnostic]:
    readme_path = os.path.join(outcome_path, "README.md")
    tasks = _outcome_task_files(outcome_path)
    if not tasks:
        return []
    doc = parse_markdown(Path(readme_path).read_bytes())
    table = doc.table_by_section("Tasks")
    if table is None:
        # The table is a computed view; leaving it out is allowed.
        return []

    linked: set[str] = set()
    found: list[Diagnostic] = []
    for row in table.rows:
        if not row.cells or not row.cells[0].links:
            found.append(
                _diagnostic(
                    DIAGNOSTIC_LINT_TASK_TABLE_INVALID_LINK,
                    root,
                    readme_path,
                    "task table row must link to a child task file",
                )
            )
            continue
        for link in row.cells[0].links:
            target = _normalize_target(link.destination)
            if not _valid_child_task_link(target):
                found.append(
                    _diagnostic(
                        DIAGNOSTIC_LINT_TASK_TABLE_INVALID_LINK,
                        root,
                        readme_path,
                        "task table link must target a child TXXX markdown task",
                        link.destination,
                    )
                )
                continue
            linked.add(target)
            if target not in tasks:
                found.append(
                    _diagnostic(
                        DIAGNOSTIC_LINT_TASK_TABLE_STALE_ROW,
                        root,
                        readme_path,
                        "task table row links to a missing child task",
                        target,
                    )
                )
    found.extend(
        _diagnostic(
            DIAGNOSTIC_LINT_TASK_TABLE_MISSING_ROW,
            root,
            readme_path,
            "child task is missing from ## Tasks table",
            task,
        )
        for task in sorted(tasks - linked)
    )
    sort_diagnostics(found)
    return found


def _outcome_task_files(outcome_path: str) -> set[str]:
    with os.scandir(outcome_path) as entries:
        return {
            entry.name
            for entry in entries
            if not entry.is_dir(follow_symlinks=False) and is_task_filename(entry.name)
        }


def _normalize_target(target: str) -> str:
    target = target.split("#")[0].split("?")[0]
    return _to_slash(target.removeprefix("./"))


def _valid_child_task_link(target: str) -> bool:
    return "/" not in target and is_task_filename(target)


def _diagnostic(
    diagnostic_id: str, root: str, readme_path: str, message: str, target: str = ""
) -> Diagnostic:
    details = {"target": target} if target else {}
    return Diagnostic(
        id=diagnostic_id,
        severity=Severity.WARNING,
        message=message,
        path=rel_path(root, readme_path),
        details=details,
    )


def _detail_target(diagnostic: Diagnostic) -> str:
    if not diagnostic.details:
        return ""
    value = diagnostic.details.get("target")
    return value if isinstance(value, str) else ""


def sort_diagnostics(found: list[Diagnostic]) -> None:
    """Sort diagnostics in place by path, then id, then detail target."""
    found.sort(key=lambda d: (d.path, d.id, _detail_target(d)))


def rel_path(root, path) -> str:
    """Return ``path`` relative to ``root`` with forward slashes."""
    try:
        rel = os.path.relpath(os.fspath(path), os.fspath(root))
    except ValueError:
        return _to_slash(os.path.normpath(os.fspath(path)))
    return _to_slash(rel)