"""Lint task files for required sections and non-empty key lists."""

from __future__ import annotations

import os
import re
from collections.abc import Iterator
from pathlib import Path

from roadmapctl.diagnostics import (
    DIAGNOSTIC_LINT_ACCEPTANCE_CRITERIA_MISSING,
    DIAGNOSTIC_LINT_SOURCE_OF_TRUTH_EMPTY,
    DIAGNOSTIC_LINT_TASK_SECTION_MISSING,
    Diagnostic,
    Severity,
)
from roadmapctl.markdown_doc import MarkdownDocument, parse_markdown
from roadmapctl.task_table import is_task_filename, rel_path, sort_diagnostics

__all__ = ["REQUIRED_TASK_SECTIONS", "check_task_sections"]

REQUIRED_TASK_SECTIONS = (
    "Preserva",
    "Contexto",
    "Alcance",
    "Estado inicial esperado",
    "Criterios de Aceptación",
    "Fuente de verdad",
)

_LIST_ITEM = re.compile(r"^\s*(?:[-*+]\s+|[0-9]+[.)]\s+)", re.ASCII)


def _task_files(directory: str) -> Iterator[str]:
    """Yield task file paths below a directory in lexical order; OS errors propagate."""
    with os.scandir(directory) as iterator:
        entries = sorted(iterator, key=lambda entry: entry.name)
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from _task_files(entry.path)
        elif is_task_filename(entry.name):
            yield entry.path


def check_task_sections(roadmap_root) -> list[Diagnostic]:
    """Check every TXXX task file below the roadmap root."""
    root = os.path.normpath(os.fspath(roadmap_root))
    found: list[Diagnostic] = []
    for path in _task_files(root):
        found.extend(_check_task(root, path))
    sort_diagnostics(found)
    return found


def _check_task(root: str, path: str) -> list[Diagnostic]:
    source = Path(path).read_bytes().decode("utf-8", errors="replace")
    doc = parse_markdown(source)
    found = [
        _diagnostic(
            DIAGNOSTIC_LINT_TASK_SECTION_MISSING,
            root,
            path,
            "task is missing a required section heading",
            section,
        )
        for section in REQUIRED_TASK_SECTIONS
        if not doc.has_heading(section)
    ]
    criteria = _markdown_section(source, doc, "Criterios de Aceptación")
    if criteria is not None and not _has_list_item(criteria):
        found.append(
            _diagnostic(
                DIAGNOSTIC_LINT_ACCEPTANCE_CRITERIA_MISSING,
                root,
                path,
                "task has no observable acceptance criteria entries",
            )
        )
    truth = _markdown_section(source, doc, "Fuente de verdad")
    if truth is not None and not _has_list_item(truth):
        found.append(
            _diagnostic(
                DIAGNOSTIC_LINT_SOURCE_OF_TRUTH_EMPTY,
                root,
                path,
                "task source-of-truth section has no entries",
            )
        )
    return found


def _markdown_section(source: str, doc: MarkdownDocument, heading_text: str) -> str | None:
    """Return the body under the first heading with this text, or None if absent."""
    lines = source.split("\n")
    for index, heading in enumerate(doc.headings):
        if heading.text != heading_text:
            continue
        start = heading.start_line
        end = next(
            (
                following.start_line - 1
                for following in doc.headings[index + 1 :]
                if following.level <= heading.level
            ),
            len(lines),
        )
        if start < 0 or start >= len(lines) or end < start:
            return ""
        return "\n".join(lines[start:end])
    return None


def _has_list_item(section: str) -> bool:
    return any(_LIST_ITEM.match(line) for line in section.split("\n"))


def _diagnostic(
    diagnostic_id: str, root: str, path: str, message: str, section: str = ""
) -> Diagnostic:
    details = {"target": section, "section": section} if section else {}
    return Diagnostic(
        id=diagnostic_id,
        severity=Severity.WARNING,
        message=message,
        path=rel_path(root, path),
        details=details,
    )