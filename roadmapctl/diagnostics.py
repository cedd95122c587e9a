"""Diagnostic reports: building, summarising, rendering and exit codes."""

from __future__ import annotations

import dataclasses
import json
import os
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Iterable, TextIO

EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_USAGE = 2
EXIT_ENVIRONMENT = 3
EXIT_INTERNAL = 4

SUMMARY_STATUS_OK = "ok"
SUMMARY_STATUS_WARNING = "warning"
SUMMARY_STATUS_ERROR = "error"

DIAGNOSTIC_SINGLE_FILE_FALLBACK = "RMC_STRUCTURE_SINGLE_FILE_FALLBACK"
DIAGNOSTIC_ROOTLINE_MISSING = "RMC_ENV_ROOTLINE_MISSING"
DIAGNOSTIC_INVALID_BLOCKED_BY = "RMC_GRAPH_INVALID_BLOCKED_BY"
DIAGNOSTIC_CONFIG_MISSING = "RMC_CONFIG_MISSING"

DIAGNOSTIC_LINT_TASK_TABLE_MISSING = "RMC_LINT_TASK_TABLE_MISSING"
DIAGNOSTIC_LINT_TASK_TABLE_MISSING_ROW = "RMC_LINT_TASK_TABLE_MISSING_ROW"
DIAGNOSTIC_LINT_TASK_TABLE_STALE_ROW = "RMC_LINT_TASK_TABLE_STALE_ROW"
DIAGNOSTIC_LINT_TASK_TABLE_INVALID_LINK = "RMC_LINT_TASK_TABLE_INVALID_LINK"
DIAGNOSTIC_LINT_TASK_SECTION_MISSING = "RMC_LINT_TASK_SECTION_MISSING"
DIAGNOSTIC_LINT_ACCEPTANCE_CRITERIA_MISSING = "RMC_LINT_ACCEPTANCE_CRITERIA_MISSING"
DIAGNOSTIC_LINT_SOURCE_OF_TRUTH_EMPTY = "RMC_LINT_SOURCE_OF_TRUTH_EMPTY"
DIAGNOSTIC_LINT_FILENAME_CASE_COLLISION = "RMC_LINT_FILENAME_CASE_COLLISION"
DIAGNOSTIC_LINT_FILENAME_RESERVED = "RMC_LINT_FILENAME_RESERVED"
DIAGNOSTIC_LINT_SCHEMA_FIELD_MISSING = "RMC_LINT_SCHEMA_FIELD_MISSING"
DIAGNOSTIC_LINT_SCHEMA_LINK_MISSING = "RMC_LINT_SCHEMA_LINK_MISSING"
DIAGNOSTIC_LINT_SCHEMA_OUTCOME_ESTADO_REQUIRED = "RMC_LINT_SCHEMA_OUTCOME_ESTADO_REQUIRED"
DIAGNOSTIC_LINT_SCHEMA_OUTCOME_ESTADO_NON_EMPTY = "RMC_LINT_SCHEMA_OUTCOME_ESTADO_NON_EMPTY"

DIAGNOSTIC_TRANSITION_TASK_NOT_FOUND = "RMC_TRANSITION_TASK_NOT_FOUND"
DIAGNOSTIC_TRANSITION_STATUS_UNKNOWN = "RMC_TRANSITION_STATUS_UNKNOWN"
DIAGNOSTIC_TRANSITION_DEPENDENCY_BLOCKED = "RMC_TRANSITION_DEPENDENCY_BLOCKED"
DIAGNOSTIC_TRANSITION_ROLE_MISSING = "RMC_TRANSITION_ROLE_MISSING"
DIAGNOSTIC_TRANSITION_NOT_ACTIVE = "RMC_TRANSITION_NOT_ACTIVE"
DIAGNOSTIC_TRANSITION_ALREADY_DONE = "RMC_TRANSITION_ALREADY_DONE"
DIAGNOSTIC_TRANSITION_APPLY_FAILED = "RMC_TRANSITION_APPLY_FAILED"

DIAGNOSTIC_BOOTSTRAP_REPAIR_UNSUPPORTED_STEM = "RMC_BOOTSTRAP_REPAIR_UNSUPPORTED_STEM"

DIAGNOSTIC_MATERIALIZE_INPUT_VERSION_UNSUPPORTED = "RMC_MATERIALIZE_INPUT_VERSION_UNSUPPORTED"
DIAGNOSTIC_MATERIALIZE_INPUT_KIND_INVALID = "RMC_MATERIALIZE_INPUT_KIND_INVALID"
DIAGNOSTIC_MATERIALIZE_INPUT_EMPTY = "RMC_MATERIALIZE_INPUT_EMPTY"
DIAGNOSTIC_MATERIALIZE_INPUT_FIELD_MISSING = "RMC_MATERIALIZE_INPUT_FIELD_MISSING"
DIAGNOSTIC_MATERIALIZE_INPUT_SLUG_INVALID = "RMC_MATERIALIZE_INPUT_SLUG_INVALID"
DIAGNOSTIC_MATERIALIZE_INPUT_DEPENDENCY_INVALID = "RMC_MATERIALIZE_INPUT_DEPENDENCY_INVALID"
DIAGNOSTIC_MATERIALIZE_INPUT_DEPENDENCY_UNRESOLVED = "RMC_MATERIALIZE_INPUT_DEPENDENCY_UNRESOLVED"
DIAGNOSTIC_MATERIALIZE_PLAN_CONFLICT = "RMC_MATERIALIZE_PLAN_CONFLICT"


class Severity(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Diagnostic:
    id: str
    severity: Severity
    message: str
    path: str = ""
    details: dict[str, Any] | None = None
    exit_code: int = 0


@dataclass
class Summary:
    status: str = SUMMARY_STATUS_OK
    errors: int = 0
    warnings: int = 0
    infos: int = 0


@dataclass
class Report:
    kind: str
    summary: Summary
    root: str
    roadmap_root: str
    diagnostics: list[Diagnostic] = field(default_factory=list)
    version: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Return the report in its JSON shape."""
        return {
            "version": self.version,
            "kind": self.kind,
            "summary": dataclasses.asdict(self.summary),
            "root": self.root,
            "roadmap_root": self.roadmap_root,
            "diagnostics": [_diagnostic_dict(d) for d in self.diagnostics],
        }


def _diagnostic_dict(diagnostic: Diagnostic) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": diagnostic.id,
        "severity": str(diagnostic.severity),
        "message": diagnostic.message,
    }
    if diagnostic.path:
        out["path"] = diagnostic.path
    if diagnostic.details:
        out["details"] = dict(sorted(diagnostic.details.items()))
    return out


def _to_slash(path: str) -> str:
    return path if os.sep == "/" else path.replace(os.sep, "/")


def new_report(
    kind: str, root: str, roadmap_root: str, diagnostics: Iterable[Diagnostic] | None
) -> Report:
    """Build a report from copies of ``diagnostics`` with slash-separated paths."""
    copied = [dataclasses.replace(d, path=_to_slash(d.path)) for d in diagnostics or ()]
    return Report(
        kind=kind,
        summary=_summarize(copied),
        root=_to_slash(root),
        roadmap_root=_to_slash(roadmap_root),
        diagnostics=copied,
    )


def render_json(stream: TextIO, report: Report) -> None:
    """Write the report as one line of JSON."""
    stream.write(json.dumps(report.to_dict(), ensure_ascii=False, separators=(",", ":")))
    stream.write("\n")


def render_text(stream: TextIO, report: Report) -> None:
    """Write a human-readable summary followed by one line per diagnostic."""
    summary = report.summary
    stream.write(
        f"{report.kind}\nstatus: {summary.status}\nerrors: {summary.errors}\n"
        f"warnings: {summary.warnings}\ninfos: {summary.infos}\n"
    )
    for diagnostic in report.diagnostics:
        severity = str(diagnostic.severity)
        if diagnostic.path:
            stream.write(f"[{severity}] {diagnostic.id} {diagnostic.path}: {diagnostic.message}\n")
        else:
            stream.write(f"[{severity}] {diagnostic.id}: {diagnostic.message}\n")


def exit_code(report: Report, strict: bool = False) -> int:
    """Derive the process exit code from a report's diagnostics."""
    code = EXIT_OK
    for diagnostic in report.diagnostics:
        if diagnostic.severity == Severity.WARNING and strict and code < EXIT_VALIDATION:
            code = EXIT_VALIDATION
        if diagnostic.severity != Severity.ERROR:
            continue
        code = max(code, diagnostic.exit_code or EXIT_VALIDATION)
    return code


def _summarize(diagnostics: list[Diagnostic]) -> Summary:
    summary = Summary()
    for diagnostic in diagnostics:
        match diagnostic.severity:
            case Severity.ERROR:
                summary.errors += 1
            case Severity.WARNING:
                summary.warnings += 1
            case Severity.INFO:
                summary.infos += 1
    if summary.errors:
        summary.status = SUMMARY_STATUS_ERROR
    elif summary.warnings:
        summary.status = SUMMARY_STATUS_WARNING
    return summary