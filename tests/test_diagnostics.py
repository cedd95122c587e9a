import io
import json

import pytest

from roadmapctl.diagnostics import (
    DIAGNOSTIC_CONFIG_MISSING,
    DIAGNOSTIC_LINT_TASK_SECTION_MISSING,
    DIAGNOSTIC_ROOTLINE_MISSING,
    DIAGNOSTIC_SINGLE_FILE_FALLBACK,
    EXIT_ENVIRONMENT,
    EXIT_INTERNAL,
    EXIT_USAGE,
    SUMMARY_STATUS_ERROR,
    SUMMARY_STATUS_WARNING,
    Diagnostic,
    Severity,
    exit_code,
    new_report,
    render_json,
    render_text,
)


def test_render_json_writes_only_parseable_report():
    report = new_report(
        "roadmapctl/check",
        "/repo",
        "/repo/docs/roadmap",
        [
            Diagnostic(
                id=DIAGNOSTIC_SINGLE_FILE_FALLBACK,
                severity=Severity.ERROR,
                message="single file fallback",
                path="docs/roadmap/plan-tasks.md",
                details={"expected": "TXXX files"},
            )
        ],
    )
    out = io.StringIO()
    render_json(out, report)
    decoded = json.loads(out.getvalue())
    assert decoded["version"] == 1
    assert decoded["kind"] == "roadmapctl/check"
    assert decoded["summary"] == {"status": "error", "errors": 1, "warnings": 0, "infos": 0}
    assert len(decoded["diagnostics"]) == 1
    assert decoded["diagnostics"][0]["id"] == DIAGNOSTIC_SINGLE_FILE_FALLBACK
    assert decoded["diagnostics"][0]["details"] == {"expected": "TXXX files"}
    assert "not implemented" not in out.getvalue()
    assert out.getvalue().endswith("\n")


def test_render_json_omits_empty_path_and_details():
    report = new_report(
        "roadmapctl/check", "/repo", "", [Diagnostic(id="RMC_X", severity=Severity.INFO, message="m")]
    )
    out = io.StringIO()
    render_json(out, report)
    diagnostic = json.loads(out.getvalue())["diagnostics"][0]
    assert diagnostic == {"id": "RMC_X", "severity": "info", "message": "m"}


def test_render_text_includes_summary_and_diagnostics():
    report = new_report(
        "roadmapctl/doctor",
        "/repo",
        "",
        [
            Diagnostic(id=DIAGNOSTIC_ROOTLINE_MISSING, severity=Severity.ERROR, message="rootline not found"),
            Diagnostic(
                id="RMC_CONFIG_DEFAULT_USED",
                severity=Severity.WARNING,
                message="using default",
                path=".claude/roadmap.local.md",
            ),
            Diagnostic(id="RMC_ENV_PATH", severity=Severity.INFO, message="PATH checked"),
        ],
    )
    out = io.StringIO()
    render_text(out, report)
    text = out.getvalue()
    for want in [
        "roadmapctl/doctor",
        "status: error",
        "errors: 1",
        "warnings: 1",
        "infos: 1",
        "[error] RMC_ENV_ROOTLINE_MISSING",
        "[warning] RMC_CONFIG_DEFAULT_USED",
        ".claude/roadmap.local.md",
    ]:
        assert want in text


def test_render_text_handles_pathless_and_pathed_diagnostics():
    report = new_report(
        "roadmapctl/check",
        "/repo",
        "/repo/docs/roadmap",
        [
            Diagnostic(id="RMC_INFO", severity=Severity.INFO, message="info message"),
            Diagnostic(
                id="RMC_WARN",
                severity=Severity.WARNING,
                message="warn message",
                path="docs/roadmap/T001-task.md",
            ),
        ],
    )
    out = io.StringIO()
    render_text(out, report)
    text = out.getvalue()
    for want in [
        "roadmapctl/check",
        "status: warning",
        "[info] RMC_INFO: info message",
        "[warning] RMC_WARN docs/roadmap/T001-task.md: warn message",
    ]:
        assert want in text


_LINT_WARNING = [
    Diagnostic(id=DIAGNOSTIC_LINT_TASK_SECTION_MISSING, severity=Severity.WARNING, message="missing section")
]


@pytest.mark.parametrize(
    ("diagnostics", "strict", "expected"),
    [
        ([], False, 0),
        (_LINT_WARNING, False, 0),
        (_LINT_WARNING, True, 1),
        ([Diagnostic(id=DIAGNOSTIC_SINGLE_FILE_FALLBACK, severity=Severity.ERROR, message="bad")], False, 1),
        (
            [Diagnostic(id=DIAGNOSTIC_CONFIG_MISSING, severity=Severity.ERROR, message="missing", exit_code=EXIT_USAGE)],
            False,
            2,
        ),
        (
            [
                Diagnostic(
                    id=DIAGNOSTIC_ROOTLINE_MISSING,
                    severity=Severity.ERROR,
                    message="missing",
                    exit_code=EXIT_ENVIRONMENT,
                )
            ],
            False,
            3,
        ),
        (
            [
                Diagnostic(
                    id="RMC_INTERNAL_UNSUPPORTED_REPORT_VERSION",
                    severity=Severity.ERROR,
                    message="unsupported",
                    exit_code=EXIT_INTERNAL,
                )
            ],
            False,
            4,
        ),
    ],
    ids=["clean", "warning-non-strict", "warning-strict", "validation", "usage", "environment", "internal"],
)
def test_exit_code_contract(diagnostics, strict, expected):
    report = new_report("roadmapctl/check", "/repo", "/repo/docs/roadmap", diagnostics)
    assert exit_code(report, strict) == expected


def test_lint_warning_summary():
    report = new_report("roadmapctl/lint", "/repo", "/repo/docs/roadmap", _LINT_WARNING)
    assert report.summary.status == SUMMARY_STATUS_WARNING
    assert report.summary.warnings == 1
    assert report.summary.errors == 0


def test_new_report_copies_diagnostics():
    original = [Diagnostic(id="RMC_A", severity=Severity.ERROR, message="a", path="x.md")]
    report = new_report("k", "/repo", "/repo", original)
    report.diagnostics[0].message = "changed"
    assert original[0].message == "a"
    assert report.summary.status == SUMMARY_STATUS_ERROR
    assert report.to_dict()["diagnostics"][0]["path"] == "x.md"