# roadmapctl

A library for working with markdown roadmap trees. A roadmap tree has outcome
directories whose names start with `O`. Each outcome directory holds a
`README.md` and task files named like `T001-name.md`.

## Modules

- `roadmapctl.config`
  - `load(repo)` reads `docs/roadmap/.roadmapctl.toml`.
  - When that file is absent but a legacy `.claude/roadmap.local.md`
    frontmatter file exists, `load` writes its settings to TOML under the
    configured `roadmap-root` and deletes the legacy file.
  - When `load` finds a TOML file and a legacy file together, it uses the TOML
    file and deletes the legacy one.
  - When only the `docs/roadmap` directory exists, `load` uses the defaults.
  - `load` returns a `Config` dataclass, which holds `status_values`
    (`StatusValues`), `fields` (`FieldsConfig`) and the execution settings.
  - `legacy_migration_plan(repo)` returns a `MigrationPlan` holding the TOML
    text the migration would write. It writes nothing.
  - `render_toml_config(cfg)`, `default_config(repo)` and
    `config_differs(left, right)` are also available.
  - Problems raise `ConfigError`, which has `code`, `message`, `path` and
    `exit_code` (2).
- `roadmapctl.frontmatter`
  - `parse_frontmatter(data)` reads the small YAML subset that legacy config
    files use: scalars, inline lists and one level of nested maps.
  - On malformed input it raises `FrontmatterError`.
- `roadmapctl.paths`
  - `resolve_inside(root, candidate)` returns `(absolute_path,
    relative_slash_path)`.
  - It raises `PathEscapeError` for parent escapes, leading-slash paths and
    symlinks that lead outside the root.
  - It raises `AbsolutePathError` for drive-letter and `//` paths.
  - It raises `ValueError` for an empty candidate.
- `roadmapctl.diagnostics`
  - Provides the `Severity`, `Diagnostic`, `Summary` and `Report` types.
  - `new_report(kind, root, roadmap_root, diagnostics)` builds a report with
    its summary computed.
  - `render_json(stream, report)` writes the report as one line of JSON.
  - `render_text(stream, report)` writes a readable listing.
  - `exit_code(report, strict)` derives the exit code.
- `roadmapctl.markdown_doc`
  - `parse_markdown(source)` returns a `MarkdownDocument`.
  - The document holds the top-level headings and tables. Table cells keep
    their text and links.
  - Its methods are `has_heading` and `table_by_section`.
- Lint checks. Each returns a sorted list of `Diagnostic`:
  - `roadmapctl.task_table.check_outcome_task_tables(roadmap_root)` compares
    each outcome's `## Tasks` table with the task files next to it. It reports
    missing rows, stale rows and invalid links as warnings. An outcome with no
    `## Tasks` table is not reported.
  - `roadmapctl.task_sections.check_task_sections(roadmap_root)` reports task
    files that lack a required section as warnings. The required sections are
    Preserva, Contexto, Alcance, Estado inicial esperado, Criterios de
    Aceptación and Fuente de verdad. It also warns when the acceptance-criteria
    section or the source-of-truth section has no list items.
  - `roadmapctl.schema_portability.check_filename_portability(roadmap_root)`
    reports names that collide on case-insensitive filesystems. It also
    reports names reserved on Windows, such as `CON` and `LPT1`.
  - `check_schema_compatibility(cfg, describe)` and
    `check_outcome_schema_compatibility(describe)` inspect an effective schema
    description given as a dict.
- `roadmapctl.unified_diff`
  - `new_file(path, content)` renders a diff-style preview of a file being
    created.
  - `update_file(path, previous, content)` renders a diff-style preview of a
    file being rewritten.

## Installation

```
pip install .
```

## Example

```python
import sys

from roadmapctl.config import load
from roadmapctl.diagnostics import exit_code, new_report, render_text
from roadmapctl.task_sections import check_task_sections
from roadmapctl.task_table import check_outcome_task_tables

cfg = load(".")
found = check_outcome_task_tables(cfg.roadmap_root)
found += check_task_sections(cfg.roadmap_root)
report = new_report("roadmapctl/lint", cfg.repo_root, cfg.roadmap_root, found)
render_text(sys.stdout, report)
sys.exit(exit_code(report, strict=True))
```

## Exit codes

`exit_code` returns one of these:

| Code | Meaning |
| --- | --- |
| 0 | Clean |
| 1 | Validation errors, or warnings when `strict` is true |
| 2 | Usage errors |
| 3 | Environment errors |
| 4 | Internal errors |

An error diagnostic with a nonzero `exit_code` contributes that code. The
highest code wins.

## What it does not do

The package is a library only and has no command-line program. It does not
change task states and does not create roadmap files. Apart from the TOML file
that the config migration writes, it leaves the roadmap tree as it is. The
schema checks take a schema description that you supply; the package does not
produce one itself.

## Running the tests

```
pip install .[test]
pytest
```