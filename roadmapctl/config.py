"""Loading, validation and migration of the roadmap configuration."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, fields as dataclass_fields
from pathlib import Path
from typing import Any

from roadmapctl.frontmatter import float_value, int_value, parse_frontmatter
from roadmapctl.paths import resolve_inside

__all__ = [
    "ERR_CONFIG_MISSING",
    "ERR_CONFIG_PARSE",
    "ERR_ROADMAP_ROOT_MISSING",
    "ERR_ROADMAP_ROOT_ESCAPE",
    "DEFAULT_DEPENDENCY_LINK",
    "WARN_CONFIG_CONFLICT",
    "ConfigError",
    "ConfigWarning",
    "StatusValues",
    "FieldsConfig",
    "Config",
    "MigrationPlan",
    "default_config",
    "load",
    "legacy_migration_plan",
    "render_toml_config",
    "config_differs",
]

ERR_CONFIG_MISSING = "RMC_CONFIG_MISSING"
ERR_CONFIG_PARSE = "RMC_CONFIG_PARSE"
ERR_ROADMAP_ROOT_MISSING = "RMC_CONFIG_ROADMAP_ROOT_MISSING"
ERR_ROADMAP_ROOT_ESCAPE = "RMC_CONFIG_ROADMAP_ROOT_ESCAPE"
WARN_CONFIG_CONFLICT = "RMC_CONFIG_SOURCE_CONFLICT"

DEFAULT_DEPENDENCY_LINK = "blocked_by"

_ROADMAP_ROOT_DIR = "docs/roadmap"
_TOML_NAME = ".roadmapctl.toml"
_AUTONOMY_VALUES = ("manual", "supervised", "until_done")


class ConfigError(Exception):
    """A configuration problem, carrying a stable code and an exit code."""

    def __init__(
        self,
        code: str,
        message: str,
        path: str = "",
        exit_code: int = 2,
        cause: BaseException | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.path = path
        self.exit_code = exit_code
        self.cause = cause
        super().__init__(str(self))
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if not self.path:
            return f"{self.code}: {self.message}"
        return f"{self.code}: {self.path}: {self.message}"


@dataclass
class ConfigWarning:
    code: str
    message: str
    path: str = ""


@dataclass
class StatusValues:
    pending: str = "Pending"
    specified: str = "Specified"
    in_progress: str = "In Progress"
    completed: str = "Completed"
    blocked: str = "Blocked"
    obsolete: str = "Obsolete"


@dataclass
class FieldsConfig:
    lifecycle: str = "estado"
    record_type: str = "tipo"
    task_value: str = "task"
    outcome_value: str = "outcome"
    display_name: str = "titulo"
    dependency_link: str = DEFAULT_DEPENDENCY_LINK


@dataclass
class Config:
    repo_root: str = ""
    config_path: str = ""
    roadmap_root: str = ""
    roadmap_root_rel: str = ""
    warnings: list[ConfigWarning] = field(default_factory=list)

    done_statuses: list[str] = field(default_factory=lambda: ["Completed", "Obsolete"])
    active_statuses: list[str] = field(
        default_factory=lambda: ["Pending", "Specified", "In Progress"]
    )
    status_values: StatusValues = field(default_factory=StatusValues)
    fields: FieldsConfig = field(default_factory=FieldsConfig)
    leaf_filter: str = "isIndex == false"

    outcome_close_verify: list[str] = field(default_factory=list)
    pr_merge_strategy: str = "squash"
    commit_style: str = "conventional"
    auto_push: bool = True
    required_code_coverage: float = 85.0

    loop_max_tasks: int = 0
    parallel: bool = True
    autonomy: str = "until_done"
    compact_after_task_commit: bool = True
    pr_mode: bool = False


@dataclass(frozen=True)
class MigrationPlan:
    source_path: str
    target_path: str
    content: str


def default_config(repo: str) -> Config:
    """Return a configuration holding the documented defaults."""
    return Config(repo_root=repo)


def _to_slash(path: str) -> str:
    return path if os.sep == "/" else path.replace(os.sep, "/")


def _abs_repo(repo) -> str:
    try:
        return os.path.normpath(os.path.abspath(os.fspath(repo)))
    except (OSError, ValueError) as exc:
        raise ConfigError(ERR_CONFIG_PARSE, "resolve repo root", cause=exc) from exc


def _rel_dir(path: str, abs_repo: str) -> str:
    return _to_slash(os.path.relpath(os.path.dirname(path), abs_repo))


def _resolve_root(abs_repo: str, roadmap_root: str, error_path: str) -> tuple[str, str]:
    try:
        return resolve_inside(abs_repo, roadmap_root)
    except (ValueError, OSError) as exc:
        raise ConfigError(
            ERR_ROADMAP_ROOT_ESCAPE,
            "roadmap-root must resolve inside repo",
            path=error_path,
            cause=exc,
        ) from exc


def _remove(path: str, message: str) -> None:
    try:
        os.remove(path)
    except OSError as exc:
        raise ConfigError(ERR_CONFIG_PARSE, message, path=path, cause=exc) from exc


def load(repo) -> Config:
    """Load the roadmap configuration for ``repo``.

    Prefers the TOML file in the roadmap root, migrates a legacy frontmatter
    config to TOML when only that exists, and falls back to defaults when the
    roadmap root exists without any config file.
    """
    abs_repo = _abs_repo(repo)
    cfg = default_config(abs_repo)

    legacy_path = os.path.join(abs_repo, ".claude", "roadmap.local.md")
    roadmap_root = _ROADMAP_ROOT_DIR
    toml_path = os.path.join(abs_repo, *_ROADMAP_ROOT_DIR.split("/"), _TOML_NAME)

    if os.path.isfile(toml_path):
        cfg.config_path = toml_path
        _load_toml_config(cfg, toml_path)
        roadmap_root = _rel_dir(toml_path, abs_repo)
        if os.path.isfile(legacy_path):
            _remove(legacy_path, "remove legacy roadmap config after TOML load")
    elif os.path.isfile(legacy_path):
        legacy_fields = _load_legacy_fields(legacy_path)
        _apply_fields(cfg, legacy_fields)
        _validate_config(cfg, legacy_path)
        roadmap_root = _string_value(legacy_fields.get("roadmap-root"))
        if not roadmap_root.strip():
            raise ConfigError(
                ERR_ROADMAP_ROOT_MISSING, "roadmap-root is required", path=legacy_path
            )
        abs_root, _ = _resolve_root(abs_repo, roadmap_root, legacy_path)
        try:
            os.makedirs(abs_root, exist_ok=True)
        except OSError as exc:
            raise ConfigError(
                ERR_CONFIG_PARSE,
                "create roadmap root for TOML migration",
                path=abs_root,
                cause=exc,
            ) from exc
        migrated_path = os.path.join(abs_root, _TOML_NAME)
        try:
            Path(migrated_path).write_text(render_toml_config(cfg), encoding="utf-8")
        except OSError as exc:
            raise ConfigError(
                ERR_CONFIG_PARSE,
                "write migrated roadmapctl TOML",
                path=migrated_path,
                cause=exc,
            ) from exc
        migrated = default_config(abs_repo)
        migrated.config_path = migrated_path
        _load_toml_config(migrated, migrated_path)
        _remove(legacy_path, "remove legacy roadmap config after TOML migration")
        cfg = migrated
        roadmap_root = _rel_dir(migrated_path, abs_repo)
    elif not _roadmap_root_exists(abs_repo, roadmap_root):
        raise ConfigError(
            ERR_CONFIG_MISSING,
            "roadmap config not found",
            path=legacy_path,
            cause=FileNotFoundError(legacy_path),
        )
    else:
        cfg.config_path = toml_path

    if not roadmap_root.strip():
        raise ConfigError(
            ERR_ROADMAP_ROOT_MISSING, "roadmap-root is required", path=cfg.config_path
        )

    abs_root, rel_root = _resolve_root(abs_repo, roadmap_root, cfg.config_path)
    cfg.roadmap_root = abs_root
    cfg.roadmap_root_rel = rel_root
    return cfg


def legacy_migration_plan(repo) -> MigrationPlan:
    """Describe the TOML file a legacy config would migrate to, without writing it."""
    abs_repo = _abs_repo(repo)
    legacy_path = os.path.join(abs_repo, ".claude", "roadmap.local.md")
    legacy_fields = _load_legacy_fields(legacy_path)
    cfg = default_config(abs_repo)
    _apply_fields(cfg, legacy_fields)
    roadmap_root = _string_value(legacy_fields.get("roadmap-root"))
    abs_root, _ = _resolve_root(abs_repo, roadmap_root, legacy_path)
    return MigrationPlan(
        source_path=legacy_path,
        target_path=os.path.join(abs_root, _TOML_NAME),
        content=render_toml_config(cfg),
    )


class _DecodeError(ValueError):
    pass


def _expect_str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise _DecodeError(f"{key}: expected a string, got {type(value).__name__}")
    return value


def _expect_str_list(key: str, value: Any) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise _DecodeError(f"{key}: expected an array of strings")
    return list(value)


def _expect_bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise _DecodeError(f"{key}: expected a boolean, got {type(value).__name__}")
    return value


def _expect_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _DecodeError(f"{key}: expected an integer, got {type(value).__name__}")
    return value


def _expect_float(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _DecodeError(f"{key}: expected a number, got {type(value).__name__}")
    return float(value)


_TOML_SCALARS = {
    "done_statuses": _expect_str_list,
    "active_statuses": _expect_str_list,
    "outcome_close_verify": _expect_str_list,
    "leaf_filter": _expect_str,
    "pr_merge_strategy": _expect_str,
    "commit_style": _expect_str,
    "autonomy": _expect_str,
    "auto_push": _expect_bool,
    "parallel": _expect_bool,
    "compact_after_task_commit": _expect_bool,
    "pr_mode": _expect_bool,
    "required_code_coverage": _expect_float,
    "loop_max_tasks": _expect_int,
}


def _apply_toml_table(target: Any, key: str, table: Any) -> None:
    if not isinstance(table, dict):
        raise _DecodeError(f"{key}: expected a table")
    for item in dataclass_fields(target):
        if item.name in table:
            value = _expect_str(f"{key}.{item.name}", table[item.name])
            if value:
                setattr(target, item.name, value)


def _apply_toml_config(cfg: Config, decoded: dict[str, Any]) -> None:
    for key, convert in _TOML_SCALARS.items():
        if key not in decoded:
            continue
        value = convert(key, decoded[key])
        if isinstance(value, str) and not value:
            continue
        setattr(cfg, key, value)
    if "status_values" in decoded:
        _apply_toml_table(cfg.status_values, "status_values", decoded["status_values"])
    if "fields" in decoded:
        _apply_toml_table(cfg.fields, "fields", decoded["fields"])


def _load_toml_config(cfg: Config, path: str) -> None:
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise ConfigError(
            ERR_CONFIG_PARSE, "read roadmapctl config", path=path, cause=exc
        ) from exc
    try:
        decoded = tomllib.loads(data.decode("utf-8"))
        _apply_toml_config(cfg, decoded)
    except (tomllib.TOMLDecodeError, UnicodeDecodeError, _DecodeError) as exc:
        raise ConfigError(
            ERR_CONFIG_PARSE, f"parse roadmapctl TOML: {exc}", path=path, cause=exc
        ) from exc
    _validate_config(cfg, path)


def _load_legacy_fields(path: str) -> dict[str, Any]:
    try:
        data = Path(path).read_bytes()
    except FileNotFoundError as exc:
        raise ConfigError(
            ERR_CONFIG_MISSING, "roadmap config not found", path=path, cause=exc
        ) from exc
    except OSError as exc:
        raise ConfigError(
            ERR_CONFIG_PARSE, "read roadmap config", path=path, cause=exc
        ) from exc
    try:
        return parse_frontmatter(data)
    except ValueError as exc:
        raise ConfigError(ERR_CONFIG_PARSE, str(exc), path=path, cause=exc) from exc


def _string_value(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _apply_fields(cfg: Config, values: dict[str, Any]) -> None:
    for key, attr in (
        ("done-statuses", "done_statuses"),
        ("active-statuses", "active_statuses"),
        ("outcome-close-verify", "outcome_close_verify"),
    ):
        if isinstance(values.get(key), list):
            setattr(cfg, attr, list(values[key]))
    for key, attr in (
        ("leaf-filter", "leaf_filter"),
        ("pr-merge-strategy", "pr_merge_strategy"),
        ("commit-style", "commit_style"),
        ("autonomy", "autonomy"),
    ):
        if isinstance(values.get(key), str):
            setattr(cfg, attr, values[key])
    for key, attr in (
        ("auto-push", "auto_push"),
        ("parallel", "parallel"),
        ("compact-after-task-commit", "compact_after_task_commit"),
        ("pr-mode", "pr_mode"),
    ):
        if isinstance(values.get(key), bool):
            setattr(cfg, attr, values[key])
    coverage = float_value(values.get("required-code-coverage"))
    if coverage is not None:
        cfg.required_code_coverage = coverage
    max_tasks = int_value(values.get("loop-max-tasks"))
    if max_tasks is not None:
        cfg.loop_max_tasks = max_tasks

    status = values.get("status-values")
    if isinstance(status, dict):
        for key, attr in (
            ("pending", "pending"),
            ("specified", "specified"),
            ("in-progress", "in_progress"),
            ("completed", "completed"),
            ("blocked", "blocked"),
            ("obsolete", "obsolete"),
        ):
            if isinstance(status.get(key), str):
                setattr(cfg.status_values, attr, status[key])


def _string_list(key: str, values: list[str]) -> str:
    items = ", ".join(f"'{value}'" for value in values)
    return f"{key} = [{items}]\n"


def render_toml_config(cfg: Config) -> str:
    """Render the operational settings of ``cfg`` as TOML text."""
    status = cfg.status_values
    return "".join(
        [
            _string_list("done_statuses", cfg.done_statuses),
            _string_list("active_statuses", cfg.active_statuses),
            f"leaf_filter = '{cfg.leaf_filter}'\n",
            _string_list("outcome_close_verify", cfg.outcome_close_verify),
            f"pr_merge_strategy = '{cfg.pr_merge_strategy}'\n",
            f"commit_style = '{cfg.commit_style}'\n",
            f"auto_push = {str(cfg.auto_push).lower()}\n",
            f"required_code_coverage = {cfg.required_code_coverage:.1f}\n",
            f"loop_max_tasks = {cfg.loop_max_tasks}\n",
            f"parallel = {str(cfg.parallel).lower()}\n",
            f"autonomy = '{cfg.autonomy}'\n",
            f"compact_after_task_commit = {str(cfg.compact_after_task_commit).lower()}\n",
            f"pr_mode = {str(cfg.pr_mode).lower()}\n\n",
            "[status_values]\n",
            f"pending = '{status.pending}'\n",
            f"specified = '{status.specified}'\n",
            f"in_progress = '{status.in_progress}'\n",
            f"completed = '{status.completed}'\n",
            f"blocked = '{status.blocked}'\n",
            f"obsolete = '{status.obsolete}'\n",
        ]
    )


def config_differs(left: Config, right: Config) -> bool:
    """Report whether two configurations differ in any operational setting."""
    keys = (
        "done_statuses",
        "active_statuses",
        "leaf_filter",
        "outcome_close_verify",
        "pr_merge_strategy",
        "commit_style",
        "auto_push",
        "required_code_coverage",
        "loop_max_tasks",
        "parallel",
        "autonomy",
        "compact_after_task_commit",
        "pr_mode",
        "status_values",
    )
    return any(getattr(left, key) != getattr(right, key) for key in keys)


def _roadmap_root_exists(repo: str, roadmap_root: str) -> bool:
    try:
        root, _ = resolve_inside(repo, roadmap_root)
    except (ValueError, OSError):
        return False
    return os.path.isdir(root)


def _validate_config(cfg: Config, path: str) -> None:
    if cfg.required_code_coverage < 0 or cfg.required_code_coverage > 100:
        raise ConfigError(
            ERR_CONFIG_PARSE, "required_code_coverage must be between 0 and 100", path=path
        )
    if cfg.loop_max_tasks < 0:
        raise ConfigError(
            ERR_CONFIG_PARSE, "loop_max_tasks must be greater than or equal to 0", path=path
        )
    if cfg.autonomy not in _AUTONOMY_VALUES:
        raise ConfigError(
            ERR_CONFIG_PARSE,
            "autonomy must be one of manual, supervised, until_done",
            path=path,
        )