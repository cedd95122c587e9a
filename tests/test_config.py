import os
import tomllib

import pytest

from roadmapctl.config import (
    ERR_CONFIG_MISSING,
    ERR_CONFIG_PARSE,
    ERR_ROADMAP_ROOT_ESCAPE,
    ConfigError,
    config_differs,
    default_config,
    legacy_migration_plan,
    load,
    render_toml_config,
)


def write_config(repo, body):
    directory = repo / ".claude"
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "roadmap.local.md").write_text("---\n" + body + "---\n", encoding="utf-8")


def write_toml(repo, body):
    directory = repo / "docs" / "roadmap"
    directory.mkdir(parents=True, exist_ok=True)
    (directory / ".roadmapctl.toml").write_text(body, encoding="utf-8")


def toml_path(repo):
    return os.path.join(str(repo), "docs", "roadmap", ".roadmapctl.toml")


def legacy_file(repo):
    return repo / ".claude" / "roadmap.local.md"


def test_config_error_formats_path_and_keeps_cause():
    cause = RuntimeError("cause")
    err = ConfigError(ERR_CONFIG_PARSE, "bad config", path=".claude/roadmap.local.md", cause=cause)
    assert str(err) == "RMC_CONFIG_PARSE: .claude/roadmap.local.md: bad config"
    assert err.cause is cause
    assert err.__cause__ is cause


def test_config_error_without_path():
    err = ConfigError(ERR_CONFIG_MISSING, "missing")
    assert str(err) == "RMC_CONFIG_MISSING: missing"


def test_load_prefers_toml_and_infers_roadmap_root(tmp_path):
    write_toml(
        tmp_path,
        """done_statuses = ["Done"]
active_statuses = ["Ready", "Doing"]
leaf_filter = "isIndex == false"
outcome_close_verify = ["go test ./..."]
pr_merge_strategy = "merge"
commit_style = "conventional"
auto_push = false
required_code_coverage = 91.5
loop_max_tasks = 7
parallel = false
autonomy = "manual"
compact_after_task_commit = false
pr_mode = true

[status_values]
in_progress = "Doing"
completed = "Done"
""",
    )
    loaded = load(tmp_path)
    assert loaded.roadmap_root == os.path.join(str(tmp_path), "docs", "roadmap")
    assert loaded.config_path == toml_path(tmp_path)
    assert loaded.done_statuses == ["Done"]
    assert loaded.active_statuses == ["Ready", "Doing"]
    assert loaded.outcome_close_verify == ["go test ./..."]
    assert loaded.pr_merge_strategy == "merge"
    assert loaded.status_values.in_progress == "Doing"
    assert loaded.status_values.completed == "Done"
    assert loaded.status_values.pending == "Pending"
    assert loaded.auto_push is False
    assert loaded.required_code_coverage == 91.5
    assert loaded.loop_max_tasks == 7
    assert loaded.parallel is False
    assert loaded.autonomy == "manual"
    assert loaded.compact_after_task_commit is False
    assert loaded.pr_mode is True


def test_load_uses_defaults_when_toml_missing_but_root_exists(tmp_path):
    (tmp_path / "docs" / "roadmap").mkdir(parents=True)
    loaded = load(tmp_path)
    assert loaded.config_path == toml_path(tmp_path)
    assert loaded.roadmap_root_rel == "docs/roadmap"
    assert loaded.status_values.completed == "Completed"
    assert loaded.required_code_coverage == 85.0


def test_load_toml_parse_error_is_usage_error(tmp_path):
    write_toml(tmp_path, 'done_statuses = ["Completed"\n')
    with pytest.raises(ConfigError) as info:
        load(tmp_path)
    assert info.value.code == ERR_CONFIG_PARSE
    assert info.value.exit_code == 2


def test_load_toml_wrong_type_is_parse_error(tmp_path):
    write_toml(tmp_path, "auto_push = 'yes'\n")
    with pytest.raises(ConfigError) as info:
        load(tmp_path)
    assert info.value.code == ERR_CONFIG_PARSE


def test_load_legacy_only_migrates_to_toml_and_deletes_legacy(tmp_path):
    write_config(tmp_path, "roadmap-root: docs/roadmap\ndone-statuses: ['Done']\nauto-push: false\n")
    loaded = load(tmp_path)
    assert loaded.config_path == toml_path(tmp_path)
    assert loaded.roadmap_root_rel == "docs/roadmap"
    assert os.path.isfile(toml_path(tmp_path))
    assert not legacy_file(tmp_path).exists()
    assert loaded.done_statuses[0] == "Done"
    assert loaded.auto_push is False
    assert loaded.loop_max_tasks == 0
    assert loaded.parallel is True
    assert loaded.autonomy == "until_done"
    assert loaded.compact_after_task_commit is True
    assert loaded.pr_mode is False


def test_load_existing_toml_deletes_legacy_without_warning(tmp_path):
    write_config(tmp_path, "roadmap-root: docs/roadmap\ndone-statuses: ['Done']\n")
    write_toml(tmp_path, 'done_statuses = ["Completed"]\n')
    loaded = load(tmp_path)
    assert loaded.warnings == []
    assert loaded.done_statuses == ["Completed"]
    assert not legacy_file(tmp_path).exists()


def test_load_invalid_toml_does_not_fall_back_to_legacy(tmp_path):
    write_config(tmp_path, "roadmap-root: docs/roadmap\n")
    write_toml(tmp_path, 'done_statuses = ["Completed"\n')
    with pytest.raises(ConfigError) as info:
        load(tmp_path)
    assert info.value.code == ERR_CONFIG_PARSE
    assert legacy_file(tmp_path).exists()


@pytest.mark.parametrize(
    "body",
    [
        'autonomy = "robot"\n',
        "loop_max_tasks = -1\n",
        "required_code_coverage = -0.1\n",
        "required_code_coverage = 100.1\n",
    ],
)
def test_load_rejects_invalid_execution_settings(tmp_path, body):
    write_toml(tmp_path, body)
    with pytest.raises(ConfigError) as info:
        load(tmp_path)
    assert info.value.code == ERR_CONFIG_PARSE


def test_legacy_migration_plan_generates_toml_without_writing(tmp_path):
    write_config(
        tmp_path,
        """roadmap-root: docs/roadmap
done-statuses: ['Done', 'Archived']
active-statuses: ['Ready']
status-values:
  completed: Done
auto-push: false
""",
    )
    plan = legacy_migration_plan(tmp_path)
    assert plan.target_path == toml_path(tmp_path)
    assert plan.source_path == str(legacy_file(tmp_path))
    for want in [
        "done_statuses = ['Done', 'Archived']",
        "active_statuses = ['Ready']",
        "completed = 'Done'",
        "auto_push = false",
        "required_code_coverage = 85.0",
    ]:
        assert want in plan.content
    assert not os.path.exists(plan.target_path)
    assert legacy_file(tmp_path).exists()


def test_load_resolves_valid_roadmap_root_inside_repo(tmp_path):
    write_config(tmp_path, "roadmap-root: docs/roadmap\n")
    loaded = load(tmp_path)
    assert loaded.roadmap_root == os.path.join(str(tmp_path), "docs", "roadmap")
    assert loaded.roadmap_root_rel == "docs/roadmap"
    assert loaded.config_path == toml_path(tmp_path)
    assert not legacy_file(tmp_path).exists()


def test_load_rejects_parent_escape(tmp_path):
    repo = tmp_path / "repo"
    repo.mkdir()
    write_config(repo, "roadmap-root: ../outside\n")
    with pytest.raises(ConfigError) as info:
        load(repo)
    assert info.value.code == ERR_ROADMAP_ROOT_ESCAPE
    assert info.value.exit_code == 2


def test_load_missing_config_is_usage_error(tmp_path):
    with pytest.raises(ConfigError) as info:
        load(tmp_path)
    assert info.value.code == ERR_CONFIG_MISSING
    assert info.value.exit_code == 2


def test_load_accepts_windows_style_separators(tmp_path):
    write_config(tmp_path, "roadmap-root: docs\\\\roadmap\n")
    loaded = load(tmp_path)
    assert loaded.roadmap_root == os.path.join(str(tmp_path), "docs", "roadmap")
    assert loaded.roadmap_root_rel == "docs/roadmap"


def test_load_applies_defaults_and_parses_overrides(tmp_path):
    write_config(
        tmp_path,
        """roadmap-root: docs/roadmap
done-statuses: ['Done', 'Archived']
active-statuses: ['Ready', 'Doing']
status-values:
  in-progress: Doing
leaf-filter: 'isIndex == false'
outcome-close-verify: ['go test ./...', 'go build ./cmd/roadmapctl']
pr-merge-strategy: merge
commit-style: conventional
auto-push: false
""",
    )
    loaded = load(tmp_path)
    assert loaded.done_statuses == ["Done", "Archived"]
    assert loaded.active_statuses == ["Ready", "Doing"]
    assert loaded.status_values.in_progress == "Doing"
    assert loaded.status_values.pending == "Pending"
    assert loaded.leaf_filter == "isIndex == false"
    assert loaded.outcome_close_verify == ["go test ./...", "go build ./cmd/roadmapctl"]
    assert loaded.pr_merge_strategy == "merge"
    assert loaded.commit_style == "conventional"
    assert loaded.auto_push is False


def test_fields_config_defaults(tmp_path):
    (tmp_path / "docs" / "roadmap").mkdir(parents=True)
    fields = load(tmp_path).fields
    assert fields.lifecycle == "estado"
    assert fields.record_type == "tipo"
    assert fields.task_value == "task"
    assert fields.outcome_value == "outcome"
    assert fields.display_name == "titulo"
    assert fields.dependency_link == "blocked_by"


def test_fields_config_override(tmp_path):
    write_toml(
        tmp_path,
        """[fields]
lifecycle = "status"
record_type = "kind"
task_value = "tarea"
outcome_value = "resultado"
display_name = "nombre"
dependency_link = "depends_on"
""",
    )
    fields = load(tmp_path).fields
    assert fields.lifecycle == "status"
    assert fields.record_type == "kind"
    assert fields.task_value == "tarea"
    assert fields.outcome_value == "resultado"
    assert fields.display_name == "nombre"
    assert fields.dependency_link == "depends_on"


def test_fields_config_partial_override(tmp_path):
    write_toml(tmp_path, '[fields]\nlifecycle = "custom_status"\n')
    fields = load(tmp_path).fields
    assert fields.lifecycle == "custom_status"
    assert fields.record_type == "tipo"
    assert fields.dependency_link == "blocked_by"


def test_config_differs_compares_operational_fields():
    left = default_config("/repo")
    right = default_config("/repo")
    assert config_differs(left, right) is False

    right.required_code_coverage = 90
    assert config_differs(left, right) is True

    right = default_config("/repo")
    right.done_statuses = ["Completed"]
    assert config_differs(left, right) is True


def test_render_toml_config_round_trips_through_toml():
    cfg = default_config("/repo")
    text = render_toml_config(cfg)
    assert "outcome_close_verify = []\n" in text
    assert "[status_values]\n" in text
    decoded = tomllib.loads(text)
    assert decoded["done_statuses"] == ["Completed", "Obsolete"]
    assert decoded["required_code_coverage"] == 85.0
    assert decoded["autonomy"] == "until_done"
    assert decoded["auto_push"] is True
    assert decoded["status_values"]["in_progress"] == "In Progress"