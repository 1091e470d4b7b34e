"""Tests for .claude-review.yml loading."""

from bbreview_core.project_config import (
    ProjectConfig,
    ProjectInfo,
    ReviewSettings,
    ToolOverride,
    find_config_file,
    load_project_config,
    parse_project_config,
    review_patterns,
)

FULL_YAML = """\
project:
  name: shop-api
  type: symfony
trigger: "@reviewbot"
model: sonnet
review:
  prompt: |
    Pay special attention to Doctrine migrations.
  include: ["src/**"]
  exclude: ["src/generated/**", "*.lock"]
tools:
  actionable:
    allowed: [Read, Edit]
  informational:
    blocked: [Bash]
"""


def test_no_file_returns_none(tmp_path):
    assert find_config_file(tmp_path) is None
    assert load_project_config(tmp_path) is None


def test_full_file_parsed(tmp_path):
    (tmp_path / ".claude-review.yml").write_text(FULL_YAML)
    config = load_project_config(tmp_path)
    assert config.project == ProjectInfo(name="shop-api", type="symfony")
    assert config.trigger == "@reviewbot"
    assert config.model == "sonnet"
    assert config.review.prompt.startswith("Pay special attention")
    assert config.review.include == ["src/**"]
    assert config.review.exclude == ["src/generated/**", "*.lock"]
    assert config.tools.actionable == ToolOverride(allowed=["Read", "Edit"])
    assert config.tools.informational == ToolOverride(blocked=["Bash"])


def test_alternative_file_names(tmp_path):
    (tmp_path / "claude-review.yaml").write_text("model: opus\n")
    assert find_config_file(tmp_path).name == "claude-review.yaml"
    assert load_project_config(tmp_path).model == "opus"


def test_primary_name_preferred(tmp_path):
    (tmp_path / ".claude-review.yml").write_text("model: sonnet\n")
    (tmp_path / ".claude-review.yaml").write_text("model: opus\n")
    assert load_project_config(tmp_path).model == "sonnet"


def test_invalid_yaml_returns_none(tmp_path):
    (tmp_path / ".claude-review.yml").write_text("review: [unclosed\n")
    assert load_project_config(tmp_path) is None


def test_non_mapping_document_returns_none(tmp_path):
    (tmp_path / ".claude-review.yml").write_text("- just\n- a list\n")
    assert load_project_config(tmp_path) is None


def test_empty_file_returns_none(tmp_path):
    (tmp_path / ".claude-review.yml").write_text("")
    assert load_project_config(tmp_path) is None


def test_wrong_types_dropped():
    config = parse_project_config(
        {
            "trigger": 5,
            "model": ["sonnet"],
            "project": "not-a-mapping",
            "review": {"include": "src/**", "exclude": ["*.lock", 3]},
            "tools": {"actionable": "all"},
        }
    )
    assert config.trigger is None
    assert config.model is None
    assert config.project is None
    assert config.review.include is None
    assert config.review.exclude == ["*.lock"]
    assert config.tools.actionable is None


def test_review_patterns():
    assert review_patterns(None) == (None, None)
    assert review_patterns(ProjectConfig()) == (None, None)
    settings = ReviewSettings(include=["src/**"], exclude=["*.lock"])
    assert review_patterns(ProjectConfig(review=settings)) == (["src/**"], ["*.lock"])
