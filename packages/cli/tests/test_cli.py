"""Tests for the CLI entry point."""

from unittest.mock import MagicMock

import pytest
import yaml
from click.testing import CliRunner

from bbreview_cli.cli import main
from bbreview_core.claude.runner import AssistantResult
from bbreview_core.models import PullRequest
from bbreview_core.modes import ReviewResult, TagResult

_ENV_VARS = (
    "BITBUCKET_ACCESS_TOKEN",
    "BITBUCKET_PR_DESTINATION_BRANCH",
    "MODE",
    "TRIGGER_PHRASE",
    "MODEL",
    "MAX_TURNS",
    "VERBOSE",
    "OUTPUT_FORMAT",
    "CLAUDE_TIMEOUT",
    "CLAUDE_BIN",
)


@pytest.fixture
def env(monkeypatch, tmp_path):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BITBUCKET_WORKSPACE", "acme")
    monkeypatch.setenv("BITBUCKET_REPO_SLUG", "shop")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    monkeypatch.setenv("BITBUCKET_PR_ID", "7")
    monkeypatch.setenv("BITBUCKET_CLONE_DIR", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def run_mode(mocker):
    mocker.patch("bbreview_cli.commands.run.ensure_claude_cli", return_value=True)
    return mocker.patch(
        "bbreview_cli.commands.run.run_mode",
        return_value=ReviewResult(success=True, review_posted=True),
    )


class TestRun:
    def test_review_mode(self, env, run_mode):
        result = CliRunner().invoke(main, ["run"])
        assert result.exit_code == 0, result.output
        assert "Review complete (posted)" in result.output
        config, client = run_mode.call_args.args
        assert config.mode == "review"
        assert config.output_format == "json"
        assert client.has_token is False

    def test_mode_and_stream_flags(self, env, run_mode):
        run_mode.return_value = TagResult(success=True, responded=True, comment_id=12)
        result = CliRunner().invoke(main, ["run", "--mode", "tag", "--stream"])
        assert result.exit_code == 0, result.output
        assert "Replied with comment #12" in result.output
        config = run_mode.call_args.args[0]
        assert config.mode == "tag"
        assert config.output_format == "stream-json"

    def test_env_mode_used_without_flag(self, env, run_mode, monkeypatch):
        monkeypatch.setenv("MODE", "tag")
        run_mode.return_value = TagResult(success=True)
        result = CliRunner().invoke(main, ["run"])
        assert result.exit_code == 0, result.output
        assert run_mode.call_args.args[0].mode == "tag"
        assert "No reply posted" in result.output

    def test_project_config_applied(self, env, run_mode):
        (env / ".claude-review.yml").write_text("trigger: '@reviewbot'\nmodel: sonnet\n")
        CliRunner().invoke(main, ["run"])
        config = run_mode.call_args.args[0]
        assert config.trigger_phrase == "@reviewbot"
        assert config.model == "sonnet"
        assert config.project_config.trigger == "@reviewbot"

    def test_mode_failure_exits_nonzero(self, env, run_mode):
        run_mode.return_value = ReviewResult(success=False, error="Exit code: 1")
        result = CliRunner().invoke(main, ["run"])
        assert result.exit_code == 1
        assert "review mode failed: Exit code: 1" in result.output

    def test_missing_required_env(self, env, run_mode, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY")
        result = CliRunner().invoke(main, ["run"])
        assert result.exit_code == 2
        assert "ANTHROPIC_API_KEY is required" in result.output
        run_mode.assert_not_called()

    def test_cli_install_failure(self, env, run_mode, mocker):
        mocker.patch("bbreview_cli.commands.run.ensure_claude_cli", return_value=False)
        result = CliRunner().invoke(main, ["run"])
        assert result.exit_code == 1
        assert "Claude CLI is required" in result.output
        run_mode.assert_not_called()

    def test_no_install_flag(self, env, run_mode, mocker):
        mocker.patch("bbreview_cli.commands.run.is_claude_installed", return_value=False)
        ensure = mocker.patch("bbreview_cli.commands.run.ensure_claude_cli")
        result = CliRunner().invoke(main, ["run", "--no-install"])
        assert result.exit_code == 1
        assert "Claude CLI not found" in result.output
        ensure.assert_not_called()

    def test_verbose_flag(self, env, run_mode):
        CliRunner().invoke(main, ["--verbose", "run"])
        assert run_mode.call_args.args[0].verbose is True

    @pytest.mark.parametrize("mode", ["review", "tag"])
    def test_without_pull_request_skips_cleanly(self, env, run_mode, mocker, monkeypatch, mode):
        monkeypatch.delenv("BITBUCKET_PR_ID")
        ensure = mocker.patch("bbreview_cli.commands.run.ensure_claude_cli")
        result = CliRunner().invoke(main, ["run", "--mode", mode])
        assert result.exit_code == 0, result.output
        assert f"{mode} mode skipped" in result.output
        ensure.assert_not_called()
        run_mode.assert_not_called()


class TestCheck:
    def test_skip_claude_without_pr(self, env, monkeypatch):
        monkeypatch.delenv("BITBUCKET_PR_ID")
        result = CliRunner().invoke(main, ["check", "--skip-claude"])
        assert result.exit_code == 0, result.output
        assert "Configuration valid" in result.output
        assert "skipping Bitbucket API check" in result.output

    def test_fetches_pr_and_runs_smoke_prompt(self, env, mocker):
        client = MagicMock()
        client.get_pull_request.return_value = PullRequest(id=7, title="Add caching", state="OPEN")
        client.get_pull_request_diff.return_value = "diff --git a/x b/x\n"
        mocker.patch("bbreview_cli.commands.check.BitbucketClient.from_config", return_value=client)
        mocker.patch("bbreview_cli.commands.check.get_claude_version", return_value="1.0.3")
        run = mocker.patch(
            "bbreview_cli.commands.check.run_claude",
            return_value=AssistantResult(success=True, output="Hello from Claude today friend!"),
        )
        result = CliRunner().invoke(main, ["check"])
        assert result.exit_code == 0, result.output
        assert 'PR found: "Add caching"' in result.output
        assert "Diff fetched: 19 characters" in result.output
        assert "Claude CLI working!" in result.output
        assert run.call_args.args[2].allowed_tools == ()

    def test_claude_missing(self, env, mocker, monkeypatch):
        monkeypatch.delenv("BITBUCKET_PR_ID")
        mocker.patch("bbreview_cli.commands.check.get_claude_version", return_value=None)
        result = CliRunner().invoke(main, ["check"])
        assert result.exit_code == 1
        assert "Claude CLI not found" in result.output

    def test_claude_failure(self, env, mocker, monkeypatch):
        monkeypatch.delenv("BITBUCKET_PR_ID")
        mocker.patch("bbreview_cli.commands.check.get_claude_version", return_value="1.0.3")
        mocker.patch(
            "bbreview_cli.commands.check.run_claude",
            return_value=AssistantResult(success=False, output="", error="Invalid API key"),
        )
        result = CliRunner().invoke(main, ["check"])
        assert result.exit_code == 1
        assert "Claude CLI failed: Invalid API key" in result.output


class TestInit:
    def test_writes_project_config(self, env):
        result = CliRunner().invoke(main, ["init", "--name", "shop-api", "--type", "symfony", "--trigger", "@bot"])
        assert result.exit_code == 0, result.output
        data = yaml.safe_load((env / ".claude-review.yml").read_text())
        assert data["project"] == {"name": "shop-api", "type": "symfony"}
        assert data["trigger"] == "@bot"
        assert "*.lock" in data["review"]["exclude"]
        assert "bitbucket-pipelines.yml" in result.output

    def test_refuses_to_overwrite(self, env):
        (env / ".claude-review.yml").write_text("model: opus\n")
        result = CliRunner().invoke(main, ["init"])
        assert result.exit_code == 2
        assert "already exists" in result.output
        assert (env / ".claude-review.yml").read_text() == "model: opus\n"

    def test_force_overwrites(self, env):
        (env / ".claude-review.yml").write_text("model: opus\n")
        result = CliRunner().invoke(main, ["init", "--force"])
        assert result.exit_code == 0, result.output
        data = yaml.safe_load((env / ".claude-review.yml").read_text())
        assert data["project"]["name"] == env.name
