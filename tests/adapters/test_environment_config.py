"""Tests for EnvironmentConfigProvider."""

import pytest

from feedbackbridge.adapters.config import EnvironmentConfigProvider
from feedbackbridge.core.domain import FeedbackStatus, SinkKind
from feedbackbridge.core.exceptions import ConfigError


@pytest.fixture
def no_env_file(tmp_path):
    return tmp_path / "missing.env"


class TestEnvironmentConfigProvider:
    """Tests for loading and validation."""

    def test_environment(self, no_env_file):
        provider = EnvironmentConfigProvider(env_file=no_env_file, environ={
            "FEEDBACKBRIDGE_PROJECT_ID": "proj-7",
            "GITHUB_TOKEN": "ghp_x",
            "GITHUB_REPO": "acme/app",
            "CLICKUP_TOKEN": "pk_x",
            "CLICKUP_LIST_ID": "901",
            "CLICKUP_VOTES_FIELD_ID": "votes",
            "FEEDBACKBRIDGE_BULK_WORKERS": "8",
        })

        config = provider.load()
        project = config.project("proj-7")

        assert config.runtime.bulk_max_workers == 8
        assert project.sink(SinkKind.ISSUE_TRACKER).target == "acme/app"
        assert project.sink(SinkKind.TASK_TRACKER).vote_field_id == "votes"
        assert {s.kind for s in project.enabled_sinks()} == {
            SinkKind.ISSUE_TRACKER, SinkKind.TASK_TRACKER,
        }
        assert provider.validate() == []

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# sinks\n"
            "SLACK_WEBHOOK_URL='https://hooks.slack.com/services/T/B/X'\n"
            "SLACK_NOTIFY_COMMENTS=false\n"
            "FEEDBACKBRIDGE_DRY_RUN=true\n"
        )

        config = EnvironmentConfigProvider(env_file=env_file, environ={}).load()
        slack = config.projects[0].sink(SinkKind.NOTIFICATION)

        assert slack.is_active
        assert not slack.notify_comments
        assert slack.notify_status_changes
        assert config.runtime.dry_run

    def test_environment_overrides_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("GITHUB_REPO=acme/old\n")

        provider = EnvironmentConfigProvider(env_file=env_file, environ={"GITHUB_REPO": "acme/new"})

        assert provider.get("github_repo") == "acme/new"

    def test_cli_overrides(self, no_env_file):
        provider = EnvironmentConfigProvider(
            env_file=no_env_file,
            environ={"FEEDBACKBRIDGE_DRY_RUN": "false"},
            cli_overrides={"dry-run": True, "project_id": None},
        )

        assert provider.load().runtime.dry_run
        assert provider.get("project_id", "default") == "default"

    def test_trello(self, no_env_file):
        provider = EnvironmentConfigProvider(env_file=no_env_file, environ={
            "TRELLO_API_KEY": "app-key",
            "TRELLO_TOKEN": "member-token",
            "TRELLO_LIST_ID": "list-new",
            "TRELLO_STATUS_LISTS": "in_progress=list-doing, completed=list-done",
        })

        trello = provider.load().projects[0].sink(SinkKind.BOARD)

        assert trello.is_active
        assert trello.api_key == "app-key"
        assert trello.status_target(FeedbackStatus.COMPLETED) == "list-done"
        assert trello.status_target(FeedbackStatus.REJECTED) is None
        assert provider.validate() == []

    def test_bad_trello_status_lists(self, no_env_file):
        provider = EnvironmentConfigProvider(env_file=no_env_file, environ={
            "TRELLO_API_KEY": "app-key",
            "TRELLO_TOKEN": "member-token",
            "TRELLO_LIST_ID": "list-new",
            "TRELLO_STATUS_LISTS": "shipped=list-x",
        })

        assert any("TRELLO_STATUS_LISTS" in e for e in provider.validate())
        with pytest.raises(ConfigError):
            provider.load()

    def test_validate(self, no_env_file):
        provider = EnvironmentConfigProvider(env_file=no_env_file, environ={
            "GITHUB_TOKEN": "ghp_x",
            "CLICKUP_TOKEN": "pk_x",
            "SLACK_WEBHOOK_URL": "https://example.com/hook",
            "FEEDBACKBRIDGE_TIMEOUT": "soon",
        })

        errors = provider.validate()

        assert len(errors) == 4
        assert any("GITHUB_REPO" in e for e in errors)
        assert any("CLICKUP_LIST_ID" in e for e in errors)
        assert any("SLACK_WEBHOOK_URL" in e for e in errors)
        assert any("request_timeout" in e for e in errors)

    def test_nothing_configured(self, no_env_file):
        config = EnvironmentConfigProvider(env_file=no_env_file, environ={}).load()

        assert config.projects[0].project_id == "default"
        assert config.projects[0].enabled_sinks() == []
