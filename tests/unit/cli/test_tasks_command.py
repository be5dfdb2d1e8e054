"""Unit tests for the fleetdeck task commands.

Tests cover:
- Global options reaching the configuration loader
- Composite deploy output and dry run mode
- Exit codes for ConfigError, TagAlreadyDeployedError and CommandError
- Per-group output of update-status
- Quiet mode
"""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from docker.errors import DockerException

from fleetdeck.cli.main import main
from fleetdeck.lib.errors import ConfigError, DeploymentError
from fleetdeck.models.deployment import DeploymentConfig

TAG = "abc1234-1700000000000"
IMAGE = f"gcr.io/test-project-42/amp-dev:{TAG}"


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _no_logging_setup():
    """Keep CLI invocations from reconfiguring logging handlers."""
    with patch("fleetdeck.cli.main.setup_logging"):
        yield


@pytest.fixture
def mock_loader(deployment_config: DeploymentConfig):
    with patch(
        "fleetdeck.cli.commands.tasks.load_deployment_config",
        return_value=deployment_config,
    ) as mock_load:
        yield mock_load


@pytest.fixture
def use_recording_runner(recording_runner):
    with patch(
        "fleetdeck.cli.commands.tasks._create_runner",
        return_value=recording_runner,
    ):
        yield recording_runner


def _is_list_tags(command: list[str]) -> bool:
    return "list-tags" in command


class TestMainGroup:
    """Tests for the command group itself."""

    def test_help_lists_tasks(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        for name in (
            "verify-tag",
            "deploy",
            "packager-deploy",
            "update-status",
            "update-stop",
            "render-preview",
        ):
            assert name in result.output

    def test_global_options_passed_to_loader(
        self, runner: CliRunner, mock_loader: MagicMock, use_recording_runner
    ) -> None:
        result = runner.invoke(
            main, ["--tag", "v1", "--project", "other-project", "verify-tag"]
        )

        assert result.exit_code == 0
        kwargs = mock_loader.call_args.kwargs
        assert kwargs["tag"] == "v1"
        assert kwargs["project"] == "other-project"
        assert kwargs["config_file"] is None


class TestDeployCommand:
    """Tests for the composite deploy commands."""

    def test_deploy_success(
        self, runner: CliRunner, mock_loader: MagicMock, use_recording_runner
    ) -> None:
        result = runner.invoke(main, ["deploy"])

        assert result.exit_code == 0
        assert "Deploy Configuration:" in result.output
        assert IMAGE in result.output
        assert "ig-amp-dev-europe (europe-west2-c)" in result.output
        assert "Rolling update started!" in result.output
        assert use_recording_runner.operations[0] == "verify_tag"

    def test_deploy_dry_run_prints_commands(
        self, runner: CliRunner, mock_loader: MagicMock
    ) -> None:
        result = runner.invoke(main, ["--dry-run", "deploy"])

        assert result.exit_code == 0
        assert "[DRY RUN] gcloud container images list-tags" in result.output
        assert f"[DRY RUN] gcloud builds submit --tag {IMAGE} ." in result.output
        assert result.output.count("start-update") == 2

    def test_packager_deploy_skips_verification(
        self, runner: CliRunner, mock_loader: MagicMock, use_recording_runner
    ) -> None:
        result = runner.invoke(main, ["packager-deploy"])

        assert result.exit_code == 0
        assert "verify_tag" not in use_recording_runner.operations
        assert "amp-dev-packager" in result.output

    def test_deploy_quiet_prints_template(
        self, runner: CliRunner, mock_loader: MagicMock, use_recording_runner
    ) -> None:
        result = runner.invoke(main, ["-q", "deploy"])

        assert result.exit_code == 0
        assert result.output.strip() == f"it-amp-dev-{TAG}"


class TestErrorHandling:
    """Tests for exit codes."""

    def test_config_error_exit_code(self, runner: CliRunner) -> None:
        with patch(
            "fleetdeck.cli.commands.tasks.load_deployment_config",
            side_effect=ConfigError("gcloud.project", "Invalid GCP project ID"),
        ):
            result = runner.invoke(main, ["deploy"])

        assert result.exit_code == 2
        assert "Configuration error" in result.output
        assert "Invalid GCP project ID" in result.output

    def test_tag_already_deployed_exit_code(
        self, runner: CliRunner, mock_loader: MagicMock, use_recording_runner
    ) -> None:
        use_recording_runner.respond(_is_list_tags, f"{TAG},latest\n")

        result = runner.invoke(main, ["deploy"])

        assert result.exit_code == 4
        assert "has already been deployed" in result.output
        assert use_recording_runner.operations == ["verify_tag"]

    def test_command_error_exit_code(
        self, runner: CliRunner, mock_loader: MagicMock, use_recording_runner
    ) -> None:
        use_recording_runner.fail(lambda command: "builds" in command)

        result = runner.invoke(main, ["image-upload"])

        assert result.exit_code == 3
        assert "exit status 1" in result.output

    def test_tag_generation_error_exit_code(self, runner: CliRunner) -> None:
        with patch(
            "fleetdeck.cli.commands.tasks.load_deployment_config",
            side_effect=DeploymentError(
                "tag_generation", "Failed to get git SHA: not a git repository"
            ),
        ):
            result = runner.invoke(main, ["verify-tag"])

        assert result.exit_code == 3
        assert "not a git repository" in result.output

    @patch("docker.from_env")
    def test_image_build_without_docker(
        self,
        mock_from_env: MagicMock,
        runner: CliRunner,
        mock_loader: MagicMock,
    ) -> None:
        mock_from_env.side_effect = DockerException("Cannot connect")

        result = runner.invoke(main, ["image-build"])

        assert result.exit_code == 3
        assert "Docker is not available" in result.output

    def test_unexpected_error_exit_code(
        self, runner: CliRunner, mock_loader: MagicMock
    ) -> None:
        with patch(
            "fleetdeck.cli.commands.tasks._create_runner",
            side_effect=RuntimeError("boom"),
        ):
            result = runner.invoke(main, ["image-list"])

        assert result.exit_code == 3
        assert "boom" in result.output


class TestRollingUpdateCommands:
    """Tests for update-start/status/stop."""

    def test_update_status_prints_each_group(
        self, runner: CliRunner, mock_loader: MagicMock, use_recording_runner
    ) -> None:
        use_recording_runner.respond(
            lambda command: "describe" in command, "status:\n  isStable: true\n"
        )

        result = runner.invoke(main, ["update-status"])

        assert result.exit_code == 0
        assert "ig-amp-dev-europe (europe-west2-c)" in result.output
        assert "ig-amp-dev-zone2 (us-east1-b)" in result.output
        assert result.output.count("isStable: true") == 2

    def test_update_stop_hints_reconcile(
        self, runner: CliRunner, mock_loader: MagicMock, use_recording_runner
    ) -> None:
        result = runner.invoke(main, ["update-stop"])

        assert result.exit_code == 0
        assert "Rolling update stopped" in result.output
        assert len(use_recording_runner.calls) == 2

    def test_packager_update_start(
        self, runner: CliRunner, mock_loader: MagicMock, use_recording_runner
    ) -> None:
        result = runner.invoke(main, ["packager-update-start"])

        assert result.exit_code == 0
        assert use_recording_runner.commands[0][7] == "ig-amp-dev-packager"


class TestSingleTasks:
    """Tests for the individual task commands."""

    @pytest.mark.parametrize(
        ("args", "predicate"),
        [
            (["gcloud-setup"], lambda c: "configure-docker" in c),
            (["image-list"], lambda c: c[-1] == "gcr.io/test-project-42/amp-dev"),
            (["instance-template-create"], lambda c: "create-with-container" in c),
            (
                ["packager-instance-template-create"],
                lambda c: f"it-amp-dev-packager-{TAG}" in c,
            ),
            (["packager-image-upload"], lambda c: "builds" in c),
        ],
    )
    def test_task_issues_command(
        self,
        args: list[str],
        predicate: Callable[[list[str]], bool],
        runner: CliRunner,
        mock_loader: MagicMock,
        use_recording_runner,
    ) -> None:
        result = runner.invoke(main, args)

        assert result.exit_code == 0
        assert predicate(use_recording_runner.commands[0])

    def test_image_run_local_dry_run(
        self, runner: CliRunner, mock_loader: MagicMock
    ) -> None:
        result = runner.invoke(main, ["--dry-run", "image-run-local"])

        assert result.exit_code == 0
        assert f"[DRY RUN] docker run -d -p 8082:80 {IMAGE}" in result.output

    def test_show_config_quiet(
        self, runner: CliRunner, mock_loader: MagicMock
    ) -> None:
        result = runner.invoke(main, ["-q", "show-config"])

        assert result.exit_code == 0
        assert result.output.strip() == IMAGE

    def test_show_config_lists_both_services(
        self, runner: CliRunner, mock_loader: MagicMock
    ) -> None:
        result = runner.invoke(main, ["show-config"])

        assert result.exit_code == 0
        assert result.output.count("Deploy Configuration:") == 2
        assert "ig-amp-dev-packager (us-east1-b)" in result.output
