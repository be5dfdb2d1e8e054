"""Tests for custom exception hierarchy in fleetdeck.lib.errors."""

from fleetdeck.lib.errors import (
    CommandError,
    ConfigError,
    DeploymentError,
    DockerNotAvailableError,
    FleetDeckError,
    TagAlreadyDeployedError,
)


class TestConfigError:
    """Tests for ConfigError exception."""

    def test_config_error_formats_message_with_field(self) -> None:
        """Test that ConfigError formats messages with field information."""
        error = ConfigError("gcloud.project", "Invalid GCP project ID")
        assert str(error) == (
            "Configuration error in 'gcloud.project': Invalid GCP project ID"
        )
        assert error.field == "gcloud.project"
        assert error.message == "Invalid GCP project ID"

    def test_config_error_is_fleetdeck_error(self) -> None:
        assert isinstance(ConfigError("f", "m"), FleetDeckError)


class TestDeploymentError:
    """Tests for DeploymentError and its subclasses."""

    def test_deployment_error_keeps_operation(self) -> None:
        error = DeploymentError("update_start", "quota exceeded")
        assert error.operation == "update_start"
        assert "update_start" in str(error)
        assert "quota exceeded" in str(error)

    def test_command_error_prefers_stderr(self) -> None:
        error = CommandError(
            command=["gcloud", "builds", "submit"],
            returncode=2,
            stdout="partial output",
            stderr="ERROR: permission denied\n",
            operation="image_upload",
        )
        assert isinstance(error, DeploymentError)
        assert error.operation == "image_upload"
        assert error.message == (
            "`gcloud builds submit` failed: ERROR: permission denied"
        )

    def test_command_error_without_output(self) -> None:
        error = CommandError(command=["gcloud"], returncode=7)
        assert error.operation == "command"
        assert error.message.endswith("exit status 7")

    def test_tag_already_deployed_message(self) -> None:
        error = TagAlreadyDeployedError("abc-1", "gcr.io/p/amp-dev")
        assert isinstance(error, DeploymentError)
        assert error.operation == "verify_tag"
        assert error.message == (
            "The commit abc-1 you are trying to build has already been "
            "deployed to gcr.io/p/amp-dev!"
        )

    def test_docker_not_available(self) -> None:
        error = DockerNotAvailableError("image_build")
        assert error.operation == "image_build"
        assert "Docker is not available" in error.message
