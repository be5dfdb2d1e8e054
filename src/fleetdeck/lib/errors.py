"""Custom exception hierarchy for FleetDeck configuration and operations."""


class FleetDeckError(Exception):
    """Base exception for all FleetDeck errors.

    All FleetDeck-specific exceptions inherit from this class, enabling
    centralized exception handling in the CLI.
    """

    pass


class ConfigError(FleetDeckError):
    """Exception raised for configuration errors.

    Raised when the deployment configuration cannot be loaded, parsed or
    validated. Carries the offending field so operators can fix it quickly.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class DeploymentError(FleetDeckError):
    """Exception raised when a deployment task fails.

    Attributes:
        operation: Name of the task that failed (e.g. "upload", "update_start")
        message: Human-readable error message
    """

    def __init__(self, operation: str, message: str) -> None:
        """Initialize DeploymentError with operation and message.

        Args:
            operation: Task or step name where the failure happened
            message: Descriptive error message
        """
        self.operation = operation
        self.message = message
        super().__init__(f"Deployment error during '{operation}': {message}")


class CommandError(DeploymentError):
    """Exception raised when an external command exits with a non-zero status.

    Attributes:
        command: The argv that was executed
        returncode: Exit status of the process
        stdout: Captured standard output (empty when not captured)
        stderr: Captured standard error (empty when not captured)
    """

    def __init__(
        self,
        command: list[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
        operation: str = "command",
    ) -> None:
        """Initialize CommandError with process details.

        Args:
            command: Executed argv
            returncode: Process exit status
            stdout: Captured standard output
            stderr: Captured standard error
            operation: Task that issued the command
        """
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = stderr.strip() or stdout.strip() or f"exit status {returncode}"
        super().__init__(
            operation=operation,
            message=f"`{' '.join(command)}` failed: {detail}",
        )


class TagAlreadyDeployedError(DeploymentError):
    """Exception raised when the version tag already exists in the registry.

    Attributes:
        tag: The candidate version tag
        image: The image name that was checked
    """

    def __init__(self, tag: str, image: str) -> None:
        """Initialize TagAlreadyDeployedError.

        Args:
            tag: Candidate tag that collided
            image: Image name whose tag list contains the tag
        """
        self.tag = tag
        self.image = image
        super().__init__(
            operation="verify_tag",
            message=(
                f"The commit {tag} you are trying to build has already been "
                f"deployed to {image}!"
            ),
        )


class DockerNotAvailableError(DeploymentError):
    """Exception raised when the Docker daemon cannot be reached."""

    def __init__(self, operation: str) -> None:
        """Create an error for an unreachable Docker daemon.

        Args:
            operation: Operation that needed Docker
        """
        super().__init__(
            operation=operation,
            message=(
                "Docker is not available. Ensure Docker is installed and the "
                "daemon is running: docker info"
            ),
        )
