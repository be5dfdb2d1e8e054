"""Pydantic models for CLI input."""

from pydantic import BaseModel, ConfigDict, Field


class CliOptions(BaseModel):
    """Global options given to the ``fleetdeck`` group, shared by every task.

    Attributes:
        tag: Explicit version tag override
        project: Google Cloud project ID override
        config_file: YAML config file path
        root: Project root directory
        dry_run: Print commands instead of executing them
        verbose: Debug logging
        quiet: Minimal output
    """

    model_config = ConfigDict(frozen=True)

    tag: str | None = Field(default=None, description="Version tag override")
    project: str | None = Field(default=None, description="Project ID override")
    config_file: str | None = Field(default=None, description="YAML config file")
    root: str | None = Field(default=None, description="Project root directory")
    dry_run: bool = Field(default=False, description="Print commands only")
    verbose: bool = Field(default=False, description="Debug logging")
    quiet: bool = Field(default=False, description="Minimal output")
