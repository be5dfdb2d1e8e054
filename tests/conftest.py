"""Pytest configuration and shared fixtures for FleetDeck tests."""

from __future__ import annotations

import asyncio
import copy
import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from fleetdeck.config.defaults import GCLOUD_DEFAULTS, PACKAGER_DEFAULTS, SITE_DEFAULTS
from fleetdeck.deploy.runner import BaseRunner, CommandResult
from fleetdeck.lib.errors import CommandError
from fleetdeck.models.deployment import DeploymentConfig

TEST_TAG = "abc1234-1700000000000"
TEST_PROJECT = "test-project-42"


def make_config(
    root: Path,
    tag: str = TEST_TAG,
    project: str = TEST_PROJECT,
    **overrides: Any,
) -> DeploymentConfig:
    """Build a DeploymentConfig from the built-in defaults without git."""
    site = copy.deepcopy(SITE_DEFAULTS)
    site["working_dir"] = root
    packager = copy.deepcopy(PACKAGER_DEFAULTS)
    packager["working_dir"] = root / "packager"
    data: dict[str, Any] = {
        "tag": tag,
        "gcloud": {**GCLOUD_DEFAULTS, "project": project},
        "site": site,
        "packager": packager,
    }
    data.update(overrides)
    return DeploymentConfig.model_validate(data)


class RecordingRunner(BaseRunner):
    """Runner double recording every command instead of executing it.

    ``responses`` maps a predicate over the argv to either the stdout to
    return or an exception to raise.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.responses: list[tuple[Callable[[list[str]], bool], str | Exception]] = []
        self.delay: float = 0.0

    def respond(
        self, predicate: Callable[[list[str]], bool], outcome: str | Exception
    ) -> None:
        self.responses.append((predicate, outcome))

    def fail(self, predicate: Callable[[list[str]], bool], returncode: int = 1) -> None:
        self.responses.append(
            (predicate, CommandError(command=["gcloud"], returncode=returncode))
        )

    async def run(
        self,
        command: list[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
        operation: str = "command",
    ) -> CommandResult:
        self.calls.append(
            {
                "command": list(command),
                "cwd": cwd,
                "capture": capture,
                "operation": operation,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        for predicate, outcome in self.responses:
            if predicate(command):
                if isinstance(outcome, Exception):
                    raise outcome
                return CommandResult(command=tuple(command), stdout=outcome)
        return CommandResult(command=tuple(command))

    @property
    def commands(self) -> list[list[str]]:
        return [call["command"] for call in self.calls]

    @property
    def operations(self) -> list[str]:
        return [call["operation"] for call in self.calls]


@pytest.fixture
def deployment_config(tmp_path: Path) -> DeploymentConfig:
    """Deployment config with a fixed tag and project."""
    return make_config(tmp_path)


@pytest.fixture
def config_factory(tmp_path: Path) -> Callable[..., DeploymentConfig]:
    """Factory building configs rooted at the test's tmp_path."""

    def _factory(**kwargs: Any) -> DeploymentConfig:
        return make_config(tmp_path, **kwargs)

    return _factory


@pytest.fixture
def recording_runner() -> RecordingRunner:
    """Runner double recording commands."""
    return RecordingRunner()


@pytest.fixture
def isolated_env() -> Generator[dict[str, str]]:
    """Provide isolated environment variables for testing.

    Saves current environment and restores after test.
    """
    original_env = os.environ.copy()
    for key in list(os.environ):
        if key.startswith("FLEETDECK_"):
            del os.environ[key]
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


def pytest_configure(config: Any) -> None:
    """Configure pytest with marker options."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests",
    )
    config.addinivalue_line(
        "markers",
        "unit: marks tests as unit tests",
    )
