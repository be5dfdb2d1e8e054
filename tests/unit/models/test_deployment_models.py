"""Tests for deployment configuration models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from fleetdeck.models.deployment import (
    DeploymentConfig,
    GCloudConfig,
    InstanceConfig,
    InstanceGroup,
    RolloutPolicy,
    ServiceConfig,
)


class TestInstanceGroup:
    """Tests for InstanceGroup validation."""

    def test_valid_group(self) -> None:
        group = InstanceGroup(name="ig-amp-dev-europe", zone="europe-west2-c")

        assert group.name == "ig-amp-dev-europe"
        assert group.zone == "europe-west2-c"

    @pytest.mark.parametrize("name", ["IG-Upper", "ig_underscore", "-leading"])
    def test_invalid_name(self, name: str) -> None:
        with pytest.raises(ValidationError, match="Invalid instance group name"):
            InstanceGroup(name=name, zone="us-east1-b")

    @pytest.mark.parametrize("zone", ["us-east1", "europe", "US-EAST1-B"])
    def test_invalid_zone(self, zone: str) -> None:
        with pytest.raises(ValidationError, match="Invalid zone"):
            InstanceGroup(name="ig-a", zone=zone)


class TestRolloutPolicy:
    """Tests for RolloutPolicy."""

    def test_defaults(self) -> None:
        policy = RolloutPolicy()

        assert policy.min_ready == "4m"
        assert policy.max_surge == 1
        assert policy.max_unavailable == 1

    def test_invalid_duration(self) -> None:
        with pytest.raises(ValidationError, match="Invalid min_ready"):
            RolloutPolicy(min_ready="4 minutes")

    def test_negative_surge_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RolloutPolicy(max_surge=-1)


class TestInstanceConfig:
    """Tests for InstanceConfig."""

    def test_requires_a_group(self) -> None:
        with pytest.raises(ValidationError):
            InstanceConfig(groups=())

    def test_lists_coerced_to_tuples(self) -> None:
        config = InstanceConfig.model_validate(
            {
                "groups": [{"name": "ig-a", "zone": "us-east1-b"}],
                "network_tags": ["http-server"],
            }
        )

        assert config.groups == (InstanceGroup(name="ig-a", zone="us-east1-b"),)
        assert config.network_tags == ("http-server",)
        assert config.scopes == ()


class TestServiceConfig:
    """Tests for ServiceConfig."""

    def test_invalid_prefix(self) -> None:
        with pytest.raises(ValidationError, match="Invalid prefix"):
            ServiceConfig(
                prefix="Amp.Dev",
                instance={"groups": [{"name": "ig-a", "zone": "us-east1-b"}]},
            )

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ServiceConfig.model_validate(
                {
                    "prefix": "amp-dev",
                    "instance": {"groups": [{"name": "ig-a", "zone": "us-east1-b"}]},
                    "replicas": 2,
                }
            )


class TestGCloudConfig:
    """Tests for GCloudConfig."""

    @pytest.mark.parametrize(
        "project", ["short", "Upper-case-id", "ends-with-dash-", "1starts-with-digit"]
    )
    def test_invalid_project(self, project: str) -> None:
        with pytest.raises(ValidationError, match="Invalid GCP project ID"):
            GCloudConfig(project=project)

    def test_invalid_region(self) -> None:
        with pytest.raises(ValidationError, match="Invalid region"):
            GCloudConfig(project="amp-dev-230314", region="us-east1-b")


class TestDeploymentConfig:
    """Tests for DeploymentConfig and its derived names."""

    def test_image_reference(self, config_factory) -> None:
        config = config_factory(tag="abc-1", project="my-project")

        image = config.image(config.site)

        assert image.name == "gcr.io/my-project/amp-dev"
        assert image.current == "gcr.io/my-project/amp-dev:abc-1"

    def test_image_reference_custom_registry(self, config_factory) -> None:
        config = config_factory(
            gcloud={"project": "my-project", "registry_host": "eu.gcr.io"},
        )

        assert config.image(config.packager).name == (
            "eu.gcr.io/my-project/amp-dev-packager"
        )

    def test_template_name_sanitizes_tag(self, config_factory) -> None:
        config = config_factory(tag="Release_1.2")

        assert config.template_name(config.site) == "it-amp-dev-release-1-2"

    @pytest.mark.parametrize("tag", ["v1.", "build_", "rc-"])
    def test_tag_with_trailing_separator_rejected(
        self, config_factory, tag: str
    ) -> None:
        with pytest.raises(ValidationError, match="Invalid instance template name"):
            config_factory(tag=tag)

    def test_tag_too_long_for_template_name_rejected(self, config_factory) -> None:
        with pytest.raises(ValidationError, match="at most 63 characters"):
            config_factory(tag="a" * 60)

    def test_longest_usable_tag(self, config_factory) -> None:
        # "it-amp-dev-packager-" leaves 43 characters for the tag
        config = config_factory(tag="a" * 43)

        assert len(config.template_name(config.packager)) == 63

    def test_frozen(self, deployment_config: DeploymentConfig) -> None:
        with pytest.raises(ValidationError):
            deployment_config.tag = "other"  # type: ignore[misc]

    @pytest.mark.parametrize("tag", ["", ".hidden", "has space", "x" * 129])
    def test_invalid_tag(self, config_factory, tag: str) -> None:
        with pytest.raises(ValidationError, match="Invalid tag"):
            config_factory(tag=tag)
