"""Pydantic models for deployment configuration.

This module defines the configuration schema for FleetDeck rollouts: the
target cloud project, the services that get deployed (site and packager),
their instance groups and the rolling update policy applied to them.

All models are frozen. A ``DeploymentConfig`` is built once at process start
and passed explicitly to every task.
"""

import re
from pathlib import Path

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

# Regex patterns for validation
GCP_PROJECT_ID_PATTERN = re.compile(r"^[a-z][a-z0-9-]{4,28}[a-z0-9]$")
GCP_ZONE_PATTERN = re.compile(r"^[a-z]+-[a-z]+\d+-[a-z]$")
GCP_REGION_PATTERN = re.compile(r"^[a-z]+-[a-z]+\d+$")
RESOURCE_NAME_PATTERN = re.compile(r"^[a-z]([-a-z0-9]*[a-z0-9])?$")
TEMPLATE_NAME_PATTERN = re.compile(r"^[a-z]([-a-z0-9]{0,61}[a-z0-9])?$")
DURATION_PATTERN = re.compile(r"^\d+[smh]$")
TAG_PATTERN = re.compile(r"^[\w][\w.-]{0,127}$")


class InstanceGroup(BaseModel):
    """A named, zoned managed instance group rolled forward as a unit.

    Attributes:
        name: Managed instance group name
        zone: Zone the group lives in
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., description="Managed instance group name")
    zone: str = Field(..., description="Zone of the instance group")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate the group name is a valid compute resource name."""
        if not RESOURCE_NAME_PATTERN.match(v):
            raise ValueError(
                f"Invalid instance group name: {v}. "
                "Must contain only lowercase letters, numbers and hyphens."
            )
        return v

    @field_validator("zone")
    @classmethod
    def validate_zone(cls, v: str) -> str:
        """Validate zone format (e.g., us-east1-b)."""
        if not GCP_ZONE_PATTERN.match(v):
            raise ValueError(f"Invalid zone: {v}. Expected format like us-east1-b.")
        return v


class RolloutPolicy(BaseModel):
    """Bounds for a rolling update.

    Attributes:
        min_ready: Minimum time a new instance must be ready (e.g. 4m)
        max_surge: Instances that may be created above the target size
        max_unavailable: Instances that may be unavailable during the update
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    min_ready: str = Field(default="4m", description="Minimum ready duration")
    max_surge: int = Field(default=1, ge=0, description="Maximum surge instances")
    max_unavailable: int = Field(
        default=1, ge=0, description="Maximum unavailable instances"
    )

    @field_validator("min_ready")
    @classmethod
    def validate_min_ready(cls, v: str) -> str:
        """Validate duration format (e.g., 30s, 4m, 1h)."""
        if not DURATION_PATTERN.match(v):
            raise ValueError(
                f"Invalid min_ready duration: {v}. "
                "Must be a number followed by s, m or h."
            )
        return v


class InstanceConfig(BaseModel):
    """VM fleet settings for one service.

    Attributes:
        groups: Instance groups receiving the rollout
        count: Intended number of instances per group
        machine: Machine type used by the instance template
        network_tags: Network tags applied to new instances
        scopes: Service account scopes granted to new instances
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    groups: tuple[InstanceGroup, ...] = Field(
        ..., min_length=1, description="Instance groups to roll forward"
    )
    count: int = Field(default=1, ge=1, description="Instances per group")
    machine: str = Field(default="n1-standard-1", description="Machine type")
    network_tags: tuple[str, ...] = Field(
        default=(), description="Network tags for new instances"
    )
    scopes: tuple[str, ...] = Field(
        default=(), description="Service account scopes for new instances"
    )


class ServiceConfig(BaseModel):
    """A deployable service with its own image namespace and fleet.

    Attributes:
        prefix: Resource prefix, also the image repository name
        working_dir: Directory holding the service's Dockerfile
        instance: Fleet settings
        rollout: Rolling update policy
        verify_before_deploy: Whether the composite deploy verifies the tag first
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    prefix: str = Field(..., description="Resource and image prefix")
    working_dir: Path | None = Field(
        default=None, description="Build context directory (None: current dir)"
    )
    instance: InstanceConfig = Field(..., description="Fleet settings")
    rollout: RolloutPolicy = Field(
        default_factory=RolloutPolicy, description="Rolling update policy"
    )
    verify_before_deploy: bool = Field(
        default=True, description="Verify the tag is unseen before deploying"
    )

    @field_validator("prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        """Validate the prefix is usable in resource and image names."""
        if not RESOURCE_NAME_PATTERN.match(v):
            raise ValueError(
                f"Invalid prefix: {v}. "
                "Must contain only lowercase letters, numbers and hyphens."
            )
        return v


class GCloudConfig(BaseModel):
    """Target Google Cloud project settings.

    Attributes:
        project: Google Cloud project ID
        region: Default compute region
        zone: Default compute zone
        registry_host: Container registry host
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    project: str = Field(..., description="Google Cloud project ID")
    region: str = Field(default="us-east1", description="Default compute region")
    zone: str = Field(default="us-east1-c", description="Default compute zone")
    registry_host: str = Field(default="gcr.io", description="Registry host")

    @field_validator("project")
    @classmethod
    def validate_project(cls, v: str) -> str:
        """Validate GCP project ID format."""
        if not GCP_PROJECT_ID_PATTERN.match(v):
            raise ValueError(
                f"Invalid GCP project ID: {v}. "
                "Must be 6-30 lowercase letters, numbers, and hyphens, "
                "starting with a letter and not ending with a hyphen."
            )
        return v

    @field_validator("region")
    @classmethod
    def validate_region(cls, v: str) -> str:
        """Validate region format (e.g., us-east1)."""
        if not GCP_REGION_PATTERN.match(v):
            raise ValueError(f"Invalid region: {v}. Expected format like us-east1.")
        return v

    @field_validator("zone")
    @classmethod
    def validate_zone(cls, v: str) -> str:
        """Validate zone format (e.g., us-east1-c)."""
        if not GCP_ZONE_PATTERN.match(v):
            raise ValueError(f"Invalid zone: {v}. Expected format like us-east1-c.")
        return v


class ImageRef(BaseModel):
    """Resolved container image names for one service and tag.

    Attributes:
        name: Image name without tag (``<host>/<project>/<prefix>``)
        current: Image reference including the tag
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    current: str


class DeploymentConfig(BaseModel):
    """Main deployment configuration model.

    Attributes:
        tag: Version tag namespacing images and instance templates
        gcloud: Target cloud project settings
        site: Primary service configuration
        packager: Secondary packager service configuration
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    tag: str = Field(..., description="Version tag for this rollout")
    gcloud: GCloudConfig = Field(..., description="Google Cloud settings")
    site: ServiceConfig = Field(..., description="Primary service")
    packager: ServiceConfig = Field(..., description="Packager service")

    @field_validator("tag")
    @classmethod
    def validate_tag(cls, v: str) -> str:
        """Validate the tag is usable as an image tag."""
        if not TAG_PATTERN.match(v):
            raise ValueError(
                f"Invalid tag: {v}. Must be 1-128 characters of letters, digits, "
                "'_', '.' and '-', not starting with '.' or '-'."
            )
        return v

    @model_validator(mode="after")
    def validate_template_names(self) -> "DeploymentConfig":
        """Validate the tag yields usable instance template names."""
        for service in (self.site, self.packager):
            name = self.template_name(service)
            if not TEMPLATE_NAME_PATTERN.match(name):
                raise ValueError(
                    f"Invalid instance template name: {name}. Must be at most 63 "
                    "characters and end with a letter or digit; shorten the tag "
                    "or drop its trailing '.', '_' or '-'."
                )
        return self

    def image(self, service: ServiceConfig) -> ImageRef:
        """Return the image names for a service at the configured tag."""
        name = f"{self.gcloud.registry_host}/{self.gcloud.project}/{service.prefix}"
        return ImageRef(name=name, current=f"{name}:{self.tag}")

    def template_name(self, service: ServiceConfig) -> str:
        """Return the instance template name for a service at the configured tag."""
        # Template names may not contain '.' or '_' or uppercase letters
        safe_tag = re.sub(r"[^a-z0-9-]", "-", self.tag.lower())
        return f"it-{service.prefix}-{safe_tag}"
