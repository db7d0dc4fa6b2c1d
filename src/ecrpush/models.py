"""Shared domain models for ecrpush."""

import enum
from dataclasses import dataclass, field
from typing import List, Optional

from .constants import (
    DEFAULT_ACCOUNT,
    DEFAULT_NAMESPACE,
    DEFAULT_REGION,
    DEFAULT_REPOSITORY,
    DEFAULT_SECRET_NAME,
    DEFAULT_TAG,
    REGISTRY_HOST_TEMPLATE,
    REGISTRY_USERNAME,
)


@dataclass(frozen=True)
class RunConfig:
    """Registry and cluster coordinates for a single run."""

    source_image: str
    tag: str = DEFAULT_TAG
    region: str = DEFAULT_REGION
    account: str = DEFAULT_ACCOUNT
    repository: str = DEFAULT_REPOSITORY
    namespace: str = DEFAULT_NAMESPACE
    secret_name: str = DEFAULT_SECRET_NAME
    registry_username: str = REGISTRY_USERNAME

    @property
    def registry_endpoint(self) -> str:
        return REGISTRY_HOST_TEMPLATE.format(account=self.account, region=self.region)

    @property
    def destination_image(self) -> str:
        return f"{self.registry_endpoint}/{self.repository}:{self.tag}"


class WorkflowStage(enum.Enum):
    INIT = "init"
    DEPENDENCIES_CHECKED = "dependencies_checked"
    HELPER_READY = "helper_ready"
    HELPER_ABSENT = "helper_absent"
    CLUSTER_READY = "cluster_ready"
    CLUSTER_SKIPPED = "cluster_skipped"
    CREDENTIALS_VERIFIED = "credentials_verified"
    REGISTRY_AUTHENTICATED = "registry_authenticated"
    REPOSITORY_READY = "repository_ready"
    IMAGE_READY = "image_ready"
    IMAGE_TAGGED = "image_tagged"
    IMAGE_PUSHED = "image_pushed"
    SECRET_PROVISIONED = "secret_provisioned"
    SECRET_SKIPPED = "secret_skipped"
    DONE = "done"


_STAGE_ORDER = [
    (WorkflowStage.INIT,),
    (WorkflowStage.DEPENDENCIES_CHECKED,),
    (WorkflowStage.HELPER_READY, WorkflowStage.HELPER_ABSENT),
    (WorkflowStage.CLUSTER_READY, WorkflowStage.CLUSTER_SKIPPED),
    (WorkflowStage.CREDENTIALS_VERIFIED,),
    (WorkflowStage.REGISTRY_AUTHENTICATED,),
    (WorkflowStage.REPOSITORY_READY,),
    (WorkflowStage.IMAGE_READY,),
    (WorkflowStage.IMAGE_TAGGED,),
    (WorkflowStage.IMAGE_PUSHED,),
    (WorkflowStage.SECRET_PROVISIONED, WorkflowStage.SECRET_SKIPPED),
    (WorkflowStage.DONE,),
]


def stage_rank(stage: WorkflowStage) -> int:
    for rank, group in enumerate(_STAGE_ORDER):
        if stage in group:
            return rank
    raise ValueError(f"Unknown workflow stage: {stage}")


@dataclass
class RunState:
    """Capability flags and cluster session threaded through the workflow."""

    kubeconfig: Optional[str] = None
    docker_available: bool = False
    cloud_cli_available: bool = False
    cluster_cli_available: bool = False
    helper_available: bool = False
    cluster_configured: bool = False
    secret_provisioned: bool = False
    stage: WorkflowStage = WorkflowStage.INIT
    history: List[WorkflowStage] = field(default_factory=lambda: [WorkflowStage.INIT])

    def advance(self, stage: WorkflowStage):
        if stage_rank(stage) != stage_rank(self.stage) + 1:
            raise ValueError(f"Invalid workflow transition: {self.stage.value} -> {stage.value}")
        self.stage = stage
        self.history.append(stage)
