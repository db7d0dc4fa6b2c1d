import pytest

from ecrpush.models import RunConfig, RunState, WorkflowStage


def test_destination_image_scenario():
    config = RunConfig(
        source_image="myrepo/app:dev",
        tag="v2",
        account="795250896452",
        region="us-east-1",
        repository="ts-tools/n8n",
    )

    assert config.destination_image == "795250896452.dkr.ecr.us-east-1.amazonaws.com/ts-tools/n8n:v2"


def test_destination_image_defaults_to_latest_tag():
    config = RunConfig(source_image="myrepo/app:dev")

    assert config.tag == "latest"
    assert config.destination_image.endswith(":latest")
    assert config.registry_endpoint == "795250896452.dkr.ecr.us-east-1.amazonaws.com"


def test_destination_image_uses_custom_coordinates():
    config = RunConfig(source_image="x", tag="t", account="1", region="eu-west-1", repository="a/b")

    assert config.destination_image == "1.dkr.ecr.eu-west-1.amazonaws.com/a/b:t"


def test_run_state_advances_through_branches():
    state = RunState()

    for stage in (
        WorkflowStage.DEPENDENCIES_CHECKED,
        WorkflowStage.HELPER_ABSENT,
        WorkflowStage.CLUSTER_SKIPPED,
        WorkflowStage.CREDENTIALS_VERIFIED,
    ):
        state.advance(stage)

    assert state.stage is WorkflowStage.CREDENTIALS_VERIFIED
    assert state.history[0] is WorkflowStage.INIT
    assert len(state.history) == 5


def test_run_state_rejects_skipping_or_reversing_stages():
    state = RunState()

    with pytest.raises(ValueError, match="Invalid workflow transition"):
        state.advance(WorkflowStage.IMAGE_PUSHED)

    state.advance(WorkflowStage.DEPENDENCIES_CHECKED)
    with pytest.raises(ValueError):
        state.advance(WorkflowStage.INIT)
