import subprocess

import pytest

from ecrpush.errors import PusherError
from ecrpush.services.cloud_cli import CloudCli
from ecrpush.services.cluster_cli import ClusterCli
from ecrpush.services.container_engine import ContainerEngine


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None


class FakeRunner:
    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def run(self, cmd, check=True, capture_output=False, **kwargs):
        self.calls.append((list(cmd), kwargs))
        returncode, stdout = 0, ""
        for prefix in sorted(self.responses, key=len):
            if tuple(cmd[: len(prefix)]) == prefix:
                returncode, stdout = self.responses[prefix]
        if check and returncode != 0:
            raise PusherError(f"Command failed ({returncode}): {' '.join(cmd)}")
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="")


def test_container_engine_reports_missing_binary():
    engine = ContainerEngine(FakeRunner(), DummyLogger(), which=lambda _name: None)

    assert engine.is_installed() is False


def test_container_engine_detects_stopped_daemon():
    runner = FakeRunner({("docker", "info"): (1, "")})
    engine = ContainerEngine(runner, DummyLogger(), which=lambda name: f"/usr/bin/{name}")

    assert engine.is_installed() is True
    assert engine.is_running() is False


def test_container_engine_login_sends_password_on_stdin():
    runner = FakeRunner()
    engine = ContainerEngine(runner, DummyLogger())

    engine.login("1.dkr.ecr.us-east-1.amazonaws.com", "AWS", "s3cret")

    cmd, kwargs = runner.calls[0]
    assert cmd == [
        "docker",
        "login",
        "--username",
        "AWS",
        "--password-stdin",
        "1.dkr.ecr.us-east-1.amazonaws.com",
    ]
    assert kwargs["input_text"] == "s3cret"
    assert "s3cret" not in cmd


def test_container_engine_pull_failure_is_fatal():
    runner = FakeRunner({("docker", "pull"): (1, "")})
    engine = ContainerEngine(runner, DummyLogger())

    with pytest.raises(PusherError):
        engine.pull("myrepo/app:dev")


def test_cloud_cli_identity_and_password():
    runner = FakeRunner(
        {
            ("aws", "sts", "get-caller-identity", "--output"): (0, '{"Arn": "arn:aws:iam::1:user/ci"}'),
            ("aws", "ecr", "get-login-password"): (0, "token\n"),
        }
    )
    cloud = CloudCli(runner, DummyLogger())

    assert cloud.identity_valid() is True
    assert cloud.caller_identity() == {"Arn": "arn:aws:iam::1:user/ci"}
    assert cloud.get_login_password("eu-west-1") == "token"
    assert runner.calls[-1][0] == ["aws", "ecr", "get-login-password", "--region", "eu-west-1"]
    assert runner.calls[-1][1]["log_output"] is False


def test_cloud_cli_rejects_empty_login_password():
    runner = FakeRunner({("aws", "ecr", "get-login-password"): (0, "")})

    with pytest.raises(PusherError, match="empty login password"):
        CloudCli(runner, DummyLogger()).get_login_password("us-east-1")


def test_cloud_cli_repository_lookup_does_not_raise_when_missing():
    runner = FakeRunner({("aws", "ecr", "describe-repositories"): (254, "")})
    cloud = CloudCli(runner, DummyLogger())

    assert cloud.repository_exists("ts-tools/n8n", "us-east-1") is False

    cloud.create_repository("ts-tools/n8n", "us-east-1")
    assert runner.calls[-1][0] == [
        "aws",
        "ecr",
        "create-repository",
        "--repository-name",
        "ts-tools/n8n",
        "--region",
        "us-east-1",
    ]


def test_cluster_cli_passes_kubeconfig_through_environment():
    runner = FakeRunner()
    cluster = ClusterCli(runner, DummyLogger())

    assert cluster.cluster_reachable("/home/op/.kube/config.staging") is True
    assert cluster.cluster_reachable() is True

    assert runner.calls[0][1]["env"] == {"KUBECONFIG": "/home/op/.kube/config.staging"}
    assert runner.calls[1][1]["env"] is None


def test_cluster_cli_creates_docker_registry_secret_with_masked_password():
    runner = FakeRunner()
    cluster = ClusterCli(runner, DummyLogger())

    cluster.create_docker_registry_secret(
        name="ecr-registry-secret",
        namespace="ts-tools",
        server="1.dkr.ecr.us-east-1.amazonaws.com",
        username="AWS",
        password="pw",
    )

    cmd, kwargs = runner.calls[0]
    assert cmd == [
        "kubectl",
        "create",
        "secret",
        "docker-registry",
        "ecr-registry-secret",
        "--docker-server=1.dkr.ecr.us-east-1.amazonaws.com",
        "--docker-username=AWS",
        "--docker-password=pw",
        "--namespace=ts-tools",
    ]
    assert kwargs["secrets"] == ["pw"]


def test_cluster_cli_delete_secret_reports_failure():
    runner = FakeRunner({("kubectl", "delete", "secret"): (1, "")})

    assert ClusterCli(runner, DummyLogger()).delete_secret("s", "ns") is False
